from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse

from .. import document_service
from ..constants import DOCUMENT_TYPES
from ..deps import get_current_user, require_admin, require_doctor, require_patient, require_staff
from ..models import DocumentStatus, User
from ..schemas import DocumentShareIn, DocumentStatusIn, DocumentUpdateIn

router = APIRouter(prefix="/api/documents", tags=["Documents"])


# Uploads (multipart)

@router.post("/upload", status_code=201)
async def upload(
    document: UploadFile = File(...),
    document_type: str = Form("other"),
    description: str | None = Form(None),
    is_public: bool = Form(False),
    patient_id: int | None = Form(None),
    appointment_id: int | None = Form(None),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    doc = await document_service.upload_document(
        user,
        document,
        document_type=document_type,
        description=description,
        is_public=is_public,
        patient_id=patient_id,
        appointment_id=appointment_id,
    )
    return {"message": "Document uploaded successfully", "document": doc}


@router.post("/upload/resume", status_code=201)
async def upload_resume(
    document: UploadFile = File(...),
    description: str | None = Form(None),
    user: User = Depends(require_doctor),
) -> dict[str, Any]:
    doc = await document_service.upload_resume(user, document, description)
    return {"message": "Resume uploaded successfully", "document": doc}


@router.post("/upload/certification", status_code=201)
async def upload_certification(
    document: UploadFile = File(...),
    description: str | None = Form(None),
    user: User = Depends(require_doctor),
) -> dict[str, Any]:
    doc = await document_service.upload_certification(user, document, description)
    return {"message": "Certification uploaded successfully", "document": doc}


@router.post("/upload/bulk", status_code=201)
async def upload_bulk(
    documents: list[UploadFile] = File(...),
    document_type: str = Form("other"),
    patient_id: int | None = Form(None),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    result = await document_service.bulk_upload(user, documents, document_type, patient_id)
    result["message"] = f"{len(result['uploaded'])} document(s) uploaded, {len(result['errors'])} failed"
    return result


# Listings

@router.get("")
def my_documents(document_type: str | None = None, user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = document_service.list_my_documents(user, document_type)
    return {"documents": items, "count": len(items)}


@router.get("/types")
def document_types() -> dict[str, Any]:
    return {"document_types": DOCUMENT_TYPES}


@router.get("/search")
def search(q: str = Query(..., min_length=1), user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = document_service.search_documents(user, q)
    return {"documents": items, "count": len(items)}


@router.get("/stats")
def stats(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"stats": document_service.document_stats(user)}


@router.get("/recent")
def recent(limit: int = Query(10, ge=1, le=50), user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = document_service.recent_documents(user, limit)
    return {"documents": items, "count": len(items)}


@router.get("/shared-with-me")
def shared_with_me(user: User = Depends(require_doctor)) -> dict[str, Any]:
    items = document_service.shared_with_me(user)
    return {"documents": items, "count": len(items)}


@router.get("/patient/{patient_id}")
def by_patient(patient_id: int, user: User = Depends(require_staff)) -> dict[str, Any]:
    items = document_service.list_patient_documents(user, patient_id)
    return {"documents": items, "count": len(items)}


@router.get("/type/{document_type}")
def by_type(document_type: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = document_service.list_by_type(user, document_type)
    return {"documents": items, "count": len(items)}


@router.get("/public/{user_id}")
def public_documents(user_id: int) -> dict[str, Any]:
    items = document_service.public_documents(user_id)
    return {"documents": items, "count": len(items)}


@router.get("/doctor/{doctor_id}/resume")
def doctor_resume(doctor_id: int) -> dict[str, Any]:
    return {"document": document_service.doctor_resume(doctor_id)}


@router.get("/doctor/{doctor_id}/certifications")
def doctor_certifications(doctor_id: int) -> dict[str, Any]:
    items = document_service.doctor_certifications(doctor_id)
    return {"documents": items, "count": len(items)}


# Admin

@router.get("/admin/all")
def admin_all(status: DocumentStatus | None = None, user: User = Depends(require_admin)) -> dict[str, Any]:
    items = document_service.admin_list_documents(status)
    return {"documents": items, "count": len(items)}


@router.put("/admin/{document_id}/status")
def admin_status(document_id: int, payload: DocumentStatusIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    doc = document_service.admin_set_status(document_id, payload.status)
    return {"message": f"Document {payload.status.value}", "document": doc}


# Single document

@router.get("/{document_id}")
def get_one(document_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"document": document_service.get_document(user, document_id)}


@router.get("/{document_id}/download")
def download(document_id: int, user: User = Depends(get_current_user)) -> FileResponse:
    path, name, media_type = document_service.get_download(user, document_id)
    return FileResponse(path, media_type=media_type, filename=name)


@router.put("/{document_id}")
def update(document_id: int, payload: DocumentUpdateIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    doc = document_service.update_document(
        user,
        document_id,
        description=payload.description,
        is_public=payload.is_public,
        document_type=payload.document_type,
    )
    return {"message": "Document updated successfully", "document": doc}


@router.delete("/{document_id}")
def delete(document_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    document_service.delete_document(user, document_id)
    return {"message": "Document deleted successfully"}


@router.post("/{document_id}/share", status_code=201)
def share(document_id: int, payload: DocumentShareIn, user: User = Depends(require_patient)) -> dict[str, Any]:
    shared = document_service.share_document(user, document_id, payload.doctor_id, payload.message)
    return {"message": "Document shared successfully", "share": shared}
