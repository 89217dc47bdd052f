from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any

from fastapi import UploadFile
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from . import storage
from .constants import DOCUMENT_TYPES, MAX_BULK_FILES
from .db import db_session
from .errors import ConflictError, HealthcareError, NotFoundError, PermissionDeniedError, ValidationError
from .models import Appointment, Document, DocumentShare, DocumentStatus, Message, Role, User
from .serializers import document_flat, share_flat

logger = logging.getLogger(__name__)

DOCUMENT_TYPE_VALUES = tuple(t["value"] for t in DOCUMENT_TYPES)
HIDDEN_STATUSES = (DocumentStatus.ARCHIVED, DocumentStatus.REJECTED)


# =========================
# Access rules
# =========================
def _is_shared_with(s: Session, document_id: int, user_id: int) -> bool:
    q = select(DocumentShare.id).where(DocumentShare.document_id == document_id, DocumentShare.doctor_id == user_id)
    return s.execute(q.limit(1)).first() is not None


def _can_access(s: Session, d: Document, actor: User) -> bool:
    """admin, owner, uploader, public document, or shared with the caller."""
    return (
        actor.role == Role.ADMIN
        or d.patient_id == actor.id
        or d.uploaded_by == actor.id
        or d.is_public
        or _is_shared_with(s, d.id, actor.id)
    )


def _can_manage(d: Document, actor: User) -> bool:
    return actor.role == Role.ADMIN or d.uploaded_by == actor.id


def _visible_clause(actor: User):
    shared = select(DocumentShare.document_id).where(DocumentShare.doctor_id == actor.id)
    return or_(
        Document.patient_id == actor.id,
        Document.uploaded_by == actor.id,
        Document.is_public.is_(True),
        Document.id.in_(shared),
    )


def _own_clause(actor: User):
    return or_(Document.patient_id == actor.id, Document.uploaded_by == actor.id)


def _get(s: Session, document_id: int) -> Document:
    d = s.get(Document, document_id)
    if d is None:
        raise NotFoundError("Document not found")
    return d


def _validate_type(document_type: str | None) -> str:
    document_type = (document_type or "other").strip()
    if document_type not in DOCUMENT_TYPE_VALUES:
        raise ValidationError(f"Invalid document type: {document_type}")
    return document_type


def _newest_first(q):
    return q.order_by(Document.upload_date.desc(), Document.id.desc())


# =========================
# Upload
# =========================
def _insert_document(
    s: Session,
    stored: storage.StoredFile,
    actor: User,
    owner_id: int,
    document_type: str,
    description: str | None,
    is_public: bool,
    appointment_id: int | None,
) -> Document:
    if owner_id != actor.id:
        owner = s.get(User, owner_id)
        if owner is None or owner.role != Role.PATIENT:
            raise NotFoundError("Patient not found")
    if appointment_id is not None and s.get(Appointment, appointment_id) is None:
        raise NotFoundError("Appointment not found")

    d = Document(
        patient_id=owner_id,
        uploaded_by=actor.id,
        appointment_id=appointment_id,
        document_name=stored.original_name,
        document_type=document_type,
        file_path=stored.name,
        file_size=stored.size,
        description=(description or "").strip() or None,
        is_public=is_public,
        status=DocumentStatus.PENDING,
    )
    s.add(d)
    s.flush()
    s.refresh(d)
    return d


def _archive_resumes(s: Session, doctor_id: int) -> None:
    previous = s.scalars(
        select(Document).where(
            Document.patient_id == doctor_id,
            Document.document_type == "resume",
            Document.status != DocumentStatus.ARCHIVED,
        )
    )
    for old in previous:
        old.is_public = False
        old.status = DocumentStatus.ARCHIVED


def _record_document(
    stored: storage.StoredFile,
    actor: User,
    owner_id: int,
    document_type: str,
    description: str | None,
    is_public: bool,
    appointment_id: int | None,
    replace_resumes: bool = False,
) -> dict[str, Any]:
    """Insert the row for a stored file in one transaction; the file is removed if it fails."""
    try:
        with db_session() as s:
            if replace_resumes:
                _archive_resumes(s, actor.id)
            d = _insert_document(s, stored, actor, owner_id, document_type, description, is_public, appointment_id)
            out = document_flat(d)
    except Exception:
        storage.delete_file(stored.name)
        raise

    logger.info("document %s uploaded by user %s (owner %s, %s)", out["id"], actor.id, owner_id, document_type)
    return out


async def upload_document(
    actor: User,
    upload: UploadFile,
    document_type: str | None = "other",
    description: str | None = None,
    is_public: bool = False,
    patient_id: int | None = None,
    appointment_id: int | None = None,
) -> dict[str, Any]:
    """
    Store the file then record it.
    - patients always upload their own documents
    - doctors/admins may target a patient with `patient_id`
    """
    document_type = _validate_type(document_type)
    owner_id = actor.id if actor.role == Role.PATIENT or patient_id is None else patient_id

    stored = await storage.save_upload(upload)
    return await run_in_threadpool(
        _record_document, stored, actor, owner_id, document_type, description, is_public, appointment_id
    )


async def upload_resume(actor: User, upload: UploadFile, description: str | None = None) -> dict[str, Any]:
    """New public resume; earlier resumes of the doctor are archived and hidden."""
    stored = await storage.save_upload(upload)
    return await run_in_threadpool(
        _record_document, stored, actor, actor.id, "resume", description, True, None, True
    )


async def upload_certification(actor: User, upload: UploadFile, description: str | None = None) -> dict[str, Any]:
    stored = await storage.save_upload(upload)
    return await run_in_threadpool(
        _record_document, stored, actor, actor.id, "certification", description, True, None
    )


async def bulk_upload(
    actor: User,
    uploads: list[UploadFile],
    document_type: str | None = "other",
    patient_id: int | None = None,
) -> dict[str, Any]:
    if not uploads:
        raise ValidationError("No files uploaded")
    if len(uploads) > MAX_BULK_FILES:
        raise ValidationError(f"Too many files. Maximum {MAX_BULK_FILES} files per upload.")
    document_type = _validate_type(document_type)

    uploaded: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []
    for upload in uploads:
        try:
            uploaded.append(await upload_document(actor, upload, document_type, patient_id=patient_id))
        except HealthcareError as exc:
            errors.append({"filename": upload.filename, "error": exc.message})

    return {"uploaded": uploaded, "errors": errors}


# =========================
# Read
# =========================
def get_document(actor: User, document_id: int) -> dict[str, Any]:
    with db_session() as s:
        d = _get(s, document_id)
        if not _can_access(s, d, actor):
            raise PermissionDeniedError("Access denied")
        out = document_flat(d)
        if _can_manage(d, actor) or d.patient_id == actor.id:
            out["shares"] = [share_flat(sh) for sh in d.shares]
        return out


def get_download(actor: User, document_id: int) -> tuple[Path, str, str]:
    """(path on disk, download name, media type) for an accessible document."""
    with db_session() as s:
        d = _get(s, document_id)
        if not _can_access(s, d, actor):
            raise PermissionDeniedError("Access denied")
        path = storage.resolve(d.file_path)
        name = d.document_name

    if not path.exists():
        raise NotFoundError("File not found on server")
    media_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
    return path, name, media_type


def list_my_documents(actor: User, document_type: str | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Document).where(_own_clause(actor), Document.status != DocumentStatus.ARCHIVED)
        if document_type:
            q = q.where(Document.document_type == _validate_type(document_type))
        return [document_flat(d) for d in s.scalars(_newest_first(q))]


def list_patient_documents(actor: User, patient_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        patient = s.get(User, patient_id)
        if patient is None or patient.role != Role.PATIENT:
            raise NotFoundError("Patient not found")
        q = select(Document).where(Document.patient_id == patient_id)
        if actor.role != Role.ADMIN:
            q = q.where(_visible_clause(actor))
        return [document_flat(d) for d in s.scalars(_newest_first(q))]


def list_by_type(actor: User, document_type: str) -> list[dict[str, Any]]:
    return list_my_documents(actor, document_type)


def public_documents(user_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Document).where(
            Document.patient_id == user_id,
            Document.is_public.is_(True),
            Document.status.not_in(HIDDEN_STATUSES),
        )
        return [document_flat(d) for d in s.scalars(_newest_first(q))]


def doctor_resume(doctor_id: int) -> dict[str, Any]:
    with db_session() as s:
        q = select(Document).where(
            Document.patient_id == doctor_id,
            Document.document_type == "resume",
            Document.status.not_in(HIDDEN_STATUSES),
        )
        d = s.scalars(_newest_first(q).limit(1)).first()
        if d is None:
            raise NotFoundError("Resume not found")
        return document_flat(d)


def doctor_certifications(doctor_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Document).where(
            Document.patient_id == doctor_id,
            Document.document_type == "certification",
            Document.is_public.is_(True),
            Document.status.not_in(HIDDEN_STATUSES),
        )
        return [document_flat(d) for d in s.scalars(_newest_first(q))]


def search_documents(actor: User, term: str) -> list[dict[str, Any]]:
    term = (term or "").strip()
    if len(term) < 3:
        raise ValidationError("Search term must be at least 3 characters long")
    like = f"%{term}%"
    with db_session() as s:
        q = select(Document).where(or_(Document.document_name.ilike(like), Document.description.ilike(like)))
        if actor.role == Role.PATIENT:
            q = q.where(_own_clause(actor))
        elif actor.role != Role.ADMIN:
            q = q.where(_visible_clause(actor))
        return [document_flat(d) for d in s.scalars(_newest_first(q))]


def document_stats(actor: User) -> dict[str, Any]:
    with db_session() as s:
        own = _own_clause(actor)
        by_type = {
            t: int(n)
            for t, n in s.execute(
                select(Document.document_type, func.count(Document.id)).where(own).group_by(Document.document_type)
            ).all()
        }
        total_size = s.scalar(select(func.coalesce(func.sum(Document.file_size), 0)).where(own))
        public = s.scalar(select(func.count(Document.id)).where(own, Document.is_public.is_(True)))
        shared = s.scalar(
            select(func.count(DocumentShare.id))
            .join(Document, Document.id == DocumentShare.document_id)
            .where(own)
        )
        return {
            "total_documents": sum(by_type.values()),
            "total_size": int(total_size or 0),
            "public_documents": int(public or 0),
            "shared_documents": int(shared or 0),
            "by_type": by_type,
        }


def recent_documents(actor: User, limit: int = 10) -> list[dict[str, Any]]:
    limit = max(1, min(limit, 50))
    with db_session() as s:
        q = select(Document)
        if actor.role != Role.ADMIN:
            q = q.where(_own_clause(actor))
        return [document_flat(d) for d in s.scalars(_newest_first(q).limit(limit))]


def shared_with_me(actor: User) -> list[dict[str, Any]]:
    with db_session() as s:
        q = (
            select(Document, DocumentShare)
            .join(DocumentShare, DocumentShare.document_id == Document.id)
            .where(DocumentShare.doctor_id == actor.id)
            .order_by(DocumentShare.created_at.desc(), DocumentShare.id.desc())
        )
        out = []
        for d, sh in s.execute(q).all():
            row = document_flat(d)
            row["share"] = share_flat(sh)
            out.append(row)
        return out


# =========================
# Mutations
# =========================
def update_document(
    actor: User,
    document_id: int,
    description: str | None = None,
    is_public: bool | None = None,
    document_type: str | None = None,
) -> dict[str, Any]:
    with db_session() as s:
        d = _get(s, document_id)
        if not _can_manage(d, actor):
            raise PermissionDeniedError("You can only update documents you uploaded")
        if description is not None:
            d.description = description.strip() or None
        if is_public is not None:
            d.is_public = is_public
        if document_type is not None:
            d.document_type = _validate_type(document_type)
        s.flush()
        logger.info("document %s updated by user %s", document_id, actor.id)
        return document_flat(d)


def delete_document(actor: User, document_id: int) -> None:
    with db_session() as s:
        d = _get(s, document_id)
        if not _can_manage(d, actor):
            raise PermissionDeniedError("You can only delete documents you uploaded")
        file_name = d.file_path
        s.delete(d)

    storage.delete_file(file_name)
    logger.info("document %s deleted by user %s", document_id, actor.id)


def share_document(actor: User, document_id: int, doctor_id: int, message: str | None = None) -> dict[str, Any]:
    """Share an owned document with a doctor and notify them with a message."""
    with db_session() as s:
        d = _get(s, document_id)
        if d.patient_id != actor.id:
            raise PermissionDeniedError("You can only share your own documents")

        doctor = s.get(User, doctor_id)
        if doctor is None or doctor.role != Role.DOCTOR:
            raise NotFoundError("Doctor not found")
        if _is_shared_with(s, document_id, doctor_id):
            raise ConflictError("Document already shared with this doctor")

        note = (message or "").strip() or None
        sh = DocumentShare(document_id=d.id, doctor_id=doctor_id, shared_by=actor.id, message=note)
        s.add(sh)

        content = f"{actor.first_name} {actor.last_name} shared the document \"{d.document_name}\" with you."
        if note:
            content = f"{content}\n\n{note}"
        s.add(
            Message(
                sender_id=actor.id,
                receiver_id=doctor_id,
                subject=f"Document shared: {d.document_name}"[:200],
                message_content=content[:2000],
            )
        )
        s.flush()
        logger.info("document %s shared with doctor %s", document_id, doctor_id)
        return share_flat(sh)


# =========================
# Admin
# =========================
def admin_list_documents(status: DocumentStatus | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Document)
        if status is not None:
            q = q.where(Document.status == status)
        return [document_flat(d) for d in s.scalars(_newest_first(q))]


def admin_set_status(document_id: int, status: DocumentStatus) -> dict[str, Any]:
    with db_session() as s:
        d = _get(s, document_id)
        d.status = status
        s.flush()
        logger.info("document %s status -> %s", document_id, status.value)
        return document_flat(d)
