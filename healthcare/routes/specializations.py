from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from .. import specialization_service
from ..deps import require_admin, require_doctor, require_roles
from ..errors import ValidationError
from ..models import Role, User
from ..schemas import (
    BulkSpecializationIn,
    DoctorSpecializationIn,
    DoctorSpecializationUpdateIn,
    SpecializationIn,
    SpecializationUpdateIn,
)

router = APIRouter(prefix="/api/specializations", tags=["Specializations"])

require_doctor_or_admin = require_roles(Role.DOCTOR, Role.ADMIN)


def _target_doctor(user: User, doctor_id: int | None) -> int:
    """Doctors manage their own list; admins must name the doctor."""
    if user.role == Role.ADMIN:
        if doctor_id is None:
            raise ValidationError("doctor_id is required")
        return doctor_id
    return user.id


# Public

@router.get("")
def list_all(search: str | None = None) -> dict[str, Any]:
    items = specialization_service.list_specializations(search)
    return {"specializations": items, "count": len(items)}


@router.get("/popular")
def popular(limit: int = Query(10, ge=1, le=50)) -> dict[str, Any]:
    items = specialization_service.popular_specializations(limit)
    return {"specializations": items, "count": len(items)}


@router.get("/my")
def my_specializations(user: User = Depends(require_doctor)) -> dict[str, Any]:
    items = specialization_service.doctor_specializations(user.id)
    return {"specializations": items, "count": len(items)}


@router.get("/doctor/{doctor_id}")
def doctor_specializations(doctor_id: int) -> dict[str, Any]:
    items = specialization_service.doctor_specializations(doctor_id)
    return {"specializations": items, "count": len(items)}


# Admin

@router.get("/admin/stats")
def admin_stats(user: User = Depends(require_admin)) -> dict[str, Any]:
    return {"stats": specialization_service.specialization_stats()}


@router.post("", status_code=201)
def create(payload: SpecializationIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    item = specialization_service.create_specialization(payload.name, payload.description)
    return {"message": "Specialization created successfully", "specialization": item}


# Doctor assignments

@router.post("/doctor", status_code=201)
def add_to_doctor(payload: DoctorSpecializationIn, user: User = Depends(require_doctor_or_admin)) -> dict[str, Any]:
    doctor_id = _target_doctor(user, payload.doctor_id)
    items = specialization_service.add_doctor_specialization(
        doctor_id, payload.specialization_id, payload.years_experience, payload.certification
    )
    return {"message": "Specialization added successfully", "specializations": items}


@router.post("/doctor/bulk", status_code=201)
def bulk_add(payload: BulkSpecializationIn, user: User = Depends(require_doctor)) -> dict[str, Any]:
    result = specialization_service.bulk_add_doctor_specializations(
        user.id, [item.model_dump() for item in payload.specializations]
    )
    result["message"] = f"{len(result['added'])} specialization(s) added"
    return result


@router.put("/doctor/{specialization_id}")
def update_for_doctor(
    specialization_id: int,
    payload: DoctorSpecializationUpdateIn,
    doctor_id: int | None = None,
    user: User = Depends(require_doctor_or_admin),
) -> dict[str, Any]:
    items = specialization_service.update_doctor_specialization(
        _target_doctor(user, doctor_id), specialization_id, payload.years_experience, payload.certification
    )
    return {"message": "Specialization updated successfully", "specializations": items}


@router.delete("/doctor/{specialization_id}")
def remove_from_doctor(
    specialization_id: int,
    doctor_id: int | None = None,
    user: User = Depends(require_doctor_or_admin),
) -> dict[str, Any]:
    specialization_service.remove_doctor_specialization(_target_doctor(user, doctor_id), specialization_id)
    return {"message": "Specialization removed successfully"}


# Single specialization

@router.get("/{specialization_id}")
def get_one(specialization_id: int) -> dict[str, Any]:
    return {"specialization": specialization_service.get_specialization(specialization_id)}


@router.get("/{specialization_id}/doctors")
def doctors(specialization_id: int, name: str | None = None) -> dict[str, Any]:
    return specialization_service.doctors_by_specialization(specialization_id, name)


@router.put("/{specialization_id}")
def update(specialization_id: int, payload: SpecializationUpdateIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    item = specialization_service.update_specialization(specialization_id, payload.name, payload.description)
    return {"message": "Specialization updated successfully", "specialization": item}


@router.delete("/{specialization_id}")
def delete(specialization_id: int, user: User = Depends(require_admin)) -> dict[str, Any]:
    specialization_service.delete_specialization(specialization_id)
    return {"message": "Specialization deleted successfully"}
