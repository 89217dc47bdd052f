from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query

from .. import user_service
from ..deps import get_current_user, require_admin, require_doctor, require_patient, require_staff
from ..models import AccountStatus, Role, User
from ..schemas import AccountStatusIn, BasicInfoIn, DoctorProfileIn, PatientProfileIn, VerifyIn

router = APIRouter(prefix="/api/users", tags=["Users"])


# Own profile

@router.get("/profile")
def my_profile(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": user_service.get_profile(user.id)}


@router.put("/profile")
def update_my_profile(payload: BasicInfoIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    updated = user_service.update_basic_info(user.id, payload.model_dump(exclude_unset=True))
    return {"message": "Profile updated successfully", "user": updated}


@router.put("/patient-profile")
def update_patient_profile(payload: PatientProfileIn, user: User = Depends(require_patient)) -> dict[str, Any]:
    updated = user_service.upsert_patient_profile(user.id, payload.model_dump(exclude_unset=True))
    return {"message": "Patient profile updated successfully", "user": updated}


@router.put("/doctor-profile")
def update_doctor_profile(payload: DoctorProfileIn, user: User = Depends(require_doctor)) -> dict[str, Any]:
    updated = user_service.upsert_doctor_profile(user.id, payload.model_dump(exclude_unset=True))
    return {"message": "Doctor profile updated successfully", "user": updated}


# Directories

@router.get("/patients")
def patients(search: str | None = None, user: User = Depends(require_staff)) -> dict[str, Any]:
    items = user_service.list_patients(search=search)
    return {"patients": items, "count": len(items)}


@router.get("/doctors")
def doctors(
    search: str | None = None,
    specialization_id: int | None = None,
    min_rating: float | None = Query(None, ge=0, le=5),
    sort_by: str = "rating",
    verified_only: bool = False,
) -> dict[str, Any]:
    items = user_service.list_doctors(
        search=search,
        specialization_id=specialization_id,
        min_rating=min_rating,
        sort_by=sort_by,
        verified_only=verified_only,
    )
    return {"doctors": items, "count": len(items)}


@router.get("/doctors/{doctor_id}")
def doctor_details(doctor_id: int) -> dict[str, Any]:
    return {"doctor": user_service.get_doctor_details(doctor_id)}


@router.get("/doctors/{doctor_id}/available-slots")
def doctor_slots(doctor_id: int, day: date = Query(..., alias="date")) -> dict[str, Any]:
    return user_service.available_slots(doctor_id, day)


# Dashboards

@router.get("/dashboard/doctor")
def doctor_dashboard(user: User = Depends(require_doctor)) -> dict[str, Any]:
    return {"stats": user_service.doctor_dashboard_stats(user.id)}


@router.get("/dashboard/patient")
def patient_dashboard(user: User = Depends(require_patient)) -> dict[str, Any]:
    return {"stats": user_service.patient_dashboard_stats(user.id)}


# Admin

@router.get("/admin/users")
def admin_users(
    role: Role | None = None,
    status: AccountStatus | None = None,
    search: str | None = None,
    user: User = Depends(require_admin),
) -> dict[str, Any]:
    items = user_service.admin_list_users(role=role, status=status, search=search)
    return {"users": items, "count": len(items)}


@router.get("/admin/stats")
def admin_stats(user: User = Depends(require_admin)) -> dict[str, Any]:
    return {"stats": user_service.admin_stats()}


@router.get("/admin/doctors")
def admin_doctors(search: str | None = None, user: User = Depends(require_admin)) -> dict[str, Any]:
    items = user_service.list_doctors(search=search, sort_by="name", include_inactive=True)
    return {"doctors": items, "count": len(items)}


@router.get("/admin/patients")
def admin_patients(
    search: str | None = None,
    status: AccountStatus | None = None,
    user: User = Depends(require_admin),
) -> dict[str, Any]:
    items = user_service.list_patients(search=search, status=status)
    return {"patients": items, "count": len(items)}


@router.put("/admin/doctors/{doctor_id}/verify")
def admin_verify_doctor(doctor_id: int, payload: VerifyIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    doctor = user_service.set_doctor_verified(doctor_id, payload.verified)
    message = "Doctor verified successfully" if payload.verified else "Doctor verification removed"
    return {"message": message, "doctor": doctor}


@router.put("/admin/doctors/{doctor_id}/status")
def admin_doctor_status(doctor_id: int, payload: AccountStatusIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    doctor = user_service.set_account_status(doctor_id, payload.status, Role.DOCTOR)
    return {"message": f"Doctor status updated to {payload.status.value}", "doctor": doctor}


@router.put("/admin/patients/{patient_id}/status")
def admin_patient_status(patient_id: int, payload: AccountStatusIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    patient = user_service.set_account_status(patient_id, payload.status, Role.PATIENT)
    return {"message": f"Patient status updated to {payload.status.value}", "patient": patient}


# Declared last: /{user_id} would shadow the static paths above
@router.get("/{user_id}")
def user_profile(user_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": user_service.get_profile_for(user, user_id)}
