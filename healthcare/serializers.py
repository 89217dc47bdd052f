"""
Flat serializers: ORM rows -> JSON-safe dicts.

Call them inside an open `db_session()` so relationships can lazy-load;
the returned dicts are safe to use after the session is closed.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from .models import (
    Appointment,
    DoctorProfile,
    Document,
    DocumentShare,
    Message,
    PatientProfile,
    Review,
    ReviewResponse,
    Role,
    Specialization,
    User,
)


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _name(u: User | None) -> str | None:
    return u.full_name if u is not None else None


def user_flat(u: User) -> dict[str, Any]:
    return {
        "id": u.id,
        "email": u.email,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "full_name": u.full_name,
        "phone": u.phone,
        "role": u.role.value,
        "auth_provider": u.auth_provider,
        "profile_picture": u.profile_picture,
        "status": u.status.value,
        "verified": u.verified,
        "created_at": iso(u.created_at),
        "updated_at": iso(u.updated_at),
    }


def patient_profile_flat(p: PatientProfile | None) -> dict[str, Any] | None:
    if p is None:
        return None
    return {
        "date_of_birth": iso(p.date_of_birth),
        "gender": p.gender,
        "address": p.address,
        "emergency_contact": p.emergency_contact,
        "emergency_phone": p.emergency_phone,
        "medical_conditions": p.medical_conditions,
        "allergies": p.allergies,
        "blood_type": p.blood_type,
    }


def doctor_profile_flat(d: DoctorProfile | None) -> dict[str, Any] | None:
    if d is None:
        return None
    return {
        "license_number": d.license_number,
        "years_experience": d.years_experience,
        "consultation_fee": d.consultation_fee,
        "bio": d.bio,
        "availability_hours": d.availability_hours,
    }


def profile_flat(u: User) -> dict[str, Any] | None:
    if u.role == Role.PATIENT:
        return patient_profile_flat(u.patient_profile)
    if u.role == Role.DOCTOR:
        return doctor_profile_flat(u.doctor_profile)
    return None


def specialization_flat(sp: Specialization, doctor_count: int | None = None) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": sp.id,
        "name": sp.name,
        "description": sp.description,
        "created_at": iso(sp.created_at),
    }
    if doctor_count is not None:
        out["doctor_count"] = int(doctor_count)
    return out


def doctor_specializations_flat(u: User) -> list[dict[str, Any]]:
    return sorted(
        (
            {
                "id": ds.specialization_id,
                "name": ds.specialization.name,
                "description": ds.specialization.description,
                "years_experience": ds.years_experience,
                "certification": ds.certification,
            }
            for ds in u.specializations
        ),
        key=lambda x: x["name"],
    )


def doctor_flat(u: User, avg_rating: float | None = None, review_count: int | None = None) -> dict[str, Any]:
    out = user_flat(u)
    out["profile"] = doctor_profile_flat(u.doctor_profile)
    out["specializations"] = doctor_specializations_flat(u)
    out["average_rating"] = round(float(avg_rating), 1) if avg_rating is not None else 0.0
    out["review_count"] = int(review_count or 0)
    return out


def appointment_flat(a: Appointment) -> dict[str, Any]:
    return {
        "id": a.id,
        "patient_id": a.patient_id,
        "doctor_id": a.doctor_id,
        "patient_name": _name(a.patient),
        "patient_email": a.patient.email if a.patient else None,
        "doctor_name": _name(a.doctor),
        "doctor_email": a.doctor.email if a.doctor else None,
        "appointment_date": iso(a.appointment_date),
        "appointment_time": a.appointment_time,
        "reason_for_visit": a.reason_for_visit,
        "consultation_fee": a.consultation_fee,
        "status": a.status.value,
        "consultation_notes": a.consultation_notes,
        "cancellation_reason": a.cancellation_reason,
        "created_at": iso(a.created_at),
        "updated_at": iso(a.updated_at),
    }


def document_flat(d: Document) -> dict[str, Any]:
    # file_path stays server-side; downloads go through the API
    return {
        "id": d.id,
        "patient_id": d.patient_id,
        "patient_name": _name(d.patient),
        "uploaded_by": d.uploaded_by,
        "uploaded_by_name": _name(d.uploader),
        "appointment_id": d.appointment_id,
        "document_name": d.document_name,
        "document_type": d.document_type,
        "file_size": d.file_size,
        "description": d.description,
        "is_public": d.is_public,
        "status": d.status.value,
        "upload_date": iso(d.upload_date),
    }


def share_flat(sh: DocumentShare) -> dict[str, Any]:
    return {
        "id": sh.id,
        "document_id": sh.document_id,
        "doctor_id": sh.doctor_id,
        "shared_by": sh.shared_by,
        "message": sh.message,
        "created_at": iso(sh.created_at),
    }


def response_flat(rr: ReviewResponse | None) -> dict[str, Any] | None:
    if rr is None:
        return None
    return {
        "id": rr.id,
        "review_id": rr.review_id,
        "doctor_id": rr.doctor_id,
        "response_text": rr.response_text,
        "created_at": iso(rr.created_at),
        "updated_at": iso(rr.updated_at),
    }


def review_flat(r: Review) -> dict[str, Any]:
    return {
        "id": r.id,
        "patient_id": r.patient_id,
        "doctor_id": r.doctor_id,
        "patient_name": _name(r.patient),
        "doctor_name": _name(r.doctor),
        "appointment_id": r.appointment_id,
        "rating": r.rating,
        "review_text": r.review_text,
        "status": r.status.value,
        "report_reason": r.report_reason,
        "response": response_flat(r.response),
        "created_at": iso(r.created_at),
        "updated_at": iso(r.updated_at),
    }


def message_flat(m: Message) -> dict[str, Any]:
    return {
        "id": m.id,
        "sender_id": m.sender_id,
        "receiver_id": m.receiver_id,
        "sender_name": _name(m.sender),
        "receiver_name": _name(m.receiver),
        "subject": m.subject,
        "message_content": m.message_content,
        "is_read": m.is_read,
        "created_at": iso(m.created_at),
        "updated_at": iso(m.updated_at),
    }
