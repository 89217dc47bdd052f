from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from .. import appointment_service
from ..deps import get_current_user, require_doctor, require_patient, require_staff
from ..models import AppointmentStatus, User
from ..schemas import AppointmentCreateIn, AppointmentStatusIn, CancelIn, ConsultationNotesIn, RescheduleIn

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


@router.post("", status_code=201)
def book(payload: AppointmentCreateIn, user: User = Depends(require_patient)) -> dict[str, Any]:
    appointment = appointment_service.book_appointment(
        patient_id=user.id,
        doctor_id=payload.doctor_id,
        appointment_date=payload.appointment_date,
        appointment_time=payload.appointment_time,
        reason_for_visit=payload.reason_for_visit,
        consultation_fee=payload.consultation_fee,
    )
    return {"message": "Appointment booked successfully", "appointment": appointment}


@router.get("")
def my_appointments(
    status: AppointmentStatus | None = None,
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    items = appointment_service.list_appointments(user, status)
    return {"appointments": items, "count": len(items)}


@router.get("/upcoming")
def upcoming(limit: int | None = Query(None, ge=1, le=100), user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = appointment_service.upcoming_appointments(user, limit)
    return {"appointments": items, "count": len(items)}


@router.get("/past")
def past(limit: int | None = Query(None, ge=1, le=100), user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = appointment_service.past_appointments(user, limit)
    return {"appointments": items, "count": len(items)}


@router.get("/today")
def today(user: User = Depends(get_current_user)) -> dict[str, Any]:
    items = appointment_service.today_appointments(user)
    return {"appointments": items, "count": len(items)}


@router.get("/patient/{patient_id}")
def by_patient(patient_id: int, user: User = Depends(require_staff)) -> dict[str, Any]:
    items = appointment_service.list_patient_appointments(user, patient_id)
    return {"appointments": items, "count": len(items)}


@router.get("/{appointment_id}")
def get_one(appointment_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"appointment": appointment_service.get_appointment(user, appointment_id)}


@router.put("/{appointment_id}/status")
def set_status(appointment_id: int, payload: AppointmentStatusIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    appointment = appointment_service.update_status(user, appointment_id, payload.status, payload.cancellation_reason)
    return {"message": "Appointment status updated successfully", "appointment": appointment}


@router.put("/{appointment_id}/notes")
def add_notes(appointment_id: int, payload: ConsultationNotesIn, user: User = Depends(require_doctor)) -> dict[str, Any]:
    appointment = appointment_service.add_consultation_notes(user, appointment_id, payload.consultation_notes)
    return {"message": "Consultation notes added successfully", "appointment": appointment}


@router.put("/{appointment_id}/cancel")
def cancel(appointment_id: int, payload: CancelIn | None = None, user: User = Depends(get_current_user)) -> dict[str, Any]:
    reason = payload.cancellation_reason if payload else None
    appointment = appointment_service.cancel_appointment(user, appointment_id, reason)
    return {"message": "Appointment cancelled successfully", "appointment": appointment}


@router.put("/{appointment_id}/reschedule")
def reschedule(appointment_id: int, payload: RescheduleIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    appointment = appointment_service.reschedule_appointment(
        user, appointment_id, payload.appointment_date, payload.appointment_time
    )
    return {"message": "Appointment rescheduled successfully", "appointment": appointment}
