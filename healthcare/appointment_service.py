from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from .db import db_session
from .errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from .models import Appointment, AppointmentStatus, Role, User
from .serializers import appointment_flat

logger = logging.getLogger(__name__)

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
OPEN_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)
CLOSED_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)


# =========================
# Helpers
# =========================
def _validate_time(value: str) -> str:
    value = (value or "").strip()
    if not TIME_RE.match(value):
        raise ValidationError("Invalid time format. Use HH:MM")
    return value


def _slot_taken(s: Session, doctor_id: int, day: date, at: str, exclude_id: int | None = None) -> bool:
    """Same doctor, same date and time, not cancelled."""
    q = select(Appointment.id).where(
        and_(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == day,
            Appointment.appointment_time == at,
            Appointment.status != AppointmentStatus.CANCELLED,
        )
    )
    if exclude_id is not None:
        q = q.where(Appointment.id != exclude_id)
    return s.execute(q.limit(1)).first() is not None


def _get(s: Session, appointment_id: int) -> Appointment:
    a = s.get(Appointment, appointment_id)
    if a is None:
        raise NotFoundError("Appointment not found")
    return a


def _is_participant(a: Appointment, actor: User) -> bool:
    return actor.id in (a.patient_id, a.doctor_id)


def _check_access(a: Appointment, actor: User) -> None:
    if actor.role != Role.ADMIN and not _is_participant(a, actor):
        raise PermissionDeniedError("Access denied")


def _scope(q, actor: User):
    """Restrict a query to the appointments visible to `actor` (admins see all)."""
    if actor.role == Role.PATIENT:
        return q.where(Appointment.patient_id == actor.id)
    if actor.role == Role.DOCTOR:
        return q.where(Appointment.doctor_id == actor.id)
    return q


def _ordered(q, descending: bool = False):
    if descending:
        return q.order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
    return q.order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())


# =========================
# Booking
# =========================
def book_appointment(
    patient_id: int,
    doctor_id: int,
    appointment_date: date,
    appointment_time: str,
    reason_for_visit: str,
    consultation_fee: float | None = None,
) -> dict[str, Any]:
    """
    Use case: book an appointment.
    - the doctor must exist and be active
    - date not in the past, time HH:MM
    - the doctor's slot must be free (non-cancelled appointments), else 409
    - fee defaults to the doctor's consultation fee
    """
    appointment_time = _validate_time(appointment_time)
    reason = (reason_for_visit or "").strip()
    if not 5 <= len(reason) <= 500:
        raise ValidationError("Reason for visit must be between 5 and 500 characters")
    if appointment_date < date.today():
        raise ValidationError("Appointment date cannot be in the past")

    with db_session() as s:
        doctor = s.get(User, doctor_id)
        if doctor is None or doctor.role != Role.DOCTOR:
            raise NotFoundError("Doctor not found")
        if not doctor.is_active:
            raise ValidationError("Doctor is not available for appointments")

        if _slot_taken(s, doctor_id, appointment_date, appointment_time):
            raise ConflictError("This time slot is already booked", status_code=409)

        if consultation_fee is None and doctor.doctor_profile is not None:
            consultation_fee = doctor.doctor_profile.consultation_fee

        a = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            reason_for_visit=reason,
            consultation_fee=consultation_fee,
            status=AppointmentStatus.SCHEDULED,
        )
        s.add(a)
        s.flush()
        s.refresh(a)
        logger.info(
            "appointment %s booked: patient %s doctor %s %s %s",
            a.id, patient_id, doctor_id, appointment_date.isoformat(), appointment_time,
        )
        return appointment_flat(a)


# =========================
# Queries
# =========================
def get_appointment(actor: User, appointment_id: int) -> dict[str, Any]:
    with db_session() as s:
        a = _get(s, appointment_id)
        _check_access(a, actor)
        return appointment_flat(a)


def list_appointments(actor: User, status: AppointmentStatus | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = _scope(select(Appointment), actor)
        if status is not None:
            q = q.where(Appointment.status == status)
        return [appointment_flat(a) for a in s.scalars(_ordered(q, descending=True))]


def list_patient_appointments(actor: User, patient_id: int) -> list[dict[str, Any]]:
    """A patient's history; doctors only see the appointments held with them."""
    with db_session() as s:
        patient = s.get(User, patient_id)
        if patient is None or patient.role != Role.PATIENT:
            raise NotFoundError("Patient not found")
        q = select(Appointment).where(Appointment.patient_id == patient_id)
        if actor.role == Role.DOCTOR:
            q = q.where(Appointment.doctor_id == actor.id)
        return [appointment_flat(a) for a in s.scalars(_ordered(q, descending=True))]


def upcoming_appointments(actor: User, limit: int | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = _scope(select(Appointment), actor).where(
            Appointment.appointment_date >= date.today(),
            Appointment.status.in_(OPEN_STATUSES),
        )
        q = _ordered(q)
        if limit:
            q = q.limit(limit)
        return [appointment_flat(a) for a in s.scalars(q)]


def past_appointments(actor: User, limit: int | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = _scope(select(Appointment), actor).where(
            or_(
                Appointment.appointment_date < date.today(),
                Appointment.status == AppointmentStatus.COMPLETED,
            )
        )
        q = _ordered(q, descending=True)
        if limit:
            q = q.limit(limit)
        return [appointment_flat(a) for a in s.scalars(q)]


def today_appointments(actor: User) -> list[dict[str, Any]]:
    with db_session() as s:
        q = _scope(select(Appointment), actor).where(
            Appointment.appointment_date == date.today(),
            Appointment.status != AppointmentStatus.CANCELLED,
        )
        return [appointment_flat(a) for a in s.scalars(_ordered(q))]


# =========================
# Mutations
# =========================
def update_status(
    actor: User,
    appointment_id: int,
    status: AppointmentStatus,
    cancellation_reason: str | None = None,
) -> dict[str, Any]:
    with db_session() as s:
        a = _get(s, appointment_id)
        _check_access(a, actor)

        if actor.role == Role.PATIENT and status != AppointmentStatus.CANCELLED:
            raise PermissionDeniedError("Patients can only cancel appointments")
        if a.status == AppointmentStatus.CANCELLED and status != AppointmentStatus.CANCELLED:
            raise ValidationError("Cannot change the status of a cancelled appointment")
        if a.status == AppointmentStatus.COMPLETED and status != AppointmentStatus.COMPLETED:
            raise ValidationError("Cannot change the status of a completed appointment")

        a.status = status
        if status == AppointmentStatus.CANCELLED and cancellation_reason:
            a.cancellation_reason = cancellation_reason.strip()
        s.flush()
        logger.info("appointment %s status -> %s (by user %s)", appointment_id, status.value, actor.id)
        return appointment_flat(a)


def add_consultation_notes(actor: User, appointment_id: int, notes: str) -> dict[str, Any]:
    notes = (notes or "").strip()
    if not 10 <= len(notes) <= 2000:
        raise ValidationError("Consultation notes must be between 10 and 2000 characters")

    with db_session() as s:
        a = _get(s, appointment_id)
        if a.doctor_id != actor.id:
            raise PermissionDeniedError("Only the assigned doctor can add consultation notes")
        if a.status == AppointmentStatus.CANCELLED:
            raise ValidationError("Cannot add notes to a cancelled appointment")
        a.consultation_notes = notes
        a.status = AppointmentStatus.COMPLETED
        s.flush()
        logger.info("consultation notes saved for appointment %s", appointment_id)
        return appointment_flat(a)


def cancel_appointment(actor: User, appointment_id: int, reason: str | None = None) -> dict[str, Any]:
    with db_session() as s:
        a = _get(s, appointment_id)
        _check_access(a, actor)
        if a.status == AppointmentStatus.CANCELLED:
            raise ValidationError("Appointment is already cancelled")
        if a.status == AppointmentStatus.COMPLETED:
            raise ValidationError("Cannot cancel a completed appointment")

        a.status = AppointmentStatus.CANCELLED
        a.cancellation_reason = (reason or "").strip() or None
        s.flush()
        logger.info("appointment %s cancelled by user %s", appointment_id, actor.id)
        return appointment_flat(a)


def reschedule_appointment(actor: User, appointment_id: int, new_date: date, new_time: str) -> dict[str, Any]:
    new_time = _validate_time(new_time)
    if new_date < date.today():
        raise ValidationError("Appointment date cannot be in the past")

    with db_session() as s:
        a = _get(s, appointment_id)
        _check_access(a, actor)
        if a.status in CLOSED_STATUSES:
            raise ValidationError(f"Cannot reschedule a {a.status.value} appointment")
        if _slot_taken(s, a.doctor_id, new_date, new_time, exclude_id=a.id):
            raise ConflictError("This time slot is already booked", status_code=409)

        a.appointment_date = new_date
        a.appointment_time = new_time
        a.status = AppointmentStatus.SCHEDULED
        s.flush()
        logger.info("appointment %s rescheduled to %s %s", appointment_id, new_date.isoformat(), new_time)
        return appointment_flat(a)
