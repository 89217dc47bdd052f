from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .constants import BLOOD_TYPES, GENDERS, TIME_SLOTS
from .db import db_session
from .errors import NotFoundError, PermissionDeniedError, ValidationError
from .models import (
    AccountStatus,
    Appointment,
    AppointmentStatus,
    DoctorProfile,
    DoctorSpecialization,
    Document,
    DocumentStatus,
    Message,
    PatientProfile,
    Review,
    ReviewStatus,
    Role,
    User,
)
from .review_service import rating_subquery, rating_summary
from .serializers import doctor_flat, profile_flat, user_flat

logger = logging.getLogger(__name__)

PATIENT_PROFILE_FIELDS = (
    "date_of_birth",
    "gender",
    "address",
    "emergency_contact",
    "emergency_phone",
    "medical_conditions",
    "allergies",
    "blood_type",
)
DOCTOR_PROFILE_FIELDS = (
    "license_number",
    "years_experience",
    "consultation_fee",
    "bio",
    "availability_hours",
)
BASIC_INFO_FIELDS = ("first_name", "last_name", "phone", "profile_picture")

DOCTOR_SORT_KEYS = ("rating", "name", "experience", "fee")


# =========================
# Profile validation
# =========================
def _clean_patient_profile(data: dict[str, Any]) -> dict[str, Any]:
    out = {k: data[k] for k in PATIENT_PROFILE_FIELDS if k in data}

    dob = out.get("date_of_birth")
    if isinstance(dob, str):
        try:
            dob = date.fromisoformat(dob) if dob else None
        except ValueError:
            raise ValidationError("Invalid date of birth")
        out["date_of_birth"] = dob
    if dob and dob > date.today():
        raise ValidationError("Date of birth cannot be in the future")

    if out.get("blood_type") and out["blood_type"] not in BLOOD_TYPES:
        raise ValidationError(f"Invalid blood type. Allowed: {', '.join(BLOOD_TYPES)}")
    if out.get("gender") and out["gender"] not in GENDERS:
        raise ValidationError(f"Invalid gender. Allowed: {', '.join(GENDERS)}")
    return out


def _clean_doctor_profile(data: dict[str, Any]) -> dict[str, Any]:
    out = {k: data[k] for k in DOCTOR_PROFILE_FIELDS if k in data}

    years = out.get("years_experience")
    if years is not None:
        try:
            years = int(years)
        except (TypeError, ValueError):
            raise ValidationError("Years of experience must be a number")
        if not 0 <= years <= 60:
            raise ValidationError("Years of experience must be between 0 and 60")
        out["years_experience"] = years

    fee = out.get("consultation_fee")
    if fee is not None:
        try:
            fee = float(fee)
        except (TypeError, ValueError):
            raise ValidationError("Consultation fee must be a number")
        if fee < 0:
            raise ValidationError("Consultation fee must be a positive number")
        out["consultation_fee"] = fee
    return out


def apply_role_profile(s: Session, u: User, data: dict[str, Any]) -> None:
    """Create or update the profile row matching the user's role."""
    if u.role == Role.PATIENT:
        values = _clean_patient_profile(data)
        profile = s.get(PatientProfile, u.id)
        if profile is None:
            profile = PatientProfile(user_id=u.id)
            s.add(profile)
    elif u.role == Role.DOCTOR:
        values = _clean_doctor_profile(data)
        profile = s.get(DoctorProfile, u.id)
        if profile is None:
            profile = DoctorProfile(user_id=u.id)
            s.add(profile)
    else:
        raise ValidationError("Administrators have no role profile")

    for key, value in values.items():
        setattr(profile, key, value)
    s.flush()
    s.refresh(u)


def _search_clause(term: str):
    like = f"%{term.strip()}%"
    return or_(
        User.first_name.ilike(like),
        User.last_name.ilike(like),
        User.email.ilike(like),
        (User.first_name + " " + User.last_name).ilike(like),
    )


def _get_role_user(s: Session, user_id: int, role: Role) -> User:
    u = s.get(User, user_id)
    if u is None or u.role != role:
        raise NotFoundError(f"{role.value.capitalize()} not found")
    return u


# =========================
# Users and profiles
# =========================
def get_user(user_id: int) -> User | None:
    with db_session() as s:
        return s.get(User, user_id)


def get_profile(user_id: int) -> dict[str, Any]:
    with db_session() as s:
        u = s.get(User, user_id)
        if u is None:
            raise NotFoundError("User not found")
        out = user_flat(u)
        out["profile"] = profile_flat(u)
        return out


def get_profile_for(viewer: User, user_id: int) -> dict[str, Any]:
    """
    Profile visibility:
    - own profile and admins: always
    - doctors: any patient
    - everyone: doctors
    """
    with db_session() as s:
        u = s.get(User, user_id)
        if u is None:
            raise NotFoundError("User not found")

        allowed = (
            viewer.id == u.id
            or viewer.role == Role.ADMIN
            or u.role == Role.DOCTOR
            or (viewer.role == Role.DOCTOR and u.role == Role.PATIENT)
        )
        if not allowed:
            raise PermissionDeniedError("Access denied")

        out = user_flat(u)
        out["profile"] = profile_flat(u)
        return out


def update_basic_info(user_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with db_session() as s:
        u = s.get(User, user_id)
        if u is None:
            raise NotFoundError("User not found")
        for key in BASIC_INFO_FIELDS:
            if key in data and data[key] is not None:
                value = data[key].strip() if isinstance(data[key], str) else data[key]
                setattr(u, key, value)
        s.flush()
        logger.info("user %s updated basic info", user_id)
        out = user_flat(u)
        out["profile"] = profile_flat(u)
        return out


def upsert_patient_profile(user_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with db_session() as s:
        u = _get_role_user(s, user_id, Role.PATIENT)
        apply_role_profile(s, u, data)
        logger.info("patient profile saved for user %s", user_id)
        out = user_flat(u)
        out["profile"] = profile_flat(u)
        return out


def upsert_doctor_profile(user_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with db_session() as s:
        u = _get_role_user(s, user_id, Role.DOCTOR)
        apply_role_profile(s, u, data)
        logger.info("doctor profile saved for user %s", user_id)
        out = user_flat(u)
        out["profile"] = profile_flat(u)
        return out


# =========================
# Directories
# =========================
def list_patients(search: str | None = None, status: AccountStatus | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(User).where(User.role == Role.PATIENT)
        if search:
            q = q.where(_search_clause(search))
        if status is not None:
            q = q.where(User.status == status)
        q = q.order_by(User.last_name, User.first_name)

        out = []
        for u in s.scalars(q):
            row = user_flat(u)
            row["profile"] = profile_flat(u)
            out.append(row)
        return out


def list_doctors(
    search: str | None = None,
    specialization_id: int | None = None,
    min_rating: float | None = None,
    sort_by: str = "rating",
    verified_only: bool = False,
    include_inactive: bool = False,
) -> list[dict[str, Any]]:
    if sort_by not in DOCTOR_SORT_KEYS:
        raise ValidationError(f"Invalid sort_by. Allowed: {', '.join(DOCTOR_SORT_KEYS)}")

    ratings = rating_subquery()
    with db_session() as s:
        q = (
            select(User, ratings.c.avg_rating, ratings.c.review_count)
            .outerjoin(ratings, ratings.c.doctor_id == User.id)
            .where(User.role == Role.DOCTOR)
        )
        if not include_inactive:
            q = q.where(User.status == AccountStatus.ACTIVE)
        if verified_only:
            q = q.where(User.verified.is_(True))
        if search:
            q = q.where(_search_clause(search))
        if specialization_id is not None:
            q = q.where(
                User.id.in_(
                    select(DoctorSpecialization.doctor_id).where(
                        DoctorSpecialization.specialization_id == specialization_id
                    )
                )
            )

        doctors = [doctor_flat(u, avg, cnt) for u, avg, cnt in s.execute(q).all()]

    if min_rating is not None:
        doctors = [d for d in doctors if d["average_rating"] >= min_rating]
    return sort_doctors(doctors, sort_by)


def sort_doctors(doctors: list[dict[str, Any]], sort_by: str) -> list[dict[str, Any]]:
    def profile_value(d: dict[str, Any], key: str, default: float) -> float:
        value = (d.get("profile") or {}).get(key)
        return float(value) if value is not None else default

    if sort_by == "name":
        return sorted(doctors, key=lambda d: (d["last_name"].lower(), d["first_name"].lower()))
    if sort_by == "experience":
        return sorted(doctors, key=lambda d: -profile_value(d, "years_experience", 0))
    if sort_by == "fee":
        return sorted(doctors, key=lambda d: profile_value(d, "consultation_fee", float("inf")))
    return sorted(doctors, key=lambda d: (-d["average_rating"], -d["review_count"], d["last_name"].lower()))


def get_doctor_details(doctor_id: int) -> dict[str, Any]:
    with db_session() as s:
        u = _get_role_user(s, doctor_id, Role.DOCTOR)
        stats = rating_summary(s, doctor_id)
        out = doctor_flat(u, stats["average_rating"], stats["total_reviews"])
        out["rating_stats"] = stats
        out["completed_appointments"] = s.scalar(
            select(func.count(Appointment.id)).where(
                Appointment.doctor_id == doctor_id,
                Appointment.status == AppointmentStatus.COMPLETED,
            )
        )
        return out


def available_slots(doctor_id: int, day: date) -> dict[str, Any]:
    """Standard slots for `day` minus the ones already taken by non-cancelled appointments."""
    with db_session() as s:
        doctor = _get_role_user(s, doctor_id, Role.DOCTOR)
        booked = set(
            s.scalars(
                select(Appointment.appointment_time).where(
                    Appointment.doctor_id == doctor_id,
                    Appointment.appointment_date == day,
                    Appointment.status != AppointmentStatus.CANCELLED,
                )
            )
        )
        active = doctor.is_active

    now = datetime.now()
    if not active or day < now.date():
        free: list[str] = []
    else:
        free = [t for t in TIME_SLOTS if t not in booked]
        if day == now.date():
            free = [t for t in free if t > now.strftime("%H:%M")]

    return {
        "doctor_id": doctor_id,
        "date": day.isoformat(),
        "available_slots": free,
        "booked_slots": sorted(booked),
    }


# =========================
# Dashboards
# =========================
def _count(s: Session, q) -> int:
    return int(s.scalar(q) or 0)


def doctor_dashboard_stats(doctor_id: int) -> dict[str, Any]:
    today = date.today()
    base = select(func.count(Appointment.id)).where(Appointment.doctor_id == doctor_id)
    open_statuses = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

    with db_session() as s:
        _get_role_user(s, doctor_id, Role.DOCTOR)
        stats = rating_summary(s, doctor_id)
        return {
            "total_appointments": _count(s, base),
            "today_appointments": _count(
                s,
                base.where(
                    Appointment.appointment_date == today,
                    Appointment.status != AppointmentStatus.CANCELLED,
                ),
            ),
            "upcoming_appointments": _count(
                s,
                base.where(Appointment.appointment_date >= today, Appointment.status.in_(open_statuses)),
            ),
            "completed_appointments": _count(s, base.where(Appointment.status == AppointmentStatus.COMPLETED)),
            "cancelled_appointments": _count(s, base.where(Appointment.status == AppointmentStatus.CANCELLED)),
            "total_patients": _count(
                s,
                select(func.count(func.distinct(Appointment.patient_id))).where(
                    Appointment.doctor_id == doctor_id
                ),
            ),
            "average_rating": stats["average_rating"],
            "total_reviews": stats["total_reviews"],
            "unread_messages": _count(
                s,
                select(func.count(Message.id)).where(
                    Message.receiver_id == doctor_id,
                    Message.is_read.is_(False),
                    Message.receiver_deleted.is_(False),
                ),
            ),
        }


def patient_dashboard_stats(patient_id: int) -> dict[str, Any]:
    today = date.today()
    base = select(func.count(Appointment.id)).where(Appointment.patient_id == patient_id)
    open_statuses = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

    with db_session() as s:
        _get_role_user(s, patient_id, Role.PATIENT)
        return {
            "total_appointments": _count(s, base),
            "upcoming_appointments": _count(
                s,
                base.where(Appointment.appointment_date >= today, Appointment.status.in_(open_statuses)),
            ),
            "completed_appointments": _count(s, base.where(Appointment.status == AppointmentStatus.COMPLETED)),
            "cancelled_appointments": _count(s, base.where(Appointment.status == AppointmentStatus.CANCELLED)),
            "total_documents": _count(
                s, select(func.count(Document.id)).where(Document.patient_id == patient_id)
            ),
            "total_reviews": _count(s, select(func.count(Review.id)).where(Review.patient_id == patient_id)),
            "unread_messages": _count(
                s,
                select(func.count(Message.id)).where(
                    Message.receiver_id == patient_id,
                    Message.is_read.is_(False),
                    Message.receiver_deleted.is_(False),
                ),
            ),
        }


# =========================
# Admin
# =========================
def admin_list_users(role: Role | None = None, status: AccountStatus | None = None, search: str | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(User)
        if role is not None:
            q = q.where(User.role == role)
        if status is not None:
            q = q.where(User.status == status)
        if search:
            q = q.where(_search_clause(search))
        q = q.order_by(User.created_at.desc(), User.id.desc())
        return [user_flat(u) for u in s.scalars(q)]


def _group_counts(s: Session, column, enum_cls) -> dict[str, int]:
    counts = {member.value: 0 for member in enum_cls}
    for value, n in s.execute(select(column, func.count()).group_by(column)).all():
        counts[value.value] = int(n)
    counts["total"] = sum(counts.values())
    return counts


def admin_stats() -> dict[str, Any]:
    with db_session() as s:
        return {
            "users": _group_counts(s, User.role, Role),
            "accounts": _group_counts(s, User.status, AccountStatus),
            "appointments": _group_counts(s, Appointment.status, AppointmentStatus),
            "documents": _group_counts(s, Document.status, DocumentStatus),
            "reviews": _group_counts(s, Review.status, ReviewStatus),
            "unverified_doctors": _count(
                s,
                select(func.count(User.id)).where(User.role == Role.DOCTOR, User.verified.is_(False)),
            ),
        }


def set_doctor_verified(doctor_id: int, verified: bool = True) -> dict[str, Any]:
    with db_session() as s:
        u = _get_role_user(s, doctor_id, Role.DOCTOR)
        u.verified = verified
        s.flush()
        logger.info("doctor %s verified=%s", doctor_id, verified)
        return user_flat(u)


def set_account_status(user_id: int, status: AccountStatus, role: Role | None = None) -> dict[str, Any]:
    """Change an account status; `role` restricts the target (doctor/patient endpoints)."""
    with db_session() as s:
        u = _get_role_user(s, user_id, role) if role is not None else s.get(User, user_id)
        if u is None:
            raise NotFoundError("User not found")
        if u.role == Role.ADMIN:
            raise PermissionDeniedError("Administrator accounts cannot be modified here")
        u.status = status
        s.flush()
        logger.info("user %s status -> %s", user_id, status.value)
        return user_flat(u)
