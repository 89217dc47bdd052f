from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .db import db_session
from .errors import ConflictError, NotFoundError, ValidationError
from .models import AccountStatus, DoctorSpecialization, Role, Specialization, User
from .review_service import rating_subquery
from .serializers import doctor_flat, doctor_specializations_flat, specialization_flat

logger = logging.getLogger(__name__)


def _get(s: Session, specialization_id: int) -> Specialization:
    sp = s.get(Specialization, specialization_id)
    if sp is None:
        raise NotFoundError("Specialization not found")
    return sp


def _get_doctor(s: Session, doctor_id: int) -> User:
    u = s.get(User, doctor_id)
    if u is None or u.role != Role.DOCTOR:
        raise NotFoundError("Doctor not found")
    return u


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not 3 <= len(name) <= 100:
        raise ValidationError("Specialization name must be between 3 and 100 characters")
    return name


def _name_taken(s: Session, name: str, exclude_id: int | None = None) -> bool:
    q = select(Specialization.id).where(func.lower(Specialization.name) == name.lower())
    if exclude_id is not None:
        q = q.where(Specialization.id != exclude_id)
    return s.execute(q.limit(1)).first() is not None


def _doctor_counts():
    return (
        select(
            DoctorSpecialization.specialization_id.label("specialization_id"),
            func.count(DoctorSpecialization.id).label("doctor_count"),
        )
        .group_by(DoctorSpecialization.specialization_id)
        .subquery()
    )


def _validate_years(years: int | None) -> int:
    years = int(years or 0)
    if not 0 <= years <= 60:
        raise ValidationError("Years of experience must be between 0 and 60")
    return years


# =========================
# Catalogue
# =========================
def list_specializations(search: str | None = None) -> list[dict[str, Any]]:
    counts = _doctor_counts()
    with db_session() as s:
        q = select(Specialization, counts.c.doctor_count).outerjoin(
            counts, counts.c.specialization_id == Specialization.id
        )
        if search:
            q = q.where(Specialization.name.ilike(f"%{search.strip()}%"))
        rows = s.execute(q.order_by(Specialization.name)).all()
        return [specialization_flat(sp, cnt or 0) for sp, cnt in rows]


def get_specialization(specialization_id: int) -> dict[str, Any]:
    with db_session() as s:
        sp = _get(s, specialization_id)
        return specialization_flat(sp, len(sp.doctors))


def doctors_by_specialization(specialization_id: int, name: str | None = None) -> dict[str, Any]:
    """Active doctors of a specialization, optionally filtered by doctor name."""
    ratings = rating_subquery()
    with db_session() as s:
        sp = _get(s, specialization_id)
        q = (
            select(User, ratings.c.avg_rating, ratings.c.review_count)
            .join(DoctorSpecialization, DoctorSpecialization.doctor_id == User.id)
            .outerjoin(ratings, ratings.c.doctor_id == User.id)
            .where(
                DoctorSpecialization.specialization_id == specialization_id,
                User.role == Role.DOCTOR,
                User.status == AccountStatus.ACTIVE,
            )
        )
        if name:
            like = f"%{name.strip()}%"
            q = q.where((User.first_name + " " + User.last_name).ilike(like))
        rows = s.execute(q.order_by(User.last_name, User.first_name)).all()
        return {
            "specialization": specialization_flat(sp),
            "doctors": [doctor_flat(u, avg, cnt) for u, avg, cnt in rows],
        }


def popular_specializations(limit: int = 10) -> list[dict[str, Any]]:
    counts = _doctor_counts()
    with db_session() as s:
        q = (
            select(Specialization, counts.c.doctor_count)
            .join(counts, counts.c.specialization_id == Specialization.id)
            .order_by(counts.c.doctor_count.desc(), Specialization.name)
            .limit(max(1, min(limit, 50)))
        )
        return [specialization_flat(sp, cnt) for sp, cnt in s.execute(q).all()]


# =========================
# Admin CRUD
# =========================
def create_specialization(name: str, description: str | None = None) -> dict[str, Any]:
    name = _clean_name(name)
    with db_session() as s:
        if _name_taken(s, name):
            raise ConflictError("Specialization already exists")
        sp = Specialization(name=name, description=(description or "").strip() or None)
        s.add(sp)
        s.flush()
        logger.info("specialization created: %s", name)
        return specialization_flat(sp, 0)


def update_specialization(specialization_id: int, name: str | None = None, description: str | None = None) -> dict[str, Any]:
    with db_session() as s:
        sp = _get(s, specialization_id)
        if name is not None:
            name = _clean_name(name)
            if _name_taken(s, name, exclude_id=sp.id):
                raise ConflictError("Specialization name already exists")
            sp.name = name
        if description is not None:
            sp.description = description.strip() or None
        s.flush()
        logger.info("specialization %s updated", specialization_id)
        return specialization_flat(sp, len(sp.doctors))


def delete_specialization(specialization_id: int) -> None:
    with db_session() as s:
        sp = _get(s, specialization_id)
        s.delete(sp)
        logger.info("specialization %s deleted", specialization_id)


def specialization_stats() -> dict[str, Any]:
    counts = _doctor_counts()
    with db_session() as s:
        rows = s.execute(
            select(Specialization, counts.c.doctor_count)
            .outerjoin(counts, counts.c.specialization_id == Specialization.id)
            .order_by(Specialization.name)
        ).all()
        items = [specialization_flat(sp, cnt or 0) for sp, cnt in rows]
        doctors_with = s.scalar(select(func.count(func.distinct(DoctorSpecialization.doctor_id)))) or 0
        return {
            "total_specializations": len(items),
            "with_doctors": sum(1 for it in items if it["doctor_count"]),
            "without_doctors": sum(1 for it in items if not it["doctor_count"]),
            "doctors_with_specializations": int(doctors_with),
            "specializations": items,
        }


# =========================
# Doctor assignments
# =========================
def add_doctor_specialization(
    doctor_id: int,
    specialization_id: int,
    years_experience: int | None = 0,
    certification: str | None = None,
) -> list[dict[str, Any]]:
    """Assign (or update, when already assigned) a specialization to a doctor."""
    years = _validate_years(years_experience)
    with db_session() as s:
        doctor = _get_doctor(s, doctor_id)
        _get(s, specialization_id)

        link = s.execute(
            select(DoctorSpecialization).where(
                DoctorSpecialization.doctor_id == doctor_id,
                DoctorSpecialization.specialization_id == specialization_id,
            )
        ).scalar_one_or_none()
        if link is None:
            link = DoctorSpecialization(doctor_id=doctor_id, specialization_id=specialization_id)
            s.add(link)
        link.years_experience = years
        link.certification = (certification or "").strip() or None
        s.flush()
        s.refresh(doctor)
        logger.info("doctor %s specialization %s saved", doctor_id, specialization_id)
        return doctor_specializations_flat(doctor)


def update_doctor_specialization(
    doctor_id: int,
    specialization_id: int,
    years_experience: int | None = None,
    certification: str | None = None,
) -> list[dict[str, Any]]:
    with db_session() as s:
        doctor = _get_doctor(s, doctor_id)
        link = s.execute(
            select(DoctorSpecialization).where(
                DoctorSpecialization.doctor_id == doctor_id,
                DoctorSpecialization.specialization_id == specialization_id,
            )
        ).scalar_one_or_none()
        if link is None:
            raise NotFoundError("Doctor specialization not found")
        if years_experience is not None:
            link.years_experience = _validate_years(years_experience)
        if certification is not None:
            link.certification = certification.strip() or None
        s.flush()
        s.refresh(doctor)
        return doctor_specializations_flat(doctor)


def remove_doctor_specialization(doctor_id: int, specialization_id: int) -> None:
    with db_session() as s:
        _get_doctor(s, doctor_id)
        link = s.execute(
            select(DoctorSpecialization).where(
                DoctorSpecialization.doctor_id == doctor_id,
                DoctorSpecialization.specialization_id == specialization_id,
            )
        ).scalar_one_or_none()
        if link is None:
            raise NotFoundError("Doctor specialization not found")
        s.delete(link)
        logger.info("doctor %s specialization %s removed", doctor_id, specialization_id)


def bulk_add_doctor_specializations(doctor_id: int, items: list[dict[str, Any]]) -> dict[str, Any]:
    if not items:
        raise ValidationError("No specializations provided")

    added: list[int] = []
    errors: list[dict[str, Any]] = []
    for item in items:
        spec_id = item.get("specialization_id")
        try:
            add_doctor_specialization(
                doctor_id,
                int(spec_id),
                item.get("years_experience", 0),
                item.get("certification"),
            )
            added.append(int(spec_id))
        except (NotFoundError, ValidationError) as exc:
            errors.append({"specialization_id": spec_id, "error": exc.message})

    return {"added": added, "errors": errors, "specializations": doctor_specializations(doctor_id)}


def doctor_specializations(doctor_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        return doctor_specializations_flat(_get_doctor(s, doctor_id))
