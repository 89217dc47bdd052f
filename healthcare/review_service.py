from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .constants import RATING_MAX, RATING_MIN, VISIBLE_REVIEW_STATUSES
from .db import db_session
from .errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from .models import AccountStatus, Appointment, AppointmentStatus, Review, ReviewResponse, ReviewStatus, Role, User
from .serializers import response_flat, review_flat, user_flat

logger = logging.getLogger(__name__)


# =========================
# Rating aggregates
# =========================
def rating_subquery():
    """Per-doctor average and count of visible reviews (doctor_id, avg_rating, review_count)."""
    return (
        select(
            Review.doctor_id.label("doctor_id"),
            func.avg(Review.rating).label("avg_rating"),
            func.count(Review.id).label("review_count"),
        )
        .where(Review.status.in_(VISIBLE_REVIEW_STATUSES))
        .group_by(Review.doctor_id)
        .subquery()
    )


def rating_summary(s: Session, doctor_id: int) -> dict[str, Any]:
    rows = s.execute(
        select(Review.rating, func.count(Review.id))
        .where(Review.doctor_id == doctor_id, Review.status.in_(VISIBLE_REVIEW_STATUSES))
        .group_by(Review.rating)
    ).all()

    distribution = {str(r): 0 for r in range(RATING_MIN, RATING_MAX + 1)}
    total = 0
    weighted = 0
    for rating, n in rows:
        distribution[str(rating)] = int(n)
        total += int(n)
        weighted += int(rating) * int(n)

    return {
        "doctor_id": doctor_id,
        "average_rating": round(weighted / total, 1) if total else 0.0,
        "total_reviews": total,
        "rating_distribution": distribution,
    }


# =========================
# Helpers
# =========================
def _validate_rating(rating: int) -> None:
    if not RATING_MIN <= int(rating) <= RATING_MAX:
        raise ValidationError(f"Rating must be between {RATING_MIN} and {RATING_MAX}")


def _get_review(s: Session, review_id: int) -> Review:
    r = s.get(Review, review_id)
    if r is None:
        raise NotFoundError("Review not found")
    return r


def _get_doctor(s: Session, doctor_id: int) -> User:
    doctor = s.get(User, doctor_id)
    if doctor is None or doctor.role != Role.DOCTOR:
        raise NotFoundError("Doctor not found")
    return doctor


def _visible(q):
    return q.where(Review.status.in_(VISIBLE_REVIEW_STATUSES))


# =========================
# Patient side
# =========================
def create_review(
    patient_id: int,
    doctor_id: int,
    rating: int,
    review_text: str | None = None,
    appointment_id: int | None = None,
) -> dict[str, Any]:
    _validate_rating(rating)
    with db_session() as s:
        _get_doctor(s, doctor_id)

        existing = s.execute(
            select(Review).where(Review.patient_id == patient_id, Review.doctor_id == doctor_id)
        ).scalar_one_or_none()
        if existing is not None:
            raise ConflictError(
                "You have already reviewed this doctor. Please update your existing review.",
                existing_review=review_flat(existing),
            )

        if appointment_id is not None:
            appt = s.get(Appointment, appointment_id)
            if appt is None or appt.patient_id != patient_id or appt.doctor_id != doctor_id:
                raise ValidationError("Appointment does not belong to this patient and doctor")

        r = Review(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_id=appointment_id,
            rating=int(rating),
            review_text=(review_text or "").strip() or None,
            status=ReviewStatus.PENDING,
        )
        s.add(r)
        s.flush()
        s.refresh(r)
        logger.info("review %s created by patient %s for doctor %s", r.id, patient_id, doctor_id)
        return review_flat(r)


def get_review(review_id: int) -> dict[str, Any]:
    with db_session() as s:
        return review_flat(_get_review(s, review_id))


def list_my_reviews(patient_id: int) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Review).where(Review.patient_id == patient_id).order_by(Review.created_at.desc(), Review.id.desc())
        return [review_flat(r) for r in s.scalars(q)]


def update_review(actor: User, review_id: int, rating: int | None = None, review_text: str | None = None) -> dict[str, Any]:
    with db_session() as s:
        r = _get_review(s, review_id)
        if r.patient_id != actor.id:
            raise PermissionDeniedError("You can only update your own reviews")
        if rating is not None:
            _validate_rating(rating)
            r.rating = int(rating)
        if review_text is not None:
            r.review_text = review_text.strip() or None
        # edited reviews go back to moderation
        if r.status != ReviewStatus.PENDING:
            r.status = ReviewStatus.PENDING
        s.flush()
        logger.info("review %s updated", review_id)
        return review_flat(r)


def delete_review(actor: User, review_id: int) -> None:
    with db_session() as s:
        r = _get_review(s, review_id)
        if actor.role != Role.ADMIN and r.patient_id != actor.id:
            raise PermissionDeniedError("You can only delete your own reviews")
        s.delete(r)
        logger.info("review %s deleted by user %s", review_id, actor.id)


def can_review(patient_id: int, doctor_id: int) -> dict[str, Any]:
    with db_session() as s:
        _get_doctor(s, doctor_id)
        existing = s.execute(
            select(Review).where(Review.patient_id == patient_id, Review.doctor_id == doctor_id)
        ).scalar_one_or_none()
        completed = s.scalar(
            select(func.count(Appointment.id)).where(
                Appointment.patient_id == patient_id,
                Appointment.doctor_id == doctor_id,
                Appointment.status == AppointmentStatus.COMPLETED,
            )
        )
        return {
            "can_review": existing is None,
            "has_reviewed": existing is not None,
            "has_completed_appointment": bool(completed),
            "existing_review": review_flat(existing) if existing is not None else None,
        }


def report_review(review_id: int, reporter_id: int, reason: str | None = None) -> dict[str, Any]:
    with db_session() as s:
        r = _get_review(s, review_id)
        if r.doctor_id == reporter_id:
            raise PermissionDeniedError("You cannot report reviews about yourself")
        r.status = ReviewStatus.FLAGGED
        r.report_reason = (reason or "").strip() or "Reported by user"
        s.flush()
        logger.info("review %s reported by user %s", review_id, reporter_id)
        return review_flat(r)


# =========================
# Public listings
# =========================
def list_doctor_reviews(doctor_id: int, page: int = 1, limit: int = 10, sort: str = "newest") -> dict[str, Any]:
    page = max(1, page)
    limit = max(1, min(limit, 50))
    with db_session() as s:
        _get_doctor(s, doctor_id)
        base = _visible(select(Review).where(Review.doctor_id == doctor_id))
        total = s.scalar(select(func.count()).select_from(base.subquery())) or 0

        if sort == "highest":
            order = (Review.rating.desc(), Review.created_at.desc())
        elif sort == "lowest":
            order = (Review.rating.asc(), Review.created_at.desc())
        else:
            order = (Review.created_at.desc(), Review.id.desc())

        rows = s.scalars(base.order_by(*order).offset((page - 1) * limit).limit(limit))
        return {
            "reviews": [review_flat(r) for r in rows],
            "stats": rating_summary(s, doctor_id),
            "pagination": {
                "page": page,
                "limit": limit,
                "total": int(total),
                "pages": math.ceil(total / limit) if total else 0,
            },
        }


def doctor_rating_stats(doctor_id: int) -> dict[str, Any]:
    with db_session() as s:
        _get_doctor(s, doctor_id)
        return rating_summary(s, doctor_id)


def list_doctor_reviews_by_rating(doctor_id: int, rating: int) -> list[dict[str, Any]]:
    _validate_rating(rating)
    with db_session() as s:
        _get_doctor(s, doctor_id)
        q = _visible(select(Review).where(Review.doctor_id == doctor_id, Review.rating == rating))
        return [review_flat(r) for r in s.scalars(q.order_by(Review.created_at.desc()))]


def recent_reviews(limit: int = 10) -> list[dict[str, Any]]:
    limit = max(1, min(limit, 20))
    with db_session() as s:
        q = _visible(select(Review)).order_by(Review.created_at.desc(), Review.id.desc()).limit(limit)
        return [review_flat(r) for r in s.scalars(q)]


def top_rated_doctors(limit: int = 10, min_reviews: int = 1) -> list[dict[str, Any]]:
    limit = max(1, min(limit, 20))
    ratings = rating_subquery()
    with db_session() as s:
        q = (
            select(User, ratings.c.avg_rating, ratings.c.review_count)
            .join(ratings, ratings.c.doctor_id == User.id)
            .where(
                User.role == Role.DOCTOR,
                User.status == AccountStatus.ACTIVE,
                ratings.c.review_count >= min_reviews,
            )
            .order_by(ratings.c.avg_rating.desc(), ratings.c.review_count.desc())
            .limit(limit)
        )
        out = []
        for u, avg, cnt in s.execute(q).all():
            row = user_flat(u)
            row["average_rating"] = round(float(avg), 1)
            row["review_count"] = int(cnt)
            out.append(row)
        return out


def search_reviews(term: str, doctor_id: int | None = None) -> list[dict[str, Any]]:
    term = (term or "").strip()
    if len(term) < 3:
        raise ValidationError("Search term must be at least 3 characters long")
    with db_session() as s:
        q = _visible(select(Review).where(Review.review_text.ilike(f"%{term}%")))
        if doctor_id is not None:
            q = q.where(Review.doctor_id == doctor_id)
        return [review_flat(r) for r in s.scalars(q.order_by(Review.created_at.desc()))]


# =========================
# Doctor responses
# =========================
def _own_review_for_doctor(s: Session, review_id: int, doctor_id: int) -> Review:
    r = _get_review(s, review_id)
    if r.doctor_id != doctor_id:
        raise PermissionDeniedError("You can only respond to reviews about you")
    return r


def add_response(doctor_id: int, review_id: int, response_text: str) -> dict[str, Any]:
    with db_session() as s:
        r = _own_review_for_doctor(s, review_id, doctor_id)
        if r.response is not None:
            raise ConflictError("You have already responded to this review")
        rr = ReviewResponse(review_id=r.id, doctor_id=doctor_id, response_text=response_text.strip())
        s.add(rr)
        s.flush()
        logger.info("doctor %s responded to review %s", doctor_id, review_id)
        return response_flat(rr)


def update_response(doctor_id: int, review_id: int, response_text: str) -> dict[str, Any]:
    with db_session() as s:
        r = _own_review_for_doctor(s, review_id, doctor_id)
        if r.response is None:
            raise NotFoundError("Response not found")
        r.response.response_text = response_text.strip()
        s.flush()
        return response_flat(r.response)


def delete_response(doctor_id: int, review_id: int) -> None:
    with db_session() as s:
        r = _own_review_for_doctor(s, review_id, doctor_id)
        if r.response is None:
            raise NotFoundError("Response not found")
        s.delete(r.response)
        logger.info("doctor %s removed response on review %s", doctor_id, review_id)


# =========================
# Admin
# =========================
def admin_list_reviews(status: ReviewStatus | None = None, doctor_id: int | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Review)
        if status is not None:
            q = q.where(Review.status == status)
        if doctor_id is not None:
            q = q.where(Review.doctor_id == doctor_id)
        return [review_flat(r) for r in s.scalars(q.order_by(Review.created_at.desc(), Review.id.desc()))]


def admin_set_status(review_id: int, status: ReviewStatus) -> dict[str, Any]:
    with db_session() as s:
        r = _get_review(s, review_id)
        r.status = status
        if status == ReviewStatus.APPROVED:
            r.report_reason = None
        s.flush()
        logger.info("review %s status -> %s", review_id, status.value)
        return review_flat(r)


def admin_review_stats() -> dict[str, Any]:
    with db_session() as s:
        by_status = {st.value: 0 for st in ReviewStatus}
        for st, n in s.execute(select(Review.status, func.count(Review.id)).group_by(Review.status)).all():
            by_status[st.value] = int(n)
        avg = s.scalar(_visible(select(func.avg(Review.rating))))
        responded = s.scalar(select(func.count(ReviewResponse.id))) or 0
        total = sum(by_status.values())
        return {
            "total_reviews": total,
            "by_status": by_status,
            "average_rating": round(float(avg), 1) if avg is not None else 0.0,
            "with_response": int(responded),
            "response_rate": round(responded / total * 100, 1) if total else 0.0,
        }
