from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from .. import review_service
from ..deps import get_current_user, require_admin, require_doctor, require_patient
from ..models import ReviewStatus, User
from ..schemas import ReviewCreateIn, ReviewReportIn, ReviewResponseIn, ReviewStatusIn, ReviewUpdateIn

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.post("", status_code=201)
def create(payload: ReviewCreateIn, user: User = Depends(require_patient)) -> dict[str, Any]:
    review = review_service.create_review(
        patient_id=user.id,
        doctor_id=payload.doctor_id,
        rating=payload.rating,
        review_text=payload.review_text,
        appointment_id=payload.appointment_id,
    )
    return {"message": "Review submitted successfully", "review": review}


@router.get("/my")
def my_reviews(user: User = Depends(require_patient)) -> dict[str, Any]:
    items = review_service.list_my_reviews(user.id)
    return {"reviews": items, "count": len(items)}


@router.get("/recent")
def recent(limit: int = Query(10, ge=1, le=20)) -> dict[str, Any]:
    items = review_service.recent_reviews(limit)
    return {"reviews": items, "count": len(items)}


@router.get("/top-rated")
def top_rated(limit: int = Query(10, ge=1, le=20), min_reviews: int = Query(1, ge=1)) -> dict[str, Any]:
    items = review_service.top_rated_doctors(limit, min_reviews)
    return {"doctors": items, "count": len(items)}


@router.get("/search")
def search(q: str = Query(..., min_length=1), doctor_id: int | None = None) -> dict[str, Any]:
    items = review_service.search_reviews(q, doctor_id)
    return {"reviews": items, "count": len(items)}


@router.get("/can-review/{doctor_id}")
def can_review(doctor_id: int, user: User = Depends(require_patient)) -> dict[str, Any]:
    return review_service.can_review(user.id, doctor_id)


@router.get("/doctor/{doctor_id}")
def doctor_reviews(
    doctor_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    sort: str = Query("newest", pattern="^(newest|highest|lowest)$"),
) -> dict[str, Any]:
    return review_service.list_doctor_reviews(doctor_id, page, limit, sort)


@router.get("/doctor/{doctor_id}/stats")
def doctor_stats(doctor_id: int) -> dict[str, Any]:
    return {"stats": review_service.doctor_rating_stats(doctor_id)}


@router.get("/doctor/{doctor_id}/rating/{rating}")
def doctor_reviews_by_rating(doctor_id: int, rating: int) -> dict[str, Any]:
    items = review_service.list_doctor_reviews_by_rating(doctor_id, rating)
    return {"reviews": items, "count": len(items)}


# Admin

@router.get("/admin/all")
def admin_all(
    status: ReviewStatus | None = None,
    doctor_id: int | None = None,
    user: User = Depends(require_admin),
) -> dict[str, Any]:
    items = review_service.admin_list_reviews(status, doctor_id)
    return {"reviews": items, "count": len(items)}


@router.get("/admin/stats")
def admin_stats(user: User = Depends(require_admin)) -> dict[str, Any]:
    return {"stats": review_service.admin_review_stats()}


@router.put("/admin/{review_id}/status")
def admin_status(review_id: int, payload: ReviewStatusIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    review = review_service.admin_set_status(review_id, payload.status)
    return {"message": f"Review {payload.status.value}", "review": review}


# Single review

@router.get("/{review_id}")
def get_one(review_id: int) -> dict[str, Any]:
    return {"review": review_service.get_review(review_id)}


@router.put("/{review_id}")
def update(review_id: int, payload: ReviewUpdateIn, user: User = Depends(require_patient)) -> dict[str, Any]:
    review = review_service.update_review(user, review_id, payload.rating, payload.review_text)
    return {"message": "Review updated successfully", "review": review}


@router.delete("/{review_id}")
def delete(review_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    review_service.delete_review(user, review_id)
    return {"message": "Review deleted successfully"}


@router.post("/{review_id}/report")
def report(review_id: int, payload: ReviewReportIn | None = None, user: User = Depends(get_current_user)) -> dict[str, Any]:
    review = review_service.report_review(review_id, user.id, payload.reason if payload else None)
    return {"message": "Review reported successfully", "review": review}


# Doctor responses

@router.post("/{review_id}/response", status_code=201)
def add_response(review_id: int, payload: ReviewResponseIn, user: User = Depends(require_doctor)) -> dict[str, Any]:
    response = review_service.add_response(user.id, review_id, payload.response_text)
    return {"message": "Response added successfully", "response": response}


@router.put("/{review_id}/response")
def update_response(review_id: int, payload: ReviewResponseIn, user: User = Depends(require_doctor)) -> dict[str, Any]:
    response = review_service.update_response(user.id, review_id, payload.response_text)
    return {"message": "Response updated successfully", "response": response}


@router.delete("/{review_id}/response")
def delete_response(review_id: int, user: User = Depends(require_doctor)) -> dict[str, Any]:
    review_service.delete_response(user.id, review_id)
    return {"message": "Response deleted successfully"}
