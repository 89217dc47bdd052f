"""Request bodies (Pydantic). Responses are the flat dicts built in `serializers`."""
from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

from .models import AccountStatus, AppointmentStatus, DocumentStatus, ReviewStatus

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# Auth

class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    phone: str | None = None
    role: Literal["patient", "doctor"] = "patient"
    profile_data: dict[str, Any] | None = None


class LoginIn(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


# Users

class BasicInfoIn(BaseModel):
    first_name: str | None = Field(None, min_length=2, max_length=50)
    last_name: str | None = Field(None, min_length=2, max_length=50)
    phone: str | None = None
    profile_picture: str | None = None


class PatientProfileIn(BaseModel):
    date_of_birth: date | None = None
    gender: Literal["male", "female", "other"] | None = None
    address: str | None = Field(None, max_length=500)
    emergency_contact: str | None = Field(None, max_length=100)
    emergency_phone: str | None = None
    medical_conditions: str | None = None
    allergies: str | None = None
    blood_type: str | None = None


class DoctorProfileIn(BaseModel):
    license_number: str | None = Field(None, max_length=50)
    years_experience: int | None = Field(None, ge=0, le=60)
    consultation_fee: float | None = Field(None, ge=0)
    bio: str | None = None
    availability_hours: str | None = None


class AccountStatusIn(BaseModel):
    status: AccountStatus


class VerifyIn(BaseModel):
    verified: bool = True


# Appointments

class AppointmentCreateIn(BaseModel):
    doctor_id: int
    appointment_date: date
    appointment_time: str = Field(..., pattern=TIME_PATTERN)
    reason_for_visit: str = Field(..., min_length=5, max_length=500)
    consultation_fee: float | None = Field(None, ge=0)


class AppointmentStatusIn(BaseModel):
    status: AppointmentStatus
    cancellation_reason: str | None = None


class ConsultationNotesIn(BaseModel):
    consultation_notes: str = Field(..., min_length=10, max_length=2000)


class CancelIn(BaseModel):
    cancellation_reason: str | None = Field(None, max_length=500)


class RescheduleIn(BaseModel):
    appointment_date: date
    appointment_time: str = Field(..., pattern=TIME_PATTERN)


# Documents

class DocumentUpdateIn(BaseModel):
    description: str | None = None
    is_public: bool | None = None
    document_type: str | None = None


class DocumentShareIn(BaseModel):
    doctor_id: int
    message: str | None = Field(None, max_length=1000)


class DocumentStatusIn(BaseModel):
    status: DocumentStatus


# Reviews

class ReviewCreateIn(BaseModel):
    doctor_id: int
    rating: int = Field(..., ge=1, le=5)
    review_text: str | None = Field(None, max_length=1000)
    appointment_id: int | None = None


class ReviewUpdateIn(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    review_text: str | None = Field(None, max_length=1000)


class ReviewResponseIn(BaseModel):
    response_text: str = Field(..., min_length=10, max_length=1000)


class ReviewReportIn(BaseModel):
    reason: str | None = Field(None, max_length=500)


class ReviewStatusIn(BaseModel):
    status: ReviewStatus


# Specializations

class SpecializationIn(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: str | None = None


class SpecializationUpdateIn(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = None


class DoctorSpecializationIn(BaseModel):
    specialization_id: int
    years_experience: int = Field(0, ge=0, le=60)
    certification: str | None = Field(None, max_length=255)
    doctor_id: int | None = None  # admins only


class DoctorSpecializationUpdateIn(BaseModel):
    years_experience: int | None = Field(None, ge=0, le=60)
    certification: str | None = Field(None, max_length=255)


class BulkSpecializationIn(BaseModel):
    specializations: list[DoctorSpecializationIn] = Field(..., min_length=1)


# Messages

class MessageIn(BaseModel):
    receiver_id: int
    subject: str = Field(..., min_length=3, max_length=200)
    message_content: str = Field(..., min_length=10, max_length=2000)


class ReplyIn(BaseModel):
    message_content: str = Field(..., min_length=10, max_length=2000)
