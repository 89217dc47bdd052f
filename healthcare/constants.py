"""Shared constants (API validation and Streamlit UI)."""
from __future__ import annotations

from .enums import AccountStatus, AppointmentStatus, DocumentStatus, ReviewStatus, Role

USER_ROLES = [r.value for r in Role]
SELF_REGISTER_ROLES = (Role.PATIENT.value, Role.DOCTOR.value)

APPOINTMENT_STATUSES = [s.value for s in AppointmentStatus]
DOCUMENT_STATUSES = [s.value for s in DocumentStatus]
REVIEW_STATUSES = [s.value for s in ReviewStatus]
ACCOUNT_STATUSES = [s.value for s in AccountStatus]

# reviews that count for public listings and rating stats
VISIBLE_REVIEW_STATUSES = (ReviewStatus.PENDING, ReviewStatus.APPROVED)

DOCUMENT_TYPES: list[dict[str, str]] = [
    {"value": "prescription", "label": "Prescription"},
    {"value": "lab_result", "label": "Lab Result"},
    {"value": "medical_report", "label": "Medical Report"},
    {"value": "x_ray", "label": "X-Ray"},
    {"value": "mri_scan", "label": "MRI Scan"},
    {"value": "ct_scan", "label": "CT Scan"},
    {"value": "ultrasound", "label": "Ultrasound"},
    {"value": "blood_test", "label": "Blood Test"},
    {"value": "insurance_card", "label": "Insurance Card"},
    {"value": "medical_certificate", "label": "Medical Certificate"},
    {"value": "vaccination_record", "label": "Vaccination Record"},
    {"value": "discharge_summary", "label": "Discharge Summary"},
    {"value": "referral_letter", "label": "Referral Letter"},
    {"value": "resume", "label": "Resume/CV"},
    {"value": "certification", "label": "Medical Certification"},
    {"value": "other", "label": "Other"},
]

TIME_SLOTS = [
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "14:00", "14:30", "15:00", "15:30", "16:00", "16:30",
    "17:00", "17:30",
]

BLOOD_TYPES = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
GENDERS = ["male", "female", "other"]

ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
MAX_BULK_FILES = 10

RATING_MIN = 1
RATING_MAX = 5

DEFAULT_PAGE_SIZE = 10
DEFAULT_APPOINTMENT_MINUTES = 30

MEDICAL_SPECIALIZATIONS = [
    ("Cardiology", "Heart and blood vessel disorders"),
    ("Dermatology", "Skin, hair and nail conditions"),
    ("Family Medicine", "Comprehensive care for all ages"),
    ("Gastroenterology", "Digestive system disorders"),
    ("Internal Medicine", "Adult disease prevention and treatment"),
    ("Neurology", "Brain and nervous system disorders"),
    ("Obstetrics & Gynecology", "Women's reproductive health"),
    ("Oncology", "Cancer diagnosis and treatment"),
    ("Ophthalmology", "Eye and vision care"),
    ("Orthopedics", "Bones, joints and muscles"),
    ("Pediatrics", "Medical care for children"),
    ("Psychiatry", "Mental health disorders"),
    ("Radiology", "Medical imaging"),
    ("Urology", "Urinary tract and male reproductive health"),
]
