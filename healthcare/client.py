"""
HTTP client for the Healthcare API, used by the Streamlit UI.

- ApiClient: bearer token, JSON/multipart helpers, ApiError on HTTP >= 400
- HealthcareApi: one wrapper per resource (auth, appointments, ...)
- AuthStore: token/user kept in a session mapping (st.session_state)
- filter/sort helpers and the booking wizard state
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, MutableMapping

import requests
from jose import JWTError, jwt

from .constants import TIME_SLOTS

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class ApiClient:
    """
    Thin wrapper over a requests-compatible session.
    A starlette TestClient works as `session` with base_url="".
    """

    def __init__(self, base_url: str = "", token: str | None = None, session: Any = None, timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.session_expired = False

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _send(self, method: str, path: str, **kwargs: Any):
        r = self.session.request(
            method,
            f"{self.base_url}{path}",
            headers=self._headers(),
            timeout=self.timeout,
            **kwargs,
        )
        if r.status_code >= 400:
            try:
                payload = r.json()
                message = payload.get("message") if isinstance(payload, dict) else None
            except ValueError:
                payload, message = None, None
            if r.status_code == 401:
                self.session_expired = True
            logger.debug("%s %s -> %s", method, path, r.status_code)
            raise ApiError(r.status_code, message or r.text or f"HTTP {r.status_code}", payload)
        return r

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: Any = None,
    ) -> Any:
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if json is not None:
            kwargs["json"] = json
        if data:
            kwargs["data"] = {k: v for k, v in data.items() if v is not None}
        if files:
            kwargs["files"] = files
        r = self._send(method, path, **kwargs)
        return r.json() if r.content else {}

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def upload(self, path: str, files: Any, data: dict[str, Any] | None = None) -> Any:
        return self.request("POST", path, data=data, files=files)

    def download(self, path: str) -> bytes:
        return self._send("GET", path).content


# =========================
# Service wrappers
# =========================
class _Service:
    def __init__(self, client: ApiClient) -> None:
        self.client = client


class AuthService(_Service):
    def register(self, **payload: Any) -> dict:
        return self.client.post("/api/auth/register", payload)

    def login(self, email: str, password: str) -> dict:
        return self.client.post("/api/auth/login", {"email": email, "password": password})

    def logout(self) -> dict:
        return self.client.post("/api/auth/logout")

    def profile(self) -> dict:
        return self.client.get("/api/auth/profile")["user"]

    def refresh(self) -> dict:
        return self.client.post("/api/auth/refresh-token")

    def check(self) -> dict:
        return self.client.get("/api/auth/check")


class UserService(_Service):
    def profile(self) -> dict:
        return self.client.get("/api/users/profile")["user"]

    def get(self, user_id: int) -> dict:
        return self.client.get(f"/api/users/{user_id}")["user"]

    def update_basic_info(self, **fields: Any) -> dict:
        return self.client.put("/api/users/profile", fields)["user"]

    def update_patient_profile(self, **fields: Any) -> dict:
        return self.client.put("/api/users/patient-profile", fields)["user"]

    def update_doctor_profile(self, **fields: Any) -> dict:
        return self.client.put("/api/users/doctor-profile", fields)["user"]

    def patients(self, search: str | None = None) -> list[dict]:
        return self.client.get("/api/users/patients", {"search": search})["patients"]

    def doctor_dashboard(self) -> dict:
        return self.client.get("/api/users/dashboard/doctor")["stats"]

    def patient_dashboard(self) -> dict:
        return self.client.get("/api/users/dashboard/patient")["stats"]


class DoctorService(_Service):
    def list(
        self,
        search: str | None = None,
        specialization_id: int | None = None,
        min_rating: float | None = None,
        sort_by: str = "rating",
        verified_only: bool = False,
    ) -> list[dict]:
        params = {
            "search": search,
            "specialization_id": specialization_id,
            "min_rating": min_rating,
            "sort_by": sort_by,
            "verified_only": "true" if verified_only else None,
        }
        return self.client.get("/api/users/doctors", params)["doctors"]

    def get(self, doctor_id: int) -> dict:
        return self.client.get(f"/api/users/doctors/{doctor_id}")["doctor"]

    def available_slots(self, doctor_id: int, day: date) -> list[str]:
        res = self.client.get(f"/api/users/doctors/{doctor_id}/available-slots", {"date": day.isoformat()})
        return res["available_slots"]


class AppointmentService(_Service):
    def book(self, doctor_id: int, appointment_date: date, appointment_time: str, reason_for_visit: str) -> dict:
        payload = {
            "doctor_id": doctor_id,
            "appointment_date": appointment_date.isoformat(),
            "appointment_time": appointment_time,
            "reason_for_visit": reason_for_visit,
        }
        return self.client.post("/api/appointments", payload)["appointment"]

    def mine(self, status: str | None = None) -> list[dict]:
        return self.client.get("/api/appointments", {"status": status})["appointments"]

    def get(self, appointment_id: int) -> dict:
        return self.client.get(f"/api/appointments/{appointment_id}")["appointment"]

    def upcoming(self, limit: int | None = None) -> list[dict]:
        return self.client.get("/api/appointments/upcoming", {"limit": limit})["appointments"]

    def past(self, limit: int | None = None) -> list[dict]:
        return self.client.get("/api/appointments/past", {"limit": limit})["appointments"]

    def today(self) -> list[dict]:
        return self.client.get("/api/appointments/today")["appointments"]

    def by_patient(self, patient_id: int) -> list[dict]:
        return self.client.get(f"/api/appointments/patient/{patient_id}")["appointments"]

    def update_status(self, appointment_id: int, status: str, cancellation_reason: str | None = None) -> dict:
        payload = {"status": status, "cancellation_reason": cancellation_reason}
        return self.client.put(f"/api/appointments/{appointment_id}/status", payload)["appointment"]

    def add_notes(self, appointment_id: int, notes: str) -> dict:
        payload = {"consultation_notes": notes}
        return self.client.put(f"/api/appointments/{appointment_id}/notes", payload)["appointment"]

    def cancel(self, appointment_id: int, reason: str | None = None) -> dict:
        payload = {"cancellation_reason": reason}
        return self.client.put(f"/api/appointments/{appointment_id}/cancel", payload)["appointment"]

    def reschedule(self, appointment_id: int, new_date: date, new_time: str) -> dict:
        payload = {"appointment_date": new_date.isoformat(), "appointment_time": new_time}
        return self.client.put(f"/api/appointments/{appointment_id}/reschedule", payload)["appointment"]


def _file_tuple(filename: str, content: bytes, content_type: str | None) -> tuple:
    return (filename, content, content_type or "application/octet-stream")


class DocumentService(_Service):
    def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str | None = None,
        document_type: str = "other",
        description: str | None = None,
        is_public: bool = False,
        patient_id: int | None = None,
    ) -> dict:
        data = {
            "document_type": document_type,
            "description": description,
            "is_public": "true" if is_public else "false",
            "patient_id": patient_id,
        }
        files = {"document": _file_tuple(filename, content, content_type)}
        return self.client.upload("/api/documents/upload", files, data)["document"]

    def upload_resume(self, filename: str, content: bytes, content_type: str | None = None) -> dict:
        files = {"document": _file_tuple(filename, content, content_type)}
        return self.client.upload("/api/documents/upload/resume", files)["document"]

    def upload_certification(self, filename: str, content: bytes, content_type: str | None = None, description: str | None = None) -> dict:
        files = {"document": _file_tuple(filename, content, content_type)}
        return self.client.upload("/api/documents/upload/certification", files, {"description": description})["document"]

    def upload_bulk(self, files: Iterable[tuple[str, bytes, str | None]], document_type: str = "other") -> dict:
        parts = [("documents", _file_tuple(name, content, ctype)) for name, content, ctype in files]
        return self.client.upload("/api/documents/upload/bulk", parts, {"document_type": document_type})

    def mine(self, document_type: str | None = None) -> list[dict]:
        return self.client.get("/api/documents", {"document_type": document_type})["documents"]

    def get(self, document_id: int) -> dict:
        return self.client.get(f"/api/documents/{document_id}")["document"]

    def download(self, document_id: int) -> bytes:
        return self.client.download(f"/api/documents/{document_id}/download")

    def update(self, document_id: int, **fields: Any) -> dict:
        return self.client.put(f"/api/documents/{document_id}", fields)["document"]

    def delete(self, document_id: int) -> dict:
        return self.client.delete(f"/api/documents/{document_id}")

    def share(self, document_id: int, doctor_id: int, message: str | None = None) -> dict:
        return self.client.post(f"/api/documents/{document_id}/share", {"doctor_id": doctor_id, "message": message})["share"]

    def shared_with_me(self) -> list[dict]:
        return self.client.get("/api/documents/shared-with-me")["documents"]

    def by_patient(self, patient_id: int) -> list[dict]:
        return self.client.get(f"/api/documents/patient/{patient_id}")["documents"]

    def search(self, term: str) -> list[dict]:
        return self.client.get("/api/documents/search", {"q": term})["documents"]

    def stats(self) -> dict:
        return self.client.get("/api/documents/stats")["stats"]

    def recent(self, limit: int = 10) -> list[dict]:
        return self.client.get("/api/documents/recent", {"limit": limit})["documents"]

    def types(self) -> list[dict]:
        return self.client.get("/api/documents/types")["document_types"]

    def doctor_resume(self, doctor_id: int) -> dict:
        return self.client.get(f"/api/documents/doctor/{doctor_id}/resume")["document"]

    def doctor_certifications(self, doctor_id: int) -> list[dict]:
        return self.client.get(f"/api/documents/doctor/{doctor_id}/certifications")["documents"]


class ReviewService(_Service):
    def create(self, doctor_id: int, rating: int, review_text: str | None = None) -> dict:
        payload = {"doctor_id": doctor_id, "rating": rating, "review_text": review_text}
        return self.client.post("/api/reviews", payload)["review"]

    def for_doctor(self, doctor_id: int, page: int = 1, limit: int = 10, sort: str = "newest") -> dict:
        return self.client.get(f"/api/reviews/doctor/{doctor_id}", {"page": page, "limit": limit, "sort": sort})

    def doctor_stats(self, doctor_id: int) -> dict:
        return self.client.get(f"/api/reviews/doctor/{doctor_id}/stats")["stats"]

    def mine(self) -> list[dict]:
        return self.client.get("/api/reviews/my")["reviews"]

    def update(self, review_id: int, rating: int | None = None, review_text: str | None = None) -> dict:
        payload = {k: v for k, v in {"rating": rating, "review_text": review_text}.items() if v is not None}
        return self.client.put(f"/api/reviews/{review_id}", payload)["review"]

    def delete(self, review_id: int) -> dict:
        return self.client.delete(f"/api/reviews/{review_id}")

    def can_review(self, doctor_id: int) -> dict:
        return self.client.get(f"/api/reviews/can-review/{doctor_id}")

    def respond(self, review_id: int, text: str) -> dict:
        return self.client.post(f"/api/reviews/{review_id}/response", {"response_text": text})["response"]

    def update_response(self, review_id: int, text: str) -> dict:
        return self.client.put(f"/api/reviews/{review_id}/response", {"response_text": text})["response"]

    def report(self, review_id: int, reason: str | None = None) -> dict:
        return self.client.post(f"/api/reviews/{review_id}/report", {"reason": reason})["review"]

    def recent(self, limit: int = 10) -> list[dict]:
        return self.client.get("/api/reviews/recent", {"limit": limit})["reviews"]

    def top_rated(self, limit: int = 10) -> list[dict]:
        return self.client.get("/api/reviews/top-rated", {"limit": limit})["doctors"]


class SpecializationService(_Service):
    def list(self, search: str | None = None) -> list[dict]:
        return self.client.get("/api/specializations", {"search": search})["specializations"]

    def popular(self, limit: int = 10) -> list[dict]:
        return self.client.get("/api/specializations/popular", {"limit": limit})["specializations"]

    def doctors(self, specialization_id: int, name: str | None = None) -> list[dict]:
        return self.client.get(f"/api/specializations/{specialization_id}/doctors", {"name": name})["doctors"]

    def create(self, name: str, description: str | None = None) -> dict:
        return self.client.post("/api/specializations", {"name": name, "description": description})["specialization"]

    def update(self, specialization_id: int, **fields: Any) -> dict:
        return self.client.put(f"/api/specializations/{specialization_id}", fields)["specialization"]

    def delete(self, specialization_id: int) -> dict:
        return self.client.delete(f"/api/specializations/{specialization_id}")

    def mine(self) -> list[dict]:
        return self.client.get("/api/specializations/my")["specializations"]

    def add_mine(self, specialization_id: int, years_experience: int = 0, certification: str | None = None) -> list[dict]:
        payload = {
            "specialization_id": specialization_id,
            "years_experience": years_experience,
            "certification": certification,
        }
        return self.client.post("/api/specializations/doctor", payload)["specializations"]

    def remove_mine(self, specialization_id: int) -> dict:
        return self.client.delete(f"/api/specializations/doctor/{specialization_id}")

    def stats(self) -> dict:
        return self.client.get("/api/specializations/admin/stats")["stats"]


class MessageService(_Service):
    def send(self, receiver_id: int, subject: str, content: str) -> dict:
        payload = {"receiver_id": receiver_id, "subject": subject, "message_content": content}
        return self.client.post("/api/messages", payload)["data"]

    def mine(self) -> list[dict]:
        return self.client.get("/api/messages")["messages"]

    def received(self) -> list[dict]:
        return self.client.get("/api/messages/received")["messages"]

    def sent(self) -> list[dict]:
        return self.client.get("/api/messages/sent")["messages"]

    def unread_count(self) -> int:
        return int(self.client.get("/api/messages/unread/count")["unread_count"])

    def conversation(self, user_id: int) -> list[dict]:
        return self.client.get(f"/api/messages/conversation/{user_id}")["messages"]

    def mark_read(self, message_id: int) -> dict:
        return self.client.put(f"/api/messages/{message_id}/read")["data"]

    def mark_all_read(self) -> int:
        return int(self.client.put("/api/messages/read-all")["updated"])

    def delete(self, message_id: int) -> dict:
        return self.client.delete(f"/api/messages/{message_id}")

    def reply(self, message_id: int, content: str) -> dict:
        return self.client.post(f"/api/messages/{message_id}/reply", {"message_content": content})["data"]


class AdminService(_Service):
    def stats(self) -> dict:
        return self.client.get("/api/users/admin/stats")["stats"]

    def users(self, role: str | None = None, status: str | None = None, search: str | None = None) -> list[dict]:
        return self.client.get("/api/users/admin/users", {"role": role, "status": status, "search": search})["users"]

    def doctors(self, search: str | None = None) -> list[dict]:
        return self.client.get("/api/users/admin/doctors", {"search": search})["doctors"]

    def patients(self, search: str | None = None, status: str | None = None) -> list[dict]:
        return self.client.get("/api/users/admin/patients", {"search": search, "status": status})["patients"]

    def verify_doctor(self, doctor_id: int, verified: bool = True) -> dict:
        return self.client.put(f"/api/users/admin/doctors/{doctor_id}/verify", {"verified": verified})["doctor"]

    def set_doctor_status(self, doctor_id: int, status: str) -> dict:
        return self.client.put(f"/api/users/admin/doctors/{doctor_id}/status", {"status": status})["doctor"]

    def set_patient_status(self, patient_id: int, status: str) -> dict:
        return self.client.put(f"/api/users/admin/patients/{patient_id}/status", {"status": status})["patient"]

    def reviews(self, status: str | None = None) -> list[dict]:
        return self.client.get("/api/reviews/admin/all", {"status": status})["reviews"]

    def set_review_status(self, review_id: int, status: str) -> dict:
        return self.client.put(f"/api/reviews/admin/{review_id}/status", {"status": status})["review"]

    def review_stats(self) -> dict:
        return self.client.get("/api/reviews/admin/stats")["stats"]

    def documents(self, status: str | None = None) -> list[dict]:
        return self.client.get("/api/documents/admin/all", {"status": status})["documents"]

    def set_document_status(self, document_id: int, status: str) -> dict:
        return self.client.put(f"/api/documents/admin/{document_id}/status", {"status": status})["document"]


class HealthcareApi:
    """All resource wrappers sharing one ApiClient."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.auth = AuthService(client)
        self.users = UserService(client)
        self.doctors = DoctorService(client)
        self.appointments = AppointmentService(client)
        self.documents = DocumentService(client)
        self.reviews = ReviewService(client)
        self.specializations = SpecializationService(client)
        self.messages = MessageService(client)
        self.admin = AdminService(client)

    def set_token(self, token: str | None) -> None:
        self.client.token = token
        self.client.session_expired = False


# =========================
# Session store
# =========================
def token_payload(token: str | None) -> dict[str, Any]:
    """Claims read without verifying the signature (UI only)."""
    if not token:
        return {}
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return {}


def token_expired(token: str | None, leeway: int = 5) -> bool:
    exp = token_payload(token).get("exp")
    if exp is None:
        return False
    now = int(datetime.now(tz=timezone.utc).timestamp())
    return now >= int(exp) - leeway


class AuthStore:
    """Token and current user kept in a session mapping (e.g. `st.session_state`)."""

    TOKEN_KEY = "token"
    USER_KEY = "user"
    ERROR_KEY = "auth_error"

    def __init__(self, state: MutableMapping[str, Any]) -> None:
        self.state = state

    @property
    def token(self) -> str | None:
        return self.state.get(self.TOKEN_KEY)

    @property
    def user(self) -> dict[str, Any] | None:
        return self.state.get(self.USER_KEY)

    @property
    def role(self) -> str | None:
        return (self.user or {}).get("role") or token_payload(self.token).get("role")

    def is_authenticated(self) -> bool:
        return bool(self.token) and not token_expired(self.token)

    def login(self, api: HealthcareApi, email: str, password: str) -> dict[str, Any]:
        res = api.auth.login(email.strip().lower(), password)
        self._store(api, res)
        return res["user"]

    def register(self, api: HealthcareApi, **payload: Any) -> dict[str, Any]:
        res = api.auth.register(**payload)
        self._store(api, res)
        return res["user"]

    def _store(self, api: HealthcareApi, res: dict[str, Any]) -> None:
        self.state[self.TOKEN_KEY] = res["token"]
        self.state[self.USER_KEY] = res["user"]
        self.state.pop(self.ERROR_KEY, None)
        api.set_token(res["token"])

    def logout(self, api: HealthcareApi | None = None) -> None:
        for key in (self.TOKEN_KEY, self.USER_KEY, self.ERROR_KEY):
            self.state.pop(key, None)
        if api is not None:
            api.set_token(None)


# =========================
# Client-side filters
# =========================
def filter_doctors(
    doctors: Iterable[dict[str, Any]],
    search: str | None = None,
    specialization_id: int | None = None,
    min_rating: float | None = None,
    sort_by: str = "rating",
) -> list[dict[str, Any]]:
    items = list(doctors)
    if search:
        term = search.strip().lower()
        items = [
            d for d in items
            if term in f"{d.get('first_name', '')} {d.get('last_name', '')}".lower()
            or any(term in sp["name"].lower() for sp in d.get("specializations") or [])
        ]
    if specialization_id is not None:
        items = [d for d in items if any(sp["id"] == specialization_id for sp in d.get("specializations") or [])]
    if min_rating is not None:
        items = [d for d in items if float(d.get("average_rating") or 0) >= min_rating]

    def profile_value(d: dict[str, Any], key: str, default: float) -> float:
        value = (d.get("profile") or {}).get(key)
        return float(value) if value is not None else default

    if sort_by == "name":
        return sorted(items, key=lambda d: (d.get("last_name", "").lower(), d.get("first_name", "").lower()))
    if sort_by == "experience":
        return sorted(items, key=lambda d: -profile_value(d, "years_experience", 0))
    if sort_by == "fee":
        return sorted(items, key=lambda d: profile_value(d, "consultation_fee", float("inf")))
    return sorted(items, key=lambda d: -float(d.get("average_rating") or 0))


def filter_appointments(
    appointments: Iterable[dict[str, Any]],
    status: str | None = None,
    search: str | None = None,
    newest_first: bool = True,
) -> list[dict[str, Any]]:
    items = list(appointments)
    if status and status != "all":
        items = [a for a in items if a.get("status") == status]
    if search:
        term = search.strip().lower()
        items = [
            a for a in items
            if term in (a.get("doctor_name") or "").lower()
            or term in (a.get("patient_name") or "").lower()
            or term in (a.get("reason_for_visit") or "").lower()
        ]
    return sorted(
        items,
        key=lambda a: (a.get("appointment_date") or "", a.get("appointment_time") or ""),
        reverse=newest_first,
    )


def filter_documents(
    documents: Iterable[dict[str, Any]],
    document_type: str | None = None,
    search: str | None = None,
    sort_by: str = "date",
) -> list[dict[str, Any]]:
    items = list(documents)
    if document_type and document_type != "all":
        items = [d for d in items if d.get("document_type") == document_type]
    if search:
        term = search.strip().lower()
        items = [
            d for d in items
            if term in (d.get("document_name") or "").lower() or term in (d.get("description") or "").lower()
        ]
    if sort_by == "name":
        return sorted(items, key=lambda d: (d.get("document_name") or "").lower())
    if sort_by == "size":
        return sorted(items, key=lambda d: d.get("file_size") or 0, reverse=True)
    return sorted(items, key=lambda d: d.get("upload_date") or "", reverse=True)


# =========================
# Booking wizard
# =========================
@dataclass
class BookingWizard:
    """Steps: doctor -> date/time -> details -> confirm."""

    STEPS = ("doctor", "datetime", "details", "confirm")

    step: int = 0
    doctor_id: int | None = None
    doctor_name: str | None = None
    appointment_date: date | None = None
    appointment_time: str | None = None
    reason_for_visit: str = ""
    available_slots: list[str] = field(default_factory=lambda: list(TIME_SLOTS))

    @property
    def current(self) -> str:
        return self.STEPS[self.step]

    def errors(self, step: str | None = None) -> list[str]:
        step = step or self.current
        problems: list[str] = []
        if step == "doctor" and self.doctor_id is None:
            problems.append("Please select a doctor")
        if step == "datetime":
            if self.appointment_date is None:
                problems.append("Please select a date")
            elif self.appointment_date < date.today():
                problems.append("Appointment date cannot be in the past")
            if not self.appointment_time:
                problems.append("Please select a time slot")
            elif self.appointment_time not in self.available_slots:
                problems.append("Selected time slot is not available")
        if step == "details":
            reason = self.reason_for_visit.strip()
            if not 5 <= len(reason) <= 500:
                problems.append("Reason for visit must be between 5 and 500 characters")
        if step == "confirm":
            for earlier in self.STEPS[:-1]:
                problems.extend(self.errors(earlier))
        return problems

    def can_advance(self) -> bool:
        return not self.errors()

    def next(self) -> bool:
        if self.step >= len(self.STEPS) - 1 or not self.can_advance():
            return False
        self.step += 1
        return True

    def back(self) -> None:
        self.step = max(0, self.step - 1)

    def payload(self) -> dict[str, Any]:
        problems = self.errors("confirm")
        if problems:
            raise ValueError("; ".join(problems))
        return {
            "doctor_id": self.doctor_id,
            "appointment_date": self.appointment_date,
            "appointment_time": self.appointment_time,
            "reason_for_visit": self.reason_for_visit.strip(),
        }

    def submit(self, api: HealthcareApi) -> dict[str, Any]:
        return api.appointments.book(**self.payload())

    def reset(self) -> None:
        self.step = 0
        self.doctor_id = None
        self.doctor_name = None
        self.appointment_date = None
        self.appointment_time = None
        self.reason_for_visit = ""
        self.available_slots = list(TIME_SLOTS)
