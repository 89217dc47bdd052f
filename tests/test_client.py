from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, tomorrow

from healthcare.client import (
    ApiClient,
    ApiError,
    AuthStore,
    BookingWizard,
    HealthcareApi,
    filter_appointments,
    filter_documents,
    filter_doctors,
    token_expired,
    token_payload,
)
from healthcare.security import create_access_token


@pytest.fixture
def api(client):
    return HealthcareApi(ApiClient(base_url="", session=client))


def _doctor(api, store, email="dr.client@mail.com"):
    AuthStore({}).register(
        api,
        email=email,
        password="secret123",
        first_name="Giulia",
        last_name="Neri",
        role="doctor",
        profile_data={"consultation_fee": 60},
    )
    doctor_id = api.auth.profile()["id"]
    store.logout(api)
    return doctor_id


def test_auth_store_login_logout(api):
    state: dict = {}
    store = AuthStore(state)
    assert not store.is_authenticated()

    user = store.login(api, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert user["role"] == "admin"
    assert store.is_authenticated()
    assert store.role == "admin"
    assert api.client.token == state["token"]

    store.logout(api)
    assert state == {}
    assert api.client.token is None


def test_api_error_carries_server_message(api):
    with pytest.raises(ApiError) as exc:
        api.auth.login("nobody@mail.com", "whatever")
    assert exc.value.status_code == 400
    assert exc.value.message == "Invalid email or password"


def test_unauthorized_marks_session_expired(api):
    with pytest.raises(ApiError) as exc:
        api.users.profile()
    assert exc.value.status_code == 401
    assert api.client.session_expired is True


def test_booking_wizard_end_to_end(api):
    store = AuthStore({})
    doctor_id = _doctor(api, store)
    store.register(api, email="patient.client@mail.com", password="secret123", first_name="Paolo", last_name="Sala")

    wizard = BookingWizard()
    assert not wizard.next()
    assert wizard.errors() == ["Please select a doctor"]

    wizard.doctor_id = doctor_id
    assert wizard.next()
    wizard.appointment_date = tomorrow()
    wizard.available_slots = api.doctors.available_slots(doctor_id, wizard.appointment_date)
    wizard.appointment_time = "16:00"
    assert wizard.next()
    wizard.reason_for_visit = "Knee pain after running"
    assert wizard.next()
    assert wizard.current == "confirm"

    appointment = wizard.submit(api)
    assert appointment["status"] == "scheduled"
    assert appointment["consultation_fee"] == 60

    assert "16:00" not in api.doctors.available_slots(doctor_id, tomorrow())
    assert [a["id"] for a in api.appointments.mine()] == [appointment["id"]]


def test_booking_wizard_rejects_taken_slot():
    wizard = BookingWizard(doctor_id=1, appointment_date=tomorrow(), appointment_time="09:00", available_slots=["09:30"])
    wizard.step = 1
    assert "Selected time slot is not available" in wizard.errors()
    with pytest.raises(ValueError):
        wizard.payload()

    wizard.reset()
    assert wizard.step == 0
    assert wizard.doctor_id is None


def test_document_upload_and_download(api):
    store = AuthStore({})
    store.register(api, email="docs.client@mail.com", password="secret123", first_name="Elena", last_name="Costa")

    doc = api.documents.upload("scan.png", b"\x89PNG data", "image/png", document_type="x_ray", description="Left wrist")
    assert doc["document_type"] == "x_ray"
    assert api.documents.download(doc["id"]) == b"\x89PNG data"
    assert [d["id"] for d in api.documents.mine()] == [doc["id"]]

    with pytest.raises(ApiError) as exc:
        api.documents.upload("notes.txt", b"hello", "text/plain")
    assert exc.value.status_code == 400


def test_token_helpers():
    token = create_access_token("7", extra={"role": "doctor"})
    assert token_payload(token)["role"] == "doctor"
    assert not token_expired(token)
    assert token_payload("garbage") == {}
    assert token_payload(None) == {}


def test_filter_doctors():
    doctors = [
        {"first_name": "Ada", "last_name": "Bruni", "average_rating": 4.5, "specializations": [{"id": 1, "name": "Cardiology"}],
         "profile": {"consultation_fee": 90, "years_experience": 3}},
        {"first_name": "Carlo", "last_name": "Abate", "average_rating": 3.0, "specializations": [{"id": 2, "name": "Neurology"}],
         "profile": {"consultation_fee": 50, "years_experience": 20}},
    ]
    assert [d["first_name"] for d in filter_doctors(doctors)] == ["Ada", "Carlo"]
    assert [d["first_name"] for d in filter_doctors(doctors, sort_by="name")] == ["Carlo", "Ada"]
    assert [d["first_name"] for d in filter_doctors(doctors, sort_by="fee")] == ["Carlo", "Ada"]
    assert [d["first_name"] for d in filter_doctors(doctors, search="neuro")] == ["Carlo"]
    assert [d["first_name"] for d in filter_doctors(doctors, specialization_id=1)] == ["Ada"]
    assert filter_doctors(doctors, min_rating=4.8) == []


def test_filter_appointments_and_documents():
    appointments = [
        {"status": "scheduled", "appointment_date": "2030-01-02", "appointment_time": "09:00", "doctor_name": "Ada Bruni", "reason_for_visit": "Check"},
        {"status": "cancelled", "appointment_date": "2030-01-05", "appointment_time": "10:00", "doctor_name": "Carlo Abate", "reason_for_visit": "Migraine"},
    ]
    assert [a["status"] for a in filter_appointments(appointments)] == ["cancelled", "scheduled"]
    assert [a["status"] for a in filter_appointments(appointments, status="scheduled")] == ["scheduled"]
    assert [a["status"] for a in filter_appointments(appointments, search="migr")] == ["cancelled"]

    documents = [
        {"document_name": "b.pdf", "document_type": "lab_result", "upload_date": "2030-01-01T10:00:00", "file_size": 10},
        {"document_name": "a.png", "document_type": "x_ray", "upload_date": "2030-01-03T10:00:00", "file_size": 99},
    ]
    assert [d["document_name"] for d in filter_documents(documents)] == ["a.png", "b.pdf"]
    assert [d["document_name"] for d in filter_documents(documents, sort_by="name")] == ["a.png", "b.pdf"]
    assert [d["document_name"] for d in filter_documents(documents, document_type="lab_result")] == ["b.pdf"]


def test_client_import_does_not_load_the_database_layer():
    code = (
        "import sys, healthcare.client, healthcare.formatters\n"
        "assert 'sqlalchemy' not in sys.modules\n"
        "assert 'healthcare.db' not in sys.modules\n"
    )
    root = Path(__file__).resolve().parents[1]
    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, cwd=root)
    assert result.returncode == 0, result.stderr
