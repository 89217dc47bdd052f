from __future__ import annotations

import os
import shutil
import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest

# The engine and settings are built at import time: point them at a scratch
# database and upload directory before anything from `healthcare` is imported.
_TMP = Path(tempfile.mkdtemp(prefix="healthcare-tests-"))
os.environ["HEALTHCARE_DATABASE_URL"] = f"sqlite:///{_TMP / 'test.sqlite'}"
os.environ["HEALTHCARE_UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["HEALTHCARE_JWT_SECRET"] = "test-secret"
os.environ["HEALTHCARE_SEED_ADMIN"] = "1"
os.environ["HEALTHCARE_ADMIN_EMAIL"] = "admin@healthcare.local"
os.environ["HEALTHCARE_ADMIN_PASSWORD"] = "admin123"
os.environ["HEALTHCARE_LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient  # noqa: E402

from healthcare.api_main import app  # noqa: E402
from healthcare.db import Base, engine  # noqa: E402
from healthcare.seed import seed_base  # noqa: E402

ADMIN_EMAIL = "admin@healthcare.local"
ADMIN_PASSWORD = "admin123"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    seed_base()
    yield
    shutil.rmtree(_TMP / "uploads", ignore_errors=True)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, role: str = "patient", **extra) -> tuple[str, dict]:
    payload = {
        "email": email,
        "password": "secret123",
        "first_name": extra.pop("first_name", "Test"),
        "last_name": extra.pop("last_name", "User"),
        "role": role,
        **extra,
    }
    r = client.post("/api/auth/register", json=payload)
    assert r.status_code == 201, r.text
    body = r.json()
    return body["token"], body["user"]


def login(client: TestClient, email: str, password: str) -> str:
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["token"]


def tomorrow() -> date:
    return date.today() + timedelta(days=1)


@pytest.fixture
def admin_token(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def patient(client):
    return register(client, "anna.rossi@mail.com", first_name="Anna", last_name="Rossi")


@pytest.fixture
def doctor(client):
    token, user = register(
        client,
        "marco.bianchi@mail.com",
        role="doctor",
        first_name="Marco",
        last_name="Bianchi",
        profile_data={"license_number": "LIC-001", "years_experience": 12, "consultation_fee": 80},
    )
    return token, user


@pytest.fixture
def booked(client, patient, doctor):
    """A scheduled appointment for tomorrow at 10:00."""
    p_token, _ = patient
    _, d_user = doctor
    r = client.post(
        "/api/appointments",
        headers=auth(p_token),
        json={
            "doctor_id": d_user["id"],
            "appointment_date": tomorrow().isoformat(),
            "appointment_time": "10:00",
            "reason_for_visit": "Annual check-up",
        },
    )
    assert r.status_code == 201, r.text
    return r.json()["appointment"]
