from __future__ import annotations

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, auth, login, register

from healthcare.security import decode_token


def test_register_patient_returns_token_and_user(client):
    token, user = register(client, "luca@mail.com", first_name="Luca", last_name="Verdi")

    assert user["role"] == "patient"
    assert user["email"] == "luca@mail.com"
    assert user["status"] == "active"
    assert "password_hash" not in user

    claims = decode_token(token)
    assert claims["sub"] == str(user["id"])
    assert claims["role"] == "patient"


def test_register_doctor_with_profile(client):
    _, user = register(
        client,
        "doc@mail.com",
        role="doctor",
        profile_data={"license_number": "L-9", "years_experience": 5, "consultation_fee": 50},
    )
    assert user["role"] == "doctor"
    assert user["verified"] is False
    assert user["profile"]["license_number"] == "L-9"
    assert user["profile"]["consultation_fee"] == 50


def test_register_duplicate_email(client):
    register(client, "dup@mail.com")
    r = client.post(
        "/api/auth/register",
        json={"email": "DUP@mail.com", "password": "secret123", "first_name": "Du", "last_name": "Pe"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "User already exists with this email"


def test_register_rejects_admin_role_and_short_password(client):
    r = client.post(
        "/api/auth/register",
        json={"email": "x@mail.com", "password": "secret123", "first_name": "Ad", "last_name": "Min", "role": "admin"},
    )
    assert r.status_code == 400

    r = client.post(
        "/api/auth/register",
        json={"email": "y@mail.com", "password": "123", "first_name": "Sh", "last_name": "Ort"},
    )
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation failed"
    assert any(e["field"] == "password" for e in body["errors"])


def test_login_success_and_wrong_password(client):
    register(client, "mario@mail.com")

    token = login(client, "  MARIO@mail.com ", "secret123")
    assert decode_token(token)["email"] == "mario@mail.com"

    r = client.post("/api/auth/login", json={"email": "mario@mail.com", "password": "wrong"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid email or password"

    r = client.post("/api/auth/login", json={"email": "nobody@mail.com", "password": "secret123"})
    assert r.status_code == 400


def test_bootstrap_admin_can_login(client):
    token = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    r = client.get("/api/auth/profile", headers=auth(token))
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "admin"


def test_suspended_account_cannot_login(client, admin_token):
    _, user = register(client, "sus@mail.com")
    r = client.put(f"/api/users/admin/patients/{user['id']}/status", headers=auth(admin_token), json={"status": "suspended"})
    assert r.status_code == 200

    r = client.post("/api/auth/login", json={"email": "sus@mail.com", "password": "secret123"})
    assert r.status_code == 403
    assert "suspended" in r.json()["message"].lower()


def test_pending_account_cannot_login(client, admin_token):
    token, user = register(client, "waiting@mail.com")
    r = client.put(f"/api/users/admin/patients/{user['id']}/status", headers=auth(admin_token), json={"status": "pending"})
    assert r.status_code == 200

    r = client.post("/api/auth/login", json={"email": "waiting@mail.com", "password": "secret123"})
    assert r.status_code == 403
    assert r.json()["message"] == "Account pending approval. Please contact support."

    r = client.get("/api/auth/profile", headers=auth(token))
    assert r.status_code == 401


def test_token_of_deactivated_user_is_rejected(client, admin_token):
    token, user = register(client, "gone@mail.com")
    client.put(f"/api/users/admin/patients/{user['id']}/status", headers=auth(admin_token), json={"status": "inactive"})

    r = client.get("/api/auth/profile", headers=auth(token))
    assert r.status_code == 401
    assert r.json()["message"] == "Account is not active"


def test_missing_and_invalid_token(client):
    assert client.get("/api/auth/profile").status_code == 401

    r = client.get("/api/auth/profile", headers=auth("not-a-token"))
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token"


def test_oauth2_form_token(client):
    register(client, "form@mail.com")
    r = client.post("/api/auth/token", data={"username": "form@mail.com", "password": "secret123"})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert client.get("/api/auth/check", headers=auth(body["access_token"])).json()["authenticated"] is True


def test_refresh_and_logout(client, patient):
    token, user = patient
    r = client.post("/api/auth/refresh-token", headers=auth(token))
    assert r.status_code == 200
    assert decode_token(r.json()["token"])["sub"] == str(user["id"])

    r = client.post("/api/auth/logout", headers=auth(token))
    assert r.status_code == 200
    assert r.json()["message"] == "Logout successful"
