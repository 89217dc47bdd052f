from __future__ import annotations

from conftest import ADMIN_EMAIL, auth, register


def test_admin_endpoints_require_admin(client, patient, doctor):
    p_token, _ = patient
    d_token, _ = doctor
    for token in (p_token, d_token):
        r = client.get("/api/users/admin/stats", headers=auth(token))
        assert r.status_code == 403
        assert r.json()["message"] == "Access denied. Required role: admin"


def test_stats_group_by_status(client, admin_token, patient, doctor, booked):
    stats = client.get("/api/users/admin/stats", headers=auth(admin_token)).json()["stats"]
    assert stats["users"] == {"patient": 1, "doctor": 1, "admin": 1, "total": 3}
    assert stats["appointments"]["scheduled"] == 1
    assert stats["appointments"]["total"] == 1
    assert stats["reviews"]["total"] == 0
    assert stats["unverified_doctors"] == 1


def test_list_users_filters(client, admin_token, patient, doctor):
    _, d_user = doctor

    users = client.get("/api/users/admin/users", headers=auth(admin_token)).json()["users"]
    assert len(users) == 3

    doctors = client.get("/api/users/admin/users", headers=auth(admin_token), params={"role": "doctor"}).json()["users"]
    assert [u["id"] for u in doctors] == [d_user["id"]]

    found = client.get("/api/users/admin/users", headers=auth(admin_token), params={"search": "rossi"}).json()["users"]
    assert [u["last_name"] for u in found] == ["Rossi"]


def test_verify_doctor(client, admin_token, doctor):
    _, d_user = doctor

    r = client.put(f"/api/users/admin/doctors/{d_user['id']}/verify", headers=auth(admin_token), json={"verified": True})
    assert r.status_code == 200
    assert r.json()["doctor"]["verified"] is True

    verified = client.get("/api/users/doctors", params={"verified_only": "true"}).json()["doctors"]
    assert [d["id"] for d in verified] == [d_user["id"]]


def test_suspended_doctor_leaves_public_directory(client, admin_token, doctor):
    _, d_user = doctor

    r = client.put(f"/api/users/admin/doctors/{d_user['id']}/status", headers=auth(admin_token), json={"status": "suspended"})
    assert r.status_code == 200
    assert r.json()["doctor"]["status"] == "suspended"

    assert client.get("/api/users/doctors").json()["doctors"] == []
    admin_view = client.get("/api/users/admin/doctors", headers=auth(admin_token)).json()["doctors"]
    assert [d["id"] for d in admin_view] == [d_user["id"]]


def test_status_endpoints_check_role(client, admin_token, patient, doctor):
    _, p_user = patient
    _, d_user = doctor

    r = client.put(f"/api/users/admin/doctors/{p_user['id']}/status", headers=auth(admin_token), json={"status": "inactive"})
    assert r.status_code == 404
    assert r.json()["message"] == "Doctor not found"

    r = client.put(f"/api/users/admin/patients/{d_user['id']}/status", headers=auth(admin_token), json={"status": "inactive"})
    assert r.status_code == 404

    r = client.put(f"/api/users/admin/patients/{p_user['id']}/status", headers=auth(admin_token), json={"status": "frozen"})
    assert r.status_code == 400


def test_admin_patients_listing(client, admin_token, patient):
    register(client, "second.patient@mail.com", last_name="Neri")
    r = client.get("/api/users/admin/patients", headers=auth(admin_token))
    assert [p["last_name"] for p in r.json()["patients"]] == ["Neri", "Rossi"]


def test_admin_profile_visible(client, admin_token):
    r = client.get("/api/auth/profile", headers=auth(admin_token))
    assert r.json()["user"]["email"] == ADMIN_EMAIL
    assert r.json()["user"]["profile"] is None
