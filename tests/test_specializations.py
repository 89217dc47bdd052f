from __future__ import annotations

from conftest import auth, register

from healthcare.constants import MEDICAL_SPECIALIZATIONS


def _spec_id(client, name):
    items = client.get("/api/specializations", params={"search": name}).json()["specializations"]
    return next(sp["id"] for sp in items if sp["name"] == name)


def test_seeded_catalogue(client):
    items = client.get("/api/specializations").json()["specializations"]
    assert len(items) == len(MEDICAL_SPECIALIZATIONS)
    assert all(sp["doctor_count"] == 0 for sp in items)
    assert [sp["name"] for sp in items] == sorted(sp["name"] for sp in items)


def test_admin_crud(client, admin_token, patient):
    p_token, _ = patient

    r = client.post("/api/specializations", headers=auth(p_token), json={"name": "Sleep Medicine"})
    assert r.status_code == 403

    r = client.post("/api/specializations", headers=auth(admin_token), json={"name": "Sleep Medicine", "description": "Sleep disorders"})
    assert r.status_code == 201
    spec = r.json()["specialization"]

    r = client.post("/api/specializations", headers=auth(admin_token), json={"name": "sleep medicine"})
    assert r.status_code == 400
    assert r.json()["message"] == "Specialization already exists"

    r = client.put(f"/api/specializations/{spec['id']}", headers=auth(admin_token), json={"description": "Insomnia and apnea"})
    assert r.json()["specialization"]["description"] == "Insomnia and apnea"

    assert client.delete(f"/api/specializations/{spec['id']}", headers=auth(admin_token)).status_code == 200
    assert client.get(f"/api/specializations/{spec['id']}").status_code == 404


def test_doctor_assigns_own_specializations(client, doctor):
    d_token, d_user = doctor
    cardio = _spec_id(client, "Cardiology")

    r = client.post("/api/specializations/doctor", headers=auth(d_token), json={"specialization_id": cardio, "years_experience": 8})
    assert r.status_code == 201
    assert r.json()["specializations"][0]["years_experience"] == 8

    # posting again updates the existing assignment
    r = client.post("/api/specializations/doctor", headers=auth(d_token), json={"specialization_id": cardio, "years_experience": 9})
    assert len(r.json()["specializations"]) == 1
    assert r.json()["specializations"][0]["years_experience"] == 9

    r = client.put(f"/api/specializations/doctor/{cardio}", headers=auth(d_token), json={"certification": "ESC board"})
    assert r.json()["specializations"][0]["certification"] == "ESC board"

    assert client.get(f"/api/specializations/{cardio}").json()["specialization"]["doctor_count"] == 1
    listed = client.get(f"/api/specializations/{cardio}/doctors").json()
    assert listed["specialization"]["name"] == "Cardiology"
    assert [d["id"] for d in listed["doctors"]] == [d_user["id"]]

    popular = client.get("/api/specializations/popular").json()["specializations"]
    assert popular[0]["id"] == cardio

    assert client.delete(f"/api/specializations/doctor/{cardio}", headers=auth(d_token)).status_code == 200
    assert client.get("/api/specializations/my", headers=auth(d_token)).json()["specializations"] == []


def test_bulk_assignment_reports_errors(client, doctor):
    d_token, d_user = doctor
    cardio = _spec_id(client, "Cardiology")
    neuro = _spec_id(client, "Neurology")

    r = client.post(
        "/api/specializations/doctor/bulk",
        headers=auth(d_token),
        json={"specializations": [{"specialization_id": cardio}, {"specialization_id": neuro}, {"specialization_id": 9999}]},
    )
    assert r.status_code == 201
    body = r.json()
    assert sorted(body["added"]) == sorted([cardio, neuro])
    assert body["errors"][0]["specialization_id"] == 9999

    public = client.get(f"/api/specializations/doctor/{d_user['id']}").json()["specializations"]
    assert [sp["name"] for sp in public] == ["Cardiology", "Neurology"]


def test_admin_assigns_for_doctor(client, admin_token, doctor):
    _, d_user = doctor
    derm = _spec_id(client, "Dermatology")

    r = client.post("/api/specializations/doctor", headers=auth(admin_token), json={"specialization_id": derm})
    assert r.status_code == 400

    r = client.post(
        "/api/specializations/doctor",
        headers=auth(admin_token),
        json={"specialization_id": derm, "doctor_id": d_user["id"]},
    )
    assert r.status_code == 201

    stats = client.get("/api/specializations/admin/stats", headers=auth(admin_token)).json()["stats"]
    assert stats["with_doctors"] == 1
    assert stats["doctors_with_specializations"] == 1


def test_patient_cannot_assign(client, patient):
    p_token, _ = patient
    r = client.post("/api/specializations/doctor", headers=auth(p_token), json={"specialization_id": 1})
    assert r.status_code == 403


def test_name_filter_on_specialization_doctors(client):
    cardio = _spec_id(client, "Cardiology")
    for email, first in (("a.doc@mail.com", "Alice"), ("b.doc@mail.com", "Bruno")):
        token, _ = register(client, email, role="doctor", first_name=first)
        client.post("/api/specializations/doctor", headers=auth(token), json={"specialization_id": cardio})

    doctors = client.get(f"/api/specializations/{cardio}/doctors", params={"name": "bruno"}).json()["doctors"]
    assert [d["first_name"] for d in doctors] == ["Bruno"]
