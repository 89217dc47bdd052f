from __future__ import annotations

from datetime import date, timedelta

from conftest import auth, register, tomorrow


def test_update_basic_info_and_patient_profile(client, patient):
    token, _ = patient

    r = client.put("/api/users/profile", headers=auth(token), json={"phone": " 555-0101 "})
    assert r.status_code == 200
    assert r.json()["user"]["phone"] == "555-0101"

    r = client.put(
        "/api/users/patient-profile",
        headers=auth(token),
        json={"blood_type": "AB+", "gender": "female", "allergies": "Penicillin", "date_of_birth": "1990-05-01"},
    )
    assert r.status_code == 200
    profile = r.json()["user"]["profile"]
    assert profile["blood_type"] == "AB+"
    assert profile["date_of_birth"] == "1990-05-01"


def test_patient_profile_validation(client, patient):
    token, _ = patient

    r = client.put("/api/users/patient-profile", headers=auth(token), json={"blood_type": "Z+"})
    assert r.status_code == 400
    assert "blood type" in r.json()["message"].lower()

    future = (date.today() + timedelta(days=3)).isoformat()
    r = client.put("/api/users/patient-profile", headers=auth(token), json={"date_of_birth": future})
    assert r.status_code == 400


def test_doctor_profile_requires_doctor_role(client, patient, doctor):
    p_token, _ = patient
    d_token, _ = doctor

    r = client.put("/api/users/doctor-profile", headers=auth(p_token), json={"bio": "x"})
    assert r.status_code == 403
    assert r.json()["message"] == "Access denied. Required role: doctor"

    r = client.put("/api/users/doctor-profile", headers=auth(d_token), json={"bio": "Cardiologist", "consultation_fee": 120})
    assert r.status_code == 200
    assert r.json()["user"]["profile"]["consultation_fee"] == 120


def test_doctor_directory_filters_and_sorting(client, doctor):
    d_token, d_user = doctor
    _, other = register(
        client, "zeta@mail.com", role="doctor", first_name="Aldo", last_name="Zeta",
        profile_data={"years_experience": 30, "consultation_fee": 40},
    )

    doctors = client.get("/api/users/doctors").json()["doctors"]
    assert {d["id"] for d in doctors} == {d_user["id"], other["id"]}
    assert all(d["average_rating"] == 0.0 for d in doctors)

    by_name = client.get("/api/users/doctors", params={"sort_by": "name"}).json()["doctors"]
    assert [d["last_name"] for d in by_name] == ["Bianchi", "Zeta"]

    by_fee = client.get("/api/users/doctors", params={"sort_by": "fee"}).json()["doctors"]
    assert by_fee[0]["id"] == other["id"]

    by_exp = client.get("/api/users/doctors", params={"sort_by": "experience"}).json()["doctors"]
    assert by_exp[0]["id"] == other["id"]

    found = client.get("/api/users/doctors", params={"search": "marco bian"}).json()["doctors"]
    assert [d["id"] for d in found] == [d_user["id"]]

    r = client.get("/api/users/doctors", params={"sort_by": "height"})
    assert r.status_code == 400


def test_doctor_directory_by_specialization(client, doctor):
    d_token, d_user = doctor
    spec = client.get("/api/specializations").json()["specializations"][0]
    client.post("/api/specializations/doctor", headers=auth(d_token), json={"specialization_id": spec["id"], "years_experience": 4})
    register(client, "other.doc@mail.com", role="doctor")

    doctors = client.get("/api/users/doctors", params={"specialization_id": spec["id"]}).json()["doctors"]
    assert [d["id"] for d in doctors] == [d_user["id"]]
    assert doctors[0]["specializations"][0]["name"] == spec["name"]


def test_doctor_details(client, doctor):
    _, d_user = doctor
    r = client.get(f"/api/users/doctors/{d_user['id']}")
    assert r.status_code == 200
    body = r.json()["doctor"]
    assert body["profile"]["license_number"] == "LIC-001"
    assert body["rating_stats"]["total_reviews"] == 0
    assert body["completed_appointments"] == 0

    assert client.get("/api/users/doctors/9999").status_code == 404


def test_available_slots_exclude_booked(client, doctor, booked):
    _, d_user = doctor
    r = client.get(f"/api/users/doctors/{d_user['id']}/available-slots", params={"date": tomorrow().isoformat()})
    assert r.status_code == 200
    body = r.json()
    assert "10:00" not in body["available_slots"]
    assert "09:00" in body["available_slots"]
    assert body["booked_slots"] == ["10:00"]


def test_available_slots_in_the_past_are_empty(client, doctor):
    _, d_user = doctor
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    r = client.get(f"/api/users/doctors/{d_user['id']}/available-slots", params={"date": yesterday})
    assert r.json()["available_slots"] == []


def test_patients_directory_is_staff_only(client, patient, doctor):
    p_token, p_user = patient
    d_token, _ = doctor

    assert client.get("/api/users/patients", headers=auth(p_token)).status_code == 403

    r = client.get("/api/users/patients", headers=auth(d_token))
    assert r.status_code == 200
    assert [p["id"] for p in r.json()["patients"]] == [p_user["id"]]


def test_profile_visibility(client, patient, doctor):
    p_token, p_user = patient
    d_token, d_user = doctor
    other_token, _ = register(client, "other@mail.com")

    assert client.get(f"/api/users/{d_user['id']}", headers=auth(p_token)).status_code == 200
    assert client.get(f"/api/users/{p_user['id']}", headers=auth(d_token)).status_code == 200
    assert client.get(f"/api/users/{p_user['id']}", headers=auth(other_token)).status_code == 403


def test_dashboards(client, patient, doctor, booked):
    p_token, _ = patient
    d_token, _ = doctor

    stats = client.get("/api/users/dashboard/patient", headers=auth(p_token)).json()["stats"]
    assert stats["total_appointments"] == 1
    assert stats["upcoming_appointments"] == 1

    stats = client.get("/api/users/dashboard/doctor", headers=auth(d_token)).json()["stats"]
    assert stats["upcoming_appointments"] == 1
    assert stats["total_patients"] == 1

    assert client.get("/api/users/dashboard/doctor", headers=auth(p_token)).status_code == 403
