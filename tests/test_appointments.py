from __future__ import annotations

from datetime import date, timedelta

from conftest import auth, register, tomorrow


def _book(client, token, doctor_id, day=None, at="11:00", reason="Persistent headache"):
    return client.post(
        "/api/appointments",
        headers=auth(token),
        json={
            "doctor_id": doctor_id,
            "appointment_date": (day or tomorrow()).isoformat(),
            "appointment_time": at,
            "reason_for_visit": reason,
        },
    )


def test_booking_uses_doctor_fee_and_starts_scheduled(booked, doctor, patient):
    _, d_user = doctor
    _, p_user = patient
    assert booked["status"] == "scheduled"
    assert booked["consultation_fee"] == 80
    assert booked["doctor_id"] == d_user["id"]
    assert booked["patient_id"] == p_user["id"]
    assert booked["doctor_name"] == "Marco Bianchi"


def test_double_booking_same_slot_conflicts(client, doctor, booked):
    _, d_user = doctor
    other_token, _ = register(client, "second@mail.com")

    r = _book(client, other_token, d_user["id"], at="10:00")
    assert r.status_code == 409
    assert r.json()["message"] == "This time slot is already booked"

    assert _book(client, other_token, d_user["id"], at="10:30").status_code == 201


def test_cancelled_slot_can_be_booked_again(client, patient, doctor, booked):
    p_token, _ = patient
    _, d_user = doctor
    client.put(f"/api/appointments/{booked['id']}/cancel", headers=auth(p_token), json={})

    assert _book(client, p_token, d_user["id"], at="10:00").status_code == 201


def test_booking_validation(client, patient, doctor):
    p_token, _ = patient
    _, d_user = doctor

    r = _book(client, p_token, d_user["id"], day=date.today() - timedelta(days=1))
    assert r.status_code == 400
    assert r.json()["message"] == "Appointment date cannot be in the past"

    assert _book(client, p_token, d_user["id"], at="25:00").status_code == 400
    assert _book(client, p_token, d_user["id"], reason="no").status_code == 400

    r = _book(client, p_token, 9999)
    assert r.status_code == 404
    assert r.json()["message"] == "Doctor not found"


def test_only_patients_can_book(client, doctor):
    d_token, d_user = doctor
    r = _book(client, d_token, d_user["id"])
    assert r.status_code == 403


def test_booking_inactive_doctor_is_refused(client, patient, doctor, admin_token):
    p_token, _ = patient
    _, d_user = doctor
    client.put(f"/api/users/admin/doctors/{d_user['id']}/status", headers=auth(admin_token), json={"status": "inactive"})

    r = _book(client, p_token, d_user["id"])
    assert r.status_code == 400


def test_listings_are_scoped_by_role(client, patient, doctor, booked, admin_token):
    p_token, _ = patient
    d_token, _ = doctor
    other_token, _ = register(client, "third@mail.com")

    assert len(client.get("/api/appointments", headers=auth(p_token)).json()["appointments"]) == 1
    assert len(client.get("/api/appointments", headers=auth(d_token)).json()["appointments"]) == 1
    assert client.get("/api/appointments", headers=auth(other_token)).json()["appointments"] == []
    assert len(client.get("/api/appointments", headers=auth(admin_token)).json()["appointments"]) == 1

    assert client.get(f"/api/appointments/{booked['id']}", headers=auth(other_token)).status_code == 403
    assert client.get("/api/appointments/9999", headers=auth(p_token)).status_code == 404


def test_upcoming_past_and_status_filter(client, patient, booked):
    p_token, _ = patient

    upcoming = client.get("/api/appointments/upcoming", headers=auth(p_token)).json()["appointments"]
    assert [a["id"] for a in upcoming] == [booked["id"]]
    assert client.get("/api/appointments/past", headers=auth(p_token)).json()["appointments"] == []

    r = client.get("/api/appointments", headers=auth(p_token), params={"status": "cancelled"})
    assert r.json()["appointments"] == []


def test_patient_can_only_cancel_via_status(client, patient, booked):
    p_token, _ = patient

    r = client.put(f"/api/appointments/{booked['id']}/status", headers=auth(p_token), json={"status": "confirmed"})
    assert r.status_code == 403

    r = client.put(
        f"/api/appointments/{booked['id']}/status",
        headers=auth(p_token),
        json={"status": "cancelled", "cancellation_reason": "Travelling"},
    )
    assert r.status_code == 200
    assert r.json()["appointment"]["cancellation_reason"] == "Travelling"


def test_cancelled_appointment_cannot_be_reopened(client, doctor, patient, booked):
    p_token, _ = patient
    d_token, _ = doctor
    client.put(f"/api/appointments/{booked['id']}/cancel", headers=auth(p_token), json={"cancellation_reason": "Sick"})

    r = client.put(f"/api/appointments/{booked['id']}/status", headers=auth(d_token), json={"status": "confirmed"})
    assert r.status_code == 400

    r = client.put(f"/api/appointments/{booked['id']}/cancel", headers=auth(p_token), json={})
    assert r.status_code == 400
    assert r.json()["message"] == "Appointment is already cancelled"


def test_doctor_notes_complete_the_appointment(client, doctor, patient, booked):
    d_token, _ = doctor
    p_token, _ = patient

    r = client.put(f"/api/appointments/{booked['id']}/notes", headers=auth(d_token), json={"consultation_notes": "short"})
    assert r.status_code == 400

    r = client.put(
        f"/api/appointments/{booked['id']}/notes",
        headers=auth(d_token),
        json={"consultation_notes": "Blood pressure normal, follow-up in 6 months."},
    )
    assert r.status_code == 200
    assert r.json()["appointment"]["status"] == "completed"

    r = client.put(f"/api/appointments/{booked['id']}/cancel", headers=auth(p_token), json={})
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot cancel a completed appointment"


def test_completed_appointment_status_is_final(client, doctor, patient, booked):
    d_token, _ = doctor
    p_token, _ = patient
    client.put(
        f"/api/appointments/{booked['id']}/notes",
        headers=auth(d_token),
        json={"consultation_notes": "Mild sprain, rest and ice for a week."},
    )

    r = client.put(f"/api/appointments/{booked['id']}/status", headers=auth(p_token), json={"status": "cancelled"})
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot change the status of a completed appointment"

    r = client.put(f"/api/appointments/{booked['id']}/status", headers=auth(d_token), json={"status": "scheduled"})
    assert r.status_code == 400

    r = client.put(f"/api/appointments/{booked['id']}/status", headers=auth(d_token), json={"status": "completed"})
    assert r.status_code == 200
    assert r.json()["appointment"]["status"] == "completed"


def test_other_doctor_cannot_add_notes(client, booked):
    other_token, _ = register(client, "other.doctor@mail.com", role="doctor")
    r = client.put(
        f"/api/appointments/{booked['id']}/notes",
        headers=auth(other_token),
        json={"consultation_notes": "Not my patient at all."},
    )
    assert r.status_code == 403


def test_reschedule(client, patient, doctor, booked):
    p_token, _ = patient
    _, d_user = doctor
    _book(client, p_token, d_user["id"], at="15:00")

    new_day = tomorrow() + timedelta(days=1)
    r = client.put(
        f"/api/appointments/{booked['id']}/reschedule",
        headers=auth(p_token),
        json={"appointment_date": new_day.isoformat(), "appointment_time": "09:30"},
    )
    assert r.status_code == 200
    moved = r.json()["appointment"]
    assert moved["appointment_date"] == new_day.isoformat()
    assert moved["appointment_time"] == "09:30"

    r = client.put(
        f"/api/appointments/{booked['id']}/reschedule",
        headers=auth(p_token),
        json={"appointment_date": tomorrow().isoformat(), "appointment_time": "15:00"},
    )
    assert r.status_code == 409


def test_patient_history_for_doctor(client, doctor, patient, booked):
    d_token, _ = doctor
    _, p_user = patient

    r = client.get(f"/api/appointments/patient/{p_user['id']}", headers=auth(d_token))
    assert r.status_code == 200
    assert [a["id"] for a in r.json()["appointments"]] == [booked["id"]]
