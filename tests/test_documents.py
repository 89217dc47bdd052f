from __future__ import annotations

import dataclasses
from pathlib import Path

from conftest import auth, register

from healthcare import document_service, storage
from healthcare.config import get_settings
from healthcare.errors import ValidationError

PDF = b"%PDF-1.4 fake lab report"


def _upload(client, token, name="blood.pdf", content=PDF, ctype="application/pdf", **form):
    data = {"document_type": "lab_result", **form}
    return client.post(
        "/api/documents/upload",
        headers=auth(token),
        files={"document": (name, content, ctype)},
        data=data,
    )


def test_upload_stores_file_and_hides_path(client, patient):
    token, user = patient
    r = _upload(client, token, description="Fasting glucose")
    assert r.status_code == 201
    doc = r.json()["document"]
    assert doc["patient_id"] == user["id"]
    assert doc["uploaded_by"] == user["id"]
    assert doc["document_name"] == "blood.pdf"
    assert doc["file_size"] == len(PDF)
    assert doc["status"] == "pending"
    assert "file_path" not in doc

    stored = list(Path(get_settings().upload_dir).iterdir())
    assert len(stored) == 1
    assert stored[0].suffix == ".pdf"
    assert stored[0].name != "blood.pdf"


def test_upload_rejects_bad_type_and_empty_file(client, patient):
    token, _ = patient

    r = _upload(client, token, name="virus.exe", ctype="application/x-msdownload")
    assert r.status_code == 400
    assert r.json()["message"].startswith("Invalid file type")

    r = _upload(client, token, name="empty.pdf", content=b"")
    assert r.status_code == 400

    r = _upload(client, token, document_type="horoscope")
    assert r.status_code == 400


def test_upload_over_size_limit_is_refused(client, patient, monkeypatch):
    token, _ = patient
    small = dataclasses.replace(get_settings(), max_upload_bytes=1024 * 1024)
    monkeypatch.setattr(storage, "get_settings", lambda: small)

    r = _upload(client, token, content=b"%PDF" + b"x" * (1024 * 1024 - 3))
    assert r.status_code == 413
    assert r.json()["message"] == "File too large. Maximum size is 1MB."
    assert list(Path(small.upload_dir).iterdir()) == []

    r = _upload(client, token, content=b"%PDF" + b"x" * (1024 * 1024 - 4))
    assert r.status_code == 201
    assert r.json()["document"]["file_size"] == 1024 * 1024


def test_download_and_access_rules(client, patient, doctor):
    p_token, _ = patient
    d_token, d_user = doctor
    stranger_token, _ = register(client, "stranger@mail.com")
    doc = _upload(client, p_token).json()["document"]

    r = client.get(f"/api/documents/{doc['id']}/download", headers=auth(p_token))
    assert r.status_code == 200
    assert r.content == PDF

    assert client.get(f"/api/documents/{doc['id']}", headers=auth(stranger_token)).status_code == 403
    assert client.get(f"/api/documents/{doc['id']}/download", headers=auth(d_token)).status_code == 403

    r = client.post(f"/api/documents/{doc['id']}/share", headers=auth(p_token), json={"doctor_id": d_user["id"], "message": "Please review"})
    assert r.status_code == 201
    assert r.json()["share"]["doctor_id"] == d_user["id"]

    assert client.get(f"/api/documents/{doc['id']}/download", headers=auth(d_token)).status_code == 200
    shared = client.get("/api/documents/shared-with-me", headers=auth(d_token)).json()["documents"]
    assert [d["id"] for d in shared] == [doc["id"]]
    assert shared[0]["share"]["message"] == "Please review"


def test_share_notifies_doctor_and_rejects_duplicates(client, patient, doctor):
    p_token, _ = patient
    d_token, d_user = doctor
    doc = _upload(client, p_token).json()["document"]

    client.post(f"/api/documents/{doc['id']}/share", headers=auth(p_token), json={"doctor_id": d_user["id"]})
    r = client.post(f"/api/documents/{doc['id']}/share", headers=auth(p_token), json={"doctor_id": d_user["id"]})
    assert r.status_code == 400
    assert r.json()["message"] == "Document already shared with this doctor"

    inbox = client.get("/api/messages/received", headers=auth(d_token)).json()["messages"]
    assert len(inbox) == 1
    assert inbox[0]["subject"] == "Document shared: blood.pdf"

    r = client.post(f"/api/documents/{doc['id']}/share", headers=auth(p_token), json={"doctor_id": 9999})
    assert r.status_code == 404


def test_only_owner_can_share(client, patient):
    p_token, _ = patient
    other_token, _ = register(client, "other.patient@mail.com")
    _, d_user = register(client, "doc2@mail.com", role="doctor")
    doc = _upload(client, p_token).json()["document"]

    r = client.post(f"/api/documents/{doc['id']}/share", headers=auth(other_token), json={"doctor_id": d_user["id"]})
    assert r.status_code == 403


def test_doctor_uploads_for_patient(client, patient, doctor):
    p_token, p_user = patient
    d_token, d_user = doctor

    r = _upload(client, d_token, name="report.pdf", document_type="medical_report", patient_id=str(p_user["id"]))
    assert r.status_code == 201
    doc = r.json()["document"]
    assert doc["patient_id"] == p_user["id"]
    assert doc["uploaded_by"] == d_user["id"]

    mine = client.get("/api/documents", headers=auth(p_token)).json()["documents"]
    assert [d["id"] for d in mine] == [doc["id"]]

    # the owning patient may read it but only the uploader may change it
    assert client.delete(f"/api/documents/{doc['id']}", headers=auth(p_token)).status_code == 403
    assert client.put(f"/api/documents/{doc['id']}", headers=auth(d_token), json={"description": "Updated"}).status_code == 200


def test_update_and_delete_removes_file(client, patient):
    token, _ = patient
    doc = _upload(client, token).json()["document"]

    r = client.put(f"/api/documents/{doc['id']}", headers=auth(token), json={"description": "HbA1c", "is_public": True})
    assert r.status_code == 200
    assert r.json()["document"]["is_public"] is True

    r = client.delete(f"/api/documents/{doc['id']}", headers=auth(token))
    assert r.status_code == 200
    assert list(Path(get_settings().upload_dir).iterdir()) == []
    assert client.get(f"/api/documents/{doc['id']}", headers=auth(token)).status_code == 404


def test_bulk_upload_reports_per_file_errors(client, patient):
    token, _ = patient
    files = [
        ("documents", ("a.pdf", PDF, "application/pdf")),
        ("documents", ("b.png", b"\x89PNG fake", "image/png")),
        ("documents", ("c.txt", b"plain", "text/plain")),
    ]
    r = client.post("/api/documents/upload/bulk", headers=auth(token), files=files, data={"document_type": "other"})
    assert r.status_code == 201
    body = r.json()
    assert len(body["uploaded"]) == 2
    assert body["errors"][0]["filename"] == "c.txt"


def test_bulk_upload_limit(client, patient):
    token, _ = patient
    files = [("documents", (f"f{i}.pdf", PDF, "application/pdf")) for i in range(11)]
    r = client.post("/api/documents/upload/bulk", headers=auth(token), files=files)
    assert r.status_code == 400


def test_resume_replaces_previous(client, doctor):
    d_token, d_user = doctor
    files = {"document": ("cv-old.pdf", PDF, "application/pdf")}
    assert client.post("/api/documents/upload/resume", headers=auth(d_token), files=files).status_code == 201
    files = {"document": ("cv-new.pdf", PDF, "application/pdf")}
    assert client.post("/api/documents/upload/resume", headers=auth(d_token), files=files).status_code == 201

    r = client.get(f"/api/documents/doctor/{d_user['id']}/resume")
    assert r.status_code == 200
    assert r.json()["document"]["document_name"] == "cv-new.pdf"

    public = client.get(f"/api/documents/public/{d_user['id']}").json()["documents"]
    assert [d["document_name"] for d in public] == ["cv-new.pdf"]


def test_failed_resume_upload_keeps_the_previous_one(client, doctor, monkeypatch):
    d_token, d_user = doctor
    files = {"document": ("cv-old.pdf", PDF, "application/pdf")}
    assert client.post("/api/documents/upload/resume", headers=auth(d_token), files=files).status_code == 201

    def broken_insert(*args, **kwargs):
        raise ValidationError("Could not record document")

    monkeypatch.setattr(document_service, "_insert_document", broken_insert)
    files = {"document": ("cv-new.pdf", PDF, "application/pdf")}
    r = client.post("/api/documents/upload/resume", headers=auth(d_token), files=files)
    assert r.status_code == 400

    r = client.get(f"/api/documents/doctor/{d_user['id']}/resume")
    assert r.status_code == 200
    assert r.json()["document"]["document_name"] == "cv-old.pdf"
    assert len(list(Path(get_settings().upload_dir).iterdir())) == 1


def test_certifications_and_missing_resume(client, doctor, patient):
    d_token, d_user = doctor
    p_token, _ = patient

    assert client.get(f"/api/documents/doctor/{d_user['id']}/resume").status_code == 404

    files = {"document": ("board.pdf", PDF, "application/pdf")}
    r = client.post("/api/documents/upload/certification", headers=auth(d_token), files=files)
    assert r.status_code == 201
    certs = client.get(f"/api/documents/doctor/{d_user['id']}/certifications").json()["documents"]
    assert [c["document_type"] for c in certs] == ["certification"]

    files = {"document": ("cv.pdf", PDF, "application/pdf")}
    assert client.post("/api/documents/upload/resume", headers=auth(p_token), files=files).status_code == 403


def test_search_stats_and_types(client, patient):
    token, _ = patient
    _upload(client, token, name="cholesterol.pdf", description="Lipid panel")
    _upload(client, token, name="xray.png", content=b"\x89PNG", ctype="image/png", document_type="x_ray")

    assert client.get("/api/documents/search", headers=auth(token), params={"q": "ab"}).status_code == 400
    found = client.get("/api/documents/search", headers=auth(token), params={"q": "lipid"}).json()["documents"]
    assert [d["document_name"] for d in found] == ["cholesterol.pdf"]

    stats = client.get("/api/documents/stats", headers=auth(token)).json()["stats"]
    assert stats["total_documents"] == 2
    assert stats["by_type"] == {"lab_result": 1, "x_ray": 1}

    by_type = client.get("/api/documents/type/x_ray", headers=auth(token)).json()["documents"]
    assert [d["document_name"] for d in by_type] == ["xray.png"]

    types = client.get("/api/documents/types").json()["document_types"]
    assert {"value": "lab_result", "label": "Lab Result"} in types


def test_admin_moderation(client, patient, admin_token):
    token, _ = patient
    doc = _upload(client, token).json()["document"]

    r = client.get("/api/documents/admin/all", headers=auth(admin_token), params={"status": "pending"})
    assert [d["id"] for d in r.json()["documents"]] == [doc["id"]]

    r = client.put(f"/api/documents/admin/{doc['id']}/status", headers=auth(admin_token), json={"status": "approved"})
    assert r.status_code == 200
    assert r.json()["document"]["status"] == "approved"

    assert client.get("/api/documents/admin/all", headers=auth(token)).status_code == 403
