from __future__ import annotations

from datetime import date, timedelta

import streamlit as st

from healthcare.client import ApiClient, ApiError, AuthStore, BookingWizard, HealthcareApi, filter_appointments, filter_documents
from healthcare.config import get_settings
from healthcare.constants import (
    APPOINTMENT_STATUSES,
    BLOOD_TYPES,
    DOCUMENT_STATUSES,
    DOCUMENT_TYPES,
    GENDERS,
    REVIEW_STATUSES,
)
from healthcare.formatters import (
    document_type_label,
    format_currency,
    format_date,
    format_file_size,
    format_time,
    rating_stars,
    status_label,
    time_ago,
    truncate,
)

st.set_page_config(page_title="Healthcare Platform", layout="wide")

API_BASE = get_settings().api_base
UPLOAD_TYPES = ["jpg", "jpeg", "png", "pdf", "doc", "docx"]


# Session helpers

def get_api() -> HealthcareApi:
    if "api" not in st.session_state:
        st.session_state["api"] = HealthcareApi(ApiClient(API_BASE))
    api: HealthcareApi = st.session_state["api"]
    api.client.token = st.session_state.get(AuthStore.TOKEN_KEY)
    return api


store = AuthStore(st.session_state)
api = get_api()


def show_error(e: Exception, what: str) -> None:
    """Surface an API failure; an expired session logs the user out."""
    if isinstance(e, ApiError) and e.status_code == 401:
        store.logout(api)
        st.session_state[AuthStore.ERROR_KEY] = "Session expired. Please log in again."
        st.rerun()
    message = e.message if isinstance(e, ApiError) else str(e)
    st.error(f"Failed to {what}: {message}")


@st.cache_data(ttl=60)
def load_specializations() -> list[dict]:
    return HealthcareApi(ApiClient(API_BASE)).specializations.list()


def doctor_label(d: dict) -> str:
    specs = ", ".join(sp["name"] for sp in d.get("specializations") or []) or "General"
    return f"Dr. {d['full_name']} ({specs}) {rating_stars(d.get('average_rating'))}"


def appointment_line(a: dict, who: str) -> str:
    other = a["doctor_name"] if who == "doctor" else a["patient_name"]
    return (
        f"**{format_date(a['appointment_date'])} {format_time(a['appointment_time'])}** | "
        f"{other} | {status_label(a['status'])} | {truncate(a['reason_for_visit'], 60)}"
    )


# Sidebar: login / register

with st.sidebar:
    st.header("Account")

    if not store.is_authenticated():
        if st.session_state.get(AuthStore.ERROR_KEY):
            st.warning(st.session_state[AuthStore.ERROR_KEY])

        mode = st.radio("Mode", ["Login", "Register"], horizontal=True, key="auth_mode")
        email = st.text_input("Email", key="auth_email")
        password = st.text_input("Password", type="password", key="auth_pass")

        if mode == "Login":
            if st.button("Login", key="login_btn"):
                try:
                    user = store.login(api, email, password)
                    st.success(f"Welcome back, {user['first_name']}!")
                    st.rerun()
                except ApiError as e:
                    st.error(e.message)
        else:
            c1, c2 = st.columns(2)
            first_name = c1.text_input("First name", key="reg_first")
            last_name = c2.text_input("Last name", key="reg_last")
            phone = st.text_input("Phone (optional)", key="reg_phone")
            role = st.selectbox("I am a", ["patient", "doctor"], key="reg_role")
            if st.button("Create account", key="register_btn"):
                try:
                    store.register(
                        api,
                        email=email.strip().lower(),
                        password=password,
                        first_name=first_name.strip(),
                        last_name=last_name.strip(),
                        phone=phone.strip() or None,
                        role=role,
                    )
                    st.success("Registration successful.")
                    st.rerun()
                except ApiError as e:
                    errors = (e.payload or {}).get("errors") or []
                    st.error(e.message)
                    for err in errors:
                        st.caption(f"- {err['field']}: {err['message']}")
    else:
        user = store.user or {}
        st.write(f"**{user.get('full_name')}**")
        st.caption(f"{user.get('email')} | {status_label(store.role)}")
        if st.button("Logout", key="logout_btn"):
            store.logout(api)
            st.rerun()

    st.divider()
    st.caption(f"API: {API_BASE}")


# Shared sections

def doctor_directory() -> None:
    st.subheader("Find a doctor")
    specs = load_specializations()
    c1, c2, c3, c4 = st.columns(4)
    search = c1.text_input("Search", key="dir_search")
    spec = c2.selectbox("Specialization", [None] + specs, format_func=lambda s: s["name"] if s else "All", key="dir_spec")
    min_rating = c3.slider("Minimum rating", 0.0, 5.0, 0.0, 0.5, key="dir_rating")
    sort_by = c4.selectbox("Sort by", ["rating", "name", "experience", "fee"], key="dir_sort")

    try:
        doctors = api.doctors.list(
            search=search or None,
            specialization_id=spec["id"] if spec else None,
            min_rating=min_rating or None,
            sort_by=sort_by,
        )
    except ApiError as e:
        show_error(e, "fetch doctors")
        return

    if not doctors:
        st.info("No doctors match your filters.")
    for d in doctors:
        profile = d.get("profile") or {}
        with st.expander(doctor_label(d)):
            st.write(profile.get("bio") or "No biography provided.")
            st.write(
                f"Experience: {profile.get('years_experience') or 0} years | "
                f"Fee: {format_currency(profile.get('consultation_fee'))} | "
                f"Reviews: {d['review_count']} | {'Verified' if d['verified'] else 'Not verified'}"
            )


def messages_section(prefix: str) -> None:
    st.subheader("Messages")
    try:
        unread = api.messages.unread_count()
        inbox = api.messages.received()
        sent = api.messages.sent()
    except ApiError as e:
        show_error(e, "fetch messages")
        return

    st.caption(f"{unread} unread")
    if unread and st.button("Mark all as read", key=f"{prefix}_read_all"):
        api.messages.mark_all_read()
        st.rerun()

    for m in inbox:
        marker = "" if m["is_read"] else " (new)"
        with st.expander(f"From {m['sender_name']}: {m['subject']}{marker} | {time_ago(m['created_at'])}"):
            st.write(m["message_content"])
            reply = st.text_area("Reply", key=f"{prefix}_reply_{m['id']}")
            c1, c2, c3 = st.columns(3)
            if c1.button("Send reply", key=f"{prefix}_reply_btn_{m['id']}"):
                try:
                    api.messages.reply(m["id"], reply)
                    st.success("Reply sent.")
                except ApiError as e:
                    show_error(e, "send reply")
            if not m["is_read"] and c2.button("Mark read", key=f"{prefix}_read_{m['id']}"):
                api.messages.mark_read(m["id"])
                st.rerun()
            if c3.button("Delete", key=f"{prefix}_del_{m['id']}"):
                api.messages.delete(m["id"])
                st.rerun()

    with st.expander(f"Sent ({len(sent)})"):
        for m in sent:
            st.write(f"- To {m['receiver_name']}: **{m['subject']}** | {time_ago(m['created_at'])}")


def document_list(docs: list[dict], prefix: str, can_share: bool = False, doctors: list[dict] | None = None) -> None:
    c1, c2 = st.columns(2)
    type_filter = c1.selectbox(
        "Type", ["all"] + [t["value"] for t in DOCUMENT_TYPES], format_func=document_type_label, key=f"{prefix}_type"
    )
    search = c2.text_input("Search", key=f"{prefix}_search")

    for d in filter_documents(docs, document_type=type_filter, search=search):
        title = f"{d['document_name']} | {document_type_label(d['document_type'])} | {format_file_size(d['file_size'])}"
        with st.expander(title):
            st.write(d.get("description") or "-")
            st.caption(f"Uploaded {format_date(d['upload_date'])} | {status_label(d['status'])} | {'Public' if d['is_public'] else 'Private'}")
            try:
                st.download_button("Download", api.documents.download(d["id"]), file_name=d["document_name"], key=f"{prefix}_dl_{d['id']}")
            except ApiError as e:
                st.caption(f"Download unavailable: {e.message}")
            if can_share and doctors:
                doctor = st.selectbox("Share with", doctors, format_func=doctor_label, key=f"{prefix}_share_doc_{d['id']}")
                note = st.text_input("Message (optional)", key=f"{prefix}_share_note_{d['id']}")
                if st.button("Share", key=f"{prefix}_share_{d['id']}"):
                    try:
                        api.documents.share(d["id"], doctor["id"], note or None)
                        st.success("Document shared.")
                    except ApiError as e:
                        show_error(e, "share document")
            if d["uploaded_by"] == (store.user or {}).get("id") and st.button("Delete", key=f"{prefix}_ddel_{d['id']}"):
                api.documents.delete(d["id"])
                st.rerun()


# Patient

def patient_view() -> None:
    tabs = st.tabs(["Dashboard", "Book appointment", "My appointments", "Documents", "Reviews", "Find a doctor", "Messages"])

    with tabs[0]:
        try:
            stats = api.users.patient_dashboard()
            cols = st.columns(4)
            cols[0].metric("Upcoming", stats["upcoming_appointments"])
            cols[1].metric("Completed", stats["completed_appointments"])
            cols[2].metric("Documents", stats["total_documents"])
            cols[3].metric("Unread messages", stats["unread_messages"])
            st.write("Next appointments:")
            for a in api.appointments.upcoming(limit=5):
                st.write(f"- {appointment_line(a, 'doctor')}")
        except ApiError as e:
            show_error(e, "fetch dashboard")

    with tabs[1]:
        wizard: BookingWizard = st.session_state.setdefault("booking", BookingWizard())
        st.progress((wizard.step + 1) / len(BookingWizard.STEPS), text=f"Step {wizard.step + 1}: {wizard.current}")

        if wizard.current == "doctor":
            doctors = api.doctors.list()
            if doctors:
                d = st.selectbox("Doctor", doctors, format_func=doctor_label, key="wiz_doctor")
                wizard.doctor_id, wizard.doctor_name = d["id"], d["full_name"]
        elif wizard.current == "datetime":
            wizard.appointment_date = st.date_input(
                "Date", value=wizard.appointment_date or date.today() + timedelta(days=1), min_value=date.today(), key="wiz_date"
            )
            try:
                wizard.available_slots = api.doctors.available_slots(wizard.doctor_id, wizard.appointment_date)
            except ApiError as e:
                show_error(e, "fetch available slots")
            if wizard.available_slots:
                wizard.appointment_time = st.radio("Time", wizard.available_slots, format_func=format_time, horizontal=True, key="wiz_time")
            else:
                st.info("No free slots on this date.")
        elif wizard.current == "details":
            wizard.reason_for_visit = st.text_area("Reason for visit", value=wizard.reason_for_visit, key="wiz_reason")
        else:
            st.write(f"Doctor: **Dr. {wizard.doctor_name}**")
            st.write(f"When: **{format_date(wizard.appointment_date)} {format_time(wizard.appointment_time)}**")
            st.write(f"Reason: {wizard.reason_for_visit}")

        for problem in wizard.errors():
            st.caption(problem)

        c1, c2 = st.columns(2)
        if wizard.step > 0 and c1.button("Back", key="wiz_back"):
            wizard.back()
            st.rerun()
        if wizard.current != "confirm":
            if c2.button("Next", key="wiz_next", disabled=not wizard.can_advance()):
                wizard.next()
                st.rerun()
        elif c2.button("Confirm booking", key="wiz_confirm"):
            try:
                a = wizard.submit(api)
                st.success(f"Appointment booked for {format_date(a['appointment_date'])} at {format_time(a['appointment_time'])}.")
                wizard.reset()
            except ApiError as e:
                show_error(e, "book appointment")

    with tabs[2]:
        status = st.selectbox("Status", ["all"] + APPOINTMENT_STATUSES, format_func=status_label, key="pa_status")
        try:
            appointments = filter_appointments(api.appointments.mine(), status=status)
        except ApiError as e:
            show_error(e, "fetch appointments")
            appointments = []
        if not appointments:
            st.info("No appointments.")
        for a in appointments:
            with st.expander(appointment_line(a, "doctor")):
                if a.get("consultation_notes"):
                    st.write(f"Doctor notes: {a['consultation_notes']}")
                if a["status"] in ("scheduled", "confirmed"):
                    reason = st.text_input("Cancellation reason", key=f"pa_reason_{a['id']}")
                    if st.button("Cancel appointment", key=f"pa_cancel_{a['id']}"):
                        try:
                            api.appointments.cancel(a["id"], reason or None)
                            st.rerun()
                        except ApiError as e:
                            show_error(e, "cancel appointment")
                    new_date = st.date_input("New date", min_value=date.today(), key=f"pa_rdate_{a['id']}")
                    try:
                        slots = api.doctors.available_slots(a["doctor_id"], new_date)
                    except ApiError:
                        slots = []
                    new_time = st.selectbox("New time", slots, format_func=format_time, key=f"pa_rtime_{a['id']}")
                    if st.button("Reschedule", key=f"pa_resched_{a['id']}", disabled=not new_time):
                        try:
                            api.appointments.reschedule(a["id"], new_date, new_time)
                            st.rerun()
                        except ApiError as e:
                            show_error(e, "reschedule appointment")

    with tabs[3]:
        with st.expander("Upload a document"):
            f = st.file_uploader("File", type=UPLOAD_TYPES, key="pd_file")
            dtype = st.selectbox("Document type", [t["value"] for t in DOCUMENT_TYPES], format_func=document_type_label, key="pd_type")
            desc = st.text_input("Description", key="pd_desc")
            if st.button("Upload", key="pd_upload", disabled=f is None):
                try:
                    api.documents.upload(f.name, f.getvalue(), f.type, document_type=dtype, description=desc or None)
                    st.success("Document uploaded.")
                except ApiError as e:
                    show_error(e, "upload document")
        try:
            document_list(api.documents.mine(), "pd", can_share=True, doctors=api.doctors.list())
        except ApiError as e:
            show_error(e, "fetch documents")

    with tabs[4]:
        try:
            doctors = api.doctors.list()
            d = st.selectbox("Doctor", doctors, format_func=doctor_label, key="pr_doctor") if doctors else None
            if d and api.reviews.can_review(d["id"])["can_review"]:
                rating = st.slider("Rating", 1, 5, 5, key="pr_rating")
                text = st.text_area("Review", key="pr_text")
                if st.button("Submit review", key="pr_submit"):
                    api.reviews.create(d["id"], rating, text or None)
                    st.success("Review submitted.")
            elif d:
                st.info("You have already reviewed this doctor.")
            st.write("My reviews:")
            for r in api.reviews.mine():
                st.write(f"- {rating_stars(r['rating'])} Dr. {r['doctor_name']}: {truncate(r['review_text'], 80)} ({status_label(r['status'])})")
                if r.get("response"):
                    st.caption(f"  Response: {r['response']['response_text']}")
        except ApiError as e:
            show_error(e, "manage reviews")

    with tabs[5]:
        doctor_directory()

    with tabs[6]:
        messages_section("pm")


# Doctor

def doctor_view() -> None:
    tabs = st.tabs(["Dashboard", "Schedule", "Patients", "Profile", "Reviews", "Shared documents", "Messages"])
    me = store.user or {}

    with tabs[0]:
        try:
            stats = api.users.doctor_dashboard()
            cols = st.columns(4)
            cols[0].metric("Today", stats["today_appointments"])
            cols[1].metric("Upcoming", stats["upcoming_appointments"])
            cols[2].metric("Patients", stats["total_patients"])
            cols[3].metric("Rating", f"{stats['average_rating']} ({stats['total_reviews']})")
            st.write("Today:")
            for a in api.appointments.today():
                st.write(f"- {appointment_line(a, 'patient')}")
        except ApiError as e:
            show_error(e, "fetch dashboard")

    with tabs[1]:
        try:
            appointments = api.appointments.upcoming()
        except ApiError as e:
            show_error(e, "fetch appointments")
            appointments = []
        for a in appointments:
            with st.expander(appointment_line(a, "patient")):
                new_status = st.selectbox(
                    "Status", APPOINTMENT_STATUSES, index=APPOINTMENT_STATUSES.index(a["status"]), key=f"ds_status_{a['id']}"
                )
                if st.button("Update status", key=f"ds_update_{a['id']}"):
                    try:
                        api.appointments.update_status(a["id"], new_status)
                        st.rerun()
                    except ApiError as e:
                        show_error(e, "update status")
                notes = st.text_area("Consultation notes", key=f"ds_notes_{a['id']}")
                if st.button("Save notes and complete", key=f"ds_save_{a['id']}"):
                    try:
                        api.appointments.add_notes(a["id"], notes)
                        st.rerun()
                    except ApiError as e:
                        show_error(e, "save notes")

    with tabs[2]:
        search = st.text_input("Search patients", key="dp_search")
        try:
            for p in api.users.patients(search or None):
                with st.expander(f"{p['full_name']} | {p['email']}"):
                    profile = p.get("profile") or {}
                    st.write(f"Blood type: {profile.get('blood_type') or '-'} | Allergies: {profile.get('allergies') or '-'}")
                    for a in api.appointments.by_patient(p["id"]):
                        st.write(f"- {appointment_line(a, 'doctor')}")
        except ApiError as e:
            show_error(e, "fetch patients")

    with tabs[3]:
        try:
            current = api.users.profile().get("profile") or {}
        except ApiError as e:
            show_error(e, "fetch profile")
            current = {}
        license_number = st.text_input("License number", value=current.get("license_number") or "", key="dpr_license")
        years = st.number_input("Years of experience", 0, 60, int(current.get("years_experience") or 0), key="dpr_years")
        fee = st.number_input("Consultation fee", 0.0, value=float(current.get("consultation_fee") or 0), key="dpr_fee")
        bio = st.text_area("Bio", value=current.get("bio") or "", key="dpr_bio")
        if st.button("Save profile", key="dpr_save"):
            try:
                api.users.update_doctor_profile(license_number=license_number or None, years_experience=int(years), consultation_fee=fee, bio=bio or None)
                st.success("Profile saved.")
            except ApiError as e:
                show_error(e, "save profile")

        st.write("Specializations:")
        try:
            mine = api.specializations.mine()
            for sp in mine:
                c1, c2 = st.columns([4, 1])
                c1.write(f"- {sp['name']} ({sp['years_experience']} years)")
                if c2.button("Remove", key=f"dpr_rm_{sp['id']}"):
                    api.specializations.remove_mine(sp["id"])
                    st.rerun()
            spec = st.selectbox("Add specialization", load_specializations(), format_func=lambda s: s["name"], key="dpr_spec")
            spec_years = st.number_input("Years in this specialization", 0, 60, 0, key="dpr_spec_years")
            if st.button("Add", key="dpr_add"):
                api.specializations.add_mine(spec["id"], int(spec_years))
                st.rerun()
        except ApiError as e:
            show_error(e, "manage specializations")

        c1, c2 = st.columns(2)
        resume = c1.file_uploader("Resume / CV", type=UPLOAD_TYPES, key="dpr_resume")
        if c1.button("Upload resume", key="dpr_resume_btn", disabled=resume is None):
            try:
                api.documents.upload_resume(resume.name, resume.getvalue(), resume.type)
                st.success("Resume uploaded.")
            except ApiError as e:
                show_error(e, "upload resume")
        cert = c2.file_uploader("Certification", type=UPLOAD_TYPES, key="dpr_cert")
        if c2.button("Upload certification", key="dpr_cert_btn", disabled=cert is None):
            try:
                api.documents.upload_certification(cert.name, cert.getvalue(), cert.type)
                st.success("Certification uploaded.")
            except ApiError as e:
                show_error(e, "upload certification")

    with tabs[4]:
        try:
            res = api.reviews.for_doctor(me["id"], limit=50)
            stats = res["stats"]
            st.metric("Average rating", f"{stats['average_rating']} {rating_stars(stats['average_rating'])}", f"{stats['total_reviews']} reviews")
            for r in res["reviews"]:
                with st.expander(f"{rating_stars(r['rating'])} {r['patient_name']} | {format_date(r['created_at'])}"):
                    st.write(r.get("review_text") or "-")
                    existing = (r.get("response") or {}).get("response_text", "")
                    text = st.text_area("Your response", value=existing, key=f"dr_resp_{r['id']}")
                    if st.button("Save response", key=f"dr_resp_btn_{r['id']}"):
                        if existing:
                            api.reviews.update_response(r["id"], text)
                        else:
                            api.reviews.respond(r["id"], text)
                        st.rerun()
        except ApiError as e:
            show_error(e, "fetch reviews")

    with tabs[5]:
        try:
            document_list(api.documents.shared_with_me(), "dsh")
        except ApiError as e:
            show_error(e, "fetch shared documents")

    with tabs[6]:
        messages_section("dm")


# Admin

def admin_view() -> None:
    tabs = st.tabs(["Overview", "Doctors", "Patients", "Reviews", "Documents", "Specializations"])

    with tabs[0]:
        try:
            stats = api.admin.stats()
            cols = st.columns(4)
            cols[0].metric("Patients", stats["users"]["patient"])
            cols[1].metric("Doctors", stats["users"]["doctor"])
            cols[2].metric("Appointments", stats["appointments"]["total"])
            cols[3].metric("Unverified doctors", stats["unverified_doctors"])
            st.write("Reviews by status:", stats["reviews"])
            st.write("Documents by status:", stats["documents"])
        except ApiError as e:
            show_error(e, "fetch statistics")

    with tabs[1]:
        try:
            for d in api.admin.doctors():
                with st.expander(f"{d['full_name']} | {d['email']} | {status_label(d['status'])} | {'verified' if d['verified'] else 'unverified'}"):
                    c1, c2 = st.columns(2)
                    if c1.button("Unverify" if d["verified"] else "Verify", key=f"ad_verify_{d['id']}"):
                        api.admin.verify_doctor(d["id"], not d["verified"])
                        st.rerun()
                    new_status = c2.selectbox("Status", ["active", "inactive", "suspended"], key=f"ad_status_{d['id']}")
                    if c2.button("Apply", key=f"ad_apply_{d['id']}"):
                        api.admin.set_doctor_status(d["id"], new_status)
                        st.rerun()
        except ApiError as e:
            show_error(e, "manage doctors")

    with tabs[2]:
        try:
            for p in api.admin.patients():
                c1, c2, c3 = st.columns([3, 2, 1])
                c1.write(f"{p['full_name']} | {p['email']}")
                new_status = c2.selectbox("Status", ["active", "inactive", "suspended"], key=f"ap_status_{p['id']}", label_visibility="collapsed")
                if c3.button("Apply", key=f"ap_apply_{p['id']}"):
                    api.admin.set_patient_status(p["id"], new_status)
                    st.rerun()
        except ApiError as e:
            show_error(e, "manage patients")

    with tabs[3]:
        status = st.selectbox("Status", [None] + REVIEW_STATUSES, format_func=lambda s: status_label(s) if s else "All", key="ar_status")
        try:
            for r in api.admin.reviews(status):
                with st.expander(f"{rating_stars(r['rating'])} {r['patient_name']} -> Dr. {r['doctor_name']} | {status_label(r['status'])}"):
                    st.write(r.get("review_text") or "-")
                    if r.get("report_reason"):
                        st.warning(f"Reported: {r['report_reason']}")
                    c1, c2 = st.columns(2)
                    if c1.button("Approve", key=f"ar_ok_{r['id']}"):
                        api.admin.set_review_status(r["id"], "approved")
                        st.rerun()
                    if c2.button("Reject", key=f"ar_no_{r['id']}"):
                        api.admin.set_review_status(r["id"], "rejected")
                        st.rerun()
        except ApiError as e:
            show_error(e, "moderate reviews")

    with tabs[4]:
        status = st.selectbox("Status", [None] + DOCUMENT_STATUSES, format_func=lambda s: status_label(s) if s else "All", key="adoc_status")
        try:
            for d in api.admin.documents(status):
                c1, c2, c3 = st.columns([4, 2, 1])
                c1.write(f"{d['document_name']} | {document_type_label(d['document_type'])} | {d['patient_name']} | {status_label(d['status'])}")
                new_status = c2.selectbox("Status", DOCUMENT_STATUSES, key=f"adoc_new_{d['id']}", label_visibility="collapsed")
                if c3.button("Apply", key=f"adoc_apply_{d['id']}"):
                    api.admin.set_document_status(d["id"], new_status)
                    st.rerun()
        except ApiError as e:
            show_error(e, "moderate documents")

    with tabs[5]:
        name = st.text_input("Name", key="as_name")
        desc = st.text_input("Description", key="as_desc")
        if st.button("Create specialization", key="as_create"):
            try:
                api.specializations.create(name, desc or None)
                load_specializations.clear()
                st.success("Specialization created.")
            except ApiError as e:
                show_error(e, "create specialization")
        try:
            for sp in api.specializations.stats()["specializations"]:
                c1, c2 = st.columns([4, 1])
                c1.write(f"{sp['name']} | {sp['doctor_count']} doctors")
                if c2.button("Delete", key=f"as_del_{sp['id']}"):
                    api.specializations.delete(sp["id"])
                    load_specializations.clear()
                    st.rerun()
        except ApiError as e:
            show_error(e, "fetch specializations")


# Main

st.title("Healthcare Platform")

if not store.is_authenticated():
    st.info("Log in from the sidebar to book appointments and manage your records.")
    doctor_directory()
elif store.role == "patient":
    patient_view()
elif store.role == "doctor":
    doctor_view()
elif store.role == "admin":
    admin_view()
else:
    st.error("Unknown role. Please log in again.")
