import json
from io import BytesIO

import pytest

from jobflow.config import Settings
from jobflow.services.storage_service import JOBS_KEY, PROFILE_KEY, RESUME_KEY
from jobflow.web import create_app
from jobflow.web.navigation import ViewState
from jobflow.web.routes import (
    DOCX_MIMETYPE,
    NO_DESCRIPTION,
    RESUME_AVATAR_ERROR,
    RESUME_IMPORT_ERROR,
    STUDIO_ERROR,
)


def _image(name="photo.png", data=b"\x89PNG fake bytes", mime="image/png"):
    return BytesIO(data), name, mime


# ----------------------------------------------------------------------
# Navigation
# ----------------------------------------------------------------------

@pytest.mark.parametrize("view", list(ViewState))
def test_every_view_renders(client, view):
    response = client.get(f"/view/{view.value}", follow_redirects=True)
    assert response.status_code == 200


def test_unknown_view_is_404(client):
    assert client.get("/view/nowhere").status_code == 404


def test_dashboard_shows_stats(client):
    html = client.get("/").get_data(as_text=True)
    assert 'id="stat-total">3<' in html
    assert 'id="stat-offers">1<' in html


# ----------------------------------------------------------------------
# Applications
# ----------------------------------------------------------------------

def test_add_job(client, app_services, storage):
    response = client.post("/jobs", data={
        "company": "Acme",
        "role": "Data Engineer",
        "status": "Applied",
        "salary": "$130k",
        "location": "Remote",
        "description": "Pipelines",
        "cover_letter": "",
    })

    assert response.status_code == 302
    jobs = app_services.job_store.jobs
    assert len(jobs) == 4
    assert jobs[0].company == "Acme"
    assert jobs[0].origin.value == "application"
    saved = storage.get(JOBS_KEY)
    assert saved[0]["company"] == "Acme"
    assert "dateApplied" in saved[0]


def test_add_job_requires_company_and_role(client, app_services):
    response = client.post("/jobs", data={"company": "", "role": "Dev", "status": "Applied"})
    assert response.status_code == 400
    assert len(app_services.job_store.jobs) == 3


def test_add_job_rejects_unknown_status(client, app_services):
    response = client.post("/jobs", data={"company": "Acme", "role": "Dev", "status": "Ghosted"})
    assert response.status_code == 400
    assert len(app_services.job_store.jobs) == 3


def test_edit_job_updates_only_that_record(client, app_services):
    before = {job.id: job for job in app_services.job_store.jobs}

    response = client.post("/jobs/2", data={
        "company": "GreenStream",
        "role": "Full Stack Developer",
        "status": "Interview",
        "salary": "$125k",
        "location": "Austin, TX",
        "description": "Build sustainable energy solutions.",
        "cover_letter": "Dear GreenStream",
    })

    assert response.status_code == 302
    after = {job.id: job for job in app_services.job_store.jobs}
    assert after["2"].status.value == "Interview"
    assert after["2"].cover_letter == "Dear GreenStream"
    assert after["2"].date_applied == before["2"].date_applied
    assert after["1"] == before["1"]
    assert after["3"] == before["3"]


def test_edit_unknown_job_is_404(client):
    assert client.post("/jobs/nope", data={"company": "A", "role": "B"}).status_code == 404


def test_edit_form_prefills(client):
    html = client.get("/jobs?edit=1").get_data(as_text=True)
    assert "TechNova" in html


def test_delete_job(client, app_services):
    assert client.post("/jobs/1/delete").status_code == 302
    assert app_services.job_store.get_job("1") is None
    assert client.post("/jobs/1/delete").status_code == 404


def test_api_jobs_filters(client):
    jobs = client.get("/api/jobs?status=Offer").get_json()
    assert [job["company"] for job in jobs] == ["Orbit AI"]

    jobs = client.get("/api/jobs?q=stream").get_json()
    assert [job["company"] for job in jobs] == ["GreenStream"]


def test_cover_letter_api(client, fake_ai):
    fake_ai.completion = "Dear Acme team"
    response = client.post("/api/cover-letter", json={"role": "Dev", "company": "Acme"})

    assert response.get_json() == {"cover_letter": "Dear Acme team"}
    assert "UI/UX Design" in fake_ai.calls[0][1]["prompt"]


def test_cover_letter_api_needs_role_and_company(client, fake_ai):
    response = client.post("/api/cover-letter", json={"role": "Dev"})
    assert response.status_code == 400
    assert fake_ai.calls == []


# ----------------------------------------------------------------------
# Offers & interview
# ----------------------------------------------------------------------

def test_offers_lists_active_jobs(client):
    html = client.get("/offers").get_data(as_text=True)
    assert "Orbit AI" in html
    assert "TechNova" in html
    assert "GreenStream" not in html


def test_interview_guide_is_saved(client, app_services, fake_ai):
    fake_ai.completion = "## Technical questions"
    response = client.post("/offers/3/guide")

    assert response.status_code == 302
    assert app_services.job_store.get_job("3").interview_guide == "## Technical questions"


def test_interview_guide_needs_description(client, app_services, fake_ai):
    app_services.job_store.update_job("3", {"description": "  "})

    html = client.post("/offers/3/guide", follow_redirects=True).get_data(as_text=True)

    assert NO_DESCRIPTION in html
    assert fake_ai.calls == []


# ----------------------------------------------------------------------
# Resume builder
# ----------------------------------------------------------------------

def test_resume_field_edit(client, storage):
    client.post("/resume", data={"full_name": "Sam Rivera", "summary": "Builder."})

    saved = storage.get(RESUME_KEY)
    assert saved["fullName"] == "Sam Rivera"
    assert saved["summary"] == "Builder."
    assert saved["email"] == "alex.dev@example.com"


def test_resume_sections(client, app_services):
    client.post("/resume/sections/experience")
    section = app_services.resume_store.resume.experience[-1]

    client.post(f"/resume/sections/experience/{section.id}", data={"title": "Staff Engineer"})
    assert app_services.resume_store.resume.experience[-1].title == "Staff Engineer"

    client.post(f"/resume/sections/experience/{section.id}/delete")
    assert len(app_services.resume_store.resume.experience) == 1

    assert client.post("/resume/sections/hobbies").status_code == 404


def test_resume_import(client, app_services, fake_ai):
    fake_ai.structured = json.dumps({"fullName": "Jordan Lee", "experience": [{"title": "Analyst"}]})

    client.post("/resume/import", data={"resume_image": _image()}, content_type="multipart/form-data")

    resume = app_services.resume_store.resume
    assert resume.full_name == "Jordan Lee"
    assert [item.title for item in resume.experience] == ["Analyst"]
    assert fake_ai.calls[0][1]["mime_type"] == "image/png"


def test_resume_import_failure_keeps_resume(client, app_services, fake_ai):
    fake_ai.fail = True

    html = client.post(
        "/resume/import",
        data={"resume_image": _image()},
        content_type="multipart/form-data",
        follow_redirects=True,
    ).get_data(as_text=True)

    assert RESUME_IMPORT_ERROR in html
    assert app_services.resume_store.resume.full_name == "Alex Developer"


def test_resume_avatar_uses_headshot(client, app_services, fake_ai):
    fake_ai.image = "aGVhZHNob3Q="
    client.post("/resume/avatar", data={"avatar": _image()}, content_type="multipart/form-data")
    assert app_services.resume_store.resume.avatar == "data:image/jpeg;base64,aGVhZHNob3Q="


def test_resume_avatar_failure_keeps_original(client, app_services, fake_ai):
    fake_ai.fail = True

    html = client.post(
        "/resume/avatar",
        data={"avatar": _image()},
        content_type="multipart/form-data",
        follow_redirects=True,
    ).get_data(as_text=True)

    assert RESUME_AVATAR_ERROR in html
    assert app_services.resume_store.resume.avatar.startswith("data:image/png;base64,")


def test_resume_export(client):
    response = client.get("/resume/export.docx")
    assert response.status_code == 200
    assert response.mimetype == DOCX_MIMETYPE
    assert response.data[:2] == b"PK"


# ----------------------------------------------------------------------
# Claire
# ----------------------------------------------------------------------

def test_claire_page_shows_welcome(client):
    html = client.get("/claire").get_data(as_text=True)
    assert "Hi Alex!" in html


def test_claire_message(client, fake_ai):
    fake_ai.chat_reply = "Let us practice."
    client.post("/claire", data={"message": "Help me prepare"})

    html = client.get("/claire").get_data(as_text=True)
    assert "Help me prepare" in html
    assert "Let us practice." in html


def test_claire_api(client, fake_ai):
    fake_ai.chat_reply = "Sure thing"
    data = client.post("/api/claire/messages", json={"message": "Hi"}).get_json()

    assert data["reply"]["text"] == "Sure thing"
    assert [message["role"] for message in data["messages"]] == ["model", "user", "model"]

    assert client.post("/api/claire/messages", json={"message": " "}).status_code == 400


def test_claire_sees_new_jobs(client, fake_ai):
    client.post("/api/claire/messages", json={"message": "Hi"})
    client.post("/jobs", data={"company": "Acme", "role": "Dev", "status": "Interview"})
    client.post("/api/claire/messages", json={"message": "Any news?"})

    assert "Total Applications: 4" in fake_ai.calls[-1][1]["system_prompt"]


# ----------------------------------------------------------------------
# Avatar studio
# ----------------------------------------------------------------------

def test_studio_flow(client, app_services, fake_ai):
    fake_ai.image = "c3R5bGVk"
    client.post("/avatar-builder", data={"source": _image()}, content_type="multipart/form-data")
    client.post("/avatar-builder/preset", data={"preset": "tech"})
    client.post("/avatar-builder/generate", data={"prompt": "Tech conference speaker"})

    assert "Tech conference speaker" in fake_ai.calls[-1][1]["prompt"]

    client.post("/avatar-builder/save")
    assert app_services.resume_store.resume.avatar == "data:image/jpeg;base64,c3R5bGVk"


def test_studio_generate_without_image(client, fake_ai):
    response = client.post("/avatar-builder/generate", data={"prompt": "Anything"}, follow_redirects=True)
    assert response.status_code == 200
    assert fake_ai.calls == []


def test_studio_generate_failure(client, fake_ai):
    client.post("/avatar-builder", data={"source": _image()}, content_type="multipart/form-data")
    fake_ai.fail = True

    html = client.post("/avatar-builder/generate", data={"prompt": "Anything"},
                       follow_redirects=True).get_data(as_text=True)
    assert STUDIO_ERROR in html


def test_unknown_preset_is_400(client):
    assert client.post("/avatar-builder/preset", data={"preset": "vaporwave"}).status_code == 400


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------

def test_settings_save(client, app_services, storage):
    html = client.post(
        "/settings",
        data={"full_name": "Sam Rivera", "skills": "Go, Rust"},
        follow_redirects=True,
    ).get_data(as_text=True)

    assert "Saved!" in html
    assert app_services.job_store.user_profile.full_name == "Sam Rivera"
    assert storage.get(PROFILE_KEY) == {"fullName": "Sam Rivera", "skills": "Go, Rust"}


def test_settings_rename_reaches_claire(client, fake_ai):
    client.get("/claire")
    client.post("/settings", data={"full_name": "Sam Rivera", "skills": "Go"})
    client.post("/claire", data={"message": "Who am I?"})

    assert "named Sam Rivera" in fake_ai.calls[-1][1]["system_prompt"]


def test_api_jobs_rejects_unknown_status(client):
    response = client.get("/api/jobs?status=bogus")
    assert response.status_code == 400
    assert "bogus" in response.get_json()["error"]
    assert client.get("/api/jobs?status=All").status_code == 200


# ----------------------------------------------------------------------
# Session state
# ----------------------------------------------------------------------

def test_idle_sessions_are_dropped(tmp_path, fake_ai):
    settings = Settings(data_dir=tmp_path / "storage", max_sessions=3)
    app = create_app(settings, ai_service=fake_ai)
    anonymous = app.test_client(use_cookies=False)

    for _ in range(5):
        anonymous.get("/claire")

    assert len(app.extensions["jobflow"].sessions) == 3


def test_recent_session_survives_eviction(tmp_path, fake_ai):
    settings = Settings(data_dir=tmp_path / "storage", max_sessions=2)
    app = create_app(settings, ai_service=fake_ai)
    services = app.extensions["jobflow"]

    first = services.session_state("first")
    services.session_state("second")
    assert services.session_state("first") is first
    services.session_state("third")

    assert list(services.sessions) == ["first", "third"]
