import pytest
from streamlit.testing.v1 import AppTest

from src.rig_lib import create_project, default_settings
from src.storage import ProjectStore


# --- Helpers ---
def send_button(at):
    return next(b for b in at.button if b.label == "Send Email")


# --- Fixtures ---
@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("RIG_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("RIG_USER", "tester")
    return tmp_path


@pytest.fixture
def app(data_dir):
    at = AppTest.from_file("../app.py", default_timeout=30)
    at.run()
    return at


@pytest.fixture
def saved_project(data_dir, survey_components):
    store = ProjectStore(str(data_dir), "tester")
    project = create_project("Refit 2025", "Aurora", default_settings())
    project["components"] = survey_components
    project["miscellaneous_hardware"] = [{"id": "m1", "item": "Split rings", "quantity": 10}]
    return store.save_project(project)


# --- Tests ---
def test_smoke_check(app):
    assert not app.exception
    assert app.title[0].value == "⛵ RigSurvey"
    assert any("No surveys yet" in i.value for i in app.info)


def test_create_project_opens_it(app, data_dir):
    app.text_input(key="new_vessel").set_value("Aurora")
    app.text_input(key="new_project_name").set_value("Refit 2025")
    app.button[0].click().run()

    assert not app.exception
    assert app.session_state["project_id"]
    assert app.header[0].value == "🚢 Aurora"

    stored = ProjectStore(str(data_dir), "tester").list_projects()
    assert [p["vessel_name"] for p in stored] == ["Aurora"]


def test_create_project_requires_names(app):
    app.text_input(key="new_vessel").set_value("Aurora")
    app.button[0].click().run()

    assert not app.exception
    assert app.session_state["project_id"] is None
    assert len(app.warning) == 1


def test_project_view_shows_pick_list(saved_project):
    at = AppTest.from_file("../app.py", default_timeout=30)
    at.session_state["project_id"] = saved_project["id"]
    at.run()

    assert not at.exception
    assert at.header[0].value == "🚢 Aurora"
    assert at.metric[0].value == "36.19m"
    assert at.metric[1].value == "3"

    fittings = at.dataframe[1].value
    assert list(fittings["Type"]) == ["Swage Stud", "Toggle Fork"]
    assert list(fittings["Qty"]) == [2, 3]

    # Spreadsheet and PDF downloads
    assert len(at.get("download_button")) == 2


def test_missing_project_falls_back(data_dir):
    at = AppTest.from_file("../app.py", default_timeout=30)
    at.session_state["project_id"] = "gone"
    at.run()

    assert not at.exception
    assert at.warning[0].value == "Project not found."


def test_settings_view(app):
    app.radio(key="view").set_value("Settings").run()

    assert not app.exception
    assert app.subheader[0].value == "⚙️ Settings"


def test_email_with_ai_draft(saved_project, monkeypatch, fake_service_factory):
    import src.generators
    import src.mailer

    service = fake_service_factory({"subject": "Quote for Aurora", "body": "Hello skipper"})
    monkeypatch.setattr(src.generators, "OpenAIGenerationService", lambda: service)
    monkeypatch.setenv("MAILGUN_DOMAIN", "mg.example.com")
    monkeypatch.setenv("MAILGUN_API_KEY", "key-123")

    sent = []

    class Response:
        ok = True
        status_code = 200

        def json(self):
            return {"id": "<msg@mg>"}

    def fake_post(url, **kwargs):
        sent.append(kwargs)
        return Response()

    monkeypatch.setattr(src.mailer.requests, "post", fake_post)

    at = AppTest.from_file("../app.py", default_timeout=30)
    at.session_state["project_id"] = saved_project["id"]
    at.run()
    at.text_input(key="recipient_email").set_value("owner@example.com")
    at.radio(key="email_content").set_value("Draft with AI")
    send_button(at).click().run()

    assert not at.exception
    assert len(at.error) == 0
    assert len(sent) == 1
    assert sent[0]["data"]["subject"] == "Quote for Aurora"
    assert sent[0]["data"]["text"] == "Hello skipper"
    assert sent[0]["files"] == []
    assert "Vessel: Aurora" in service.calls[0][1]


def test_email_ai_draft_without_key_shows_error(saved_project, monkeypatch):
    import src.mailer

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(
        src.mailer.requests, "post", lambda *a, **k: pytest.fail("email must not be sent")
    )

    at = AppTest.from_file("../app.py", default_timeout=30)
    at.session_state["project_id"] = saved_project["id"]
    at.run()
    at.text_input(key="recipient_email").set_value("owner@example.com")
    at.radio(key="email_content").set_value("Draft with AI")
    send_button(at).click().run()

    assert not at.exception
    assert "OPENAI_API_KEY" in at.error[0].value
