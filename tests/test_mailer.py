from unittest.mock import MagicMock, patch

import pytest
import requests

from src.exceptions import ConfigurationError, DispatchError, PhotoDecodeError
from src.mailer import (
    assign_photo_cids,
    build_inline_attachments,
    collect_project_photos,
    decode_photo,
    email_from_draft,
    generate_rigging_email,
    send_rigging_email,
)
from src.rig_lib import aggregate_pick_list

GOOD_PHOTO = "data:image/png;base64,QUJD"


@pytest.fixture
def mailgun_env(monkeypatch):
    monkeypatch.setenv("MAILGUN_DOMAIN", "mg.example.com")
    monkeypatch.setenv("MAILGUN_API_KEY", "key-123")
    monkeypatch.delenv("MAILGUN_API_BASE", raising=False)
    monkeypatch.delenv("EMAIL_BRAND", raising=False)


@pytest.fixture
def rendered(survey_components):
    components = [dict(c) for c in survey_components]
    components[0]["photos"] = [GOOD_PHOTO, "data:image/jpeg;base64,!!!notbase64"]
    photos = collect_project_photos(components)
    return generate_rigging_email(
        "Refit 2025",
        "Aurora",
        "Hallberg-Rassy 42",
        "owner@example.com",
        components,
        [{"id": "m1", "item": "Split rings", "quantity": 10}],
        aggregate_pick_list(components),
        photos,
    )


def ok_response(payload):
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    response.json.return_value = payload
    return response


# --- Photos ---


def test_photo_cids_are_unique_and_sanitized():
    photos = [
        {"data_uri": GOOD_PHOTO, "component_name": "Cap Shroud"},
        {"data_uri": GOOD_PHOTO, "component_name": "Cap Shroud"},
        {"data_uri": GOOD_PHOTO, "component_name": "D1/V1 (port)"},
    ]
    labelled = assign_photo_cids(photos)

    assert [p["cid"] for p in labelled] == [
        "Cap_Shroud_0.jpg",
        "Cap_Shroud_1.jpg",
        "D1_V1__port__2.jpg",
    ]
    assert all(p["filename"] == p["cid"] for p in labelled)
    # Inputs are untouched
    assert "cid" not in photos[0]


def test_decode_photo_reads_mime_and_payload():
    filename, data, mime = decode_photo({"data_uri": GOOD_PHOTO, "filename": "Mast_0.jpg"})
    assert (filename, data, mime) == ("Mast_0.jpg", b"ABC", "image/png")


def test_decode_photo_defaults_mime_to_jpeg():
    _, _, mime = decode_photo({"data_uri": "base64,QUJD", "filename": "x.jpg"})
    assert mime == "image/jpeg"


@pytest.mark.parametrize(
    "uri",
    ["", "data:image/jpeg;base64", "data:image/jpeg;base64,", "data:image/jpeg;base64,***"],
)
def test_decode_photo_rejects_malformed_uris(uri):
    with pytest.raises(PhotoDecodeError):
        decode_photo({"data_uri": uri, "component_name": "Mast"})


def test_malformed_photos_are_dropped_from_attachments():
    photos = assign_photo_cids(
        [
            {"data_uri": GOOD_PHOTO, "component_name": "Mast"},
            {"data_uri": "garbage", "component_name": "Boom"},
        ]
    )
    attachments = build_inline_attachments(photos)
    assert attachments == [("Mast_0.jpg", b"ABC", "image/png")]


# --- Rendering ---


def test_rendered_email_contents(rendered):
    assert rendered["subject"] == "Rigging Specification: Aurora - Refit 2025"
    assert 'src="cid:Cap_Shroud_0.jpg"' in rendered["html"]
    assert 'src="cid:Cap_Shroud_1.jpg"' in rendered["html"]
    assert "Hallberg-Rassy 42" in rendered["html"]
    assert "Split rings" in rendered["html"]
    assert "36.19" in rendered["html"]
    assert "1x19 SS 8mm: 36.19 m" in rendered["text"]
    assert "5 x 10mm" in rendered["text"]
    assert len(rendered["photos"]) == 2


def test_rendered_email_escapes_html():
    email = generate_rigging_email(
        "<Refit>", "Aurora", None, "a@b.c", [], [], aggregate_pick_list([])
    )
    assert "&lt;Refit&gt;" in email["html"]
    assert "<Refit>" not in email["html"]
    assert email["photos"] == []


def test_email_from_draft():
    email = email_from_draft({"subject": "Quote", "body": "Hi <there>"})
    assert email["subject"] == "Quote"
    assert email["text"] == "Hi <there>"
    assert "Hi &lt;there&gt;" in email["html"]
    assert email["photos"] == []


# --- Dispatch ---


def test_send_requires_mailgun_config(monkeypatch, rendered):
    monkeypatch.delenv("MAILGUN_DOMAIN", raising=False)
    monkeypatch.delenv("MAILGUN_API_KEY", raising=False)
    with patch("src.mailer.requests.post") as post:
        with pytest.raises(ConfigurationError):
            send_rigging_email(rendered, "owner@example.com")
        post.assert_not_called()


@pytest.mark.parametrize("recipient", ["", "   "])
def test_send_requires_recipient(mailgun_env, rendered, recipient):
    with patch("src.mailer.requests.post") as post:
        with pytest.raises(ConfigurationError):
            send_rigging_email(rendered, recipient)
        post.assert_not_called()


def test_send_posts_to_mailgun(mailgun_env, rendered):
    session = MagicMock()
    session.post.return_value = ok_response({"id": "<msg@mg>", "message": "Queued. Thank you."})

    result = send_rigging_email(rendered, " owner@example.com ", session=session)

    assert result["id"] == "<msg@mg>"
    args, kwargs = session.post.call_args
    assert args[0] == "https://api.mailgun.net/v3/mg.example.com/messages"
    assert kwargs["auth"] == ("api", "key-123")
    assert kwargs["data"]["from"] == "RigSurvey Specialist <postmaster@mg.example.com>"
    assert kwargs["data"]["to"] == ["owner@example.com"]
    assert kwargs["data"]["subject"] == rendered["subject"]
    # The invalid second photo is dropped
    assert kwargs["files"] == [("inline", ("Cap_Shroud_0.jpg", b"ABC", "image/png"))]


def test_send_wraps_transport_errors(mailgun_env, rendered):
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(DispatchError, match="connection refused"):
        send_rigging_email(rendered, "owner@example.com", session=session)


def test_send_surfaces_mailgun_rejection(mailgun_env, rendered):
    response = MagicMock()
    response.ok = False
    response.status_code = 401
    response.json.return_value = {"message": "Forbidden"}
    session = MagicMock()
    session.post.return_value = response

    with pytest.raises(DispatchError, match="Forbidden"):
        send_rigging_email(rendered, "owner@example.com", session=session)
