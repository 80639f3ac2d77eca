from unittest.mock import AsyncMock, patch

import fitz
import pytest
from jose import jwt

from medilens import models
from medilens.core.config import Settings, get_settings
from medilens.services.chat_service import WELCOME_MESSAGES
from medilens.utils.text_extractor import TextExtractor
from medilens.utils.validators import EMPTY_FILE_MESSAGE, UNSUPPORTED_TYPE_MESSAGE

PRESCRIPTION = b"Rx: Lisinopril 10mg once daily in the morning."


def _open_session(client, context="upload"):
    response = client.post("/api/v1/chat/sessions", json={"context": context})
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_open_session_starts_with_welcome(client):
    body = _open_session(client, "medicine-search")

    assert body["state"] == "idle"
    assert body["session"]["title"] == "New Chat"
    assert body["session"]["user_id"] == "local-user"
    assert [m["content"] for m in body["messages"]] == [WELCOME_MESSAGES["medicine-search"]]


def test_unknown_context_is_rejected(client):
    response = client.post("/api/v1/chat/sessions", json={"context": "diagnosis"})

    assert response.status_code == 422


def test_send_message_and_reload_transcript(client, webhook_calls):
    session_id = _open_session(client, "question")["session"]["id"]

    response = client.post(f"/api/v1/chat/sessions/{session_id}/messages", json={"message": "Is aspirin safe?"})

    assert response.status_code == 200
    body = response.json()
    assert body["error"] is None
    assert body["user_message"]["content"] == "Is aspirin safe?"
    assert body["bot_message"]["content"] == "Take with food."
    assert len(webhook_calls) == 1

    transcript = client.get(f"/api/v1/chat/sessions/{session_id}/messages").json()
    assert [m["type"] for m in transcript["messages"]] == ["bot", "user", "bot"]
    assert transcript["session"]["title"] == "Is aspirin safe?"
    assert transcript["state"] == "idle"


def test_empty_message_returns_400(client, webhook_calls):
    session_id = _open_session(client)["session"]["id"]

    response = client.post(f"/api/v1/chat/sessions/{session_id}/messages", json={"message": ""})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert webhook_calls == []


def test_list_rename_and_delete_sessions(client, engine):
    first = _open_session(client)["session"]["id"]
    second = _open_session(client)["session"]["id"]

    listed = client.get("/api/v1/chat/sessions").json()
    assert {s["id"] for s in listed} == {first, second}

    renamed = client.patch(f"/api/v1/chat/sessions/{first}", json={"title": "Blood pressure meds"})
    assert renamed.json()["title"] == "Blood pressure meds"

    assert client.delete(f"/api/v1/chat/sessions/{first}").status_code == 204
    assert client.get(f"/api/v1/chat/sessions/{first}/messages").status_code == 404

    from sqlalchemy.orm import Session

    with Session(engine) as db:
        remaining = db.query(models.ChatMessage).filter(models.ChatMessage.session_id == first).count()
    assert remaining == 0


def test_missing_session_is_404(client):
    response = client.post("/api/v1/chat/sessions/999/messages", json={"message": "hi"})

    assert response.status_code == 404


def test_disallowed_upload_never_reaches_extraction(client, webhook_calls):
    session_id = _open_session(client)["session"]["id"]

    with patch.object(TextExtractor, "extract_async", new_callable=AsyncMock) as extract:
        response = client.post(
            f"/api/v1/chat/sessions/{session_id}/upload",
            files={"file": ("setup.exe", b"MZ\x90\x00", "application/x-msdownload")},
        )

    assert response.status_code == 400
    assert response.json()["detail"] == UNSUPPORTED_TYPE_MESSAGE
    extract.assert_not_called()
    assert webhook_calls == []


def test_empty_upload_is_rejected(client):
    response = client.post(
        "/api/v1/files/extract",
        files={"file": ("empty.txt", b"", "text/plain")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == EMPTY_FILE_MESSAGE


def test_oversized_upload_is_rejected(client, settings):
    settings.MAX_UPLOAD_SIZE_BYTES = 1024 * 1024

    response = client.post(
        "/api/v1/files/extract",
        files={"file": ("big.txt", b"a" * (1024 * 1024 + 1), "text/plain")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "File size must be less than 1MB"


def test_upload_sends_extracted_text_and_records_activity(client, webhook_calls):
    session_id = _open_session(client)["session"]["id"]

    response = client.post(
        f"/api/v1/chat/sessions/{session_id}/upload",
        files={"file": ("rx.txt", PRESCRIPTION, "text/plain")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["user_message"]["content"].startswith("📎 Uploaded file: rx.txt")
    assert body["user_message"]["attachment_type"] == "text/plain"
    assert body["bot_message"]["content"] == "Take with food."
    assert webhook_calls[0].content.decode().count("Lisinopril") == 1

    activities = client.get("/api/v1/files/activities").json()
    assert len(activities) == 1
    assert activities[0]["file_name"] == "rx.txt"
    assert activities[0]["extracted_text"] == PRESCRIPTION.decode()
    assert activities[0]["analysis_result"] == "Take with food."


def test_staged_upload_goes_out_with_next_message(client, webhook_calls):
    session_id = _open_session(client)["session"]["id"]

    staged = client.post(
        f"/api/v1/chat/sessions/{session_id}/upload?send=false",
        files={"file": ("rx.txt", PRESCRIPTION, "text/plain")},
    )
    assert staged.status_code == 200
    assert staged.json()["extracted"]["content"] == PRESCRIPTION.decode()
    assert webhook_calls == []

    sent = client.post(f"/api/v1/chat/sessions/{session_id}/messages", json={"message": ""})

    assert sent.status_code == 200
    assert sent.json()["user_message"]["content"].startswith("📎 Uploaded file: rx.txt")
    assert len(webhook_calls) == 1

    activities = client.get("/api/v1/files/activities").json()
    assert activities[0]["id"] == staged.json()["activity_id"]
    assert activities[0]["analysis_result"] == "Take with food."


def test_direct_upload_keeps_earlier_staged_upload(client, webhook_calls):
    session_id = _open_session(client)["session"]["id"]
    client.post(
        f"/api/v1/chat/sessions/{session_id}/upload?send=false",
        files={"file": ("rx.txt", PRESCRIPTION, "text/plain")},
    )

    direct = client.post(
        f"/api/v1/chat/sessions/{session_id}/upload",
        files={"file": ("note.txt", b"Vitamin D3 1000 IU daily.", "text/plain")},
    )
    later = client.post(f"/api/v1/chat/sessions/{session_id}/messages", json={"message": ""})

    assert direct.json()["user_message"]["content"].startswith("📎 Uploaded file: note.txt")
    assert later.json()["user_message"]["content"].startswith("📎 Uploaded file: rx.txt")
    assert len(webhook_calls) == 2


def test_password_protected_pdf_is_reported_not_crashed(client):
    doc = fitz.open()
    doc.new_page().insert_text((72, 72), "Atorvastatin 20mg at night.", fontsize=9)
    locked = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner-pw", user_pw="patient-pw")
    doc.close()

    response = client.post("/api/v1/files/extract", files={"file": ("locked.pdf", locked, "application/pdf")})

    assert response.status_code == 422
    assert response.json()["code"] == "extraction_error"
    assert "password protected" in response.json()["detail"]


def test_extract_endpoint_reports_saved_activity(client):
    response = client.post(
        "/api/v1/files/extract",
        files={"file": ("rx.txt", PRESCRIPTION, "text/plain")},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["activity_id"] is not None
    assert body["extracted"]["source_file_name"] == "rx.txt"
    assert "Data saved to your activity history" in body["message"]


@pytest.mark.parametrize(
    "url,valid",
    [("https://example.com/label.pdf", True), ("ftp://example.com/x", False), ("not a url", False)],
)
def test_validate_url(client, url, valid):
    body = client.post("/api/v1/files/validate-url", json={"url": url}).json()

    assert body["valid"] is valid


def test_preferences_round_trip(client):
    assert client.get("/api/v1/users/me/preferences/tutorial.dismissed").status_code == 404

    put = client.put("/api/v1/users/me/preferences/tutorial.dismissed", json={"value": "true"})
    assert put.json() == {"key": "tutorial.dismissed", "value": "true"}
    assert client.get("/api/v1/users/me/preferences").json() == {"tutorial.dismissed": "true"}

    assert client.delete("/api/v1/users/me/preferences/tutorial.dismissed").status_code == 204
    assert client.delete("/api/v1/users/me/preferences/tutorial.dismissed").status_code == 404


def test_bad_preference_key_is_400(client):
    response = client.put("/api/v1/users/me/preferences/Bad Key!", json={"value": "x"})

    assert response.status_code == 400


@pytest.fixture
def jwt_settings(client, settings):
    from medilens.main import app

    secured = settings.model_copy(update={"AUTH_JWT_SECRET": "test-secret"})
    app.dependency_overrides[get_settings] = lambda: secured
    return secured


def _token(secret="test-secret", **claims):
    payload = {
        "sub": "8f14e45f",
        "email": "asha@example.com",
        "aud": "authenticated",
        "user_metadata": {"name": "Asha"},
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def test_bearer_token_identifies_user(client, jwt_settings, engine):
    response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {_token()}"})

    assert response.status_code == 200
    assert response.json() == {"id": "8f14e45f", "email": "asha@example.com", "name": "Asha"}

    from sqlalchemy.orm import Session

    with Session(engine) as db:
        assert db.get(models.Profile, "8f14e45f").email == "asha@example.com"


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Basic abc"},
        {"Authorization": f"Bearer {_token(secret='wrong-secret')}"},
        {"Authorization": f"Bearer {_token(aud='someone-else')}"},
    ],
)
def test_bad_credentials_are_401(client, jwt_settings, headers):
    response = client.get("/api/v1/users/me", headers=headers)

    assert response.status_code == 401


def test_sessions_are_scoped_to_their_owner(client, jwt_settings):
    owner = {"Authorization": f"Bearer {_token()}"}
    other = {"Authorization": f"Bearer {_token(sub='c9f0f895', email='ravi@example.com')}"}

    session_id = client.post("/api/v1/chat/sessions", json={}, headers=owner).json()["session"]["id"]

    assert client.get(f"/api/v1/chat/sessions/{session_id}/messages", headers=other).status_code == 404
    assert client.get("/api/v1/chat/sessions", headers=other).json() == []
