"""Tests for the HTTP API."""

import base64
from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from landmark_guide.api.app import create_app
from landmark_guide.config import Settings
from tests.conftest import (
    FAKE_AUDIO,
    PNG_BYTES,
    FakeHistoryClient,
    FakeLandmarkClient,
    FakeNarrationClient,
)


def _photo() -> dict[str, tuple[str, bytes, str]]:
    return {"file": ("photo.png", PNG_BYTES, "image/png")}


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_guide_page_served(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/")

    assert response.status_code == 200
    assert "Landmark Guide" in response.text
    assert "Audio unavailable" in response.text
    assert 'id="photo"' in response.text
    assert "pagehide" in response.text


def test_analyze_returns_result_with_audio(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/analyze", files=_photo())

    assert response.status_code == 200
    body = response.json()
    assert body["landmark"] == "Eiffel Tower, Paris, France"
    assert body["history"]
    assert base64.b64decode(body["audio_base64"]) == FAKE_AUDIO
    assert body["audio_mime_type"] == "audio/mpeg"
    assert body["audio_status"] == "ready"


def test_analyze_without_audio(
    container, narration_client: FakeNarrationClient
) -> None:
    narration_client.error = RuntimeError("quota exceeded")
    client = TestClient(create_app(container))

    response = client.post("/analyze", files=_photo())

    assert response.status_code == 200
    body = response.json()
    assert body["audio_base64"] is None
    assert body["audio_status"] == "unavailable"


def test_analyze_rejects_non_image(
    container, landmark_client: FakeLandmarkClient
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/analyze", files={"file": ("notes.txt", b"hello", "text/plain")}
    )

    assert response.status_code == 400
    assert landmark_client.calls == []


def test_analyze_reports_fatal_stage(
    container, history_client: FakeHistoryClient
) -> None:
    history_client.error = RuntimeError("search unavailable")
    client = TestClient(create_app(container))

    response = client.post("/analyze", files=_photo())

    assert response.status_code == 502
    assert response.json() == {"detail": "search unavailable", "stage": "history"}


def test_session_flow(container) -> None:
    client = TestClient(create_app(container))

    created = client.post("/sessions")
    assert created.status_code == 201
    session_id = created.json()["id"]
    assert created.json()["state"] == "idle"

    analyzed = client.post(f"/sessions/{session_id}/photo", files=_photo())
    assert analyzed.status_code == 200
    body = analyzed.json()
    assert body["state"] == "result"
    assert body["result"]["landmark"] == "Eiffel Tower, Paris, France"
    assert body["result"]["audio_status"] == "ready"
    assert body["result"]["audio_url"] == f"/sessions/{session_id}/audio"

    audio = client.get(f"/sessions/{session_id}/audio")
    assert audio.status_code == 200
    assert audio.content == FAKE_AUDIO
    assert audio.headers["content-type"] == "audio/mpeg"

    reset = client.post(f"/sessions/{session_id}/reset")
    assert reset.json()["state"] == "idle"
    assert reset.json()["result"] is None
    assert client.get(f"/sessions/{session_id}/audio").status_code == 404


def test_session_failure_returns_to_idle_with_error(
    container, landmark_client: FakeLandmarkClient
) -> None:
    landmark_client.error = TimeoutError("identification timed out")
    client = TestClient(create_app(container))
    session_id = client.post("/sessions").json()["id"]

    response = client.post(f"/sessions/{session_id}/photo", files=_photo())

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "idle"
    assert body["error"] == "identification timed out"
    assert body["result"] is None


def test_session_malformed_upload_sets_error(container) -> None:
    client = TestClient(create_app(container))
    session_id = client.post("/sessions").json()["id"]

    response = client.post(
        f"/sessions/{session_id}/photo",
        files={"file": ("empty.png", b"", "image/png")},
    )

    assert response.json()["state"] == "idle"
    assert "empty" in response.json()["error"]


def test_session_audio_unavailable(
    container, narration_client: FakeNarrationClient
) -> None:
    narration_client.error = RuntimeError("quota exceeded")
    client = TestClient(create_app(container))
    session_id = client.post("/sessions").json()["id"]

    body = client.post(f"/sessions/{session_id}/photo", files=_photo()).json()

    assert body["result"]["audio_status"] == "unavailable"
    assert body["result"]["audio_url"] is None
    assert client.get(f"/sessions/{session_id}/audio").status_code == 404


def test_busy_session_conflicts(container) -> None:
    client = TestClient(create_app(container))
    session_id = client.post("/sessions").json()["id"]
    container.session_repository.get_session(UUID(session_id)).begin()

    response = client.post(f"/sessions/{session_id}/photo", files=_photo())

    assert response.status_code == 409


def test_delete_session(container) -> None:
    client = TestClient(create_app(container))
    session_id = client.post("/sessions").json()["id"]

    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.get(f"/sessions/{session_id}").status_code == 404
    assert client.delete(f"/sessions/{session_id}").status_code == 404


def test_unknown_session_is_not_found(container) -> None:
    client = TestClient(create_app(container))

    response = client.get(f"/sessions/{uuid4()}")

    assert response.status_code == 404


def test_analyze_data_url(container) -> None:
    client = TestClient(create_app(container))
    encoded = base64.b64encode(PNG_BYTES).decode("utf-8")

    response = client.post(
        "/analyze/data-url", json={"image": f"data:image/png;base64,{encoded}"}
    )

    assert response.status_code == 200
    assert response.json()["landmark"] == "Eiffel Tower, Paris, France"


def test_analyze_data_url_rejects_malformed_image(
    container, landmark_client: FakeLandmarkClient
) -> None:
    client = TestClient(create_app(container))

    response = client.post("/analyze/data-url", json={"image": "not-an-image"})

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid image format"}
    assert landmark_client.calls == []


def test_oversized_upload_is_rejected(
    container, landmark_client: FakeLandmarkClient
) -> None:
    container.settings = Settings(openai_api_key="openai-key", max_upload_bytes=4)
    client = TestClient(create_app(container))

    response = client.post("/analyze", files=_photo())

    assert response.status_code == 400
    assert "too large" in response.json()["detail"]
    assert landmark_client.calls == []


def test_oversized_session_upload_sets_error(
    container, landmark_client: FakeLandmarkClient
) -> None:
    container.settings = Settings(openai_api_key="openai-key", max_upload_bytes=4)
    client = TestClient(create_app(container))
    session_id = client.post("/sessions").json()["id"]

    response = client.post(f"/sessions/{session_id}/photo", files=_photo())

    assert response.status_code == 200
    assert response.json()["state"] == "idle"
    assert "too large" in response.json()["error"]
    assert landmark_client.calls == []
