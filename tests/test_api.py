"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from image_describer.api.app import create_app
from image_describer.containers import AppContainer
from tests.conftest import PNG_BYTES, FakeDescriptionClient


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def test_health(container: AppContainer) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_session_makes_it_active(container: AppContainer) -> None:
    client = _client(container)

    created = client.post("/sessions", json={"name": "Holiday"})
    listing = client.get("/sessions")

    assert created.status_code == 201
    session_id = created.json()["id"]
    assert created.json() == {"id": session_id, "name": "Holiday", "image_count": 0}
    assert listing.json() == {
        "sessions": [{"id": session_id, "name": "Holiday", "image_count": 0}],
        "active_session_id": session_id,
    }


def test_create_session_rejects_blank_name(container: AppContainer) -> None:
    response = _client(container).post("/sessions", json={"name": "   "})

    assert response.status_code == 422
    assert response.json() == {"detail": "Session name cannot be empty"}
    assert container.session_manager.sessions == ()


def test_select_and_delete_sessions(container: AppContainer) -> None:
    client = _client(container)
    first = client.post("/sessions", json={"name": "First"}).json()["id"]
    second = client.post("/sessions", json={"name": "Second"}).json()["id"]

    selected = client.post(f"/sessions/{first}/select")
    unknown = client.post("/sessions/missing/select")
    deleted = client.delete(f"/sessions/{first}")

    assert selected.json()["active_session_id"] == first
    assert unknown.json()["active_session_id"] == first
    assert deleted.json()["active_session_id"] == second
    assert [s["id"] for s in deleted.json()["sessions"]] == [second]


def test_images_require_active_session(container: AppContainer) -> None:
    client = _client(container)

    listed = client.get("/sessions/active/images")
    submitted = client.post(
        "/sessions/active/images",
        files=[("images", ("a.png", PNG_BYTES, "image/png"))],
    )
    removed = client.delete("/sessions/active/images/0")

    assert listed.status_code == 409
    assert submitted.status_code == 409
    assert removed.status_code == 409
    assert submitted.json() == {"detail": "Please select or create a session first"}


def test_submit_images_returns_batch_summary(
    container: AppContainer, description_client: FakeDescriptionClient
) -> None:
    client = _client(container)
    client.post("/sessions", json={"name": "Batch"})
    description_client.failing = {"b.png"}

    response = client.post(
        "/sessions/active/images",
        files=[
            ("images", ("a.png", PNG_BYTES, "image/png")),
            ("images", ("b.png", PNG_BYTES, "image/png")),
        ],
    )

    assert response.status_code == 200
    data = response.json()
    assert [image["filename"] for image in data["images"]] == ["a.png", "b.png"]
    assert data["images"][0]["description"] == "A photo named a.png"
    assert data["images"][1]["status"] == "FAILED"
    assert data["failures"] == [
        {
            "filename": "b.png",
            "message": "Failed to generate description for b.png",
        }
    ]
    assert data["described_count"] == 1
    assert description_client.called_filenames == ["a.png", "b.png"]


def test_working_view_and_remove_image(container: AppContainer) -> None:
    client = _client(container)
    client.post("/sessions", json={"name": "Batch"})
    client.post(
        "/sessions/active/images",
        files=[
            ("images", ("a.png", PNG_BYTES, "image/png")),
            ("images", ("b.png", PNG_BYTES, "image/png")),
        ],
    )

    removed = client.delete("/sessions/active/images/0")
    out_of_range = client.delete("/sessions/active/images/5")
    view = client.get("/sessions/active/images")

    assert [image["filename"] for image in removed.json()["images"]] == ["b.png"]
    assert out_of_range.status_code == 200
    assert [image["filename"] for image in view.json()["images"]] == ["b.png"]
    assert view.json()["is_submitting"] is False
    assert view.json()["images"][0]["is_loading"] is False


def test_generate_description_success(container: AppContainer) -> None:
    response = _client(container).post(
        "/api/generate-description",
        files={"image": ("cat.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 200
    assert response.json() == {"description": "A photo named cat.png"}


def test_generate_description_failure_includes_local_debug(
    container: AppContainer, description_client: FakeDescriptionClient
) -> None:
    description_client.failing = {"cat.png"}

    response = _client(container).post(
        "/api/generate-description",
        files={"image": ("cat.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail.startswith("Failed to generate description for cat.png")
    assert "debug: RuntimeError" in detail


def test_generate_description_hides_debug_outside_local(
    container: AppContainer, description_client: FakeDescriptionClient
) -> None:
    description_client.failing = {"cat.png"}
    container.settings.environment = "production"

    response = _client(container).post(
        "/api/generate-description",
        files={"image": ("cat.png", PNG_BYTES, "image/png")},
    )

    assert response.json() == {"detail": "Failed to generate description for cat.png"}


def test_generate_description_requires_image(container: AppContainer) -> None:
    response = _client(container).post("/api/generate-description")

    assert response.status_code == 422
