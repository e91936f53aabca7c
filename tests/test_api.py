"""Tests for the inspection HTTP API."""

from fastapi.testclient import TestClient

from rental_inspection.api.app import create_app
from tests.conftest import (
    FakeNotificationClient,
    InMemoryPhotoStorage,
    InMemoryReportRepository,
)


def _form(**overrides: str) -> dict[str, str]:
    data = {
        "order_id": "A1",
        "merchant_id": "m1",
        "store_id": "s1",
        "lang": "en",
        "gears": "ok",
        "brakes": "problem",
        "brakes_problem": "squeaking",
        "other_issues": "ok",
        "notes": "",
    }
    data.update(overrides)
    return data


def _files(count: int) -> list[tuple[str, tuple[str, bytes, str]]]:
    return [
        ("photos", (f"bike{index}.png", f"image-{index}".encode(), "image/png"))
        for index in range(count)
    ]


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_session_resolves_defaults(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/session", params={"id": "A1", "lang": "en"})

    assert response.status_code == 200
    assert response.json() == {
        "order_id": "A1",
        "merchant_id": "default",
        "store_id": "default",
        "language": "en",
    }


def test_session_generates_order_id(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/session")

    assert response.json()["order_id"].startswith("ORDER-")
    assert response.json()["language"] == "de"


def test_submission_completes(
    container,
    report_repository: InMemoryReportRepository,
    photo_storage: InMemoryPhotoStorage,
    notifier: FakeNotificationClient,
) -> None:
    client = TestClient(create_app(container))

    response = client.post("/submissions", data=_form(), files=_files(2))

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "completed"
    assert body["submission_id"].startswith("A1_m1_")
    assert len(body["uploaded_photos"]) == 2
    report = report_repository.reports[("A1", "m1")]
    assert report.description == "Brakes: squeaking"
    assert len(photo_storage.objects) == 2
    assert notifier.calls == [("A1", "s1")]


def test_repeated_submission_is_rejected(container) -> None:
    client = TestClient(create_app(container))

    client.post("/submissions", data=_form(), files=_files(1))
    response = client.post("/submissions", data=_form(), files=_files(1))

    assert response.status_code == 409
    assert response.json()["outcome"] == "ignored"


def test_reset_allows_new_submission(
    container, photo_storage: InMemoryPhotoStorage
) -> None:
    client = TestClient(create_app(container))

    client.post("/submissions", data=_form(), files=_files(1))
    reset = client.post(
        "/submissions/reset", data={"order_id": "A1", "merchant_id": "m1"}
    )
    response = client.post("/submissions", data=_form(), files=_files(1))

    assert reset.status_code == 200
    assert response.status_code == 200
    assert len(photo_storage.objects) == 2


def test_failed_submission_reports_error(
    container, report_repository: InMemoryReportRepository
) -> None:
    report_repository.insert_error = RuntimeError("db down")
    client = TestClient(create_app(container))

    response = client.post("/submissions", data=_form(), files=_files(1))

    assert response.status_code == 502
    assert "db down" in response.json()["error"]


def test_too_many_photos_rejected(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/submissions", data=_form(), files=_files(6))

    assert response.status_code == 422


def test_invalid_check_answer_rejected(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/submissions", data=_form(gears="maybe"), files=_files(1)
    )

    assert response.status_code == 422


def test_session_language_matches_submission_parsing(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/session", params={"id": "A1", "lang": "EN"})

    assert response.json()["language"] == "en"


def test_rejected_photo_returns_unprocessable(
    container, photo_storage: InMemoryPhotoStorage
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/submissions",
        data=_form(),
        files=[("photos", ("notes.txt", b"not an image", "text/plain"))],
    )

    assert response.status_code == 422
    assert response.json()["outcome"] == "failed"
    assert "not a valid image" in response.json()["error"]
    assert photo_storage.objects == {}
