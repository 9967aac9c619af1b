"""Tests for the admin payment-status endpoint."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import PAID_COURSE, auth

URL = "/admin/enrollments/payment-status"


def _body(payment_status: str = "completed", learner_id: str = "test-learner") -> dict:
    return {"learner_id": learner_id, "course_id": PAID_COURSE, "payment_status": payment_status}


def test_requires_token(client: TestClient) -> None:
    assert client.post(URL, json=_body()).status_code == 401


def test_learner_cannot_set_payment_status(client: TestClient, token: str) -> None:
    resp = client.post(URL, json=_body(), headers=auth(token))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Insufficient permissions"


def test_completed_payment_unlocks_video(
    client: TestClient, token: str, admin_token: str
) -> None:
    client.post(f"/v1/courses/{PAID_COURSE}/enroll", headers=auth(token))
    video = f"/v1/courses/{PAID_COURSE}/lessons/lesson-1/video-url"
    assert client.get(video, headers=auth(token)).status_code == 403

    resp = client.post(URL, json=_body("completed"), headers=auth(admin_token))
    assert resp.status_code == 200
    assert resp.json()["payment_status"] == "completed"
    assert client.get(video, headers=auth(token)).status_code == 200


def test_failed_payment_locks_video_again(
    client: TestClient, token: str, admin_token: str
) -> None:
    client.post(f"/v1/courses/{PAID_COURSE}/enroll", headers=auth(token))
    client.post(URL, json=_body("completed"), headers=auth(admin_token))
    client.post(URL, json=_body("failed"), headers=auth(admin_token))

    video = f"/v1/courses/{PAID_COURSE}/lessons/lesson-1/video-url"
    assert client.get(video, headers=auth(token)).status_code == 403


def test_unknown_enrollment_is_404(client: TestClient, admin_token: str) -> None:
    resp = client.post(URL, json=_body(learner_id="nobody"), headers=auth(admin_token))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Enrollment not found"


def test_unknown_status_is_422(client: TestClient, admin_token: str) -> None:
    resp = client.post(URL, json=_body("refunded"), headers=auth(admin_token))
    assert resp.status_code == 422
