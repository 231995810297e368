"""
Error Handling Tests.

Error response shapes, the unhandled-error fallback, write conflicts and
input sanitization helpers.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from codecrew.config import settings
from codecrew.exceptions import ConflictError, NotFoundError
from codecrew.interaction_service import VoteService
from codecrew.main import app
from codecrew.sanitization import sanitize_tags, escape_like

# =============================================================================
# Response Shapes
# =============================================================================

def test_validation_error_shape(client):
    response = client.get("/api/problems?limit=500")

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Validation failed"
    assert body["errors"][0]["field"] == "limit"
    assert body["errors"][0]["message"]


def test_malformed_json_body(client, make_user, auth_headers):
    response = client.post(
        "/api/problems",
        content="{not json",
        headers={**auth_headers(make_user()), "Content-Type": "application/json"},
    )
    assert response.status_code == 400


def test_unknown_route(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404


def test_not_found_error_message():
    assert NotFoundError("Answer").message == "Answer not found"
    assert NotFoundError("Answer").status_code == 404

# =============================================================================
# Unhandled Errors
# =============================================================================

@pytest.fixture
def failing_client(client):
    with patch(
        "codecrew.routers.classification.ClassificationService.list_domains",
        side_effect=RuntimeError("database exploded"),
    ):
        yield TestClient(app, raise_server_exceptions=False)


def test_unhandled_error_shows_message_in_development(failing_client):
    response = failing_client.get("/api/domains")

    assert response.status_code == 500
    assert response.json() == {"detail": "database exploded"}


def test_unhandled_error_hidden_in_production(failing_client):
    with patch.object(settings, "environment", "production"):
        response = failing_client.get("/api/domains")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}

# =============================================================================
# Write Conflicts
# =============================================================================

def test_concurrent_vote_insert_becomes_conflict(client, db_session, make_user, create_problem):
    user = make_user()
    problem = create_problem(user)
    service = VoteService(db_session)

    with patch.object(db_session, "commit", side_effect=IntegrityError("INSERT", {}, Exception("unique"))):
        with pytest.raises(ConflictError):
            service.cast_vote(user.id, "Problem", problem["id"], 1)


def test_conflict_maps_to_409(client, make_user, auth_headers, create_problem):
    user = make_user()
    problem = create_problem(user)

    with patch("codecrew.routers.problems.VoteService.cast_vote", side_effect=ConflictError()):
        response = client.post(
            "/api/problems/vote",
            json={"targetType": "Problem", "targetId": problem["id"], "value": 1},
            headers=auth_headers(user),
        )

    assert response.status_code == 409
    assert response.json()["detail"] == "Conflicting concurrent update, please retry"

# =============================================================================
# Sanitization
# =============================================================================

def test_sanitize_tags_trims_and_dedupes():
    assert sanitize_tags([" react ", "React", "", "   ", "hooks"]) == ["react", "hooks"]


def test_sanitize_tags_limits():
    with pytest.raises(ValueError):
        sanitize_tags(["x" * 51])
    with pytest.raises(ValueError):
        sanitize_tags([f"tag{i}" for i in range(21)])
    assert len(sanitize_tags([f"tag{i}" for i in range(20)])) == 20


def test_too_many_tags_rejected_by_api(client, make_user, auth_headers):
    response = client.post("/api/problems", headers=auth_headers(make_user()), json={
        "title": "Tags",
        "descriptionMarkdown": "Body",
        "severity": "LOW",
        "difficulty": "BEGINNER",
        "tags": [f"tag{i}" for i in range(21)],
    })
    assert response.status_code == 400


def test_escape_like():
    assert escape_like("100%") == "100\\%"
    assert escape_like("snake_case") == "snake\\_case"
    assert escape_like("a\\b") == "a\\\\b"
