"""
Admin Endpoint Tests.

Covers role gating, the moderation queue, canonical flagging, admin
deletes and analytics.
"""

import pytest

from codecrew.db_models import DBProblem, DBAnswer


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", email="admin@example.com", roles=["user", "admin"])


@pytest.fixture
def moderator(make_user):
    return make_user(name="Mod", email="mod@example.com", roles=["user", "moderator"])


@pytest.fixture
def member(make_user):
    return make_user(name="Member", email="member@example.com")


def set_columns(db_session, problem_id, **values):
    db_session.query(DBProblem).filter(DBProblem.id == problem_id).update(values)
    db_session.commit()

# =============================================================================
# Access Control
# =============================================================================

@pytest.mark.parametrize("method,path", [
    ("get", "/api/admin/moderation"),
    ("get", "/api/admin/analytics"),
    ("patch", "/api/admin/problems/x/canonical"),
    ("delete", "/api/admin/problems/x"),
])
def test_admin_routes_reject_plain_users(client, auth_headers, member, method, path):
    response = client.request(method.upper(), path, headers=auth_headers(member), json={"canonical": True})

    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


def test_admin_routes_require_auth(client):
    assert client.get("/api/admin/moderation").status_code == 401


def test_moderator_can_read_queue_and_analytics(client, auth_headers, moderator):
    assert client.get("/api/admin/moderation", headers=auth_headers(moderator)).status_code == 200
    assert client.get("/api/admin/analytics", headers=auth_headers(moderator)).status_code == 200


def test_moderator_cannot_delete(client, auth_headers, create_problem, member, moderator):
    problem = create_problem(member)

    response = client.delete(f"/api/admin/problems/{problem['id']}", headers=auth_headers(moderator))

    assert response.status_code == 403
    assert client.get(f"/api/problems/{problem['id']}").status_code == 200

# =============================================================================
# Moderation Queue
# =============================================================================

def test_moderation_queue_selection(client, db_session, auth_headers, create_problem, member, admin):
    hot = create_problem(member, title="Hot critical", severity="CRITICAL")
    warm = create_problem(member, title="Warm high", severity="HIGH")
    quiet = create_problem(member, title="Quiet high", severity="HIGH")
    low = create_problem(member, title="Popular low", severity="LOW")
    done = create_problem(member, title="Already canonical", severity="CRITICAL")
    set_columns(db_session, hot["id"], upvotes=40)
    set_columns(db_session, warm["id"], upvotes=10)
    set_columns(db_session, quiet["id"], upvotes=9)
    set_columns(db_session, low["id"], upvotes=100)
    set_columns(db_session, done["id"], upvotes=100, canonical=True)

    response = client.get("/api/admin/moderation", headers=auth_headers(admin))

    assert response.status_code == 200
    assert [p["title"] for p in response.json()["problems"]] == ["Hot critical", "Warm high"]

# =============================================================================
# Canonical
# =============================================================================

def test_set_and_unset_canonical(client, auth_headers, create_problem, member, moderator):
    problem = create_problem(member)
    url = f"/api/admin/problems/{problem['id']}/canonical"

    marked = client.patch(url, json={"canonical": True}, headers=auth_headers(moderator))
    assert marked.status_code == 200
    assert marked.json()["message"] == "Problem marked as canonical"
    assert marked.json()["problem"]["canonical"] is True

    unmarked = client.patch(url, json={"canonical": False}, headers=auth_headers(moderator))
    assert unmarked.json()["message"] == "Problem unmarked as canonical"
    assert unmarked.json()["problem"]["canonical"] is False


@pytest.mark.parametrize("payload", [{}, {"canonical": "yes"}, {"canonical": 1}])
def test_canonical_requires_boolean(client, auth_headers, create_problem, member, admin, payload):
    problem = create_problem(member)

    response = client.patch(
        f"/api/admin/problems/{problem['id']}/canonical", json=payload, headers=auth_headers(admin)
    )
    assert response.status_code == 400


def test_canonical_missing_problem(client, auth_headers, admin):
    response = client.patch("/api/admin/problems/missing/canonical", json={"canonical": True}, headers=auth_headers(admin))
    assert response.status_code == 404

# =============================================================================
# Delete
# =============================================================================

def test_admin_delete_cascades(client, db_session, auth_headers, create_problem, member, admin):
    problem = create_problem(member)
    client.post(
        f"/api/problems/{problem['id']}/answers", json={"contentMarkdown": "Answer"}, headers=auth_headers(member)
    )

    response = client.delete(f"/api/admin/problems/{problem['id']}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["message"] == "Problem deleted successfully"
    assert db_session.query(DBProblem).count() == 0
    assert db_session.query(DBAnswer).count() == 0


def test_admin_delete_missing_problem(client, auth_headers, admin):
    assert client.delete("/api/admin/problems/missing", headers=auth_headers(admin)).status_code == 404

# =============================================================================
# Analytics
# =============================================================================

def test_analytics_empty(client, auth_headers, admin):
    data = client.get("/api/admin/analytics", headers=auth_headers(admin)).json()

    assert data["totalProblems"] == 0
    assert data["solveRate"] == 0
    assert data["severityStats"] == []
    assert data["difficultyStats"] == []


def test_analytics_totals(client, db_session, auth_headers, create_problem, member, admin):
    first = create_problem(member, severity="HIGH", difficulty="BEGINNER")
    second = create_problem(member, severity="HIGH", difficulty="ADVANCED")
    third = create_problem(member, severity="LOW", difficulty="BEGINNER")
    create_problem(member, severity="LOW", difficulty="BEGINNER")
    set_columns(db_session, first["id"], solved=True, upvotes=4, view_count=10)
    set_columns(db_session, second["id"], upvotes=2, view_count=20)
    set_columns(db_session, third["id"], canonical=True)

    data = client.get("/api/admin/analytics", headers=auth_headers(admin)).json()

    assert data["totalProblems"] == 4
    assert data["solvedProblems"] == 1
    assert data["canonicalProblems"] == 1
    assert data["solveRate"] == 25.0

    severity = {bucket["id"]: bucket for bucket in data["severityStats"]}
    assert severity["HIGH"]["count"] == 2
    assert severity["HIGH"]["avgUpvotes"] == 3.0
    assert severity["HIGH"]["avgViews"] == 15.0
    assert severity["LOW"]["count"] == 2

    difficulty = {bucket["id"]: bucket for bucket in data["difficultyStats"]}
    assert difficulty["BEGINNER"]["count"] == 3
    assert difficulty["ADVANCED"]["avgUpvotes"] == 2.0
