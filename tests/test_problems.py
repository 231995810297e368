"""
Problem Endpoint Tests.

Covers create/list/detail/update/delete, solving, answers, acceptance,
comments and the major/classification listings.
"""

import pytest

from codecrew.db_models import (
    DBProblem, DBAnswer, DBComment, DBVote, DBBookmark, DBDomain, DBSubdomain
)


@pytest.fixture
def owner(make_user):
    return make_user(name="Owner", email="owner@example.com")


@pytest.fixture
def other(make_user):
    return make_user(name="Other", email="other@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", email="admin@example.com", roles=["user", "admin"])


def set_columns(db_session, problem_id, **values):
    db_session.query(DBProblem).filter(DBProblem.id == problem_id).update(values)
    db_session.commit()


def post_answer(client, auth_headers, user, problem_id, content="Check for None first."):
    response = client.post(
        f"/api/problems/{problem_id}/answers",
        json={"contentMarkdown": content},
        headers=auth_headers(user),
    )
    assert response.status_code == 201, response.text
    return response.json()

# =============================================================================
# Create
# =============================================================================

def test_create_problem_defaults(create_problem, owner):
    problem = create_problem(owner, tags=[" python ", "Python", "lists"])

    assert problem["createdById"] == owner.id
    assert problem["creator"]["name"] == "Owner"
    assert problem["canonical"] is False
    assert problem["solved"] is False
    assert problem["viewCount"] == 0
    assert problem["upvotes"] == 0
    assert problem["downvotes"] == 0
    assert problem["tags"] == ["python", "lists"]


def test_create_problem_ignores_client_counters(client, auth_headers, owner):
    response = client.post("/api/problems", headers=auth_headers(owner), json={
        "title": "Segfault",
        "descriptionMarkdown": "It crashes.",
        "severity": "CRITICAL",
        "difficulty": "ADVANCED",
        "canonical": True,
        "upvotes": 50,
    })

    assert response.status_code == 201
    assert response.json()["canonical"] is False
    assert response.json()["upvotes"] == 0


def test_create_problem_requires_auth(client):
    response = client.post("/api/problems", json={"title": "x"})
    assert response.status_code == 401


@pytest.mark.parametrize("overrides,field", [
    ({"title": "x" * 201}, "title"),
    ({"title": "   "}, "title"),
    ({"severity": "URGENT"}, "severity"),
    ({"difficulty": "EXPERT"}, "difficulty"),
    ({"descriptionMarkdown": ""}, "descriptionMarkdown"),
])
def test_create_problem_validation(client, auth_headers, owner, overrides, field):
    payload = {
        "title": "Valid title",
        "descriptionMarkdown": "Body",
        "severity": "LOW",
        "difficulty": "BEGINNER",
    }
    payload.update(overrides)

    response = client.post("/api/problems", json=payload, headers=auth_headers(owner))

    assert response.status_code == 400
    assert field in [error["field"] for error in response.json()["errors"]]


def test_create_problem_unknown_domain_rejected(client, auth_headers, owner):
    response = client.post("/api/problems", headers=auth_headers(owner), json={
        "title": "Bad ref",
        "descriptionMarkdown": "Body",
        "severity": "LOW",
        "difficulty": "BEGINNER",
        "domainId": "no-such-domain",
    })
    assert response.status_code == 400

# =============================================================================
# List
# =============================================================================

def test_list_pagination(client, create_problem, owner):
    for i in range(3):
        create_problem(owner, title=f"Problem {i}")

    response = client.get("/api/problems?limit=2&page=1")

    assert response.status_code == 200
    data = response.json()
    assert len(data["problems"]) == 2
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    second = client.get("/api/problems?limit=2&page=2").json()
    assert len(second["problems"]) == 1


def test_list_empty(client):
    data = client.get("/api/problems").json()
    assert data["problems"] == []
    assert data["pagination"]["total"] == 0
    assert data["pagination"]["totalPages"] == 0


@pytest.mark.parametrize("query", ["limit=101", "limit=0", "page=0", "sort=random", "severity=URGENT"])
def test_list_rejects_bad_query(client, query):
    assert client.get(f"/api/problems?{query}").status_code == 400


def test_list_filters(client, db_session, create_problem, owner):
    critical = create_problem(owner, title="Critical one", severity="CRITICAL", difficulty="ADVANCED")
    create_problem(owner, title="Low one", severity="LOW")
    set_columns(db_session, critical["id"], solved=True, canonical=True)

    def titles(query):
        return [p["title"] for p in client.get(f"/api/problems?{query}").json()["problems"]]

    assert titles("severity=CRITICAL") == ["Critical one"]
    assert titles("difficulty=ADVANCED") == ["Critical one"]
    assert titles("solved=true") == ["Critical one"]
    assert titles("solved=false") == ["Low one"]
    assert titles("canonical=true") == ["Critical one"]
    assert sorted(titles("canonical=false")) == ["Critical one", "Low one"]


def test_list_filter_by_domain(client, db_session, create_problem, owner):
    domain = DBDomain(name="Web", slug="web")
    db_session.add(domain)
    db_session.commit()

    create_problem(owner, title="Web problem", domainId=domain.id)
    create_problem(owner, title="Unclassified")

    problems = client.get(f"/api/problems?domainId={domain.id}").json()["problems"]
    assert [p["title"] for p in problems] == ["Web problem"]
    assert problems[0]["domainId"] == domain.id


def test_list_search_is_case_insensitive_and_literal(client, create_problem, owner):
    create_problem(owner, title="100% CPU usage", descriptionMarkdown="Busy loop")
    create_problem(owner, title="Memory leak", descriptionMarkdown="Heap grows in the REACT app")

    def titles(term):
        return [p["title"] for p in client.get("/api/problems", params={"search": term}).json()["problems"]]

    assert titles("react") == ["Memory leak"]
    assert titles("cpu") == ["100% CPU usage"]
    assert titles("%") == ["100% CPU usage"]
    assert titles("nothing-matches") == []


def test_list_sort_popular_and_views(client, db_session, create_problem, owner):
    first = create_problem(owner, title="First")
    second = create_problem(owner, title="Second")
    set_columns(db_session, first["id"], upvotes=5, view_count=1)
    set_columns(db_session, second["id"], upvotes=1, view_count=9)

    popular = client.get("/api/problems?sort=popular").json()["problems"]
    views = client.get("/api/problems?sort=views").json()["problems"]

    assert [p["title"] for p in popular] == ["First", "Second"]
    assert [p["title"] for p in views] == ["Second", "First"]

# =============================================================================
# Detail
# =============================================================================

def test_detail_counts_views(client, create_problem, owner):
    problem = create_problem(owner)

    client.get(f"/api/problems/{problem['id']}")
    response = client.get(f"/api/problems/{problem['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["problem"]["viewCount"] == 2
    assert data["answers"] == []
    assert data["comments"] == []
    assert data["userVote"] is None
    assert data["bookmarked"] is False


def test_detail_not_found(client):
    response = client.get("/api/problems/does-not-exist")
    assert response.status_code == 404
    assert response.json()["detail"] == "Problem not found"


def test_detail_orders_accepted_answer_first(client, db_session, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)
    popular = post_answer(client, auth_headers, other, problem["id"], "Popular answer")
    accepted = post_answer(client, auth_headers, other, problem["id"], "Accepted answer")
    db_session.query(DBAnswer).filter(DBAnswer.id == popular["id"]).update({"upvotes": 10})
    db_session.commit()

    client.post(f"/api/problems/{problem['id']}/answers/{accepted['id']}/accept", headers=auth_headers(owner))

    answers = client.get(f"/api/problems/{problem['id']}").json()["answers"]
    assert [a["id"] for a in answers] == [accepted["id"], popular["id"]]
    assert answers[0]["author"]["name"] == "Other"

# =============================================================================
# Update
# =============================================================================

def test_update_by_creator(client, auth_headers, create_problem, owner):
    problem = create_problem(owner)

    response = client.patch(
        f"/api/problems/{problem['id']}",
        json={"title": "  Updated title  ", "severity": "LOW"},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Updated title"
    assert response.json()["severity"] == "LOW"
    assert response.json()["difficulty"] == "BEGINNER"


def test_update_by_other_user_forbidden(client, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)

    response = client.patch(f"/api/problems/{problem['id']}", json={"title": "Hijack"}, headers=auth_headers(other))

    assert response.status_code == 403
    assert response.json()["detail"] == "Not authorized to update this problem"


def test_update_canonical_only_for_admin(client, auth_headers, create_problem, owner, admin):
    problem = create_problem(owner)

    by_owner = client.patch(f"/api/problems/{problem['id']}", json={"canonical": True}, headers=auth_headers(owner))
    assert by_owner.status_code == 200
    assert by_owner.json()["canonical"] is False

    by_admin = client.patch(f"/api/problems/{problem['id']}", json={"canonical": True}, headers=auth_headers(admin))
    assert by_admin.status_code == 200
    assert by_admin.json()["canonical"] is True


def test_update_missing_problem(client, auth_headers, owner):
    response = client.patch("/api/problems/missing", json={"title": "x"}, headers=auth_headers(owner))
    assert response.status_code == 404

# =============================================================================
# Solve
# =============================================================================

def test_mark_solved_by_creator(client, auth_headers, create_problem, owner):
    problem = create_problem(owner)

    response = client.post(f"/api/problems/{problem['id']}/solve", headers=auth_headers(owner))

    assert response.status_code == 200
    assert response.json()["message"] == "Problem marked as solved"
    assert response.json()["problem"]["solved"] is True


def test_mark_solved_by_admin_forbidden(client, auth_headers, create_problem, owner, admin):
    problem = create_problem(owner)

    response = client.post(f"/api/problems/{problem['id']}/solve", headers=auth_headers(admin))

    assert response.status_code == 403
    assert response.json()["detail"] == "Only the creator can mark problem as solved"

# =============================================================================
# Delete
# =============================================================================

def test_delete_by_other_user_forbidden(client, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)

    response = client.delete(f"/api/problems/{problem['id']}", headers=auth_headers(other))

    assert response.status_code == 403
    assert response.json()["detail"] == "Not authorized to delete this problem"


def test_delete_missing_problem(client, auth_headers, owner):
    assert client.delete("/api/problems/missing", headers=auth_headers(owner)).status_code == 404


def test_delete_cascades_everything(client, db_session, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)
    survivor = create_problem(owner, title="Unrelated")
    answer = post_answer(client, auth_headers, other, problem["id"])

    problem_comment = client.post("/api/problems/comment", headers=auth_headers(other), json={
        "parentType": "Problem", "parentId": problem["id"], "content": "Which version?",
    }).json()
    answer_comment = client.post("/api/problems/comment", headers=auth_headers(owner), json={
        "parentType": "Answer", "parentId": answer["id"], "content": "Thanks!",
    }).json()

    for target_type, target_id in [
        ("Problem", problem["id"]),
        ("Answer", answer["id"]),
        ("Comment", problem_comment["id"]),
        ("Comment", answer_comment["id"]),
        ("Problem", survivor["id"]),
    ]:
        client.post("/api/problems/vote", headers=auth_headers(other),
                    json={"targetType": target_type, "targetId": target_id, "value": 1})
    client.post("/api/problems/bookmark", headers=auth_headers(other),
                json={"targetType": "Problem", "targetId": problem["id"]})
    client.post("/api/problems/bookmark", headers=auth_headers(other),
                json={"targetType": "Answer", "targetId": answer["id"]})

    response = client.delete(f"/api/problems/{problem['id']}", headers=auth_headers(owner))

    assert response.status_code == 200
    assert response.json()["message"] == "Problem and associated data deleted successfully"
    assert db_session.query(DBProblem).filter_by(id=problem["id"]).count() == 0
    assert db_session.query(DBAnswer).count() == 0
    assert db_session.query(DBComment).count() == 0
    assert db_session.query(DBBookmark).count() == 0
    remaining_votes = db_session.query(DBVote).all()
    assert [(v.target_type, v.target_id) for v in remaining_votes] == [("Problem", survivor["id"])]
    assert client.get(f"/api/problems/{survivor['id']}").status_code == 200

# =============================================================================
# Answers
# =============================================================================

def test_create_answer(client, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)

    answer = post_answer(client, auth_headers, other, problem["id"])

    assert answer["problemId"] == problem["id"]
    assert answer["authorId"] == other.id
    assert answer["accepted"] is False
    assert answer["upvotes"] == 0


def test_answer_on_missing_problem(client, auth_headers, other):
    response = client.post(
        "/api/problems/missing/answers", json={"contentMarkdown": "Hello"}, headers=auth_headers(other)
    )
    assert response.status_code == 404


def test_answer_requires_content(client, auth_headers, create_problem, owner):
    problem = create_problem(owner)
    response = client.post(
        f"/api/problems/{problem['id']}/answers", json={"contentMarkdown": ""}, headers=auth_headers(owner)
    )
    assert response.status_code == 400

# =============================================================================
# Accept
# =============================================================================

def test_accept_is_exclusive(client, db_session, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)
    first = post_answer(client, auth_headers, other, problem["id"], "First")
    second = post_answer(client, auth_headers, other, problem["id"], "Second")

    response = client.post(f"/api/problems/{problem['id']}/answers/{first['id']}/accept", headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["accepted"] is True

    client.post(f"/api/problems/{problem['id']}/answers/{second['id']}/accept", headers=auth_headers(owner))

    accepted = db_session.query(DBAnswer).filter(
        DBAnswer.problem_id == problem["id"], DBAnswer.accepted.is_(True)
    ).all()
    assert [a.id for a in accepted] == [second["id"]]


def test_accept_by_non_creator_forbidden(client, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)
    answer = post_answer(client, auth_headers, other, problem["id"])

    response = client.post(f"/api/problems/{problem['id']}/answers/{answer['id']}/accept", headers=auth_headers(other))

    assert response.status_code == 403
    assert response.json()["detail"] == "Only the problem creator can accept answers"


def test_accept_answer_from_another_problem(client, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)
    elsewhere = create_problem(owner, title="Elsewhere")
    answer = post_answer(client, auth_headers, other, elsewhere["id"])

    response = client.post(f"/api/problems/{problem['id']}/answers/{answer['id']}/accept", headers=auth_headers(owner))

    assert response.status_code == 404
    assert response.json()["detail"] == "Answer not found"

# =============================================================================
# Comments
# =============================================================================

def test_comments_appear_on_detail(client, auth_headers, create_problem, owner, other):
    problem = create_problem(owner)
    answer = post_answer(client, auth_headers, other, problem["id"])

    on_problem = client.post("/api/problems/comment", headers=auth_headers(other), json={
        "parentType": "Problem", "parentId": problem["id"], "content": "  Which version?  ",
    })
    assert on_problem.status_code == 201
    assert on_problem.json()["content"] == "Which version?"
    assert on_problem.json()["author"]["id"] == other.id

    client.post("/api/problems/comment", headers=auth_headers(owner), json={
        "parentType": "Answer", "parentId": answer["id"], "content": "Thanks!",
    })

    comments = client.get(f"/api/problems/{problem['id']}").json()["comments"]
    assert [c["content"] for c in comments] == ["Which version?", "Thanks!"]


@pytest.mark.parametrize("payload", [
    {"parentType": "Comment", "parentId": "x", "content": "hi"},
    {"parentType": "Problem", "parentId": "x", "content": ""},
    {"parentType": "Problem", "parentId": "x", "content": "a" * 1001},
])
def test_comment_validation(client, auth_headers, owner, payload):
    response = client.post("/api/problems/comment", json=payload, headers=auth_headers(owner))
    assert response.status_code == 400


def test_comment_on_missing_parent(client, auth_headers, owner):
    response = client.post("/api/problems/comment", headers=auth_headers(owner), json={
        "parentType": "Answer", "parentId": "missing", "content": "hi",
    })
    assert response.status_code == 404
    assert response.json()["detail"] == "Answer not found"

# =============================================================================
# Major / Classification Listings
# =============================================================================

def test_major_problems_grouped_by_severity(client, db_session, create_problem, owner):
    critical = create_problem(owner, title="Critical", severity="CRITICAL")
    low = create_problem(owner, title="Low", severity="LOW")
    create_problem(owner, title="Not canonical", severity="HIGH")
    set_columns(db_session, critical["id"], canonical=True, upvotes=3)
    set_columns(db_session, low["id"], canonical=True, upvotes=7)

    data = client.get("/api/problems/major").json()

    assert [p["title"] for p in data["problems"]] == ["Low", "Critical"]
    assert set(data["grouped"]) == {"critical", "high", "medium", "low"}
    assert [p["title"] for p in data["grouped"]["critical"]] == ["Critical"]
    assert data["grouped"]["high"] == []


def test_problems_by_classification(client, db_session, create_problem, owner):
    domain = DBDomain(name="Web", slug="web")
    db_session.add(domain)
    db_session.commit()
    subdomain = DBSubdomain(domain_id=domain.id, name="Frontend", slug="frontend")
    db_session.add(subdomain)
    db_session.commit()

    plain = create_problem(owner, title="Plain", domainId=domain.id, subdomainId=subdomain.id)
    canonical = create_problem(owner, title="Canonical", domainId=domain.id)
    create_problem(owner, title="Elsewhere")
    set_columns(db_session, canonical["id"], canonical=True)
    set_columns(db_session, plain["id"], upvotes=50)

    by_domain = client.get(f"/api/problems/class/domain/{domain.id}").json()
    assert [p["title"] for p in by_domain["problems"]] == ["Canonical", "Plain"]
    assert by_domain["pagination"]["total"] == 2

    by_subdomain = client.get(f"/api/problems/class/subdomain/{subdomain.id}").json()
    assert [p["title"] for p in by_subdomain["problems"]] == ["Plain"]


def test_problems_by_invalid_classification_type(client):
    response = client.get("/api/problems/class/planet/123")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid classification type"
