from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from skillquest.api.main import create_app
from skillquest.database.storage import InMemoryStorage
from skillquest.grading import GradeResult
from skillquest.integrations.contracts.interfaces import MonthlyChallenge
from skillquest.utils.config_loader import PlatformConfig


def _login(api, storage, user_id):
    api.cookies.set("sid", storage.create_session(user_id))


def test_health(api):
    response = api.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_problem_list_filters_ignore_all(api):
    python_only = api.get("/api/problems", params={"category": "Python"}).json()
    everything = api.get("/api/problems", params={"category": "all", "difficulty": "all"}).json()
    searched = api.get("/api/problems", params={"search": "REVERSE"}).json()

    assert {p["category"] for p in python_only} == {"Python"}
    assert len(everything) == 5
    assert [p["slug"] for p in searched] == ["reverse-string"]
    assert [p["order"] for p in everything] == sorted(p["order"] for p in everything)


def test_problem_payload_is_camel_case(api):
    body = api.get("/api/problems/hello-world").json()
    assert body["starterCode"] == "# Print Hello, World!\n"
    assert body["xpReward"] == 10
    assert "starter_code" not in body


def test_daily_problem_is_not_treated_as_slug(api):
    body = api.get("/api/problems/daily").json()
    assert body["slug"] == "sum-two-numbers"
    assert body["bonusXp"] == 50


def test_daily_problem_falls_back_to_first_problem(storage):
    storage._daily.clear()
    api = TestClient(create_app(storage=storage, config=PlatformConfig()))
    assert api.get("/api/problems/daily").json()["slug"] == "hello-world"


def test_daily_problem_404_when_catalog_empty():
    api = TestClient(create_app(storage=InMemoryStorage(), config=PlatformConfig()))
    response = api.get("/api/problems/daily")
    assert response.status_code == 404
    assert response.json() == {"message": "No daily challenge"}


def test_unknown_problem_404(api):
    response = api.get("/api/problems/nope")
    assert response.status_code == 404
    assert response.json() == {"message": "Problem not found"}


def test_submit_requires_session(api):
    response = api.post("/api/problems/1/submit", json={"code": "print('hello world')", "language": "python"})
    assert response.status_code == 401
    assert response.json() == {"message": "Authentication required"}


def test_submit_validation_error_names_field(api, storage):
    _login(api, storage, "user-0100")
    response = api.post("/api/problems/1/submit", json={"code": "print('hello world')"})
    assert response.status_code == 400
    assert response.json()["field"] == "language"


def test_literal_placeholder_is_404(api, storage):
    _login(api, storage, "user-0101")
    response = api.post("/api/problems/:id/submit", json={"code": "x", "language": "python"})
    assert response.status_code == 404


def test_leaderboard_is_ranked_by_xp(api, storage):
    storage.update_user_progress("user-aaaa", 120)
    storage.update_user_progress("user-bbbb", 600)

    board = api.get("/api/leaderboard").json()

    assert [row["userId"] for row in board] == ["user-bbbb", "user-aaaa"]
    assert [row["rank"] for row in board] == [1, 2]
    assert board[0]["username"] == "Coderbbbb"
    assert board[0]["level"] == 2


def test_leaderboard_limit_comes_from_config(storage):
    config = PlatformConfig()
    config.server.leaderboard_limit = 2
    for n in range(5):
        storage.update_user_progress(f"user-{n:04d}", n * 10)
    api = TestClient(create_app(storage=storage, config=config))

    assert len(api.get("/api/leaderboard").json()) == 2


def test_discussion_views_increment(api, storage):
    _login(api, storage, "user-0102")
    created = api.post("/api/discussions", json={"title": "Q", "content": "Body"}).json()

    api.get(f"/api/discussions/{created['id']}")
    detail = api.get(f"/api/discussions/{created['id']}").json()

    assert detail["views"] == 2
    assert detail["authorName"] == "User0102"
    assert detail["answers"] == []


def test_vote_on_missing_discussion_is_404(api, storage):
    _login(api, storage, "user-0103")
    response = api.post("/api/discussions/999/vote", json={"value": 1})
    assert response.status_code == 404


def test_certificates_require_club(api, storage):
    _login(api, storage, "user-0104")
    response = api.get("/api/certificates")
    assert response.status_code == 403
    assert response.json() == {"message": "Club membership required", "requiresUpgrade": True}


def test_challenge_submission_window(api, storage):
    now = datetime.now(timezone.utc)
    storage.add_challenge(MonthlyChallenge(
        id=2, title="Closed", description="Already over", month="2020-01",
        start_date=now - timedelta(days=60), end_date=now - timedelta(days=30),
    ))
    storage.set_membership("user-0105", "club_yearly")
    _login(api, storage, "user-0105")

    closed = api.post("/api/challenges/2/submit", json={"submissionUrl": "https://github.com/me/game"})
    opened = api.post("/api/challenges/1/submit", json={"submissionUrl": "https://github.com/me/game"})
    mine = api.get("/api/challenges/1/submissions").json()

    assert closed.status_code == 400
    assert closed.json() == {"message": "Challenge submission period has ended"}
    assert opened.status_code == 200
    assert opened.json()["status"] == "submitted"
    assert [s["submissionUrl"] for s in mine] == ["https://github.com/me/game"]


def test_user_profile(api, storage):
    storage.update_user_progress("user-0106", 20, solved=True)
    body = api.get("/api/user/profile/user-0106").json()

    assert body["xp"] == 20
    assert body["solvedCount"] == 1
    assert body["badges"][0]["slug"] == "first-steps"
    assert api.get("/api/user/profile/ghost").status_code == 404


class ExplodingGrader:
    async def grade(self, problem, code, language):
        raise RuntimeError("sandbox down")


def test_unhandled_errors_return_message_only(storage):
    app = create_app(storage=storage, grader=ExplodingGrader(), config=PlatformConfig())
    api = TestClient(app, raise_server_exceptions=False)
    _login(api, storage, "user-0107")

    response = api.post("/api/problems/1/submit", json={"code": "print('hello world')", "language": "python"})

    assert response.status_code == 500
    assert set(response.json()) == {"message"}
    assert "sandbox" not in response.json()["message"]


class AlwaysPass:
    async def grade(self, problem, code, language):
        return GradeResult(passed=True, output="ok")


def test_custom_grader_is_used(storage):
    api = TestClient(create_app(storage=storage, grader=AlwaysPass(), config=PlatformConfig()))
    _login(api, storage, "user-0108")

    body = api.post("/api/problems/5/submit", json={"code": "?", "language": "python"}).json()

    assert body["passed"] is True
    assert body["xpEarned"] == 50
    assert body["nextProblemSlug"] is None


def test_portfolio_crud_for_owner(api, storage):
    storage.set_membership("user-0109", "club_monthly")
    _login(api, storage, "user-0109")

    created = api.post("/api/portfolio", json={
        "title": "Snake", "description": "Terminal game", "techStack": ["python", "curses"],
    })
    assert created.status_code == 200
    project = created.json()
    assert project["techStack"] == ["python", "curses"]
    assert project["isPublic"] is True
    assert project["liveUrl"] is None

    patched = api.patch(f"/api/portfolio/{project['id']}", json={"title": "Snake II", "isPublic": False})
    assert patched.status_code == 200
    assert patched.json()["title"] == "Snake II"
    assert patched.json()["description"] == "Terminal game"
    assert patched.json()["isPublic"] is False

    assert [p["title"] for p in api.get("/api/portfolio").json()] == ["Snake II"]
    assert api.delete(f"/api/portfolio/{project['id']}").json() == {"success": True}
    assert api.get("/api/portfolio").json() == []
    assert api.delete(f"/api/portfolio/{project['id']}").status_code == 404


def test_portfolio_rejects_non_owner_and_bad_input(api, storage):
    storage.set_membership("user-0110", "club_monthly")
    storage.set_membership("user-0111", "club_monthly")
    _login(api, storage, "user-0110")
    project_id = api.post("/api/portfolio", json={"title": "Site", "description": "Mine"}).json()["id"]

    _login(api, storage, "user-0111")
    edit = api.patch(f"/api/portfolio/{project_id}", json={"title": "Stolen"})
    delete = api.delete(f"/api/portfolio/{project_id}")
    missing_title = api.post("/api/portfolio", json={"description": "No title"})

    assert edit.status_code == 403
    assert edit.json() == {"message": "Not authorized to edit this project"}
    assert delete.status_code == 403
    assert delete.json() == {"message": "Not authorized to delete this project"}
    assert missing_title.status_code == 400
    assert missing_title.json()["field"] == "title"
    assert storage.get_project_by_id(project_id).title == "Site"
    assert api.patch("/api/portfolio/abc", json={}).status_code == 404


def test_portfolio_requires_club(api, storage):
    assert api.get("/api/portfolio").status_code == 401
    _login(api, storage, "user-0112")
    response = api.delete("/api/portfolio/1")
    assert response.status_code == 403
    assert response.json()["requiresUpgrade"] is True
