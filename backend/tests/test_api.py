"""
End-to-end tests for the HTTP surface using FastAPI's TestClient.
"""
import pytest
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from signalone.auth import TokenService
from signalone.database import SessionLocal
from signalone.errors import IdentityProviderError, InvalidAudience
from signalone.main import create_app
from signalone.models.db_models import IssueDB, ProviderType, UserDB
from signalone.models.domain import AnalysisResult, ProviderIdentity


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def session(client):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def user(session):
    user = UserDB(provider=ProviderType.GITHUB, provider_user_id="42", user_name="octocat")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def auth_headers(app, user):
    pair = app.state.token_service.issue_token_pair(user.id, user.user_name)
    return {"Authorization": f"Bearer {pair.access_token}"}


@pytest.fixture
def add_issue(session):
    base = datetime(2024, 3, 1, 12, 0, 0)

    def _add(user, container="api", score=0, minutes_ago=0, is_resolved=False):
        issue = IssueDB(
            user_id=user.id,
            container_name=container,
            title=f"issue {minutes_ago}",
            timestamp=base - timedelta(minutes=minutes_ago),
            score=score,
            is_resolved=is_resolved,
            logs=["boom"],
        )
        session.add(issue)
        session.commit()
        session.refresh(issue)
        return issue

    return _add


# =============================================================================
# AUTH
# =============================================================================

class TestAuthEndpoints:

    def test_github_login_returns_token_pair(self, app, client):
        app.state.github_client = MagicMock()
        app.state.github_client.resolve.return_value = ProviderIdentity(ProviderType.GITHUB, "77", "hubot")

        resp = client.post("/api/auth/github", json={"code": "abc"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Success"
        assert body["expiresIn"] == 600
        user_id = app.state.token_service.verify(body["accessToken"])
        assert app.state.token_service.verify(body["refreshToken"]) == user_id

    def test_github_failure_is_reported(self, app, client):
        app.state.github_client = MagicMock()
        app.state.github_client.resolve.side_effect = IdentityProviderError("GitHub token exchange failed")

        resp = client.post("/api/auth/github", json={"code": "used"})

        assert resp.status_code == 401
        assert resp.json()["error"] == "identity_provider_error"

    def test_google_wrong_audience_reports_reason(self, app, client):
        app.state.google_verifier = MagicMock()
        app.state.google_verifier.resolve.side_effect = InvalidAudience()

        resp = client.post("/api/auth/google", json={"idToken": "x.y.z"})

        assert resp.status_code == 401
        assert resp.json()["reason"] == "invalid_audience"

    def test_login_body_requires_code(self, client):
        resp = client.post("/api/auth/github", json={})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    def test_refresh(self, app, client, user):
        pair = app.state.token_service.issue_token_pair(user.id, user.user_name)

        resp = client.post("/api/auth/refresh", json={"refreshToken": pair.refresh_token})

        assert resp.status_code == 200
        assert app.state.token_service.verify(resp.json()["accessToken"]) == user.id

    def test_refresh_with_garbage_is_unauthorized(self, client):
        resp = client.post("/api/auth/refresh", json={"refreshToken": "garbage"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "unauthorized", "message": "Unauthorized"}

    def test_refresh_for_deleted_user_when_checking_enabled(self, settings):
        app = create_app(replace(settings, refresh_checks_user=True))
        with TestClient(app) as client:
            pair = app.state.token_service.issue_token_pair("gone-user", "ghost")
            resp = client.post("/api/auth/refresh", json={"refreshToken": pair.refresh_token})
        assert resp.status_code == 401

    def test_refresh_for_deleted_user_by_default(self, app, client):
        pair = app.state.token_service.issue_token_pair("gone-user", "ghost")
        resp = client.post("/api/auth/refresh", json={"refreshToken": pair.refresh_token})
        assert resp.status_code == 200


# =============================================================================
# BEARER AUTH
# =============================================================================

class TestBearerAuth:

    def test_missing_header(self, client):
        assert client.get("/api/issues").status_code == 401

    def test_expired_token(self, settings, client, user):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        stale = TokenService(settings, clock=lambda: past).issue_token_pair(user.id, user.user_name)

        resp = client.get("/api/issues", headers={"Authorization": f"Bearer {stale.access_token}"})

        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_healthz_is_public(self, client):
        resp = client.get("/api/healthz")
        assert resp.status_code == 200
        assert resp.json()["status"] == "success"


# =============================================================================
# ISSUES
# =============================================================================

class TestIssueEndpoints:

    def test_search_defaults(self, client, auth_headers, user, add_issue):
        for i in range(35):
            add_issue(user, minutes_ago=i)

        resp = client.get("/api/issues", headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["issues"]) == 30
        assert body["max"] == 35
        assert body["issues"][0]["title"] == "issue 0"
        assert set(body["issues"][0]) == {"id", "containerName", "severity", "title", "isResolved", "timestamp"}

    def test_search_limit_is_clamped(self, client, auth_headers, user, add_issue):
        for i in range(105):
            add_issue(user, minutes_ago=i)

        resp = client.get("/api/issues", params={"limit": "500"}, headers=auth_headers)

        assert len(resp.json()["issues"]) == 100

    def test_search_unparsable_params_fall_back(self, client, auth_headers, user, add_issue):
        add_issue(user)
        add_issue(user, is_resolved=True)

        resp = client.get(
            "/api/issues",
            params={"offset": "x", "limit": "y", "isResolved": "maybe", "startTimestamp": "yesterday"},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["max"] == 1

    @pytest.mark.parametrize("params", [
        {"startTimestamp": "0001-01-01T00:00:00+05:00"},
        {"endTimestamp": "9999-12-31T23:59:59-05:00"},
    ])
    def test_search_out_of_range_timestamps_fall_back(self, client, auth_headers, user, add_issue, params):
        add_issue(user)

        resp = client.get("/api/issues", params=params, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["max"] == 1

    def test_search_filters(self, client, auth_headers, user, add_issue):
        add_issue(user, container="db", minutes_ago=10)
        add_issue(user, container="web", minutes_ago=5)
        add_issue(user, container="db", is_resolved=True)

        resp = client.get(
            "/api/issues",
            params={
                "container": "db",
                "isResolved": "true",
                "startTimestamp": "2024-03-01T00:00:00Z",
                "endTimestamp": "2024-03-02T00:00:00Z",
            },
            headers=auth_headers,
        )

        assert resp.json()["max"] == 1

    def test_get_issue(self, client, auth_headers, user, add_issue):
        issue = add_issue(user)

        resp = client.get(f"/api/issues/{issue.id}", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["logs"] == ["boom"]
        assert resp.json()["score"] == 0

    def test_get_missing_issue(self, client, auth_headers):
        assert client.get("/api/issues/nope", headers=auth_headers).status_code == 404

    def test_rate_issue_and_repeat(self, client, auth_headers, user, add_issue, session):
        issue = add_issue(user)

        first = client.put(f"/api/issues/{issue.id}/score", json={"score": 1}, headers=auth_headers)
        second = client.put(f"/api/issues/{issue.id}/score", json={"score": 1}, headers=auth_headers)

        assert first.status_code == 200 and first.json()["message"] == "Success"
        assert second.status_code == 200
        assert second.json()["message"] == "Issue already rated with the same score"
        session.expire_all()
        assert session.get(UserDB, user.id).counter == 1

    def test_rate_out_of_range(self, client, auth_headers, user, add_issue):
        issue = add_issue(user)
        resp = client.put(f"/api/issues/{issue.id}/score", json={"score": 2}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    @pytest.mark.parametrize("body", [{}, {"score": None}, {"score": "1"}])
    def test_rate_requires_integer_score(self, client, auth_headers, user, add_issue, body):
        issue = add_issue(user)
        resp = client.put(f"/api/issues/{issue.id}/score", json=body, headers=auth_headers)
        assert resp.status_code == 400

    def test_rate_other_users_issue_is_not_found(self, client, auth_headers, session, add_issue):
        owner = UserDB(provider=ProviderType.GOOGLE, provider_user_id="9", user_name="bob")
        session.add(owner)
        session.commit()
        issue = add_issue(owner)

        resp = client.put(f"/api/issues/{issue.id}/score", json={"score": 1}, headers=auth_headers)

        assert resp.status_code == 404

    def test_resolve_twice(self, client, auth_headers, user, add_issue):
        issue = add_issue(user)

        for _ in range(2):
            resp = client.post(f"/api/issues/resolve/{issue.id}", headers=auth_headers)
            assert resp.status_code == 200

        detail = client.get(f"/api/issues/{issue.id}", headers=auth_headers).json()
        assert detail["isResolved"] is True

    def test_delete_by_container(self, client, auth_headers, user, add_issue):
        add_issue(user, container="worker")
        add_issue(user, container="worker")
        add_issue(user, container="web")

        resp = client.delete("/api/issues", params={"container": "worker"}, headers=auth_headers)

        assert resp.json() == {"message": "Success", "count": 2}
        assert client.get("/api/containers", headers=auth_headers).json() == ["web"]

    def test_log_analysis(self, app, client, auth_headers, user):
        app.state.prediction_agent = MagicMock()
        app.state.prediction_agent.analyze.return_value = AnalysisResult("Crash", "segfault")

        resp = client.put(
            "/api/issues/analysis",
            json={"containerName": "worker", "logs": "a\nb"},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        issue_id = resp.json()["issueId"]
        detail = client.get(f"/api/issues/{issue_id}", headers=auth_headers).json()
        assert detail["logs"] == ["a", "b"]
        assert detail["severity"] == "CRITICAL"
