"""
Shared fixtures: in-memory SQLite, settings, token service and
small factories for users and issues.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from signalone.auth import TokenService
from signalone.config import Settings
from signalone.database import build_engine, init_db
from signalone.models.db_models import IssueDB, UserDB, ProviderType, DEFAULT_SEVERITY


TEST_SECRET = "test-secret-do-not-use"
GOOGLE_CLIENT_ID = "signalone-test.apps.googleusercontent.com"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def settings():
    return Settings(
        secret_key=TEST_SECRET,
        github_client_id="gh-client",
        github_client_secret="gh-secret",
        google_client_id=GOOGLE_CLIENT_ID,
        prediction_agent_url="http://agent.test/run",
        database_url="sqlite://",
        mode="test",
    )


@pytest.fixture
def token_service(settings):
    return TokenService(settings)


@pytest.fixture
def db():
    """Fresh in-memory database session per test."""
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(user_name="octocat", provider=ProviderType.GITHUB, is_pro=False, score_counter=0):
        counter["n"] += 1
        user = UserDB(
            provider=provider,
            provider_user_id=str(1000 + counter["n"]),
            user_name=user_name,
            is_pro=is_pro,
            counter=score_counter,
            agent_bearer_token="",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_issue(db):
    base = datetime(2024, 3, 1, 12, 0, 0)

    def _make(user, container="api-gateway", score=0, minutes_ago=0, **fields):
        issue = IssueDB(
            user_id=user.id,
            container_name=container,
            severity=fields.pop("severity", DEFAULT_SEVERITY.value),
            title=fields.pop("title", "Connection refused"),
            timestamp=fields.pop("timestamp", base - timedelta(minutes=minutes_ago)),
            is_resolved=fields.pop("is_resolved", False),
            score=score,
            logs=fields.pop("logs", ["line 1", "line 2"]),
            log_summary=fields.pop("log_summary", "summary"),
            predicted_solutions_summary=fields.pop("predicted_solutions_summary", ""),
            predicted_solutions_sources=fields.pop("predicted_solutions_sources", []),
            **fields,
        )
        db.add(issue)
        db.commit()
        db.refresh(issue)
        return issue

    return _make
