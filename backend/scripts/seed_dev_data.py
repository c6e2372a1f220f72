#!/usr/bin/env python3
"""
Development Data Seed Script
Creates a demo user with a handful of analysed issues and prints a token
pair for it, so the API can be exercised without a real OAuth login.

Usage:
    python -m scripts.seed_dev_data [github_user_id] [user_name]

Example:
    python -m scripts.seed_dev_data 1001 octocat
"""
import sys
import os
from datetime import datetime, timedelta

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from signalone.auth import TokenService
from signalone.config import Settings
from signalone.database import SessionLocal, configure_database, init_db
from signalone.models.db_models import IssueDB, ProviderType, DEFAULT_SEVERITY
from signalone.models.domain import ProviderIdentity
from signalone.services.users import UserDirectory

SAMPLE_ISSUES = [
    ("api-gateway", "Upstream connection refused", [
        "2024-03-01T10:00:01Z ERROR connect() failed (111: Connection refused)",
        "2024-03-01T10:00:02Z WARN retrying upstream in 5s",
    ]),
    ("worker", "Out of memory while processing batch", [
        "2024-03-01T11:15:40Z FATAL java.lang.OutOfMemoryError: Java heap space",
    ]),
    ("postgres", "Too many client connections", [
        "2024-03-01T12:30:00Z FATAL sorry, too many clients already",
    ]),
]


def seed(provider_user_id: str, user_name: str) -> bool:
    settings = Settings.from_env()
    configure_database(settings.database_url)
    init_db()

    db: Session = SessionLocal()
    try:
        user = UserDirectory(db).find_or_create(
            ProviderIdentity(ProviderType.GITHUB, provider_user_id, user_name)
        )

        now = datetime.utcnow()
        for i, (container, title, logs) in enumerate(SAMPLE_ISSUES):
            db.add(IssueDB(
                user_id=user.id,
                container_name=container,
                severity=DEFAULT_SEVERITY.value,
                title=title,
                timestamp=now - timedelta(hours=i),
                logs=logs,
                log_summary=title,
                predicted_solutions_summary="",
                predicted_solutions_sources=[],
            ))
        db.commit()

        pair = TokenService(settings).issue_token_pair(user.id, user.user_name)
        print(f"Seeded user {user.id} ({user.external_id}) with {len(SAMPLE_ISSUES)} issues")
        print(f"  Access token:  {pair.access_token}")
        print(f"  Refresh token: {pair.refresh_token}")
        return True

    except Exception as e:
        print(f"Error seeding data: {e}")
        db.rollback()
        return False
    finally:
        db.close()


def main():
    provider_user_id = sys.argv[1] if len(sys.argv) > 1 else "1001"
    user_name = sys.argv[2] if len(sys.argv) > 2 else "octocat"
    success = seed(provider_user_id, user_name)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
