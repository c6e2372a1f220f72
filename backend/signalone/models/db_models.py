"""
SignalOne - SQLAlchemy ORM Models
Persistent storage for users, issues and sampled analyses
"""
from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, DateTime, Text, JSON, Boolean, Enum as SQLEnum,
    UniqueConstraint, Index,
)
from ..database import Base


# =============================================================================
# ENUMS
# =============================================================================

class ProviderType(str, Enum):
    """Identity provider a user first logged in with."""
    GITHUB = "github"
    GOOGLE = "google"


class Severity(str, Enum):
    """
    Issue severity.

    Detection does not classify yet; every analysed issue is stored with
    DEFAULT_SEVERITY until a real classifier exists. The column is a plain
    string so new levels do not need a migration.
    """
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


DEFAULT_SEVERITY = Severity.CRITICAL

# Tri-state rating: downvote / neutral / upvote
VALID_SCORES = (-1, 0, 1)


def _uuid() -> str:
    return str(uuid4())


class UserDB(Base):
    """Local user record, created on first login from a provider identity."""
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("provider", "provider_user_id", name="uq_users_provider_identity"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)  # UUID
    provider = Column(SQLEnum(ProviderType), nullable=False)
    provider_user_id = Column(String(255), nullable=False)
    user_name = Column(String(255), nullable=False, default="")
    is_pro = Column(Boolean, nullable=False, default=False)
    # Net rating sentiment, adjusted by RatingEngine deltas
    counter = Column(Integer, nullable=False, default=0)
    agent_bearer_token = Column(String(512), nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def external_id(self) -> str:
        """Provider-qualified identifier, e.g. 'github:1234'."""
        provider = self.provider.value if isinstance(self.provider, ProviderType) else self.provider
        return f"{provider}:{self.provider_user_id}"


class IssueDB(Base):
    """A detected incident produced by log analysis."""
    __tablename__ = "issues"
    __table_args__ = (
        Index("ix_issues_user_timestamp", "user_id", "timestamp"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    container_name = Column(String(255), nullable=False, index=True)
    severity = Column(String(32), nullable=False, default=DEFAULT_SEVERITY.value)
    issue_type = Column(String(64), nullable=True)
    title = Column(String(512), nullable=False, default="")
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    is_resolved = Column(Boolean, nullable=False, default=False)
    score = Column(Integer, nullable=False, default=0)

    # Analysis payload
    logs = Column(JSON, nullable=False, default=list)
    log_summary = Column(Text, nullable=False, default="")
    predicted_solutions_summary = Column(Text, nullable=False, default="")
    predicted_solutions_sources = Column(JSON, nullable=False, default=list)


class SavedAnalysisDB(Base):
    """Raw logs and summary sampled from free-tier users. Write-once."""
    __tablename__ = "saved_analyses"

    id = Column(String(36), primary_key=True, default=_uuid)
    logs = Column(Text, nullable=False)
    log_summary = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)
