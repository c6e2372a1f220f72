"""
SignalOne - Domain Models

Plain data passed between services. None of these touch the database.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .db_models import ProviderType, IssueDB


# =============================================================================
# AUTH
# =============================================================================

@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int  # seconds until the access token expires


@dataclass(frozen=True)
class TokenClaims:
    """Identity embedded in a locally issued token."""
    user_id: str
    user_name: str
    expires_at: int


@dataclass(frozen=True)
class ProviderIdentity:
    """Identity established by an external provider."""
    provider: ProviderType
    provider_user_id: str
    user_name: str


# =============================================================================
# ISSUES
# =============================================================================

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 30


@dataclass
class IssueSearchCriteria:
    """
    Typed filter for issue search. Unset fields do not filter.

    The time range is half-open: start <= timestamp < end.
    """
    owner_id: Optional[str] = None
    container: Optional[str] = None
    severity: Optional[str] = None
    issue_type: Optional[str] = None
    is_resolved: Optional[bool] = False
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.offset is None or self.offset < 0:
            self.offset = 0
        if self.limit is None or self.limit <= 0:
            self.limit = DEFAULT_PAGE_SIZE
        self.limit = min(self.limit, MAX_PAGE_SIZE)


@dataclass
class IssuePage:
    issues: List[IssueDB]
    total: int


@dataclass
class AnalysisResult:
    """Structured output of the prediction agent."""
    title: str
    log_summary: str
    predicted_solutions: str = ""
    sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RatingOutcome:
    issue_id: str
    previous_score: int
    score: int
    counter_delta: int

    @property
    def changed(self) -> bool:
        return self.previous_score != self.score
