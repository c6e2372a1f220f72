"""SignalOne - Data Models"""
from .db_models import (
    # Enums
    ProviderType, Severity, DEFAULT_SEVERITY, VALID_SCORES,
    # Tables
    UserDB, IssueDB, SavedAnalysisDB,
)
from .domain import (
    TokenPair, TokenClaims, ProviderIdentity,
    IssueSearchCriteria, IssuePage, AnalysisResult, RatingOutcome,
    MAX_PAGE_SIZE, DEFAULT_PAGE_SIZE,
)

__all__ = [
    "ProviderType", "Severity", "DEFAULT_SEVERITY", "VALID_SCORES",
    "UserDB", "IssueDB", "SavedAnalysisDB",
    "TokenPair", "TokenClaims", "ProviderIdentity",
    "IssueSearchCriteria", "IssuePage", "AnalysisResult", "RatingOutcome",
    "MAX_PAGE_SIZE", "DEFAULT_PAGE_SIZE",
]
