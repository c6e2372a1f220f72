"""SignalOne - Services"""
from .issues import IssueRepository
from .users import UserDirectory
from .rating import RatingEngine, counter_delta, validate_score
from .analysis import LogAnalysisService, PredictionAgentClient

__all__ = [
    "IssueRepository",
    "UserDirectory",
    "RatingEngine",
    "counter_delta",
    "validate_score",
    "LogAnalysisService",
    "PredictionAgentClient",
]
