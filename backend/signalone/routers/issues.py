"""
SignalOne - Issues API Router

Log analysis, issue search/lookup, rating, resolution and bulk deletion.
All endpoints require authentication and only see the caller's issues.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from dateutil.parser import isoparse
from fastapi import APIRouter, Depends, Query, Request
from pydantic import StrictInt
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..database import get_db
from ..errors import NotFound
from ..models.api import CamelModel, MessageResponse
from ..models.db_models import IssueDB
from ..models.domain import DEFAULT_PAGE_SIZE, IssueSearchCriteria
from ..services.analysis import LogAnalysisService
from ..services.issues import IssueRepository
from ..services.rating import RatingEngine
from ..services.users import UserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issues", tags=["issues"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class LogAnalysisRequest(CamelModel):
    container_name: str
    logs: str


class LogAnalysisResponse(CamelModel):
    message: str = "Success"
    issue_id: str


class IssueRateRequest(CamelModel):
    # Required; null or missing is a client error
    score: StrictInt


class IssueSummary(CamelModel):
    id: str
    container_name: str
    severity: str
    title: str
    is_resolved: bool
    timestamp: datetime


class IssueDetail(IssueSummary):
    user_id: str
    issue_type: Optional[str] = None
    score: int
    logs: List[str]
    log_summary: str
    predicted_solutions_summary: str
    predicted_solutions_sources: List[str]


class IssueSearchResponse(CamelModel):
    issues: List[IssueSummary]
    max: int


class DeleteIssuesResponse(CamelModel):
    message: str = "Success"
    count: int


def _summary(issue: IssueDB) -> IssueSummary:
    return IssueSummary(
        id=issue.id,
        container_name=issue.container_name,
        severity=issue.severity,
        title=issue.title,
        is_resolved=issue.is_resolved,
        timestamp=issue.timestamp,
    )


def _detail(issue: IssueDB) -> IssueDetail:
    return IssueDetail(
        id=issue.id,
        user_id=issue.user_id,
        container_name=issue.container_name,
        severity=issue.severity,
        issue_type=issue.issue_type,
        title=issue.title,
        is_resolved=issue.is_resolved,
        timestamp=issue.timestamp,
        score=issue.score,
        logs=list(issue.logs or []),
        log_summary=issue.log_summary,
        predicted_solutions_summary=issue.predicted_solutions_summary,
        predicted_solutions_sources=list(issue.predicted_solutions_sources or []),
    )


# =============================================================================
# QUERY PARSING
# =============================================================================
# Search parameters are lenient: anything unparsable falls back to its default.

def parse_int(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in ("1", "t", "true"):
        return True
    if lowered in ("0", "f", "false"):
        return False
    return default


def parse_timestamp(value: Optional[str], default: datetime) -> datetime:
    if not value:
        return default
    try:
        parsed = isoparse(value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        # Offsets at the edge of the datetime range cannot shift to UTC
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return default


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.put("/analysis", response_model=LogAnalysisResponse)
def log_analysis(
    payload: LogAnalysisRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Analyse submitted logs and store the detected issue."""
    service = LogAnalysisService(db, request.app.state.prediction_agent)
    issue = service.analyze_logs(user_id, payload.container_name, payload.logs)
    return LogAnalysisResponse(issue_id=issue.id)


@router.get("", response_model=IssueSearchResponse)
def search_issues(
    offset: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    container: Optional[str] = Query(None),
    issue_severity: Optional[str] = Query(None, alias="issueSeverity"),
    issue_type: Optional[str] = Query(None, alias="issueType"),
    start_timestamp: Optional[str] = Query(None, alias="startTimestamp"),
    end_timestamp: Optional[str] = Query(None, alias="endTimestamp"),
    is_resolved: Optional[str] = Query(None, alias="isResolved"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Search the caller's issues, newest first.

    limit defaults to 30 and is capped at 100; the time range defaults to
    [beginning of time, now).
    """
    criteria = IssueSearchCriteria(
        owner_id=user_id,
        container=container or None,
        severity=issue_severity or None,
        issue_type=issue_type or None,
        is_resolved=parse_bool(is_resolved, False),
        start=parse_timestamp(start_timestamp, datetime.min.replace(tzinfo=timezone.utc)),
        end=parse_timestamp(end_timestamp, datetime.now(timezone.utc)),
        offset=parse_int(offset, 0),
        limit=parse_int(limit, DEFAULT_PAGE_SIZE),
    )
    page = IssueRepository(db).search(criteria)
    return IssueSearchResponse(issues=[_summary(i) for i in page.issues], max=page.total)


@router.get("/{issue_id}", response_model=IssueDetail)
def get_issue(
    issue_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    issue = IssueRepository(db).get(issue_id, owner_id=user_id)
    if issue is None:
        raise NotFound()
    return _detail(issue)


@router.put("/{issue_id}/score", response_model=MessageResponse)
def rate_issue(
    issue_id: str,
    payload: IssueRateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Rate one of the caller's issues with -1, 0 or 1.

    Issues owned by someone else are reported as not found.
    """
    engine = RatingEngine(IssueRepository(db), UserDirectory(db))
    outcome = engine.rate(user_id, issue_id, payload.score)
    if not outcome.changed:
        return MessageResponse(message="Issue already rated with the same score")
    return MessageResponse(message="Success")


@router.post("/resolve/{issue_id}", response_model=MessageResponse)
def resolve_issue(
    issue_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Mark an issue resolved. Resolving twice is not an error."""
    if not IssueRepository(db).resolve(issue_id, owner_id=user_id):
        raise NotFound()
    return MessageResponse(message="Success")


@router.delete("", response_model=DeleteIssuesResponse)
def delete_issues(
    container: str = Query(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete every issue of the given container."""
    count = IssueRepository(db).delete_by_container(container, owner_id=user_id)
    return DeleteIssuesResponse(count=count)
