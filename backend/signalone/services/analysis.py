"""
Log Analysis Ingestion

Sends raw logs to the prediction agent, persists the resulting issue and,
for free-tier users, keeps a SavedAnalysis sample of logs and summary.
"""
import logging
from datetime import datetime
from typing import Optional

import requests
from sqlalchemy.orm import Session

from ..config import Settings
from ..errors import AnalysisServiceError, NotFound
from ..models.db_models import DEFAULT_SEVERITY, IssueDB, SavedAnalysisDB
from ..models.domain import AnalysisResult
from .issues import IssueRepository
from .users import UserDirectory

logger = logging.getLogger(__name__)


class PredictionAgentClient:
    """
    Opaque analysis backend: POST {"logs": ...} and get back a title,
    summary, predicted solutions and their sources.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.url = settings.prediction_agent_url
        self.timeout = settings.http_timeout_seconds
        self.session = session or requests.Session()

    def analyze(self, logs: str) -> AnalysisResult:
        if not self.url:
            raise AnalysisServiceError("Prediction agent is not configured")
        try:
            resp = self.session.post(self.url, json={"logs": logs}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Prediction agent call failed: {e}")
            raise AnalysisServiceError() from e

        if not isinstance(data, dict):
            raise AnalysisServiceError("Prediction agent returned a malformed response")

        sources = data.get("sources") or []
        return AnalysisResult(
            title=str(data.get("title") or ""),
            log_summary=str(data.get("logSummary") or ""),
            predicted_solutions=str(data.get("predictedSolutions") or ""),
            sources=[str(s) for s in sources] if isinstance(sources, list) else [str(sources)],
        )


class LogAnalysisService:

    def __init__(self, db: Session, agent: PredictionAgentClient):
        self.db = db
        self.agent = agent
        self.issues = IssueRepository(db)
        self.users = UserDirectory(db)

    def analyze_logs(self, user_id: str, container_name: str, logs: str) -> IssueDB:
        """Run analysis and store the new issue. Returns the stored issue."""
        user = self.users.get(user_id)
        if user is None:
            raise NotFound("User cannot be found")

        result = self.agent.analyze(logs)

        if not user.is_pro:
            self.db.add(SavedAnalysisDB(logs=logs, log_summary=result.log_summary))

        issue = IssueDB(
            user_id=user_id,
            container_name=container_name,
            score=0,
            # TODO: replace with the classifier's severity once detection ships
            severity=DEFAULT_SEVERITY.value,
            title=result.title,
            timestamp=datetime.utcnow(),
            is_resolved=False,
            logs=logs.split("\n"),
            log_summary=result.log_summary,
            predicted_solutions_summary=result.predicted_solutions,
            predicted_solutions_sources=result.sources,
        )
        issue = self.issues.add(issue)
        logger.info(f"Stored issue {issue.id} for user {user_id} (container {container_name!r})")
        return issue
