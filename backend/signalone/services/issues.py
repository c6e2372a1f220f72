"""
Issue Repository

Storage boundary for issues. Filter criteria arrive as a typed
IssueSearchCriteria and are translated to SQLAlchemy filters here only.
Every write commits before returning.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.db_models import IssueDB
from ..models.domain import IssuePage, IssueSearchCriteria

logger = logging.getLogger(__name__)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class IssueRepository:

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, issue_id: str, owner_id: Optional[str] = None) -> Optional[IssueDB]:
        """Point lookup; with owner_id, issues of other users are invisible."""
        query = self.db.query(IssueDB).filter(IssueDB.id == issue_id)
        if owner_id is not None:
            query = query.filter(IssueDB.user_id == owner_id)
        return query.first()

    def search(self, criteria: IssueSearchCriteria) -> IssuePage:
        """Filtered page ordered by timestamp descending, plus total match count."""
        query = self.db.query(IssueDB)

        if criteria.owner_id is not None:
            query = query.filter(IssueDB.user_id == criteria.owner_id)
        if criteria.container:
            query = query.filter(IssueDB.container_name == criteria.container)
        if criteria.severity:
            query = query.filter(IssueDB.severity == criteria.severity)
        if criteria.issue_type:
            query = query.filter(IssueDB.issue_type == criteria.issue_type)
        if criteria.is_resolved is not None:
            query = query.filter(IssueDB.is_resolved == criteria.is_resolved)
        if criteria.start is not None:
            query = query.filter(IssueDB.timestamp >= to_naive_utc(criteria.start))
        if criteria.end is not None:
            query = query.filter(IssueDB.timestamp < to_naive_utc(criteria.end))

        total = query.count()
        issues = (
            query.order_by(IssueDB.timestamp.desc(), IssueDB.id)
            .offset(criteria.offset)
            .limit(criteria.limit)
            .all()
        )
        return IssuePage(issues=issues, total=total)

    def containers(self, owner_id: str) -> List[str]:
        """Distinct container names among the owner's issues."""
        rows = (
            self.db.query(IssueDB.container_name)
            .filter(IssueDB.user_id == owner_id)
            .distinct()
            .order_by(IssueDB.container_name)
            .all()
        )
        return [row[0] for row in rows if row[0]]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add(self, issue: IssueDB) -> IssueDB:
        self.db.add(issue)
        self.db.commit()
        self.db.refresh(issue)
        return issue

    def set_score(
        self,
        issue_id: str,
        owner_id: str,
        score: int,
        expected_score: Optional[int] = None,
    ) -> bool:
        """
        Conditional score update matching issue id AND owner.

        With expected_score, the row only matches while its score is still
        that value (compare-and-set). Returns whether a record matched.
        """
        query = self.db.query(IssueDB).filter(
            IssueDB.id == issue_id,
            IssueDB.user_id == owner_id,
        )
        if expected_score is not None:
            query = query.filter(IssueDB.score == expected_score)
        matched = query.update({IssueDB.score: score}, synchronize_session=False)
        self.db.commit()
        return matched > 0

    def resolve(self, issue_id: str, owner_id: Optional[str] = None) -> bool:
        """Mark resolved. Already-resolved issues still match."""
        query = self.db.query(IssueDB).filter(IssueDB.id == issue_id)
        if owner_id is not None:
            query = query.filter(IssueDB.user_id == owner_id)
        matched = query.update({IssueDB.is_resolved: True}, synchronize_session=False)
        self.db.commit()
        return matched > 0

    def delete_by_container(self, container: str, owner_id: Optional[str] = None) -> int:
        """Bulk delete every issue of a container. Returns the deleted count."""
        query = self.db.query(IssueDB).filter(IssueDB.container_name == container)
        if owner_id is not None:
            query = query.filter(IssueDB.user_id == owner_id)
        deleted = query.delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"Deleted {deleted} issues from container {container!r}")
        return deleted
