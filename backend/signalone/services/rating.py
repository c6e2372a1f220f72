"""
Rating Engine

Applies a user's tri-state rating to one of their issues and moves the
user's counter by the score difference.

TRANSITIONS (counter delta = new - old):

    old \\ new    -1    0    1
        -1        .   +1   +2
         0       -1    .   +1
         1       -2   -1    .

Equal scores are a no-op: neither record is written, so repeated identical
ratings are safe to retry.

The issue write is a compare-and-set on the score it was read with, so two
concurrent ratings cannot both compute a delta from the same stale score.
The counter write is a single atomic increment. The two writes are not one
transaction: if the user row vanishes between them the issue keeps its new
score and the counter is left unadjusted.
"""
import logging

from ..errors import Conflict, InvalidScore, NotFound
from ..models.db_models import VALID_SCORES
from ..models.domain import RatingOutcome
from .issues import IssueRepository
from .users import UserDirectory

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


def validate_score(score) -> int:
    """Accept only the integers -1, 0, 1 (booleans are rejected)."""
    if isinstance(score, bool) or not isinstance(score, int) or score not in VALID_SCORES:
        raise InvalidScore()
    return score


def counter_delta(current_score: int, requested_score: int) -> int:
    """Counter change for moving an issue from current_score to requested_score."""
    return validate_score(requested_score) - validate_score(current_score)


class RatingEngine:

    def __init__(self, issues: IssueRepository, users: UserDirectory, max_attempts: int = MAX_ATTEMPTS):
        self.issues = issues
        self.users = users
        self.max_attempts = max_attempts

    def rate(self, user_id: str, issue_id: str, score) -> RatingOutcome:
        """
        Rate issue_id as user_id.

        Raises:
            InvalidScore: score not in {-1, 0, 1}; nothing is read or written
            NotFound: no issue with that id owned by the user, or the user
                      record is gone when the counter is adjusted
            Conflict: the score kept changing underneath us
        """
        requested = validate_score(score)

        for attempt in range(1, self.max_attempts + 1):
            issue = self.issues.get(issue_id, owner_id=user_id)
            if issue is None:
                raise NotFound("Issue cannot be found")

            current = issue.score
            if current == requested:
                logger.debug(f"Issue {issue_id} already rated {requested}")
                return RatingOutcome(issue_id=issue_id, previous_score=current, score=requested, counter_delta=0)

            if self.issues.set_score(issue_id, user_id, requested, expected_score=current):
                break
            logger.info(f"Rating of issue {issue_id} lost a concurrent update (attempt {attempt})")
        else:
            raise Conflict()

        delta = counter_delta(current, requested)
        if not self.users.adjust_counter(user_id, delta):
            # Issue keeps the new score; no compensating rollback
            logger.error(f"Issue {issue_id} rated but user {user_id} not found for counter update")
            raise NotFound("User cannot be found")

        logger.info(f"User {user_id} rated issue {issue_id}: {current} -> {requested} (counter {delta:+d})")
        return RatingOutcome(issue_id=issue_id, previous_score=current, score=requested, counter_delta=delta)
