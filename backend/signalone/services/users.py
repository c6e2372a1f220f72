"""
User Directory

Find-or-create of local users keyed by (provider, provider user id), plus
the counter adjustment used by the rating engine.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.db_models import UserDB
from ..models.domain import ProviderIdentity

logger = logging.getLogger(__name__)


class UserDirectory:
    """Repository for UserDB records."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[UserDB]:
        return self.db.query(UserDB).filter(UserDB.id == user_id).first()

    def find_by_identity(self, identity: ProviderIdentity) -> Optional[UserDB]:
        return self.db.query(UserDB).filter(
            UserDB.provider == identity.provider,
            UserDB.provider_user_id == identity.provider_user_id,
        ).first()

    def find_or_create(self, identity: ProviderIdentity) -> UserDB:
        """
        Return the user for a provider identity, creating it on first login.

        New users start non-pro with a zero counter and no agent token.
        A concurrent first login loses on the unique constraint and reads
        the winner's row, so one identity never yields two users.
        """
        user = self.find_by_identity(identity)
        if user is not None:
            return user

        user = UserDB(
            provider=identity.provider,
            provider_user_id=identity.provider_user_id,
            user_name=identity.user_name,
            is_pro=False,
            counter=0,
            agent_bearer_token="",
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            user = self.find_by_identity(identity)
            if user is None:
                raise
            return user

        self.db.refresh(user)
        logger.info(f"Created user {user.id} for {user.external_id}")
        return user

    def adjust_counter(self, user_id: str, delta: int) -> bool:
        """
        Atomically add delta to the user's counter.

        Returns False when no user matched.
        """
        matched = self.db.query(UserDB).filter(UserDB.id == user_id).update(
            {UserDB.counter: UserDB.counter + delta},
            synchronize_session=False,
        )
        self.db.commit()
        return matched > 0
