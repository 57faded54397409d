from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from users_api.core.errors import ConstraintViolationError, UserNotFoundError
from users_api.models.user import User

logger = logging.getLogger(__name__)

# ids beyond a signed 64-bit integer cannot be stored, so they never resolve
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1


class UserRepository:
    """Persistence gateway for users backed by a SQLModel session.

    Records handed out by ``find``/``find_all`` stay attached to the session,
    so ``update`` commits whatever was changed on them in memory.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, user: User) -> None:
        """Insert ``user`` and commit; the database assigns its id.

        Raises:
            ConstraintViolationError: the email is already stored.
        """
        self._session.add(user)
        self._commit()
        self._session.refresh(user)
        logger.info("Created user id=%s", user.id)

    def update(self) -> None:
        """Commit pending changes of previously fetched users, if any."""
        if not self._session.dirty:
            return
        self._commit()
        logger.info("Committed pending user changes")

    def delete(self, user: User) -> None:
        """Remove ``user`` permanently.

        Raises:
            UserNotFoundError: the row no longer exists.
        """
        user_id = user.id
        if user_id is None or not self._exists(user_id):
            raise UserNotFoundError(user_id)
        self._session.delete(user)
        self._session.commit()
        logger.info("Deleted user id=%s", user_id)

    def find(self, user_id: int) -> User | None:
        if not MIN_ID <= user_id <= MAX_ID:
            return None
        return self._session.get(User, user_id)

    def find_all(self) -> list[User]:
        return list(self._session.exec(select(User)).all())

    def refresh(self, user: User) -> None:
        self._session.refresh(user)

    def discard(self) -> None:
        """Drop in-memory changes that were not committed."""
        self._session.rollback()

    def _exists(self, user_id: int) -> bool:
        row = self._session.exec(select(User.id).where(User.id == user_id)).first()
        return row is not None

    def _commit(self) -> None:
        try:
            self._session.commit()
        except IntegrityError as err:
            self._session.rollback()
            logger.warning("Constraint violation on user write: %s", err.orig)
            raise ConstraintViolationError(str(err.orig)) from err
