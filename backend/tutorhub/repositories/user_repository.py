# backend/tutorhub/repositories/user_repository.py
"""User lookups used by the scheduling core."""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for user directory queries."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_id_and_role(self, user_id: str, role: RoleName) -> Optional[User]:
        """Return the user only if it holds the given role."""
        try:
            return (
                self.db.query(User)
                .filter(User.id == user_id, User.role == role.value)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {role.value} {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to get user: {str(e)}")

    def get_many_by_role(self, user_ids: Sequence[str], role: RoleName) -> List[User]:
        """Return the subset of user_ids that exist with the given role."""
        if not user_ids:
            return []
        try:
            return (
                self.db.query(User)
                .filter(User.id.in_(list(user_ids)), User.role == role.value)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {role.value} users: {str(e)}")
            raise RepositoryException(f"Failed to get users: {str(e)}")
