# backend/tutorhub/repositories/course_repository.py
"""Course Repository for the TutorHub platform."""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.course import Course
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CourseRepository(BaseRepository[Course]):
    """Repository for courses and their weekly schedules."""

    def __init__(self, db: Session):
        super().__init__(db, Course)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Course.tutor),
            selectinload(Course.students),
            selectinload(Course.schedules),
        )

    def get_active_courses(self) -> List[Course]:
        """
        Active courses with tutor, students and schedule slots loaded.

        Ordered by id so generator runs visit courses deterministically.
        """
        try:
            query = self.db.query(Course).filter(Course.is_active.is_(True)).order_by(Course.id)
            return self._apply_eager_loading(query).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting active courses: {str(e)}")
            raise RepositoryException(f"Failed to get active courses: {str(e)}")
