"""Persistence for enrollment rows."""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from classroom.models import Enrollment


class EnrollmentStore:
    """Finders and writers over the ``course_enrollments`` table.

    Every finder eager-loads student, course and project so callers can
    render an enrollment without further IO. "Active" finders skip rows
    with ``deleted_at`` set.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _query(self):
        return select(Enrollment).options(
            selectinload(Enrollment.student),
            selectinload(Enrollment.course),
            selectinload(Enrollment.project),
        )

    async def get(self, enrollment_id: int, for_update: bool = False) -> Optional[Enrollment]:
        """Find by id, including soft-deleted rows."""
        query = self._query().where(Enrollment.id == enrollment_id)
        if for_update:
            query = query.with_for_update()
        # Refresh an identity-map copy that may be stale after a commit
        query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_active(self, student_id: int, course_id: int) -> Optional[Enrollment]:
        result = await self.db.execute(
            self._query()
            .where(Enrollment.student_id == student_id)
            .where(Enrollment.course_id == course_id)
            .where(Enrollment.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def exists_active(self, student_id: int, course_id: int) -> bool:
        result = await self.db.execute(
            select(func.count(Enrollment.id))
            .where(Enrollment.student_id == student_id)
            .where(Enrollment.course_id == course_id)
            .where(Enrollment.deleted_at.is_(None))
        )
        return (result.scalar() or 0) > 0

    async def list_active_by_course(self, course_id: int) -> List[Enrollment]:
        result = await self.db.execute(
            self._query()
            .where(Enrollment.course_id == course_id)
            .where(Enrollment.deleted_at.is_(None))
            .order_by(Enrollment.id)
        )
        return list(result.scalars().all())

    async def list_active_by_student(self, student_id: int) -> List[Enrollment]:
        result = await self.db.execute(
            self._query()
            .where(Enrollment.student_id == student_id)
            .where(Enrollment.deleted_at.is_(None))
            .order_by(Enrollment.id)
        )
        return list(result.scalars().all())

    async def list_active_by_project(self, project_id: int) -> List[Enrollment]:
        """Current project members: not removed from the project, not deleted."""
        result = await self.db.execute(
            self._query()
            .where(Enrollment.project_id == project_id)
            .where(Enrollment.deleted_at.is_(None))
            .where(Enrollment.removed_from_project_at.is_(None))
            .order_by(Enrollment.id)
        )
        return list(result.scalars().all())

    async def list_removed_by_project(self, project_id: int) -> List[Enrollment]:
        """Removed-but-retained members, most recent removal first."""
        result = await self.db.execute(
            self._query()
            .where(Enrollment.project_id == project_id)
            .where(Enrollment.deleted_at.is_(None))
            .where(Enrollment.removed_from_project_at.is_not(None))
            .order_by(Enrollment.removed_from_project_at.desc(), Enrollment.id.desc())
        )
        return list(result.scalars().all())

    async def count_active_by_project(self, project_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Enrollment.id))
            .where(Enrollment.project_id == project_id)
            .where(Enrollment.deleted_at.is_(None))
            .where(Enrollment.removed_from_project_at.is_(None))
        )
        return result.scalar() or 0

    async def count_all_by_project(self, project_id: int) -> int:
        """Members including those removed from the project."""
        result = await self.db.execute(
            select(func.count(Enrollment.id))
            .where(Enrollment.project_id == project_id)
            .where(Enrollment.deleted_at.is_(None))
        )
        return result.scalar() or 0

    async def add(self, enrollment: Enrollment) -> Enrollment:
        """Add a new row and flush so it gets an id."""
        self.db.add(enrollment)
        await self.db.flush()
        return enrollment

    async def delete(self, enrollment: Enrollment) -> None:
        await self.db.delete(enrollment)
        await self.db.flush()
