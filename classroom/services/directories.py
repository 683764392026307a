"""Lookups of the records an enrollment points at."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.errors import NotFoundError
from classroom.models import Course, Project, Student


class StudentDirectory:
    """Existence checks and lookups for students."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, student_id: int) -> bool:
        result = await self.db.execute(select(Student.id).where(Student.id == student_id))
        return result.scalar_one_or_none() is not None

    async def get(self, student_id: int) -> Student:
        student = await self.db.get(Student, student_id)
        if not student:
            raise NotFoundError("student", student_id)
        return student


class CourseDirectory:
    """Existence checks and lookups for courses."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, course_id: int) -> bool:
        result = await self.db.execute(select(Course.id).where(Course.id == course_id))
        return result.scalar_one_or_none() is not None

    async def get(self, course_id: int) -> Course:
        course = await self.db.get(Course, course_id)
        if not course:
            raise NotFoundError("course", course_id)
        return course


class ProjectDirectory:
    """Existence checks and lookups for projects.

    Soft-deleted projects are treated as missing.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, project_id: int) -> bool:
        result = await self.db.execute(
            select(Project.id)
            .where(Project.id == project_id)
            .where(Project.deleted_at.is_(None))
        )
        return result.scalar_one_or_none() is not None

    async def get(self, project_id: int) -> Project:
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .where(Project.deleted_at.is_(None))
        )
        project = result.scalar_one_or_none()
        if not project:
            raise NotFoundError("project", project_id)
        return project
