"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database with the full schema
and a small school seeded into it:

- students 5 and 6
- courses 10 and 11
- projects 7 and 8 (course 10), project 9 (course 11)
"""

import os

# Must be set before classroom settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("ENV", "test")

from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from classroom.core.database import Base
from classroom.core.security import Actor, Role
from classroom.models import Course, Project, Student
from classroom.services.enrollment_service import EnrollmentLifecycleService


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create an in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for tests."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def school(db_session) -> SimpleNamespace:
    """Seed students, courses and projects. Returns their ids only."""
    db_session.add_all([
        Student(id=5, student_code="SE170005", first_name="Linh", last_name="Tran"),
        Student(id=6, student_code="SE170006", first_name="Minh", last_name="Do"),
        Course(id=10, course_code="SWP391", course_name="Software Development Project"),
        Course(id=11, course_code="PRN211", course_name="Cross-Platform Programming"),
    ])
    await db_session.flush()
    db_session.add_all([
        Project(id=7, project_code="SWP391-G1", project_name="Library Management", course_id=10),
        Project(id=8, project_code="SWP391-G2", project_name="Clinic Booking", course_id=10),
        Project(id=9, project_code="PRN211-G1", project_name="Inventory Tracker", course_id=11),
    ])
    await db_session.commit()

    return SimpleNamespace(
        student_id=5,
        other_student_id=6,
        course_id=10,
        other_course_id=11,
        project_id=7,
        sibling_project_id=8,
        foreign_project_id=9,
    )


@pytest.fixture
def service(db_session) -> EnrollmentLifecycleService:
    """Enrollment lifecycle service bound to the test session."""
    return EnrollmentLifecycleService(db_session)


@pytest.fixture
def lecturer() -> Actor:
    """A staff actor."""
    return Actor(user_id="lecturer@example.edu", role=Role.LECTURER)


@pytest.fixture
def student_actor() -> Actor:
    """A student actor."""
    return Actor(user_id="se170005@example.edu", role=Role.STUDENT, student_id=5)
