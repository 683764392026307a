"""Enrollment model."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Enrollment(Base):
    """Enrollment of a student in a course, optionally placed in one project.

    ``deleted_at`` marks the course membership inactive. ``removed_from_project_at``
    marks the project membership inactive while keeping ``project_id``,
    ``role_in_project`` and ``group_number`` as history.
    """

    __tablename__ = "course_enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id"), nullable=False, index=True
    )
    project_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("projects.id"), nullable=True, index=True
    )
    role_in_project: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # leader, member, ...
    group_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    removed_from_project_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    student: Mapped["Student"] = relationship("Student", back_populates="enrollments")
    course: Mapped["Course"] = relationship("Course", back_populates="enrollments")
    project: Mapped[Optional["Project"]] = relationship(
        "Project", back_populates="enrollments"
    )

    # One active enrollment per student and course
    __table_args__ = (
        Index(
            "uq_course_enrollments_active_student_course",
            "student_id",
            "course_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    @property
    def is_active_in_project(self) -> bool:
        return self.project_id is not None and self.removed_from_project_at is None

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, student_id={self.student_id}, "
            f"course_id={self.course_id}, project_id={self.project_id}, "
            f"deleted={self.deleted_at is not None}, "
            f"removed_from_project={self.removed_from_project_at is not None})>"
        )
