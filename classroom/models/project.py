"""Project model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom.core.database import Base


class Project(Base):
    """Project model. A project belongs to exactly one course."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    project_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    project_name: Mapped[str] = mapped_column(String(200), nullable=False)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    course: Mapped["Course"] = relationship("Course", back_populates="projects")
    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment", back_populates="project"
    )

    def __repr__(self) -> str:
        return (
            f"<Project(id={self.id}, code='{self.project_code}', "
            f"course_id={self.course_id}, deleted={self.deleted_at is not None})>"
        )
