"""Database models for the classroom enrollment service."""

from classroom.models.audit_log import AuditLog
from classroom.models.course import Course
from classroom.models.enrollment import Enrollment
from classroom.models.project import Project
from classroom.models.student import Student

__all__ = [
    "Student",
    "Course",
    "Project",
    "Enrollment",
    "AuditLog",
]
