"""Service for the enrollment lifecycle and project assignment."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.database import unit_of_work
from classroom.core.errors import ConflictError, ForbiddenError, NotFoundError
from classroom.core.security import Actor
from classroom.models import Enrollment
from classroom.services.audit_service import log_audit
from classroom.services.directories import CourseDirectory, ProjectDirectory, StudentDirectory
from classroom.services.enrollment_store import EnrollmentStore

logger = logging.getLogger(__name__)

ALREADY_ENROLLED = "Student is already enrolled in this course"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def require_staff(actor: Optional[Actor], operation: str) -> None:
    """Reject writes by students. ``actor=None`` is a trusted system call."""
    if actor is not None and not actor.is_staff:
        logger.warning(f"{actor} is not allowed to {operation}")
        raise ForbiddenError()


class EnrollmentLifecycleService:
    """
    Owns every state transition of an enrollment.

    Two independent axes per enrollment:

    - course membership: ACTIVE <-> SOFT_DELETED, then PURGED (hard delete)
    - project membership: UNASSIGNED -> ASSIGNED <-> REMOVED_FROM_PROJECT

    Each write validates first, then mutates, writes an audit row and
    commits once. Any failure rolls the whole session back.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EnrollmentStore(db)
        self.students = StudentDirectory(db)
        self.courses = CourseDirectory(db)
        self.projects = ProjectDirectory(db)

    async def _flush_unique(self) -> None:
        """Flush pending changes, reporting the active-enrollment index as a conflict."""
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ConflictError(ALREADY_ENROLLED, code="already_enrolled") from e

    async def _get(self, enrollment_id: int, for_update: bool = False) -> Enrollment:
        enrollment = await self.store.get(enrollment_id, for_update=for_update)
        if not enrollment:
            raise NotFoundError("enrollment", enrollment_id)
        return enrollment

    async def _reload(self, enrollment_id: int) -> Enrollment:
        # Fresh copy with student, course and project loaded
        return await self._get(enrollment_id)

    def _snapshot(self, enrollment: Enrollment) -> Dict[str, Any]:
        return {
            "project_id": enrollment.project_id,
            "role_in_project": enrollment.role_in_project,
            "group_number": enrollment.group_number,
            "deleted_at": _isoformat(enrollment.deleted_at),
            "removed_from_project_at": _isoformat(enrollment.removed_from_project_at),
        }

    # ------------------------------------------------------------------
    # Course membership
    # ------------------------------------------------------------------

    async def enroll(
        self,
        student_id: int,
        course_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> Enrollment:
        """Enroll a student in a course."""
        require_staff(actor, "enroll students")

        async with unit_of_work(self.db, "enroll"):
            student = await self.students.get(student_id)
            course = await self.courses.get(course_id)

            if await self.store.exists_active(student_id, course_id):
                raise ConflictError(ALREADY_ENROLLED, code="already_enrolled")

            enrollment = Enrollment(
                student=student,
                course=course,
                project=None,
                enrolled_at=_utcnow(),
            )
            try:
                await self.store.add(enrollment)
            except IntegrityError as e:
                raise ConflictError(ALREADY_ENROLLED, code="already_enrolled") from e

            await log_audit(
                self.db,
                action_type="ENROLL",
                entity_type="enrollment",
                entity_id=enrollment.id,
                description=f"Enrolled student {student.student_code} in course {course.course_code}",
                actor=actor,
                changes={"after": {"student_id": student_id, "course_id": course_id}},
            )

        logger.info(f"Enrolled student {student_id} in course {course_id} (enrollment {enrollment.id})")
        return await self._reload(enrollment.id)

    async def find_active_enrollment(self, student_id: int, course_id: int) -> int:
        """Resolve the active enrollment id of a student in a course."""
        enrollment = await self.store.find_active(student_id, course_id)
        if not enrollment:
            raise NotFoundError(
                "enrollment",
                None,
                message=f"Enrollment not found for student {student_id} in course {course_id}",
            )
        return enrollment.id

    async def remove_from_course(
        self,
        enrollment_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> None:
        """Soft delete: the enrollment stays readable and restorable."""
        require_staff(actor, "remove students from courses")

        async with unit_of_work(self.db, "remove_from_course"):
            enrollment = await self._get(enrollment_id, for_update=True)

            if not enrollment.is_active:
                raise ConflictError(
                    "Enrollment is already removed from the course",
                    code="already_deleted",
                )

            before = self._snapshot(enrollment)
            enrollment.deleted_at = _utcnow()

            await log_audit(
                self.db,
                action_type="REMOVE_FROM_COURSE",
                entity_type="enrollment",
                entity_id=enrollment.id,
                description=(
                    f"Removed student {enrollment.student_id} from course {enrollment.course_id}"
                ),
                actor=actor,
                changes={"before": before, "after": self._snapshot(enrollment)},
            )

        logger.info(f"Enrollment {enrollment_id} removed from course")

    async def restore_enrollment(
        self,
        enrollment_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> Enrollment:
        """Undo a soft delete."""
        require_staff(actor, "restore enrollments")

        async with unit_of_work(self.db, "restore_enrollment"):
            enrollment = await self._get(enrollment_id, for_update=True)

            if enrollment.is_active:
                raise ConflictError("Enrollment is not deleted", code="not_deleted")

            # The project may have been moved or deleted while the enrollment was out
            project = enrollment.project
            if enrollment.project_id is not None and (
                project is None
                or project.deleted_at is not None
                or project.course_id != enrollment.course_id
            ):
                raise ConflictError(
                    "Project of this enrollment was moved to another course or deleted",
                    code="wrong_course",
                )

            # The student may have been enrolled again in the meantime
            if await self.store.exists_active(enrollment.student_id, enrollment.course_id):
                raise ConflictError(ALREADY_ENROLLED, code="already_enrolled")

            before = self._snapshot(enrollment)
            enrollment.deleted_at = None
            await self._flush_unique()

            await log_audit(
                self.db,
                action_type="RESTORE_ENROLLMENT",
                entity_type="enrollment",
                entity_id=enrollment.id,
                description=(
                    f"Restored student {enrollment.student_id} to course {enrollment.course_id}"
                ),
                actor=actor,
                changes={"before": before, "after": self._snapshot(enrollment)},
            )

        logger.info(f"Enrollment {enrollment_id} restored")
        return await self._reload(enrollment_id)

    async def permanently_delete(
        self,
        enrollment_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> None:
        """Hard delete. Irreversible; callers protect any history that depends on the row."""
        require_staff(actor, "delete enrollments")

        async with unit_of_work(self.db, "permanently_delete"):
            enrollment = await self._get(enrollment_id, for_update=True)
            before = self._snapshot(enrollment)
            before.update(student_id=enrollment.student_id, course_id=enrollment.course_id)

            await self.store.delete(enrollment)

            await log_audit(
                self.db,
                action_type="PERMANENT_DELETE",
                entity_type="enrollment",
                entity_id=enrollment_id,
                description=f"Permanently deleted enrollment {enrollment_id}",
                actor=actor,
                changes={"before": before},
            )

        logger.info(f"Enrollment {enrollment_id} permanently deleted")

    # ------------------------------------------------------------------
    # Project membership
    # ------------------------------------------------------------------

    async def assign_to_project(
        self,
        enrollment_id: int,
        project_id: int,
        role_in_project: Optional[str] = None,
        group_number: Optional[int] = None,
        *,
        actor: Optional[Actor] = None,
    ) -> Enrollment:
        """
        Place an enrolled student in a project of the same course.

        Only allowed while the enrollment has no project. To address the
        enrollment by student and course, resolve it first with
        ``find_active_enrollment``.
        """
        require_staff(actor, "assign students to projects")

        async with unit_of_work(self.db, "assign_to_project"):
            project = await self.projects.get(project_id)
            enrollment = await self._get(enrollment_id, for_update=True)

            if enrollment.course_id != project.course_id:
                raise ConflictError(
                    "Enrollment does not belong to the same course as the project",
                    code="wrong_course",
                )

            if enrollment.project_id is not None:
                current = enrollment.project.project_name if enrollment.project else enrollment.project_id
                raise ConflictError(
                    f"Student already has a project in this course. Current project: {current}",
                    code="already_has_project",
                )

            before = self._snapshot(enrollment)
            enrollment.project = project
            enrollment.role_in_project = role_in_project
            enrollment.group_number = group_number
            await self.db.flush()

            await log_audit(
                self.db,
                action_type="ASSIGN_PROJECT",
                entity_type="enrollment",
                entity_id=enrollment.id,
                description=(
                    f"Assigned student {enrollment.student_id} to project {project.project_code}"
                ),
                actor=actor,
                changes={"before": before, "after": self._snapshot(enrollment)},
            )

        logger.info(f"Enrollment {enrollment_id} assigned to project {project_id}")
        return await self._reload(enrollment_id)

    async def update_assignment(
        self,
        enrollment_id: int,
        project_id: Optional[int] = None,
        role_in_project: Optional[str] = None,
        group_number: Optional[int] = None,
        *,
        actor: Optional[Actor] = None,
    ) -> Enrollment:
        """
        Partially update project, role or group number.

        ``None`` leaves a field unchanged. A new project must belong to the
        enrollment's course; no single-project check is made here.
        """
        require_staff(actor, "update enrollments")

        async with unit_of_work(self.db, "update_assignment"):
            enrollment = await self._get(enrollment_id, for_update=True)
            before = self._snapshot(enrollment)

            if project_id is not None:
                project = await self.projects.get(project_id)
                if project.course_id != enrollment.course_id:
                    raise ConflictError(
                        "Project does not belong to this course",
                        code="wrong_course",
                    )
                enrollment.project = project

            if role_in_project is not None:
                enrollment.role_in_project = role_in_project

            if group_number is not None:
                enrollment.group_number = group_number

            await self.db.flush()

            await log_audit(
                self.db,
                action_type="UPDATE_ASSIGNMENT",
                entity_type="enrollment",
                entity_id=enrollment.id,
                description=f"Updated project assignment of enrollment {enrollment.id}",
                actor=actor,
                changes={"before": before, "after": self._snapshot(enrollment)},
            )

        logger.info(f"Enrollment {enrollment_id} assignment updated")
        return await self._reload(enrollment_id)

    async def remove_from_project(
        self,
        enrollment_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> Enrollment:
        """Take the student out of the project, keeping project, role and group as history."""
        require_staff(actor, "remove students from projects")

        async with unit_of_work(self.db, "remove_from_project"):
            enrollment = await self._get(enrollment_id, for_update=True)

            if enrollment.project_id is None:
                raise ConflictError(
                    "Student is not assigned to any project in this course",
                    code="no_project",
                )

            if not enrollment.is_active_in_project:
                raise ConflictError(
                    "Student has already been removed from the project",
                    code="already_removed",
                )

            before = self._snapshot(enrollment)
            enrollment.removed_from_project_at = _utcnow()

            await log_audit(
                self.db,
                action_type="REMOVE_FROM_PROJECT",
                entity_type="enrollment",
                entity_id=enrollment.id,
                description=(
                    f"Removed student {enrollment.student_id} from project {enrollment.project_id}"
                ),
                actor=actor,
                changes={"before": before, "after": self._snapshot(enrollment)},
            )

        logger.info(f"Enrollment {enrollment_id} removed from project")
        return await self._reload(enrollment_id)

    async def restore_to_project(
        self,
        enrollment_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> Enrollment:
        """Bring a removed student back into the same project."""
        require_staff(actor, "restore students to projects")

        async with unit_of_work(self.db, "restore_to_project"):
            enrollment = await self._get(enrollment_id, for_update=True)

            if enrollment.removed_from_project_at is None:
                raise ConflictError(
                    "Student is already active in the project",
                    code="already_active",
                )

            before = self._snapshot(enrollment)
            enrollment.removed_from_project_at = None

            await log_audit(
                self.db,
                action_type="RESTORE_TO_PROJECT",
                entity_type="enrollment",
                entity_id=enrollment.id,
                description=(
                    f"Restored student {enrollment.student_id} to project {enrollment.project_id}"
                ),
                actor=actor,
                changes={"before": before, "after": self._snapshot(enrollment)},
            )

        logger.info(f"Enrollment {enrollment_id} restored to project")
        return await self._reload(enrollment_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_by_id(self, enrollment_id: int) -> Enrollment:
        """Get enrollment by ID, soft-deleted ones included."""
        return await self._get(enrollment_id)

    async def list_by_course(self, course_id: int) -> List[Enrollment]:
        if not await self.courses.exists(course_id):
            raise NotFoundError("course", course_id)
        return await self.store.list_active_by_course(course_id)

    async def list_by_student(self, student_id: int) -> List[Enrollment]:
        if not await self.students.exists(student_id):
            raise NotFoundError("student", student_id)
        return await self.store.list_active_by_student(student_id)

    async def list_active_members(self, project_id: int) -> List[Enrollment]:
        if not await self.projects.exists(project_id):
            raise NotFoundError("project", project_id)
        return await self.store.list_active_by_project(project_id)

    async def count_active_members(self, project_id: int) -> int:
        if not await self.projects.exists(project_id):
            raise NotFoundError("project", project_id)
        return await self.store.count_active_by_project(project_id)

    async def count_all_members(self, project_id: int) -> int:
        """Members of the project including those removed from it."""
        if not await self.projects.exists(project_id):
            raise NotFoundError("project", project_id)
        return await self.store.count_all_by_project(project_id)

    async def list_removed_history(self, project_id: int) -> List[Enrollment]:
        if not await self.projects.exists(project_id):
            raise NotFoundError("project", project_id)
        return await self.store.list_removed_by_project(project_id)
