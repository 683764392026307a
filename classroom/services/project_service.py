"""Project operations guarded by enrollment history."""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.database import unit_of_work
from classroom.core.errors import ConflictError
from classroom.core.security import Actor
from classroom.models import Project
from classroom.services.audit_service import log_audit
from classroom.services.directories import CourseDirectory, ProjectDirectory
from classroom.services.enrollment_service import require_staff
from classroom.services.enrollment_store import EnrollmentStore

logger = logging.getLogger(__name__)

HAS_MEMBERS = "has_members"


class ProjectService:
    """Deleting or moving a project is refused while any enrollment references it.

    Members removed from the project still count, so their history is
    never orphaned.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EnrollmentStore(db)
        self.projects = ProjectDirectory(db)
        self.courses = CourseDirectory(db)

    async def member_counts(self, project_id: int) -> Dict[str, int]:
        """Active members and all members (removed included)."""
        await self.projects.get(project_id)
        return {
            "active": await self.store.count_active_by_project(project_id),
            "total": await self.store.count_all_by_project(project_id),
        }

    async def delete_project(self, project_id: int, *, actor: Optional[Actor] = None) -> None:
        """Soft delete a project without members."""
        require_staff(actor, "delete projects")

        async with unit_of_work(self.db, "delete_project"):
            project = await self.projects.get(project_id)

            if await self.store.count_all_by_project(project_id) > 0:
                raise ConflictError(
                    "Cannot delete project with members (including removed). Remove all members first.",
                    code=HAS_MEMBERS,
                )

            project.deleted_at = datetime.now(timezone.utc)

            await log_audit(
                self.db,
                action_type="DELETE_PROJECT",
                entity_type="project",
                entity_id=project.id,
                description=f"Deleted project {project.project_code}",
                actor=actor,
            )

        logger.info(f"Project {project_id} deleted")

    async def change_course(
        self,
        project_id: int,
        course_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> Project:
        """Move a project to another course. Only allowed while it has no members."""
        require_staff(actor, "move projects between courses")

        async with unit_of_work(self.db, "change_course"):
            project = await self.projects.get(project_id)
            if project.course_id == course_id:
                return project

            course = await self.courses.get(course_id)

            if await self.store.count_all_by_project(project_id) > 0:
                raise ConflictError(
                    "Cannot change course when project has members (including removed). "
                    "Remove all members first.",
                    code=HAS_MEMBERS,
                )

            old_course_id = project.course_id
            project.course_id = course.id

            await log_audit(
                self.db,
                action_type="CHANGE_PROJECT_COURSE",
                entity_type="project",
                entity_id=project.id,
                description=f"Moved project {project.project_code} to course {course.course_code}",
                actor=actor,
                changes={"before": {"course_id": old_course_id}, "after": {"course_id": course.id}},
            )

        logger.info(f"Project {project_id} moved to course {course_id}")
        return project
