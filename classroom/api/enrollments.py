"""Enrollment API endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from classroom.api.dependencies import CurrentActor, DbSession, StaffActor
from classroom.models import Enrollment
from classroom.services.enrollment_service import EnrollmentLifecycleService

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


class EnrollRequest(BaseModel):
    """Enroll a student in a course."""

    student_id: int
    course_id: int


class AssignProjectRequest(BaseModel):
    """Assign an enrollment to a project."""

    project_id: int
    role_in_project: Optional[str] = Field(default=None, max_length=50)  # leader, member, ...
    group_number: Optional[int] = None


class UpdateEnrollmentRequest(BaseModel):
    """Partial update of a project assignment. Omitted fields stay unchanged."""

    project_id: Optional[int] = None
    role_in_project: Optional[str] = Field(default=None, max_length=50)
    group_number: Optional[int] = None


class ResolveResponse(BaseModel):
    """Active enrollment of a student in a course."""

    enrollment_id: int


class EnrollmentView(BaseModel):
    """Enrollment response model."""

    enrollment_id: int
    student_id: Optional[int] = None
    student_code: Optional[str] = None
    student_name: Optional[str] = None
    course_id: Optional[int] = None
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    project_id: Optional[int] = None
    project_code: Optional[str] = None
    project_name: Optional[str] = None
    role_in_project: Optional[str] = None
    group_number: Optional[int] = None
    enrolled_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    removed_from_project_at: Optional[datetime] = None

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment) -> "EnrollmentView":
        student = enrollment.student
        course = enrollment.course
        project = enrollment.project
        return cls(
            enrollment_id=enrollment.id,
            student_id=enrollment.student_id,
            student_code=student.student_code if student else None,
            student_name=student.full_name if student else None,
            course_id=enrollment.course_id,
            course_code=course.course_code if course else None,
            course_name=course.course_name if course else None,
            project_id=enrollment.project_id,
            project_code=project.project_code if project else None,
            project_name=project.project_name if project else None,
            role_in_project=enrollment.role_in_project,
            group_number=enrollment.group_number,
            enrolled_at=enrollment.enrolled_at,
            deleted_at=enrollment.deleted_at,
            removed_from_project_at=enrollment.removed_from_project_at,
        )


def _views(enrollments: List[Enrollment]) -> List[EnrollmentView]:
    return [EnrollmentView.from_enrollment(e) for e in enrollments]


@router.post("", response_model=EnrollmentView, status_code=status.HTTP_201_CREATED)
async def enroll_student(
    request: EnrollRequest,
    db: DbSession,
    actor: StaffActor,
) -> EnrollmentView:
    """Enroll a student in a course."""
    service = EnrollmentLifecycleService(db)
    enrollment = await service.enroll(request.student_id, request.course_id, actor=actor)
    return EnrollmentView.from_enrollment(enrollment)


@router.get("", response_model=List[EnrollmentView])
async def list_enrollments(
    db: DbSession,
    actor: CurrentActor,
    course_id: Optional[int] = None,
    student_id: Optional[int] = None,
    project_id: Optional[int] = None,
) -> List[EnrollmentView]:
    """List active enrollments of a course, of a student, or current members of a project."""
    service = EnrollmentLifecycleService(db)

    if course_id is not None:
        enrollments = await service.list_by_course(course_id)
    elif student_id is not None:
        enrollments = await service.list_by_student(student_id)
    elif project_id is not None:
        enrollments = await service.list_active_members(project_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide course_id, student_id, or project_id",
        )

    return _views(enrollments)


@router.get("/resolve", response_model=ResolveResponse)
async def resolve_enrollment(
    student_id: int,
    course_id: int,
    db: DbSession,
    actor: CurrentActor,
) -> ResolveResponse:
    """Find the active enrollment of a student in a course."""
    service = EnrollmentLifecycleService(db)
    enrollment_id = await service.find_active_enrollment(student_id, course_id)
    return ResolveResponse(enrollment_id=enrollment_id)


@router.get("/projects/{project_id}/history", response_model=List[EnrollmentView])
async def get_removed_history(
    project_id: int,
    db: DbSession,
    actor: StaffActor,
) -> List[EnrollmentView]:
    """Students removed from a project, most recent removal first."""
    service = EnrollmentLifecycleService(db)
    return _views(await service.list_removed_history(project_id))


@router.get("/{enrollment_id}", response_model=EnrollmentView)
async def get_enrollment(
    enrollment_id: int,
    db: DbSession,
    actor: CurrentActor,
) -> EnrollmentView:
    """Get enrollment by ID."""
    service = EnrollmentLifecycleService(db)
    return EnrollmentView.from_enrollment(await service.get_by_id(enrollment_id))


@router.put("/{enrollment_id}/project", response_model=EnrollmentView)
async def assign_project(
    enrollment_id: int,
    request: AssignProjectRequest,
    db: DbSession,
    actor: StaffActor,
) -> EnrollmentView:
    """Assign an enrolled student to a project of the same course."""
    service = EnrollmentLifecycleService(db)
    enrollment = await service.assign_to_project(
        enrollment_id,
        request.project_id,
        request.role_in_project,
        request.group_number,
        actor=actor,
    )
    return EnrollmentView.from_enrollment(enrollment)


@router.put("/{enrollment_id}", response_model=EnrollmentView)
async def update_enrollment(
    enrollment_id: int,
    request: UpdateEnrollmentRequest,
    db: DbSession,
    actor: StaffActor,
) -> EnrollmentView:
    """Change project, role or group number."""
    service = EnrollmentLifecycleService(db)
    enrollment = await service.update_assignment(
        enrollment_id,
        project_id=request.project_id,
        role_in_project=request.role_in_project,
        group_number=request.group_number,
        actor=actor,
    )
    return EnrollmentView.from_enrollment(enrollment)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(
    enrollment_id: int,
    db: DbSession,
    actor: StaffActor,
    permanent: bool = False,
) -> None:
    """Remove a student from the course (soft delete), or purge with ``permanent=true``."""
    service = EnrollmentLifecycleService(db)
    if permanent:
        await service.permanently_delete(enrollment_id, actor=actor)
    else:
        await service.remove_from_course(enrollment_id, actor=actor)


@router.post("/{enrollment_id}/restore", response_model=EnrollmentView)
async def restore_enrollment(
    enrollment_id: int,
    db: DbSession,
    actor: StaffActor,
) -> EnrollmentView:
    """Restore a soft-deleted enrollment."""
    service = EnrollmentLifecycleService(db)
    return EnrollmentView.from_enrollment(
        await service.restore_enrollment(enrollment_id, actor=actor)
    )


@router.post("/{enrollment_id}/remove-from-project", response_model=EnrollmentView)
async def remove_from_project(
    enrollment_id: int,
    db: DbSession,
    actor: StaffActor,
) -> EnrollmentView:
    """Remove a student from the project but keep the history."""
    service = EnrollmentLifecycleService(db)
    return EnrollmentView.from_enrollment(
        await service.remove_from_project(enrollment_id, actor=actor)
    )


@router.post("/{enrollment_id}/restore-to-project", response_model=EnrollmentView)
async def restore_to_project(
    enrollment_id: int,
    db: DbSession,
    actor: StaffActor,
) -> EnrollmentView:
    """Bring a removed student back into the project."""
    service = EnrollmentLifecycleService(db)
    return EnrollmentView.from_enrollment(
        await service.restore_to_project(enrollment_id, actor=actor)
    )
