"""Project API endpoints that depend on enrollment history."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from classroom.api.dependencies import CurrentActor, DbSession, StaffActor
from classroom.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


class MemberCountsResponse(BaseModel):
    """Project member counts."""

    project_id: int
    active: int
    total: int


class ChangeCourseRequest(BaseModel):
    """Move a project to another course."""

    course_id: int


class ProjectResponse(BaseModel):
    """Project response model."""

    id: int
    project_code: str
    project_name: str
    course_id: int

    class Config:
        from_attributes = True


@router.get("/{project_id}/member-counts", response_model=MemberCountsResponse)
async def get_member_counts(
    project_id: int,
    db: DbSession,
    actor: CurrentActor,
) -> MemberCountsResponse:
    """Active members and all members, removed ones included."""
    counts = await ProjectService(db).member_counts(project_id)
    return MemberCountsResponse(project_id=project_id, **counts)


@router.put("/{project_id}/course", response_model=ProjectResponse)
async def change_project_course(
    project_id: int,
    request: ChangeCourseRequest,
    db: DbSession,
    actor: StaffActor,
) -> ProjectResponse:
    """Move a project without members to another course."""
    project = await ProjectService(db).change_course(project_id, request.course_id, actor=actor)
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    db: DbSession,
    actor: StaffActor,
) -> None:
    """Delete a project without members."""
    await ProjectService(db).delete_project(project_id, actor=actor)
