"""Audit log API endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from classroom.api.dependencies import DbSession, StaffActor
from classroom.services.audit_service import get_audit_logs

router = APIRouter(prefix="/audit", tags=["audit"])


class AuditLogResponse(BaseModel):
    """Response model for audit log."""
    id: int
    timestamp: datetime
    actor_role: str
    actor_id: Optional[str] = None
    action_type: str
    entity_type: str
    entity_id: Optional[int] = None
    description: str
    changes_json: Optional[dict] = None

    class Config:
        from_attributes = True


class AuditLogsListResponse(BaseModel):
    """Response model for audit logs list with pagination."""
    logs: List[AuditLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


@router.get("/logs", response_model=AuditLogsListResponse)
async def list_audit_logs(
    db: DbSession,
    actor: StaffActor,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=200, description="Items per page"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    entity_id: Optional[int] = Query(None, description="Filter by entity ID"),
    action_type: Optional[str] = Query(None, description="Filter by action type"),
):
    """Get audit logs with filters and pagination, newest first."""
    logs, total = await get_audit_logs(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        action_type=action_type,
        limit=page_size,
        offset=(page - 1) * page_size,
    )

    total_pages = (total + page_size - 1) // page_size

    return AuditLogsListResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )
