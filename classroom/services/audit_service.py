"""Audit service for logging enrollment and project membership changes."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.security import Actor
from classroom.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    action_type: str,  # 'ENROLL', 'ASSIGN_PROJECT', 'REMOVE_FROM_PROJECT', etc.
    entity_type: str,  # 'enrollment', 'project'
    entity_id: Optional[int],
    description: str,
    actor: Optional[Actor] = None,
    changes: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """
    Log an audit event.

    The row is only added to the session; the caller commits it together
    with the change it describes.

    Args:
        db: Database session
        action_type: Type of action (ENROLL, ASSIGN_PROJECT, ...)
        entity_type: Type of entity (enrollment, project)
        entity_id: ID of the entity
        description: Human-readable description
        actor: Who performed the action, None for system calls
        changes: Dictionary with before/after changes

    Returns:
        Created AuditLog instance or None if failed
    """
    try:
        audit_log = AuditLog(
            timestamp=datetime.now(timezone.utc),
            actor_role=actor.role.value if actor else "SYSTEM",
            actor_id=actor.user_id if actor else None,
            action_type=action_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            changes_json=changes,
        )
        db.add(audit_log)

        logger.info(f"Audit log created: {action_type} {entity_type} {entity_id} by {actor or 'system'}")
        return audit_log

    except Exception as e:
        # Audit is best-effort; never break the parent transaction
        logger.error(f"Failed to create audit log: {e}")
        logger.exception(e)
        return None


async def get_audit_logs(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[AuditLog], int]:
    """
    Get audit logs with filters, newest first.

    Returns:
        Tuple of (list of audit logs, total count)
    """
    query = select(AuditLog)
    count_query = select(func.count(AuditLog.id))

    filters = []

    if entity_type:
        filters.append(AuditLog.entity_type == entity_type)

    if entity_id is not None:
        filters.append(AuditLog.entity_id == entity_id)

    if action_type:
        filters.append(AuditLog.action_type == action_type)

    if filters:
        query = query.where(and_(*filters))
        count_query = count_query.where(and_(*filters))

    query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
    query = query.limit(limit).offset(offset)

    result = await db.execute(query)
    logs = list(result.scalars().all())

    count_result = await db.execute(count_query)
    total_count = count_result.scalar() or 0

    return logs, total_count
