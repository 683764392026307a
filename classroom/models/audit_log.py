"""Audit log model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, JSON, String, Text, func, Index
from sqlalchemy.orm import Mapped, mapped_column

from classroom.core.database import Base


class AuditLog(Base):
    """Audit log of enrollment and project membership changes."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    # Who made the change
    actor_role: Mapped[str] = mapped_column(String(50), nullable=False, default="SYSTEM")  # ADMIN, LECTURER, SYSTEM
    actor_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # What happened
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)  # ENROLL, ASSIGN_PROJECT, ...
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # enrollment, project
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Details
    description: Mapped[str] = mapped_column(Text, nullable=False)
    changes_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)  # {"before": {...}, "after": {...}}

    __table_args__ = (
        Index("idx_audit_timestamp", "timestamp"),
        Index("idx_audit_entity_type_id", "entity_type", "entity_id"),
        Index("idx_audit_action_entity", "action_type", "entity_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, actor='{self.actor_role}:{self.actor_id}', "
            f"action='{self.action_type}', entity='{self.entity_type}', "
            f"entity_id={self.entity_id}, timestamp={self.timestamp})>"
        )
