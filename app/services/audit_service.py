"""
Mataam Back Office - Audit Trail Service

Append-only audit logging. Entries join the caller's unit of work: they are
flushed, never committed here, so an entry exists only if the change it
describes was committed.
"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog, AuditAction


class AuditService:
    """Service for managing the audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_action(
        self,
        action: AuditAction,
        target_entity_type: str,
        target_entity_id: str,
        user_id: Optional[uuid.UUID] = None,
        branch_id: Optional[uuid.UUID] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Log an audit action.

        Args:
            action: Type of action performed
            target_entity_type: Type of entity (e.g. 'employee_adjustment')
            target_entity_id: ID of the affected entity
            user_id: ID of user who performed the action
            branch_id: Branch the entity belongs to
            new_values: JSON-safe snapshot of the created/updated values

        Returns:
            Pending AuditLog record (flushed, not committed)
        """
        audit_log = AuditLog(
            action=action,
            target_entity_type=target_entity_type,
            target_entity_id=str(target_entity_id),
            user_id=user_id,
            branch_id=branch_id,
            new_values=new_values,
        )

        self.db.add(audit_log)
        await self.db.flush()

        return audit_log

    async def get_audit_logs(
        self,
        target_entity_type: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        action: Optional[AuditAction] = None,
        user_id: Optional[uuid.UUID] = None,
        branch_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[AuditLog]:
        """
        Get audit logs with optional filtering, newest first.
        """
        query = select(AuditLog)

        if target_entity_type:
            query = query.where(AuditLog.target_entity_type == target_entity_type)

        if target_entity_id:
            query = query.where(AuditLog.target_entity_id == str(target_entity_id))

        if action:
            query = query.where(AuditLog.action == action)

        if user_id:
            query = query.where(AuditLog.user_id == user_id)

        if branch_id:
            query = query.where(AuditLog.branch_id == branch_id)

        if start_date:
            query = query.where(func.date(AuditLog.created_at) >= start_date)

        if end_date:
            query = query.where(func.date(AuditLog.created_at) <= end_date)

        query = query.order_by(AuditLog.created_at.desc()).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())
