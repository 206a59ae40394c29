"""
Mataam Back Office - Audit Trail Router

Read access to the audit trail. Admins only.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import require_role
from app.models.audit import AuditAction
from app.models.user import User, UserRole
from app.schemas.audit import AuditLogResponse
from app.services.audit_service import AuditService
from app.utils.error_handling import ValidationException


router = APIRouter()


@router.get(
    "",
    response_model=List[AuditLogResponse],
    summary="List audit log entries",
)
async def get_audit_logs(
    target_entity_type: Optional[str] = Query(None, alias="targetEntityType", description="Filter by entity type"),
    target_entity_id: Optional[str] = Query(None, alias="targetEntityId", description="Filter by entity ID"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    user_id: Optional[uuid.UUID] = Query(None, alias="userId", description="Filter by user"),
    branch_id: Optional[uuid.UUID] = Query(None, alias="branchId", description="Filter by branch"),
    start_date: Optional[date] = Query(None, alias="startDate", description="Filter from date"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Filter to date"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role([UserRole.ADMIN])),
):
    """Get audit logs with optional filtering, newest first."""
    action_filter = None
    if action:
        try:
            action_filter = AuditAction[action.upper()]
        except KeyError:
            raise ValidationException(
                f"Invalid action: {action}",
                field="action",
                details={"allowed": [a.name for a in AuditAction]},
            )

    service = AuditService(db)
    logs = await service.get_audit_logs(
        target_entity_type=target_entity_type,
        target_entity_id=target_entity_id,
        action=action_filter,
        user_id=user_id,
        branch_id=branch_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    return [AuditLogResponse.model_validate(log) for log in logs]
