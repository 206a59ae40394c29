"""
Mataam Back Office - Audit Schemas
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from app.schemas.base import CamelModel, EnumName


class AuditLogResponse(CamelModel):
    """Audit log entry."""
    id: UUID
    user_id: Optional[UUID] = None
    branch_id: Optional[UUID] = None
    action: EnumName
    target_entity_type: str
    target_entity_id: str
    new_values: Optional[Dict[str, Any]] = None
    created_at: datetime
