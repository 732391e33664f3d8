# app/schemas/activity_logs_schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CamelModel
from ..enum.audit_enum import AuditAction, AuditEntityType


class ActivityLogRequest(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    entity_type: Optional[AuditEntityType] = None
    action: Optional[AuditAction] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ActivityLogOut(CamelModel):
    id: UUID
    business_owner_id: UUID
    entity_type: str
    entity_id: UUID
    action: str
    action_description: Optional[str] = None
    performed_by: str
    performed_by_name: Optional[str] = None
    performed_by_role: Optional[str] = None
    field_changes: Dict[str, Any] = {}
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime


class Pagination(CamelModel):
    total: int
    pages: int
    current: int
    limit: int


class ActivityLogListResponse(CamelModel):
    data: List[ActivityLogOut]
    pagination: Pagination
    stats: Dict[str, Dict[str, int]]
