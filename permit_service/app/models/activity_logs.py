# app/models/activity_logs.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Uuid
from shared.core.database import Base, JsonColumnType


class ActivityLog(Base):
    """Immutable audit entry, one per mutation of one entity."""
    __tablename__ = "activity_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_owner_id = Column(Uuid, nullable=False, index=True)
    entity_type = Column(String(32), nullable=False)
    entity_id = Column(Uuid, nullable=False, index=True)
    action = Column(String(16), nullable=False)
    action_description = Column(String(512))
    performed_by = Column(String(64), nullable=False)
    performed_by_name = Column(String(255))
    performed_by_role = Column(String(32))
    # {field: {"old": ..., "new": ...}}
    field_changes = Column(JsonColumnType, nullable=False, default=dict)
    details = Column(JsonColumnType)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
