# app/crud/audit_log_crud.py
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.schemas import UserToken
from shared.helpers.masking_helper import mask_field_changes

from ..enum.audit_enum import AuditAction, AuditEntityType
from ..models.activity_logs import ActivityLog
from ..schemas.activity_logs_schemas import (
    ActivityLogListResponse,
    ActivityLogOut,
    ActivityLogRequest,
)
from .access_crud import get_managed_owner

# Never part of a field diff
DIFF_EXCLUDED_FIELDS = frozenset({"id", "created_at", "updated_at", "version"})


def _comparable(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def diff(old_record: Any, new_fields: Mapping, exclude: Iterable[str] = DIFF_EXCLUDED_FIELDS) -> Dict[str, Dict[str, Any]]:
    """Field-level diff of ``new_fields`` against ``old_record``.

    ``old_record`` may be an ORM object or a mapping. Only keys present in
    ``new_fields`` are compared and unchanged keys are left out entirely, so
    an identical patch yields an empty dict.
    """
    excluded = set(exclude)
    changes = {}
    for key, new_value in new_fields.items():
        if key in excluded:
            continue
        if isinstance(old_record, Mapping):
            old_value = old_record.get(key)
        else:
            old_value = getattr(old_record, key, None)
        if _comparable(old_value) != _comparable(new_value):
            changes[key] = {"old": _comparable(old_value), "new": _comparable(new_value)}
    return changes


def describe_action(entity_type: AuditEntityType, action: AuditAction,
                    field_changes: Optional[Dict] = None, details: Optional[Dict] = None) -> str:
    details = details or {}
    label = entity_type.value.replace("_", " ").capitalize()

    if action == AuditAction.CREATE:
        return f"{label} created"
    if action == AuditAction.DELETE:
        return f"{label} deleted - {details.get('reason') or 'No reason provided'}"
    if field_changes:
        return f"{label} updated - {', '.join(sorted(field_changes))}"
    return f"{label} updated"


def append(
    db: Session,
    *,
    owner_id: UUID,
    entity_type: AuditEntityType,
    entity_id: UUID,
    action: AuditAction,
    current_user: UserToken,
    field_changes: Optional[Dict[str, Dict[str, Any]]] = None,
    details: Optional[Dict[str, Any]] = None,
    description: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> ActivityLog:
    """Stage one audit entry on the caller's session.

    Never commits: the entry lands or disappears together with the mutation
    it describes when the caller's transaction ends.
    """
    # push the mutation first so the entry always follows it
    db.flush()

    entry = ActivityLog(
        business_owner_id=owner_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        action_description=description or describe_action(
            entity_type, action, field_changes, details),
        performed_by=current_user.user_id,
        performed_by_name=current_user.name or current_user.email,
        performed_by_role=current_user.role,
        field_changes=jsonable_encoder(mask_field_changes(field_changes or {})),
        details=jsonable_encoder(details) if details else None,
        timestamp=timestamp or datetime.utcnow(),
    )
    db.add(entry)
    return entry


def record_update(
    db: Session,
    entity: Any,
    patch: Mapping,
    *,
    owner_id: UUID,
    entity_type: AuditEntityType,
    current_user: UserToken,
    details: Optional[Dict[str, Any]] = None,
    description: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> Dict[str, Dict[str, Any]]:
    """Apply the changed part of ``patch`` to ``entity`` and audit it.

    Returns the field changes. An empty diff touches nothing: no write, no
    version bump, no entry.
    """
    field_changes = diff(entity, patch)
    if not field_changes:
        return {}

    for key in field_changes:
        setattr(entity, key, _comparable(patch[key]))

    append(
        db,
        owner_id=owner_id,
        entity_type=entity_type,
        entity_id=entity.id,
        action=AuditAction.UPDATE,
        current_user=current_user,
        field_changes=field_changes,
        details=details,
        description=description,
        timestamp=timestamp,
    )
    return field_changes


# ----------------- Activity log listing -----------------
def list_activity_logs(db: Session, owner_id: UUID, current_user: UserToken,
                       params: ActivityLogRequest) -> ActivityLogListResponse:
    get_managed_owner(db, owner_id, current_user)

    limit, page = params.limit, params.page

    query = db.query(ActivityLog).filter(ActivityLog.business_owner_id == owner_id)
    if params.entity_type:
        query = query.filter(ActivityLog.entity_type == params.entity_type.value)
    if params.action:
        query = query.filter(ActivityLog.action == params.action.value)
    if params.start_date:
        query = query.filter(ActivityLog.timestamp >= params.start_date)
    if params.end_date:
        query = query.filter(ActivityLog.timestamp <= params.end_date)

    total = query.count()
    rows = (
        query.order_by(ActivityLog.timestamp.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "data": [ActivityLogOut.model_validate(row) for row in rows],
        "pagination": {
            "total": total,
            "pages": (total + limit - 1) // limit,
            "current": page,
            "limit": limit,
        },
        "stats": get_activity_stats(db, owner_id),
    }


def get_activity_stats(db: Session, owner_id: UUID) -> Dict[str, Dict[str, int]]:
    by_entity_type = (
        db.query(ActivityLog.entity_type, func.count(ActivityLog.id))
        .filter(ActivityLog.business_owner_id == owner_id)
        .group_by(ActivityLog.entity_type)
        .all()
    )
    by_action = (
        db.query(ActivityLog.action, func.count(ActivityLog.id))
        .filter(ActivityLog.business_owner_id == owner_id)
        .group_by(ActivityLog.action)
        .all()
    )
    return {
        "byEntityType": {entity_type: count for entity_type, count in by_entity_type},
        "byAction": {action: count for action, count in by_action},
    }


def get_recent_entries(db: Session, owner_id: UUID, entity_id: UUID, limit: int = 20):
    return (
        db.query(ActivityLog)
        .filter(
            ActivityLog.business_owner_id == owner_id,
            ActivityLog.entity_id == entity_id,
        )
        .order_by(ActivityLog.timestamp.desc())
        .limit(limit)
        .all()
    )
