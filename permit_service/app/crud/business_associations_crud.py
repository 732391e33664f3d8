# app/crud/business_associations_crud.py
import logging
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.schemas import UserToken

from ..enum.audit_enum import AuditAction, AuditEntityType
from ..models.business_associations import BusinessAssociation
from ..schemas.business_associations_schemas import (
    BusinessAssociationCreate,
    BusinessAssociationListResponse,
    BusinessAssociationOut,
    BusinessAssociationUpdate,
)
from . import audit_log_crud
from .access_crud import get_managed_association, get_managed_owner

logger = logging.getLogger(__name__)


def list_business_associations(db: Session, owner_id: UUID,
                               current_user: UserToken) -> BusinessAssociationListResponse:
    owner = get_managed_owner(db, owner_id, current_user)
    rows = (
        db.query(BusinessAssociation)
        .filter(
            BusinessAssociation.owner_id == owner.id,
            BusinessAssociation.deleted_at.is_(None)
        )
        .order_by(BusinessAssociation.created_at.desc())
        .all()
    )
    return {
        "businesses": [BusinessAssociationOut.model_validate(row) for row in rows],
        "total": len(rows),
    }


def get_business_association(db: Session, association_id: UUID,
                             current_user: UserToken) -> BusinessAssociationOut:
    association = get_managed_association(db, association_id, current_user)
    return BusinessAssociationOut.model_validate(association)


def create_business_association(db: Session, owner_id: UUID, payload: BusinessAssociationCreate,
                                current_user: UserToken) -> BusinessAssociationOut:
    now = datetime.utcnow()

    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        association = BusinessAssociation(
            owner_id=owner.id,
            created_at=now,
            **payload.model_dump(),
        )
        db.add(association)
        db.flush()
        audit_log_crud.append(
            db,
            owner_id=owner.id,
            entity_type=AuditEntityType.BUSINESS_ASSOCIATION,
            entity_id=association.id,
            action=AuditAction.CREATE,
            current_user=current_user,
            details={"businessName": association.business_name, "role": association.role},
            timestamp=now,
        )

    db.refresh(association)
    return BusinessAssociationOut.model_validate(association)


# ----------------- Update Association -----------------
def update_business_association(db: Session, association_id: UUID, payload: BusinessAssociationUpdate,
                                current_user: UserToken):
    """Returns ``(association, field_changes)``; an identical patch writes nothing."""
    with transaction(db):
        association = get_managed_association(db, association_id, current_user)
        field_changes = audit_log_crud.record_update(
            db,
            association,
            payload.patch(),
            owner_id=association.owner_id,
            entity_type=AuditEntityType.BUSINESS_ASSOCIATION,
            current_user=current_user,
            details={"businessName": association.business_name},
        )

    if field_changes:
        db.refresh(association)
        logger.info("Business association %s updated: %s",
                    association.id, ", ".join(sorted(field_changes)))
    return BusinessAssociationOut.model_validate(association), field_changes


# ----------------- Delete Association -----------------
def delete_business_association(db: Session, association_id: UUID, reason: Optional[str],
                                current_user: UserToken) -> Dict:
    reason = reason or "No reason provided"
    now = datetime.utcnow()

    with transaction(db):
        association = get_managed_association(db, association_id, current_user)
        association.deleted_at = now
        audit_log_crud.append(
            db,
            owner_id=association.owner_id,
            entity_type=AuditEntityType.BUSINESS_ASSOCIATION,
            entity_id=association.id,
            action=AuditAction.DELETE,
            current_user=current_user,
            details={"reason": reason, "businessName": association.business_name},
            description=f"Business association deleted - {association.business_name}",
            timestamp=now,
        )

    logger.info("Business association %s deleted: %s", association_id, reason)
    return {"deleted_at": now, "message": "Business association deleted successfully"}
