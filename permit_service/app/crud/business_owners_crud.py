# app/crud/business_owners_crud.py
import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import ConflictError
from shared.core.schemas import Lookup, UserToken
from shared.helpers.masking_helper import mask_field_changes
from shared.utils.app_status_code import AppStatusCode

from ..enum.audit_enum import AuditAction, AuditEntityType
from ..enum.verification_enum import DocumentVerificationStatus, VerificationStatus
from ..models.activity_logs import ActivityLog
from ..models.business_associations import BusinessAssociation
from ..models.business_owners import BusinessOwner
from ..models.document_verifications import DocumentVerification
from ..models.documents import Document
from ..models.verification_attempts import VerificationAttempt
from ..schemas.business_owners_schemas import (
    BusinessOwnerCreate,
    BusinessOwnerDetailOut,
    BusinessOwnerListResponse,
    BusinessOwnerOut,
    BusinessOwnerRequest,
    BusinessOwnerUpdate,
)
from . import audit_log_crud
from .access_crud import get_managed_owner

logger = logging.getLogger(__name__)


def days_until(moment: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    if moment is None:
        return None
    remaining = moment - (now or datetime.utcnow())
    # ceil to whole days, like a calendar countdown
    return -((-int(remaining.total_seconds())) // 86400)


def get_open_attempts(db: Session, owner_id: UUID) -> List[VerificationAttempt]:
    return db.query(VerificationAttempt).filter(
        VerificationAttempt.owner_id == owner_id,
        VerificationAttempt.completed_at.is_(None)
    ).all()


# ----------------- Create Owner -----------------
def create_owner(db: Session, payload: BusinessOwnerCreate, current_user: UserToken) -> BusinessOwnerOut:
    now = datetime.utcnow()
    owner = BusinessOwner(
        **payload.model_dump(),
        verification_status=VerificationStatus.UNVERIFIED.value,
        assigned_manager_id=current_user.user_id,
        created_at=now,
        updated_at=now,
    )

    with transaction(db):
        db.add(owner)
        db.flush()
        audit_log_crud.append(
            db,
            owner_id=owner.id,
            entity_type=AuditEntityType.BUSINESS_OWNER,
            entity_id=owner.id,
            action=AuditAction.CREATE,
            current_user=current_user,
            details={"fullName": owner.full_name},
            timestamp=now,
        )

    db.refresh(owner)
    logger.info("Business owner %s created by %s", owner.id, current_user.user_id)
    return BusinessOwnerOut.model_validate(owner)


# ----------------- List / Detail -----------------
def get_all_owners(db: Session, current_user: UserToken, params: BusinessOwnerRequest) -> BusinessOwnerListResponse:
    query = db.query(BusinessOwner).filter(
        BusinessOwner.assigned_manager_id == current_user.user_id,
        BusinessOwner.deleted_at.is_(None)
    )

    if params.verification_status:
        query = query.filter(
            BusinessOwner.verification_status == params.verification_status.value)

    if params.search:
        search_term = f"%{params.search}%"
        query = query.filter(
            or_(
                BusinessOwner.first_name.ilike(search_term),
                BusinessOwner.last_name.ilike(search_term),
                BusinessOwner.email.ilike(search_term),
                BusinessOwner.city.ilike(search_term),
            )
        )

    total = query.count()
    rows = (
        query.order_by(BusinessOwner.updated_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return {"owners": [BusinessOwnerOut.model_validate(row) for row in rows], "total": total}


def get_owner_detail(db: Session, owner_id: UUID, current_user: UserToken) -> BusinessOwnerDetailOut:
    owner = get_managed_owner(db, owner_id, current_user)

    latest_attempt = (
        db.query(VerificationAttempt)
        .filter(VerificationAttempt.owner_id == owner.id)
        .order_by(VerificationAttempt.initiated_at.desc())
        .first()
    )
    latest_completed = (
        db.query(VerificationAttempt)
        .filter(
            VerificationAttempt.owner_id == owner.id,
            VerificationAttempt.completed_at.isnot(None)
        )
        .order_by(VerificationAttempt.completed_at.desc())
        .first()
    )

    live_documents = db.query(Document).filter(
        Document.owner_id == owner.id,
        Document.deleted_at.is_(None)
    )
    # awaiting review: no decision yet, or still PENDING in some attempt
    decided_document_ids = (
        select(DocumentVerification.document_id)
        .join(Document, Document.id == DocumentVerification.document_id)
        .where(
            Document.owner_id == owner.id,
            DocumentVerification.status != DocumentVerificationStatus.PENDING.value
        )
    )
    awaiting_review = live_documents.filter(~Document.id.in_(decided_document_ids)).count()

    record = BusinessOwnerOut.model_validate(owner).model_dump()
    record.update({
        "full_name": owner.full_name,
        "display_location": ", ".join(part for part in (owner.city, owner.state) if part),
        "verification_summary": {
            "current_status": owner.verification_status,
            "last_verified_at": owner.last_verified_at,
            "expires_at": owner.verification_expires_at,
            "days_until_expiry": days_until(owner.verification_expires_at),
            "certificate_id": latest_completed.certificate.id
            if latest_completed and latest_completed.certificate else None,
            "last_attempt_id": latest_attempt.id if latest_attempt else None,
        },
        "counts": {
            "documents": live_documents.count(),
            "businesses": db.query(func.count(BusinessAssociation.id)).filter(
                BusinessAssociation.owner_id == owner.id,
                BusinessAssociation.deleted_at.is_(None)).scalar() or 0,
            "total_activity_logs": db.query(func.count(ActivityLog.id)).filter(
                ActivityLog.business_owner_id == owner.id).scalar() or 0,
            "documents_awaiting_review": awaiting_review,
        },
    })
    return BusinessOwnerDetailOut.model_validate(record)


# ----------------- Update Owner -----------------
def update_owner(db: Session, owner_id: UUID, update_data: BusinessOwnerUpdate,
                 current_user: UserToken):
    """Apply a partial profile update with a field-level audit entry.

    Returns ``(owner, field_changes)``. A patch that changes nothing writes
    nothing: same version, no audit entry.
    """
    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)

        if update_data.expected_version is not None and update_data.expected_version != owner.version:
            raise ConflictError(
                f"Business owner was modified (version {owner.version}, expected {update_data.expected_version}). Reload and try again.",
                app_status_code=AppStatusCode.STALE_VERSION,
                current_version=owner.version,
            )

        field_changes = audit_log_crud.record_update(
            db,
            owner,
            update_data.patch(),
            owner_id=owner.id,
            entity_type=AuditEntityType.BUSINESS_OWNER,
            current_user=current_user,
        )

    if field_changes:
        db.refresh(owner)
        logger.info("Business owner %s updated: %s", owner.id, ", ".join(sorted(field_changes)))
    return BusinessOwnerOut.model_validate(owner), mask_field_changes(field_changes)


# ---------------- Delete Owner ----------------
def soft_delete_owner(db: Session, owner_id: UUID, reason: Optional[str],
                      current_user: UserToken) -> Dict:
    """Soft delete the owner and its documents; attempts are kept as history."""
    reason = reason or "No reason provided"

    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)

        open_attempts = get_open_attempts(db, owner.id)
        if open_attempts:
            blocking_ids = [str(attempt.id) for attempt in open_attempts]
            raise ConflictError(
                f"Cannot delete owner with active verification attempt {', '.join(blocking_ids)}. "
                "Complete the pending verification first.",
                blocking_attempt_ids=blocking_ids,
            )

        now = datetime.utcnow()
        documents_deleted = db.query(Document).filter(
            Document.owner_id == owner.id,
            Document.deleted_at.is_(None)
        ).update({
            "deleted_at": now,
            "version": Document.version + 1,
        }, synchronize_session=False)
        business_count = db.query(func.count(BusinessAssociation.id)).filter(
            BusinessAssociation.owner_id == owner.id).scalar() or 0

        owner.deleted_at = now
        audit_log_crud.append(
            db,
            owner_id=owner.id,
            entity_type=AuditEntityType.BUSINESS_OWNER,
            entity_id=owner.id,
            action=AuditAction.DELETE,
            current_user=current_user,
            field_changes={"deleted_at": {"old": None, "new": now}},
            details={
                "reason": reason,
                "documentsDeleted": documents_deleted,
                "businessAssociations": business_count,
            },
            timestamp=now,
        )

    logger.info("Business owner %s soft deleted (%s documents)", owner_id, documents_deleted)
    return {
        "message": "Business owner deleted successfully",
        "deleted_at": now,
        "documents_deleted": documents_deleted,
    }


# ----------------  Status Lookup ----------------
def verification_status_lookup() -> List[Lookup]:
    return [
        Lookup(id=status.value, name=status.name.replace("_", " ").capitalize())
        for status in VerificationStatus
    ]
