# app/crud/verification_crud.py
import copy
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.database import transaction
from shared.core.exceptions import ConflictError, IncompleteSubmissionError, ValidationError
from shared.core.schemas import UserToken

from ..enum.audit_enum import AuditAction, AuditEntityType
from ..enum.verification_enum import (
    OWNER_STATUS_BY_DECISION,
    SectionStatus,
    VerificationDecision,
    VerificationSection,
    VerificationStatus,
)
from ..models.business_owners import BusinessOwner
from ..models.verification_attempts import VerificationAttempt
from ..models.verification_certificates import VerificationCertificate
from ..schemas.activity_logs_schemas import ActivityLogOut
from ..schemas.business_owners_schemas import BusinessOwnerOut
from ..schemas.verification_schemas import (
    DraftSaveResponse,
    SectionUpdateRequest,
    VerificationAttemptOut,
    VerificationDetailsResponse,
    VerificationSubmitRequest,
    VerificationSubmitResponse,
)
from . import audit_log_crud, certificate_crud, document_verification_crud
from .access_crud import get_managed_owner, get_owner_attempt, require_open
from .business_owners_crud import days_until, get_open_attempts

logger = logging.getLogger(__name__)

SECTION_KEYS = [section.value for section in VerificationSection]
RECENT_ATTEMPTS_LIMIT = 5


# ----------------- Section tracker -----------------
def default_sections(now: Optional[datetime] = None) -> Dict[str, Dict[str, Any]]:
    stamp = (now or datetime.utcnow()).isoformat()
    return {
        key: {"status": SectionStatus.INCOMPLETE.value, "notes": None, "lastUpdated": stamp}
        for key in SECTION_KEYS
    }


def _status_of(section: Any) -> SectionStatus:
    if section is None:
        return SectionStatus.INCOMPLETE
    if isinstance(section, Mapping):
        value = section.get("status")
    else:
        value = getattr(section, "status", section)
    return SectionStatus(value or SectionStatus.INCOMPLETE.value)


def section_statuses(sections: Mapping) -> Dict[str, SectionStatus]:
    return {key: _status_of(sections.get(key)) for key in SECTION_KEYS}


def aggregate_decision(sections: Mapping) -> VerificationDecision:
    """Decision implied by the three section statuses.

    REJECTED beats NEEDS_INFO, which beats VERIFIED; VERIFIED needs all three
    sections verified. Anything else is still PENDING.
    """
    statuses = list(section_statuses(sections).values())

    if SectionStatus.REJECTED in statuses:
        return VerificationDecision.REJECTED
    if SectionStatus.NEEDS_INFO in statuses:
        return VerificationDecision.NEEDS_INFO
    if all(status == SectionStatus.VERIFIED for status in statuses):
        return VerificationDecision.VERIFIED
    return VerificationDecision.PENDING


def incomplete_sections(sections: Mapping) -> List[str]:
    return [key for key, status in section_statuses(sections).items() if not status.is_terminal]


def derive_decision_reason(sections: Mapping) -> Optional[str]:
    """Join the notes of every section that failed, in section order."""
    notes = []
    for key in SECTION_KEYS:
        section = sections.get(key) or {}
        if _status_of(section) in (SectionStatus.REJECTED, SectionStatus.NEEDS_INFO) and section.get("notes"):
            notes.append(f"{key}: {section['notes']}")
    return "; ".join(notes) or None


def apply_section_update(db: Session, attempt: VerificationAttempt, section: VerificationSection,
                         update: SectionUpdateRequest, current_user: UserToken,
                         now: Optional[datetime] = None) -> Dict[str, Dict[str, Any]]:
    """Set one section on an open attempt and audit just that section.

    Omitted notes keep the previous notes. Re-sending the same status and
    notes changes nothing.
    """
    now = now or datetime.utcnow()
    key = section.value
    previous = dict(attempt.sections.get(key) or {})
    notes = update.notes if update.notes is not None else previous.get("notes")

    changes = audit_log_crud.diff(previous, {"status": update.status.value, "notes": notes})
    if not changes:
        return {}

    sections = copy.deepcopy(attempt.sections)
    sections[key] = {"status": update.status.value, "notes": notes, "lastUpdated": now.isoformat()}
    field_changes = {f"{key}.{field}": change for field, change in changes.items()}

    decision = aggregate_decision(sections).value
    if decision != attempt.decision:
        field_changes["decision"] = {"old": attempt.decision, "new": decision}

    # new dict so the JSON column is flagged dirty
    attempt.sections = sections
    attempt.decision = decision
    attempt.last_updated = now

    audit_log_crud.append(
        db,
        owner_id=attempt.owner_id,
        entity_type=AuditEntityType.VERIFICATION_ATTEMPT,
        entity_id=attempt.id,
        action=AuditAction.UPDATE,
        current_user=current_user,
        field_changes=field_changes,
        details={"section": key},
        description=f"Section {key} marked {update.status.value}",
        timestamp=now,
    )
    return field_changes


def attempt_out(attempt: VerificationAttempt) -> VerificationAttemptOut:
    record = VerificationAttemptOut.model_validate(attempt)
    record.certificate_id = attempt.certificate.id if attempt.certificate else None
    return record


# ----------------- Create / Draft -----------------
def _open_attempt(db: Session, owner: BusinessOwner, current_user: UserToken, now: datetime,
                  draft_data: Optional[Dict[str, Any]] = None) -> VerificationAttempt:
    open_attempts = get_open_attempts(db, owner.id)
    if open_attempts:
        raise ConflictError(
            f"Business owner already has an open verification attempt {open_attempts[0].id}",
            verification_id=str(open_attempts[0].id),
        )

    has_history = db.query(VerificationAttempt.id).filter(
        VerificationAttempt.owner_id == owner.id,
        VerificationAttempt.completed_at.isnot(None)
    ).first() is not None

    attempt = VerificationAttempt(
        owner_id=owner.id,
        initiated_at=now,
        initiated_by=current_user.user_id,
        initiated_by_name=current_user.name or current_user.email,
        decision=VerificationDecision.PENDING.value,
        sections=default_sections(now),
        draft_data=draft_data,
        last_updated=now,
    )
    db.add(attempt)
    db.flush()
    audit_log_crud.append(
        db,
        owner_id=owner.id,
        entity_type=AuditEntityType.VERIFICATION_ATTEMPT,
        entity_id=attempt.id,
        action=AuditAction.CREATE,
        current_user=current_user,
        details={"isDraft": draft_data is not None},
        description="Verification attempt started",
        timestamp=now,
    )

    if owner.verification_status == VerificationStatus.UNVERIFIED.value and not has_history:
        audit_log_crud.record_update(
            db,
            owner,
            {"verification_status": VerificationStatus.PENDING_VERIFICATION},
            owner_id=owner.id,
            entity_type=AuditEntityType.BUSINESS_OWNER,
            current_user=current_user,
            details={"verificationId": str(attempt.id)},
            timestamp=now,
        )
    return attempt


def create_verification_attempt(db: Session, owner_id: UUID,
                                current_user: UserToken) -> VerificationAttemptOut:
    now = datetime.utcnow()
    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        attempt = _open_attempt(db, owner, current_user, now)

    db.refresh(attempt)
    logger.info("Verification attempt %s opened for owner %s", attempt.id, owner_id)
    return attempt_out(attempt)


def save_draft(db: Session, owner_id: UUID, draft_data: Dict[str, Any],
               current_user: UserToken, attempt_id: Optional[UUID] = None) -> DraftSaveResponse:
    """Persist the wizard's draft blob.

    With ``attempt_id`` the draft goes onto that attempt, which must still be
    open. Without it the draft goes onto the open attempt, opening one if needed.
    """
    now = datetime.utcnow()
    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        if attempt_id is not None:
            attempt = require_open(get_owner_attempt(db, owner, attempt_id))
        else:
            attempt = next(iter(get_open_attempts(db, owner.id)), None)

        if attempt is not None:
            audit_log_crud.record_update(
                db,
                attempt,
                {"draft_data": draft_data},
                owner_id=owner.id,
                entity_type=AuditEntityType.VERIFICATION_ATTEMPT,
                current_user=current_user,
                description="Verification draft saved",
                timestamp=now,
            )
        else:
            attempt = _open_attempt(db, owner, current_user, now, draft_data=draft_data)

    db.refresh(attempt)
    return DraftSaveResponse(id=attempt.id, attempt_id=attempt.id, saved_at=now, version=attempt.version)


# ----------------- Section update -----------------
def set_section_status(db: Session, owner_id: UUID, attempt_id: UUID, section: VerificationSection,
                       update: SectionUpdateRequest, current_user: UserToken) -> VerificationAttemptOut:
    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        attempt = require_open(get_owner_attempt(db, owner, attempt_id))
        apply_section_update(db, attempt, section, update, current_user)

    db.refresh(attempt)
    return attempt_out(attempt)


# ----------------- Submit -----------------
def submit_verification(db: Session, owner_id: UUID, payload: VerificationSubmitRequest,
                        current_user: UserToken) -> VerificationSubmitResponse:
    """Close an open attempt with the decision its sections add up to.

    Every section must be VERIFIED, REJECTED or NEEDS_INFO. The owner status
    follows the decision and a certificate is issued only for VERIFIED.
    Everything commits together or not at all.
    """
    now = datetime.utcnow()
    certificate = None

    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        attempt = require_open(get_owner_attempt(db, owner, payload.verification_id))

        if payload.sections:
            for section in VerificationSection:
                update = getattr(payload.sections, _attr_name(section))
                if update is not None:
                    apply_section_update(db, attempt, section, update, current_user, now)

        missing = incomplete_sections(attempt.sections)
        if missing:
            raise IncompleteSubmissionError(missing, verification_id=str(attempt.id))

        decision = aggregate_decision(attempt.sections)
        if payload.decision is not None and payload.decision != decision:
            raise ValidationError(
                f"Decision {payload.decision.value} does not match the section results ({decision.value})",
                expected_decision=decision.value,
            )

        reason = payload.decision_reason or (
            derive_decision_reason(attempt.sections) if decision != VerificationDecision.VERIFIED else None)
        if decision != VerificationDecision.VERIFIED and not reason:
            raise ValidationError(f"A decision reason is required for {decision.value}")

        audit_log_crud.record_update(
            db,
            attempt,
            {
                "completed_at": now,
                "decision": decision.value,
                "decision_reason": reason,
            },
            owner_id=owner.id,
            entity_type=AuditEntityType.VERIFICATION_ATTEMPT,
            current_user=current_user,
            details={
                "decision": decision.value,
                "sections": {key: status.value for key, status in section_statuses(attempt.sections).items()},
            },
            description=f"Verification {decision.value.lower()} - {reason or 'All sections verified'}",
            timestamp=now,
        )

        if decision == VerificationDecision.VERIFIED:
            certificate = certificate_crud.issue_certificate(db, attempt, owner, current_user, now)
        else:
            audit_log_crud.record_update(
                db,
                owner,
                {"verification_status": OWNER_STATUS_BY_DECISION[decision]},
                owner_id=owner.id,
                entity_type=AuditEntityType.BUSINESS_OWNER,
                current_user=current_user,
                details={"verificationId": str(attempt.id), "reason": reason},
                timestamp=now,
            )

    db.refresh(owner)
    logger.info("Verification %s submitted for owner %s: %s", attempt.id, owner_id, decision.value)
    return {
        "verification_id": attempt.id,
        "decision": decision,
        "completed_at": now,
        "certificate_id": certificate.id if certificate else None,
        "updated_owner": BusinessOwnerOut.model_validate(owner),
    }


def _attr_name(section: VerificationSection) -> str:
    return section.name.lower()


# ----------------- Status -----------------
def get_verification_status(db: Session, owner_id: UUID, current_user: UserToken,
                            include_documents: bool = False,
                            include_history: bool = False) -> VerificationDetailsResponse:
    owner = get_managed_owner(db, owner_id, current_user)
    now = datetime.utcnow()

    open_attempts = get_open_attempts(db, owner.id)
    current = open_attempts[0] if open_attempts else None

    completed = db.query(VerificationAttempt).filter(
        VerificationAttempt.owner_id == owner.id,
        VerificationAttempt.completed_at.isnot(None)
    )
    recent = completed.order_by(VerificationAttempt.completed_at.desc()).limit(RECENT_ATTEMPTS_LIMIT).all()

    latest_certificate = (
        db.query(VerificationCertificate)
        .filter(VerificationCertificate.owner_id == owner.id)
        .order_by(VerificationCertificate.issued_at.desc())
        .first()
    )
    expires_at = owner.verification_expires_at
    warning_at = now + timedelta(days=settings.VERIFICATION_EXPIRY_WARNING_DAYS)

    document_breakdown = None
    if include_documents and current:
        document_breakdown = document_verification_crud.get_verification_documents(
            db, owner.id, current.id, current_user)["documents_by_category"]

    history = None
    if include_history and current:
        history = [
            ActivityLogOut.model_validate(entry)
            for entry in audit_log_crud.get_recent_entries(db, owner.id, current.id)
        ]

    return {
        "owner_id": owner.id,
        "owner_name": owner.full_name,
        "verification_status": owner.verification_status,
        "aggregate_decision": aggregate_decision(current.sections) if current else None,
        "metrics": {
            "total_attempts": completed.count(),
            "last_verified_at": owner.last_verified_at,
            "verification_expires_at": expires_at,
            "days_until_expiry": days_until(expires_at, now),
            "is_expiring": expires_at is not None and expires_at <= warning_at,
            "certificate_id": latest_certificate.id if latest_certificate else None,
        },
        "current_attempt": attempt_out(current) if current else None,
        "recent_attempts": [attempt_out(attempt) for attempt in recent],
        "document_breakdown": document_breakdown,
        "history": history,
    }
