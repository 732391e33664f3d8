# app/crud/document_verification_crud.py
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import ConflictError, NotFoundError
from shared.core.schemas import UserToken

from ..enum.audit_enum import AuditAction, AuditEntityType
from ..enum.verification_enum import DocumentCategory, DocumentVerificationStatus
from ..models.document_verifications import DocumentVerification
from ..models.documents import Document
from ..models.verification_attempts import VerificationAttempt
from ..schemas.verification_schemas import (
    DocumentDecisionRequest,
    DocumentVerificationOut,
    VerificationDocumentOut,
    VerificationDocumentsResponse,
)
from . import audit_log_crud
from .access_crud import get_managed_owner, get_owner_attempt, require_open
from .documents_crud import get_owner_documents

logger = logging.getLogger(__name__)


def link_document(db: Session, attempt: VerificationAttempt, document_id: UUID,
                  current_user: UserToken, now: Optional[datetime] = None) -> DocumentVerification:
    """Return the attempt's record for ``document_id``, creating a PENDING one.

    A document is under review in at most one open attempt at a time.
    """
    document = db.query(Document).filter(
        Document.id == document_id,
        Document.owner_id == attempt.owner_id,
        Document.deleted_at.is_(None)
    ).first()
    if not document:
        raise NotFoundError("Document not found for this business owner", document_id=str(document_id))

    record = db.query(DocumentVerification).filter(
        DocumentVerification.verification_attempt_id == attempt.id,
        DocumentVerification.document_id == document_id
    ).first()
    if record:
        return record

    elsewhere = (
        db.query(DocumentVerification)
        .join(VerificationAttempt, VerificationAttempt.id == DocumentVerification.verification_attempt_id)
        .filter(
            DocumentVerification.document_id == document_id,
            VerificationAttempt.id != attempt.id,
            VerificationAttempt.completed_at.is_(None)
        )
        .first()
    )
    if elsewhere:
        raise ConflictError(
            "Document is already under review in another open verification attempt",
            verification_id=str(elsewhere.verification_attempt_id),
        )

    record = DocumentVerification(
        verification_attempt_id=attempt.id,
        document_id=document.id,
        status=DocumentVerificationStatus.PENDING.value,
    )
    db.add(record)
    db.flush()
    audit_log_crud.append(
        db,
        owner_id=attempt.owner_id,
        entity_type=AuditEntityType.DOCUMENT_VERIFICATION,
        entity_id=record.id,
        action=AuditAction.CREATE,
        current_user=current_user,
        details={"documentId": str(document.id), "verificationId": str(attempt.id)},
        description=f"Document {document.filename} linked to verification",
        timestamp=now,
    )
    return record


def decide(db: Session, record: DocumentVerification, owner_id: UUID,
           status: DocumentVerificationStatus, notes: Optional[str], current_user: UserToken,
           now: Optional[datetime] = None) -> Dict[str, Dict[str, Any]]:
    """Record a reviewer decision on one document.

    Omitted notes keep the previous notes; the same status and notes again is
    a no-op. Section statuses are never touched.
    """
    now = now or datetime.utcnow()
    patch = {"status": status.value}
    if notes is not None:
        patch["notes"] = notes

    if not audit_log_crud.diff(record, patch):
        return {}

    patch.update({"verified_by": current_user.user_id, "verified_at": now})
    return audit_log_crud.record_update(
        db,
        record,
        patch,
        owner_id=owner_id,
        entity_type=AuditEntityType.DOCUMENT_VERIFICATION,
        current_user=current_user,
        details={"documentId": str(record.document_id)},
        description=f"Document marked {status.value}",
        timestamp=now,
    )


def record_document_decision(db: Session, owner_id: UUID, payload: DocumentDecisionRequest,
                             current_user: UserToken) -> DocumentVerificationOut:
    now = datetime.utcnow()
    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        attempt = require_open(get_owner_attempt(db, owner, payload.verification_id))
        record = link_document(db, attempt, payload.document_id, current_user, now)
        decide(db, record, owner.id, payload.status, payload.notes, current_user, now)

    db.refresh(record)
    return DocumentVerificationOut.model_validate(record)


def get_verification_documents(db: Session, owner_id: UUID, attempt_id: UUID,
                               current_user: UserToken) -> VerificationDocumentsResponse:
    owner = get_managed_owner(db, owner_id, current_user)
    attempt = get_owner_attempt(db, owner, attempt_id)

    records = {
        record.document_id: record
        for record in db.query(DocumentVerification).filter(
            DocumentVerification.verification_attempt_id == attempt.id).all()
    }

    documents = []
    by_category = {category.value: [] for category in DocumentCategory}
    for document in get_owner_documents(db, owner.id):
        record = records.get(document.id)
        item = VerificationDocumentOut(
            id=document.id,
            filename=document.filename,
            category=document.category,
            uploaded_at=document.uploaded_at,
            verification_status=record.status if record else None,
            verification_notes=record.notes if record else None,
            verified_at=record.verified_at if record else None,
            verified_by=record.verified_by if record else None,
        )
        documents.append(item)
        by_category.setdefault(document.category, []).append(item)

    return {
        "verification_id": attempt.id,
        "documents": documents,
        "documents_by_category": by_category,
        "total_documents": len(documents),
        "verified_documents": sum(
            1 for item in documents
            if item.verification_status not in (None, DocumentVerificationStatus.PENDING)
        ),
    }
