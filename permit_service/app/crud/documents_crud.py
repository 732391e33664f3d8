# app/crud/documents_crud.py
import logging
from datetime import datetime
from typing import Dict
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import ConflictError
from shared.core.schemas import UserToken

from ..enum.audit_enum import AuditAction, AuditEntityType
from ..models.document_verifications import DocumentVerification
from ..models.documents import Document
from ..models.verification_attempts import VerificationAttempt
from ..schemas.documents_schemas import DocumentCreate, DocumentListResponse, DocumentOut
from . import audit_log_crud
from .access_crud import get_managed_owner, get_owner_document

logger = logging.getLogger(__name__)


def get_owner_documents(db: Session, owner_id: UUID):
    return (
        db.query(Document)
        .filter(
            Document.owner_id == owner_id,
            Document.deleted_at.is_(None)
        )
        .order_by(Document.uploaded_at.desc())
        .all()
    )


def list_documents(db: Session, owner_id: UUID, current_user: UserToken) -> DocumentListResponse:
    owner = get_managed_owner(db, owner_id, current_user)
    documents = get_owner_documents(db, owner.id)
    return {
        "documents": [DocumentOut.model_validate(document) for document in documents],
        "total": len(documents),
    }


# ----------------- Register Document -----------------
def create_document(db: Session, owner_id: UUID, payload: DocumentCreate,
                    current_user: UserToken) -> DocumentOut:
    """Register an uploaded document by its metadata (transport is external)."""
    now = datetime.utcnow()

    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        document = Document(
            owner_id=owner.id,
            filename=payload.filename,
            category=payload.category.value,
            content_type=payload.content_type,
            storage_path=payload.storage_path,
            uploaded_at=now,
        )
        db.add(document)
        db.flush()
        audit_log_crud.append(
            db,
            owner_id=owner.id,
            entity_type=AuditEntityType.DOCUMENT,
            entity_id=document.id,
            action=AuditAction.CREATE,
            current_user=current_user,
            details={"filename": document.filename, "category": document.category},
            description=f"Document uploaded - {document.filename} ({document.category})",
            timestamp=now,
        )

    db.refresh(document)
    logger.info("Document %s registered for owner %s", document.id, owner_id)
    return DocumentOut.model_validate(document)


# ----------------- Delete Document -----------------
def delete_document(db: Session, owner_id: UUID, document_id: UUID,
                    current_user: UserToken) -> Dict:
    """Soft delete a document that no open verification attempt is reviewing."""
    now = datetime.utcnow()

    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        document = get_owner_document(db, owner, document_id)

        under_review = (
            db.query(DocumentVerification)
            .join(VerificationAttempt, VerificationAttempt.id == DocumentVerification.verification_attempt_id)
            .filter(
                DocumentVerification.document_id == document.id,
                VerificationAttempt.completed_at.is_(None)
            )
            .first()
        )
        if under_review:
            raise ConflictError(
                "Document is under review in an open verification attempt",
                verification_id=str(under_review.verification_attempt_id),
            )

        document.deleted_at = now
        audit_log_crud.append(
            db,
            owner_id=owner.id,
            entity_type=AuditEntityType.DOCUMENT,
            entity_id=document.id,
            action=AuditAction.DELETE,
            current_user=current_user,
            details={"filename": document.filename, "category": document.category},
            description=f"Document deleted - {document.filename}",
            timestamp=now,
        )

    logger.info("Document %s deleted for owner %s", document_id, owner_id)
    return {"deleted_at": now, "message": "Document deleted successfully"}
