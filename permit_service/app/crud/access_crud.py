# app/crud/access_crud.py
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.exceptions import InvalidTransitionError, NotFoundError, UnauthorizedError
from shared.core.schemas import UserToken

from ..models.business_associations import BusinessAssociation
from ..models.business_owners import BusinessOwner
from ..models.documents import Document
from ..models.verification_attempts import VerificationAttempt


def get_managed_owner(db: Session, owner_id: UUID, current_user: UserToken) -> BusinessOwner:
    """Load a live owner and check the caller is its assigned manager.

    Evaluated on every operation; nothing about the check is cached.
    """
    owner = db.query(BusinessOwner).filter(
        BusinessOwner.id == owner_id,
        BusinessOwner.deleted_at.is_(None)
    ).first()

    if not owner:
        raise NotFoundError("Business owner not found", owner_id=str(owner_id))

    if owner.assigned_manager_id != current_user.user_id:
        raise UnauthorizedError("Business owner is not managed by this user")

    return owner


def get_owner_attempt(db: Session, owner: BusinessOwner, attempt_id: UUID) -> VerificationAttempt:
    attempt = db.query(VerificationAttempt).filter(
        VerificationAttempt.id == attempt_id,
        VerificationAttempt.owner_id == owner.id
    ).first()

    if not attempt:
        raise NotFoundError("Verification attempt not found", verification_id=str(attempt_id))
    return attempt


def require_open(attempt: VerificationAttempt) -> VerificationAttempt:
    if not attempt.is_open:
        raise InvalidTransitionError(
            "This verification attempt has already been completed",
            verification_id=str(attempt.id),
        )
    return attempt


def get_managed_association(db: Session, association_id: UUID,
                            current_user: UserToken) -> BusinessAssociation:
    """Load a live association whose owner the caller manages."""
    association = db.query(BusinessAssociation).filter(
        BusinessAssociation.id == association_id,
        BusinessAssociation.deleted_at.is_(None)
    ).first()

    if not association:
        raise NotFoundError("Business association not found", association_id=str(association_id))

    get_managed_owner(db, association.owner_id, current_user)
    return association


def get_owner_document(db: Session, owner: BusinessOwner, document_id: UUID) -> Document:
    document = db.query(Document).filter(
        Document.id == document_id,
        Document.owner_id == owner.id,
        Document.deleted_at.is_(None)
    ).first()

    if not document:
        raise NotFoundError("Document not found for this business owner", document_id=str(document_id))
    return document
