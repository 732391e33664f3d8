# app/crud/certificate_crud.py
import hashlib
import json
import logging
import secrets
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import ConflictError, InvalidTransitionError, NotFoundError
from shared.core.schemas import UserToken

from ..enum.audit_enum import AuditEntityType
from ..enum.verification_enum import VerificationDecision, VerificationStatus
from ..models.business_owners import BusinessOwner
from ..models.verification_attempts import VerificationAttempt
from ..models.verification_certificates import VerificationCertificate
from ..schemas.verification_schemas import CertificateOut, CertificateValidationResponse
from . import audit_log_crud
from .access_crud import get_managed_owner

logger = logging.getLogger(__name__)

CERTIFICATE_NUMBER_DRAWS = 10


def compute_verification_hash(attempt_id: UUID, owner_id: UUID, issued_at: datetime) -> str:
    """SHA-256 over the canonical JSON of attempt id, owner id and issue time."""
    payload = json.dumps(
        {
            "businessOwnerId": str(owner_id),
            "issuedAt": issued_at.isoformat(),
            "verificationId": str(attempt_id),
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def generate_certificate_number(db: Session, issued_at: datetime) -> str:
    """Random ``PR-BO-YYYY-NNNNNN`` number that no certificate holds yet."""
    for _ in range(CERTIFICATE_NUMBER_DRAWS):
        number = f"PR-BO-{issued_at.year}-{secrets.randbelow(900000) + 100000}"
        taken = db.query(VerificationCertificate.id).filter(
            VerificationCertificate.certificate_number == number).first()
        if taken is None:
            return number
    raise ConflictError("Could not allocate a certificate number. Try again.")


def issue_certificate(db: Session, attempt: VerificationAttempt, owner: BusinessOwner,
                      current_user: UserToken, issued_at: datetime) -> VerificationCertificate:
    """Issue the attempt's certificate and mark the owner VERIFIED.

    Runs inside the caller's transaction. An attempt gets at most one
    certificate, so a second call returns the existing one.
    """
    if attempt.decision != VerificationDecision.VERIFIED.value:
        raise InvalidTransitionError(
            "Certificates are only issued for verified attempts",
            verification_id=str(attempt.id),
        )

    existing = db.query(VerificationCertificate).filter(
        VerificationCertificate.verification_attempt_id == attempt.id).first()
    if existing:
        return existing

    expires_at = issued_at + timedelta(days=settings.CERTIFICATE_VALIDITY_DAYS)
    verification_hash = compute_verification_hash(attempt.id, owner.id, issued_at)
    certificate = VerificationCertificate(
        owner_id=owner.id,
        verification_attempt_id=attempt.id,
        certificate_number=generate_certificate_number(db, issued_at),
        issued_at=issued_at,
        expires_at=expires_at,
        verification_hash=verification_hash,
        validation_url=f"{settings.APP_URL.rstrip('/')}/verify/{verification_hash}",
    )
    db.add(certificate)
    db.flush()

    audit_log_crud.record_update(
        db,
        owner,
        {
            "verification_status": VerificationStatus.VERIFIED,
            "last_verified_at": issued_at,
            "verification_expires_at": expires_at,
        },
        owner_id=owner.id,
        entity_type=AuditEntityType.BUSINESS_OWNER,
        current_user=current_user,
        details={
            "verificationId": str(attempt.id),
            "certificateId": str(certificate.id),
            "certificateNumber": certificate.certificate_number,
        },
        description=f"Business owner verified - certificate {certificate.certificate_number}",
        timestamp=issued_at,
    )
    logger.info("Certificate %s issued for owner %s", certificate.certificate_number, owner.id)
    return certificate


def get_latest_certificate(db: Session, owner_id: UUID, current_user: UserToken) -> CertificateOut:
    owner = get_managed_owner(db, owner_id, current_user)
    certificate = (
        db.query(VerificationCertificate)
        .filter(VerificationCertificate.owner_id == owner.id)
        .order_by(VerificationCertificate.issued_at.desc())
        .first()
    )
    if not certificate:
        raise NotFoundError("No certificate has been issued for this business owner",
                            owner_id=str(owner_id))
    return CertificateOut.model_validate(certificate)


def validate_certificate(db: Session, verification_hash: str) -> CertificateValidationResponse:
    """Public check of a certificate by its hash. Never raises for a bad hash."""
    certificate = db.query(VerificationCertificate).filter(
        VerificationCertificate.verification_hash == verification_hash).first()
    if not certificate:
        return {"valid": False, "reason": "Certificate not found"}

    owner = db.get(BusinessOwner, certificate.owner_id)
    if owner is None or owner.deleted_at is not None:
        return {"valid": False, "reason": "Business owner is no longer active"}

    expected = compute_verification_hash(
        certificate.verification_attempt_id, certificate.owner_id, certificate.issued_at)
    if expected != certificate.verification_hash:
        logger.warning("Certificate %s failed its integrity check", certificate.id)
        return {"valid": False, "reason": "Certificate integrity check failed"}

    newer = db.query(VerificationCertificate.id).filter(
        VerificationCertificate.owner_id == owner.id,
        VerificationCertificate.issued_at > certificate.issued_at
    ).first()
    if newer:
        return {"valid": False, "reason": "Certificate has been superseded by a newer verification"}

    if owner.verification_status != VerificationStatus.VERIFIED.value:
        return {"valid": False, "reason": "Business owner is no longer verified"}

    if certificate.expires_at < datetime.utcnow():
        return {"valid": False, "reason": "Certificate has expired"}

    return {
        "valid": True,
        "certificate": {
            "certificate_number": certificate.certificate_number,
            "issued_at": certificate.issued_at,
            "expires_at": certificate.expires_at,
            "owner_name": owner.full_name,
            "verification_date": certificate.issued_at,
        },
    }
