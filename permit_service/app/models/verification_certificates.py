# app/models/verification_certificates.py
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base


class VerificationCertificate(Base):
    """Write-once; a newer certificate for the same owner supersedes it."""
    __tablename__ = "verification_certificates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("business_owners.id"), nullable=False, index=True)
    verification_attempt_id = Column(
        Uuid, ForeignKey("verification_attempts.id"), nullable=False, unique=True)
    certificate_number = Column(String(32), nullable=False, unique=True)
    issued_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    verification_hash = Column(String(64), nullable=False, unique=True, index=True)
    validation_url = Column(String(512), nullable=False)

    verification_attempt = relationship("VerificationAttempt", back_populates="certificate")
