# app/models/document_verifications.py
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base
from ..enum.verification_enum import DocumentVerificationStatus


class DocumentVerification(Base):
    __tablename__ = "document_verifications"
    __table_args__ = (
        UniqueConstraint("verification_attempt_id", "document_id",
                         name="uq_document_verifications_attempt_document"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    verification_attempt_id = Column(
        Uuid, ForeignKey("verification_attempts.id"), nullable=False, index=True)
    document_id = Column(Uuid, ForeignKey("documents.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False,
                    default=DocumentVerificationStatus.PENDING.value)
    notes = Column(Text)
    verified_by = Column(String(64))
    verified_at = Column(DateTime)
    version = Column(Integer, nullable=False)

    verification_attempt = relationship(
        "VerificationAttempt", back_populates="document_verifications")
    document = relationship("Document", back_populates="verifications")

    __mapper_args__ = {"version_id_col": version}
