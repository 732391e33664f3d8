# app/models/verification_attempts.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from shared.core.database import Base, JsonColumnType
from ..enum.verification_enum import VerificationDecision


class VerificationAttempt(Base):
    __tablename__ = "verification_attempts"
    __table_args__ = (
        # at most one open attempt per owner
        Index(
            "uq_verification_attempts_open_owner",
            "owner_id",
            unique=True,
            postgresql_where=text("completed_at IS NULL"),
            sqlite_where=text("completed_at IS NULL"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("business_owners.id"), nullable=False, index=True)
    initiated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    initiated_by = Column(String(64), nullable=False)
    initiated_by_name = Column(String(255))
    completed_at = Column(DateTime)
    decision = Column(String(16), nullable=False, default=VerificationDecision.PENDING.value)
    decision_reason = Column(Text)
    # {"identity": {...}, "address": {...}, "businessAffiliation": {...}}
    sections = Column(JsonColumnType, nullable=False)
    draft_data = Column(JsonColumnType)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = Column(Integer, nullable=False)

    owner = relationship("BusinessOwner", back_populates="verification_attempts")
    document_verifications = relationship(
        "DocumentVerification", back_populates="verification_attempt")
    certificate = relationship(
        "VerificationCertificate", back_populates="verification_attempt", uselist=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_open(self) -> bool:
        return self.completed_at is None
