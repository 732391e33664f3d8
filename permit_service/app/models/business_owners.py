# app/models/business_owners.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Integer, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base
from ..enum.verification_enum import VerificationStatus


class BusinessOwner(Base):
    __tablename__ = "business_owners"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    maternal_last_name = Column(String(100))
    email = Column(String(255), nullable=False)
    phone = Column(String(32))
    date_of_birth = Column(Date)

    # sensitive, only ever leaves the store masked
    tax_id = Column(String(32))
    id_license_number = Column(String(64))
    id_type = Column(String(32))
    id_issuing_country = Column(String(64))
    id_issuing_state = Column(String(64))

    address_line1 = Column(String(255))
    address_line2 = Column(String(255))
    city = Column(String(100))
    state = Column(String(100))
    zip_code = Column(String(16))

    verification_status = Column(
        String(32), nullable=False, default=VerificationStatus.UNVERIFIED.value)
    last_verified_at = Column(DateTime)
    verification_expires_at = Column(DateTime)

    assigned_manager_id = Column(String(64), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)

    documents = relationship("Document", back_populates="owner")
    businesses = relationship("BusinessAssociation", back_populates="owner")
    notes = relationship("OwnerNote", back_populates="owner")
    verification_attempts = relationship(
        "VerificationAttempt", back_populates="owner",
        order_by="VerificationAttempt.initiated_at.desc()")

    __mapper_args__ = {"version_id_col": version}

    @property
    def full_name(self) -> str:
        return " ".join(
            part for part in (self.first_name, self.last_name, self.maternal_last_name) if part)
