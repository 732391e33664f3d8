# app/models/business_associations.py
import uuid
from datetime import datetime
from sqlalchemy import Boolean, Column, String, Text, DateTime, Integer, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base


class BusinessAssociation(Base):
    __tablename__ = "business_associations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("business_owners.id"), nullable=False, index=True)
    business_name = Column(String(255), nullable=False)
    business_type = Column(String(64))
    role = Column(String(64))
    ownership_percentage = Column(Numeric(5, 2))
    is_primary_contact = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime)
    version = Column(Integer, nullable=False)

    owner = relationship("BusinessOwner", back_populates="businesses")

    __mapper_args__ = {"version_id_col": version}
