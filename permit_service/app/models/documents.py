# app/models/documents.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("business_owners.id"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    category = Column(String(32), nullable=False)
    content_type = Column(String(100))
    storage_path = Column(String(512))
    uploaded_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime)
    version = Column(Integer, nullable=False)

    owner = relationship("BusinessOwner", back_populates="documents")
    verifications = relationship("DocumentVerification", back_populates="document")

    __mapper_args__ = {"version_id_col": version}
