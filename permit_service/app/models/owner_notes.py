# app/models/owner_notes.py
import uuid
from datetime import datetime
from sqlalchemy import Boolean, Column, String, Text, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base
from ..enum.notes_enum import NoteContentType


class OwnerNote(Base):
    __tablename__ = "owner_notes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("business_owners.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    content_type = Column(String(16), nullable=False, default=NoteContentType.TEXT.value)
    category = Column(String(64))
    tags = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)
    is_pinned = Column(Boolean, nullable=False, default=False)
    # only its author sees a private note
    is_private = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(64), nullable=False)
    created_by_name = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    owner = relationship("BusinessOwner", back_populates="notes")
