# app/schemas/documents_schemas.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from shared.core.schemas import CamelModel
from ..enum.verification_enum import DocumentCategory


class DocumentCreate(CamelModel):
    filename: str = Field(min_length=1, max_length=255)
    category: DocumentCategory
    content_type: Optional[str] = None
    storage_path: Optional[str] = None


class DocumentOut(CamelModel):
    id: UUID
    owner_id: UUID
    filename: str
    category: DocumentCategory
    content_type: Optional[str] = None
    storage_path: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    version: int


class DocumentListResponse(CamelModel):
    documents: List[DocumentOut]
    total: int
