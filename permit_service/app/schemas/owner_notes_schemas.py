# app/schemas/owner_notes_schemas.py
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CamelModel
from .activity_logs_schemas import Pagination
from ..enum.notes_enum import NoteContentType


class OwnerNoteCreate(CamelModel):
    content: str = Field(min_length=1)
    content_type: NoteContentType = NoteContentType.TEXT
    category: Optional[str] = Field(default=None, max_length=64)
    tags: List[str] = []
    attachments: List[str] = []
    is_pinned: bool = False
    is_private: bool = False


class OwnerNoteRequest(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=50)
    category: Optional[str] = None
    tag: Optional[str] = None
    pinned_only: bool = False


class OwnerNoteOut(CamelModel):
    id: UUID
    owner_id: UUID
    content: str
    content_type: NoteContentType
    category: Optional[str] = None
    tags: List[str] = []
    attachments: List[str] = []
    is_pinned: bool
    is_private: bool
    created_by: str
    created_by_name: Optional[str] = None
    created_at: datetime


class OwnerNoteSummary(CamelModel):
    total_notes: int
    pinned: int
    categories: Dict[str, int]


class OwnerNoteListResponse(CamelModel):
    data: List[OwnerNoteOut]
    pagination: Pagination
    summary: OwnerNoteSummary
