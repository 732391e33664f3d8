# app/crud/owner_notes_crud.py
from datetime import datetime
from typing import Dict
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.schemas import UserToken

from ..enum.audit_enum import AuditAction, AuditEntityType
from ..models.owner_notes import OwnerNote
from ..schemas.owner_notes_schemas import (
    OwnerNoteCreate,
    OwnerNoteListResponse,
    OwnerNoteOut,
    OwnerNoteRequest,
)
from . import audit_log_crud
from .access_crud import get_managed_owner

DEFAULT_NOTE_CATEGORY = "General"


def _visible_notes(db: Session, owner_id: UUID, current_user: UserToken):
    return db.query(OwnerNote).filter(
        OwnerNote.owner_id == owner_id,
        or_(OwnerNote.is_private.is_(False), OwnerNote.created_by == current_user.user_id)
    )


def get_category_summary(db: Session, owner_id: UUID, current_user: UserToken) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for (category,) in _visible_notes(db, owner_id, current_user).with_entities(OwnerNote.category):
        key = category or DEFAULT_NOTE_CATEGORY
        counts[key] = counts.get(key, 0) + 1
    return counts


def list_notes(db: Session, owner_id: UUID, current_user: UserToken,
               params: OwnerNoteRequest) -> OwnerNoteListResponse:
    """Pinned first, newest first. Private notes are only listed for their author."""
    owner = get_managed_owner(db, owner_id, current_user)

    query = _visible_notes(db, owner.id, current_user)
    if params.category:
        query = query.filter(OwnerNote.category == params.category)
    if params.pinned_only:
        query = query.filter(OwnerNote.is_pinned.is_(True))

    notes = query.order_by(OwnerNote.is_pinned.desc(), OwnerNote.created_at.desc()).all()
    # tags live in a JSON column, matched here to stay dialect neutral
    if params.tag:
        notes = [note for note in notes if params.tag in (note.tags or [])]

    total = len(notes)
    start = (params.page - 1) * params.limit
    page_rows = notes[start:start + params.limit]

    return {
        "data": [OwnerNoteOut.model_validate(note) for note in page_rows],
        "pagination": {
            "total": total,
            "pages": (total + params.limit - 1) // params.limit,
            "current": params.page,
            "limit": params.limit,
        },
        "summary": {
            "total_notes": total,
            "pinned": sum(1 for note in page_rows if note.is_pinned),
            "categories": get_category_summary(db, owner.id, current_user),
        },
    }


def create_note(db: Session, owner_id: UUID, payload: OwnerNoteCreate,
                current_user: UserToken) -> OwnerNoteOut:
    now = datetime.utcnow()

    with transaction(db):
        owner = get_managed_owner(db, owner_id, current_user)
        note = OwnerNote(
            owner_id=owner.id,
            content=payload.content,
            content_type=payload.content_type.value,
            category=payload.category,
            tags=list(payload.tags),
            attachments=list(payload.attachments),
            is_pinned=payload.is_pinned,
            is_private=payload.is_private,
            created_by=current_user.user_id,
            created_by_name=current_user.name or current_user.email,
            created_at=now,
        )
        db.add(note)
        db.flush()
        audit_log_crud.append(
            db,
            owner_id=owner.id,
            entity_type=AuditEntityType.NOTE,
            entity_id=note.id,
            action=AuditAction.CREATE,
            current_user=current_user,
            details={"category": note.category, "isPrivate": note.is_private},
            description="Note created",
            timestamp=now,
        )

    db.refresh(note)
    return OwnerNoteOut.model_validate(note)
