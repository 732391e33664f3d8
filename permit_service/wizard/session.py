# permit_service/wizard/session.py
"""Immutable wizard state and the pure transitions over it.

Nothing here talks to the API; the controller applies these transitions and
performs the persistence side effects.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from permit_service.app.enum.verification_enum import (
    DocumentVerificationStatus,
    SectionStatus,
    VerificationSection,
)


class WizardStep(str, Enum):
    WELCOME = "welcome"
    IDENTITY = "identity"
    ADDRESS = "address"
    BUSINESS_AFFILIATION = "business_affiliation"
    SUMMARY = "summary"
    COMPLETE = "complete"


STEP_ORDER = list(WizardStep)
SECTION_KEYS = [section.value for section in VerificationSection]


@dataclass(frozen=True)
class SectionDraft:
    status: SectionStatus = SectionStatus.INCOMPLETE
    notes: Optional[str] = None
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentDraft:
    document_id: str
    filename: Optional[str] = None
    category: Optional[str] = None
    status: Optional[DocumentVerificationStatus] = None
    notes: Optional[str] = None


def _default_sections() -> Dict[str, SectionDraft]:
    return {key: SectionDraft() for key in SECTION_KEYS}


@dataclass(frozen=True)
class WizardSession:
    """One operator's in-memory view of a verification attempt.

    ``revision`` grows with every local edit, so a save can tell whether the
    session changed while it was in flight.
    """
    owner_id: str
    attempt_id: Optional[str] = None
    current_step: WizardStep = WizardStep.WELCOME
    sections: Dict[str, SectionDraft] = field(default_factory=_default_sections)
    documents: Dict[str, DocumentDraft] = field(default_factory=dict)
    is_dirty: bool = False
    revision: int = 0
    last_saved: Optional[datetime] = None
    error: Optional[str] = None


def _edit(session: WizardSession, **changes: Any) -> WizardSession:
    return replace(session, is_dirty=True, revision=session.revision + 1, **changes)


# ----------------- Navigation -----------------
def next_step(session: WizardSession) -> WizardSession:
    index = min(STEP_ORDER.index(session.current_step) + 1, len(STEP_ORDER) - 1)
    return _edit(session, current_step=STEP_ORDER[index])


def prev_step(session: WizardSession) -> WizardSession:
    index = max(STEP_ORDER.index(session.current_step) - 1, 0)
    return _edit(session, current_step=STEP_ORDER[index])


def go_to_step(session: WizardSession, step) -> WizardSession:
    return _edit(session, current_step=WizardStep(step))


# ----------------- Sections / documents -----------------
def update_section(session: WizardSession, section, status, notes: Optional[str] = None,
                   now: Optional[datetime] = None) -> WizardSession:
    """Set a section's status; omitted notes keep the previous notes."""
    key = VerificationSection(section).value
    previous = session.sections.get(key, SectionDraft())
    sections = dict(session.sections)
    sections[key] = SectionDraft(
        status=SectionStatus(status),
        notes=notes if notes is not None else previous.notes,
        last_updated=now or datetime.utcnow(),
    )
    return _edit(session, sections=sections)


def apply_document_decision(session: WizardSession, document_id: str, status,
                            notes: Optional[str] = None) -> WizardSession:
    # already persisted by the server, so the session stays as dirty as it was
    previous = session.documents.get(str(document_id), DocumentDraft(document_id=str(document_id)))
    documents = dict(session.documents)
    documents[str(document_id)] = replace(
        previous,
        status=DocumentVerificationStatus(status),
        notes=notes if notes is not None else previous.notes,
    )
    return replace(session, documents=documents, error=None)


def incomplete_sections(session: WizardSession) -> List[str]:
    return [
        key for key in SECTION_KEYS
        if not session.sections.get(key, SectionDraft()).status.is_terminal
    ]


# ----------------- Persistence bookkeeping -----------------
def mark_saved(session: WizardSession, revision: int,
               saved_at: Optional[datetime] = None) -> WizardSession:
    """Record a confirmed save of ``revision``; later edits keep the session dirty."""
    return replace(
        session,
        is_dirty=session.revision != revision,
        last_saved=saved_at or datetime.utcnow(),
        error=None,
    )


def with_error(session: WizardSession, message: Optional[str]) -> WizardSession:
    return replace(session, error=message)


def draft_data(session: WizardSession) -> Dict[str, Any]:
    return {
        "currentStep": session.current_step.value,
        "sections": sections_payload(session),
    }


def sections_payload(session: WizardSession) -> Dict[str, Dict[str, Any]]:
    payload = {}
    for key in SECTION_KEYS:
        draft = session.sections.get(key, SectionDraft())
        payload[key] = {
            "status": draft.status.value,
            "notes": draft.notes,
            "lastUpdated": draft.last_updated.isoformat() if draft.last_updated else None,
        }
    return payload


def _parse_sections(raw: Optional[Mapping]) -> Dict[str, SectionDraft]:
    sections = _default_sections()
    for key in SECTION_KEYS:
        value = (raw or {}).get(key)
        if not value:
            continue
        last_updated = value.get("lastUpdated")
        sections[key] = SectionDraft(
            status=SectionStatus(value.get("status") or SectionStatus.INCOMPLETE.value),
            notes=value.get("notes"),
            last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
        )
    return sections


def session_from_attempt(owner_id: str, attempt: Mapping,
                         documents: Optional[Mapping] = None) -> WizardSession:
    """Build a clean session from an attempt as returned by the API.

    A saved draft wins over the attempt's stored sections since it holds the
    operator's latest unsubmitted work.
    """
    draft = attempt.get("draftData") or {}
    step = draft.get("currentStep") or WizardStep.WELCOME.value

    loaded_documents = {}
    for items in (documents or {}).values():
        for item in items:
            status = item.get("verificationStatus")
            loaded_documents[str(item["id"])] = DocumentDraft(
                document_id=str(item["id"]),
                filename=item.get("filename"),
                category=item.get("category"),
                status=DocumentVerificationStatus(status) if status else None,
                notes=item.get("verificationNotes"),
            )

    return WizardSession(
        owner_id=str(owner_id),
        attempt_id=str(attempt["id"]),
        current_step=WizardStep(step),
        sections=_parse_sections(draft.get("sections") or attempt.get("sections")),
        documents=loaded_documents,
    )
