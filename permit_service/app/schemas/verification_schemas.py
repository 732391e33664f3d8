# app/schemas/verification_schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import model_validator

from shared.core.schemas import CamelModel
from ..enum.verification_enum import (
    DocumentCategory,
    DocumentVerificationStatus,
    SectionStatus,
    VerificationDecision,
    VerificationStatus,
)
from .activity_logs_schemas import ActivityLogOut
from .business_owners_schemas import BusinessOwnerOut


class SectionState(CamelModel):
    status: SectionStatus = SectionStatus.INCOMPLETE
    notes: Optional[str] = None
    last_updated: Optional[datetime] = None


class Sections(CamelModel):
    identity: SectionState = SectionState()
    address: SectionState = SectionState()
    business_affiliation: SectionState = SectionState()


class SectionUpdateRequest(CamelModel):
    status: SectionStatus
    notes: Optional[str] = None


class SectionsUpdate(CamelModel):
    identity: Optional[SectionUpdateRequest] = None
    address: Optional[SectionUpdateRequest] = None
    business_affiliation: Optional[SectionUpdateRequest] = None


class VerificationAttemptOut(CamelModel):
    id: UUID
    owner_id: UUID
    initiated_at: datetime
    initiated_by: str
    initiated_by_name: Optional[str] = None
    completed_at: Optional[datetime] = None
    decision: VerificationDecision
    decision_reason: Optional[str] = None
    sections: Sections
    draft_data: Optional[Dict[str, Any]] = None
    last_updated: Optional[datetime] = None
    version: int
    certificate_id: Optional[UUID] = None


class VerificationCreateRequest(CamelModel):
    is_draft: bool = False
    draft_data: Optional[Dict[str, Any]] = None
    # draft target; without it the open attempt is used or one is opened
    verification_id: Optional[UUID] = None

    @model_validator(mode="after")
    def draft_requires_data(self):
        if self.is_draft and self.draft_data is None:
            raise ValueError("draftData is required when isDraft is true")
        return self


class DraftSaveResponse(CamelModel):
    id: UUID
    attempt_id: UUID
    saved_at: datetime
    version: int


class VerificationSubmitRequest(CamelModel):
    verification_id: UUID
    # when sent it must agree with the decision computed from the sections
    decision: Optional[VerificationDecision] = None
    decision_reason: Optional[str] = None
    sections: Optional[SectionsUpdate] = None


class VerificationSubmitResponse(CamelModel):
    verification_id: UUID
    decision: VerificationDecision
    completed_at: datetime
    certificate_id: Optional[UUID] = None
    updated_owner: BusinessOwnerOut


class DocumentDecisionRequest(CamelModel):
    verification_id: UUID
    document_id: UUID
    status: DocumentVerificationStatus
    notes: Optional[str] = None


class DocumentVerificationOut(CamelModel):
    id: UUID
    verification_attempt_id: UUID
    document_id: UUID
    status: DocumentVerificationStatus
    notes: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    version: int


class VerificationDocumentOut(CamelModel):
    id: UUID
    filename: str
    category: DocumentCategory
    uploaded_at: Optional[datetime] = None
    verification_status: Optional[DocumentVerificationStatus] = None
    verification_notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None


class VerificationDocumentsResponse(CamelModel):
    verification_id: UUID
    documents: List[VerificationDocumentOut]
    documents_by_category: Dict[str, List[VerificationDocumentOut]]
    total_documents: int
    verified_documents: int


class VerificationMetrics(CamelModel):
    total_attempts: int
    last_verified_at: Optional[datetime] = None
    verification_expires_at: Optional[datetime] = None
    days_until_expiry: Optional[int] = None
    is_expiring: bool = False
    certificate_id: Optional[UUID] = None


class VerificationDetailsResponse(CamelModel):
    owner_id: UUID
    owner_name: str
    verification_status: VerificationStatus
    aggregate_decision: Optional[VerificationDecision] = None
    metrics: VerificationMetrics
    current_attempt: Optional[VerificationAttemptOut] = None
    recent_attempts: List[VerificationAttemptOut] = []
    document_breakdown: Optional[Dict[str, List[VerificationDocumentOut]]] = None
    history: Optional[List[ActivityLogOut]] = None


class CertificateOut(CamelModel):
    id: UUID
    owner_id: UUID
    verification_attempt_id: UUID
    certificate_number: str
    issued_at: datetime
    expires_at: datetime
    verification_hash: str
    validation_url: str


class CertificateSummary(CamelModel):
    certificate_number: str
    issued_at: datetime
    expires_at: datetime
    owner_name: str
    verification_date: Optional[datetime] = None


class CertificateValidationResponse(CamelModel):
    valid: bool
    reason: Optional[str] = None
    certificate: Optional[CertificateSummary] = None
