from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_permit_db as get_db
from shared.core.schemas import UserToken
from ..crud import certificate_crud, document_verification_crud, verification_crud as crud
from ..enum.verification_enum import VerificationSection
from ..schemas.verification_schemas import (
    CertificateOut,
    DocumentDecisionRequest,
    DocumentVerificationOut,
    SectionUpdateRequest,
    VerificationAttemptOut,
    VerificationCreateRequest,
    VerificationDetailsResponse,
    VerificationDocumentsResponse,
    VerificationSubmitRequest,
    VerificationSubmitResponse,
)

router = APIRouter(
    prefix="/api/business-owners/{owner_id}/verification",
    tags=["verification"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("", response_model=VerificationDetailsResponse)
def get_verification(
    owner_id: UUID,
    include_documents: bool = Query(False, alias="includeDocuments"),
    include_history: bool = Query(False, alias="includeHistory"),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_verification_status(db, owner_id, current_user, include_documents, include_history)


@router.post("", response_model=None)
def create_verification(
    owner_id: UUID,
    payload: VerificationCreateRequest,
    response: Response,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    if payload.is_draft:
        return crud.save_draft(db, owner_id, payload.draft_data, current_user,
                               attempt_id=payload.verification_id)

    response.status_code = status.HTTP_201_CREATED
    return crud.create_verification_attempt(db, owner_id, current_user)


@router.put("", response_model=VerificationSubmitResponse)
def submit_verification(
    owner_id: UUID,
    payload: VerificationSubmitRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.submit_verification(db, owner_id, payload, current_user)


@router.patch("/{attempt_id}/sections/{section}", response_model=VerificationAttemptOut)
def update_section(
    owner_id: UUID,
    attempt_id: UUID,
    section: VerificationSection,
    payload: SectionUpdateRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.set_section_status(db, owner_id, attempt_id, section, payload, current_user)


@router.get("/documents", response_model=VerificationDocumentsResponse)
def get_verification_documents(
    owner_id: UUID,
    verification_id: UUID = Query(..., alias="verificationId"),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return document_verification_crud.get_verification_documents(db, owner_id, verification_id, current_user)


@router.post("/documents", response_model=DocumentVerificationOut)
def update_document_verification(
    owner_id: UUID,
    payload: DocumentDecisionRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return document_verification_crud.record_document_decision(db, owner_id, payload, current_user)


@router.get("/certificate", response_model=CertificateOut)
def get_certificate(
    owner_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return certificate_crud.get_latest_certificate(db, owner_id, current_user)
