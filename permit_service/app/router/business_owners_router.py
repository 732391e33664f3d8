from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_permit_db as get_db
from shared.core.schemas import JsonOutResult, Lookup, UserToken
from shared.utils.app_status_code import AppStatusCode
from ..crud import (
    audit_log_crud,
    business_associations_crud,
    business_owners_crud as crud,
    documents_crud,
    owner_notes_crud,
)
from ..schemas.activity_logs_schemas import ActivityLogListResponse, ActivityLogRequest
from ..schemas.business_associations_schemas import (
    BusinessAssociationCreate,
    BusinessAssociationListResponse,
    BusinessAssociationOut,
)
from ..schemas.business_owners_schemas import (
    BusinessOwnerCreate,
    BusinessOwnerDetailOut,
    BusinessOwnerListResponse,
    BusinessOwnerOut,
    BusinessOwnerRequest,
    BusinessOwnerUpdate,
    BusinessOwnerUpdateResponse,
)
from ..schemas.documents_schemas import DocumentCreate, DocumentListResponse, DocumentOut
from ..schemas.owner_notes_schemas import (
    OwnerNoteCreate,
    OwnerNoteListResponse,
    OwnerNoteOut,
    OwnerNoteRequest,
)

router = APIRouter(
    prefix="/api/business-owners",
    tags=["business-owners"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("", response_model=BusinessOwnerListResponse)
def get_business_owners(
    params: BusinessOwnerRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_all_owners(db, current_user, params)


@router.post("", response_model=BusinessOwnerOut, status_code=status.HTTP_201_CREATED)
def create_business_owner(
    payload: BusinessOwnerCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.create_owner(db, payload, current_user)


@router.get("/status-lookup", response_model=List[Lookup])
def verification_status_lookup():
    return crud.verification_status_lookup()


@router.get("/{owner_id}", response_model=BusinessOwnerDetailOut)
def get_business_owner(
    owner_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_owner_detail(db, owner_id, current_user)


@router.put("/{owner_id}", response_model=BusinessOwnerUpdateResponse)
def update_business_owner(
    owner_id: UUID,
    payload: BusinessOwnerUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    owner, field_changes = crud.update_owner(db, owner_id, payload, current_user)
    return {"owner": owner, "field_changes": field_changes}


@router.delete("/{owner_id}", response_model=None)
def delete_business_owner(
    owner_id: UUID,
    reason: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    result = crud.soft_delete_owner(db, owner_id, reason, current_user)
    return JsonOutResult(
        data={"deletedAt": result["deleted_at"], "documentsDeleted": result["documents_deleted"]},
        status="Success",
        status_code=AppStatusCode.DELETED_SUCCESSFULLY,
        message=result["message"],
    )


@router.get("/{owner_id}/activity-logs", response_model=ActivityLogListResponse)
def get_activity_logs(
    owner_id: UUID,
    params: ActivityLogRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return audit_log_crud.list_activity_logs(db, owner_id, current_user, params)


@router.get("/{owner_id}/documents", response_model=DocumentListResponse)
def get_documents(
    owner_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return documents_crud.list_documents(db, owner_id, current_user)


@router.post("/{owner_id}/documents", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def create_document(
    owner_id: UUID,
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return documents_crud.create_document(db, owner_id, payload, current_user)


@router.delete("/{owner_id}/documents/{document_id}", response_model=None)
def delete_document(
    owner_id: UUID,
    document_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    result = documents_crud.delete_document(db, owner_id, document_id, current_user)
    return JsonOutResult(
        data={"deletedAt": result["deleted_at"]},
        status="Success",
        status_code=AppStatusCode.DELETED_SUCCESSFULLY,
        message=result["message"],
    )


@router.get("/{owner_id}/businesses", response_model=BusinessAssociationListResponse)
def get_businesses(
    owner_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return business_associations_crud.list_business_associations(db, owner_id, current_user)


@router.post("/{owner_id}/businesses", response_model=BusinessAssociationOut,
             status_code=status.HTTP_201_CREATED)
def create_business(
    owner_id: UUID,
    payload: BusinessAssociationCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return business_associations_crud.create_business_association(db, owner_id, payload, current_user)


@router.get("/{owner_id}/notes", response_model=OwnerNoteListResponse)
def get_notes(
    owner_id: UUID,
    params: OwnerNoteRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return owner_notes_crud.list_notes(db, owner_id, current_user, params)


@router.post("/{owner_id}/notes", response_model=OwnerNoteOut, status_code=status.HTTP_201_CREATED)
def create_note(
    owner_id: UUID,
    payload: OwnerNoteCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return owner_notes_crud.create_note(db, owner_id, payload, current_user)
