from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_permit_db as get_db
from shared.core.schemas import JsonOutResult, UserToken
from shared.utils.app_status_code import AppStatusCode
from ..crud import business_associations_crud as crud
from ..schemas.business_associations_schemas import (
    BusinessAssociationOut,
    BusinessAssociationUpdate,
    BusinessAssociationUpdateResponse,
)

router = APIRouter(
    prefix="/api/business-associations",
    tags=["business-associations"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/{association_id}", response_model=BusinessAssociationOut)
def get_business_association(
    association_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_business_association(db, association_id, current_user)


@router.put("/{association_id}", response_model=BusinessAssociationUpdateResponse)
def update_business_association(
    association_id: UUID,
    payload: BusinessAssociationUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    association, field_changes = crud.update_business_association(db, association_id, payload, current_user)
    return {"association": association, "field_changes": field_changes}


@router.delete("/{association_id}", response_model=None)
def delete_business_association(
    association_id: UUID,
    reason: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    result = crud.delete_business_association(db, association_id, reason, current_user)
    return JsonOutResult(
        data={"deletedAt": result["deleted_at"]},
        status="Success",
        status_code=AppStatusCode.DELETED_SUCCESSFULLY,
        message=result["message"],
    )
