# app/schemas/business_associations_schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, model_validator

from shared.core.schemas import CamelModel


class BusinessAssociationCreate(CamelModel):
    business_name: str = Field(min_length=1, max_length=255)
    business_type: Optional[str] = None
    role: Optional[str] = None
    ownership_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    is_primary_contact: bool = False
    notes: Optional[str] = None


class BusinessAssociationUpdate(CamelModel):
    """Partial update; only the fields sent are compared and written."""
    business_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    business_type: Optional[str] = None
    role: Optional[str] = None
    ownership_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    is_primary_contact: Optional[bool] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self):
        for field in ("business_name", "is_primary_contact"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be cleared")
        return self

    def patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class BusinessAssociationOut(CamelModel):
    id: UUID
    owner_id: UUID
    business_name: str
    business_type: Optional[str] = None
    role: Optional[str] = None
    ownership_percentage: Optional[Decimal] = None
    is_primary_contact: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    version: int


class BusinessAssociationListResponse(CamelModel):
    businesses: List[BusinessAssociationOut]
    total: int


class BusinessAssociationUpdateResponse(CamelModel):
    association: BusinessAssociationOut
    field_changes: Dict[str, Dict[str, Any]]
