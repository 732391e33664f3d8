# app/schemas/business_owners_schemas.py
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, field_validator, model_validator

from shared.core.schemas import CamelModel, CommonQueryParams
from shared.helpers.masking_helper import mask_sensitive
from ..enum.verification_enum import VerificationStatus

# columns that are NOT NULL and may not be cleared by a patch
REQUIRED_OWNER_FIELDS = ("first_name", "last_name", "email")


class BusinessOwnerBase(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    maternal_last_name: Optional[str] = None
    email: EmailStr
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    tax_id: Optional[str] = None
    id_license_number: Optional[str] = None
    id_type: Optional[str] = None
    id_issuing_country: Optional[str] = None
    id_issuing_state: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class BusinessOwnerCreate(BusinessOwnerBase):
    pass


class BusinessOwnerUpdate(CamelModel):
    """Partial profile update; only the fields sent are compared and written."""
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    maternal_last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    tax_id: Optional[str] = None
    id_license_number: Optional[str] = None
    id_type: Optional[str] = None
    id_issuing_country: Optional[str] = None
    id_issuing_state: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    # optimistic concurrency: version the client last read
    expected_version: Optional[int] = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self):
        for field in REQUIRED_OWNER_FIELDS:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be cleared")
        return self

    def patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"expected_version"})


class BusinessOwnerRequest(CommonQueryParams):
    verification_status: Optional[VerificationStatus] = None


class BusinessOwnerOut(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    maternal_last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    tax_id: Optional[str] = None
    id_license_number: Optional[str] = None
    id_type: Optional[str] = None
    id_issuing_country: Optional[str] = None
    id_issuing_state: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    verification_status: VerificationStatus
    last_verified_at: Optional[datetime] = None
    verification_expires_at: Optional[datetime] = None
    assigned_manager_id: str
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tax_id", "id_license_number", mode="before")
    @classmethod
    def mask(cls, value):
        return mask_sensitive(value)


class VerificationSummary(CamelModel):
    current_status: VerificationStatus
    last_verified_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    days_until_expiry: Optional[int] = None
    certificate_id: Optional[UUID] = None
    last_attempt_id: Optional[UUID] = None


class OwnerCounts(CamelModel):
    documents: int = 0
    businesses: int = 0
    total_activity_logs: int = 0
    documents_awaiting_review: int = 0


class BusinessOwnerDetailOut(BusinessOwnerOut):
    full_name: str
    display_location: str
    verification_summary: VerificationSummary
    counts: OwnerCounts


class BusinessOwnerListResponse(CamelModel):
    owners: List[BusinessOwnerOut]
    total: int


class BusinessOwnerUpdateResponse(CamelModel):
    owner: BusinessOwnerOut
    field_changes: Dict[str, Dict[str, Any]]


class BusinessOwnerDeleteResponse(CamelModel):
    message: str
    deleted_at: datetime
    documents_deleted: int
