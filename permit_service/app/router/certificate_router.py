from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.database import get_permit_db as get_db
from ..crud import certificate_crud as crud
from ..schemas.verification_schemas import CertificateValidationResponse

# public: anyone holding the hash may check a certificate
router = APIRouter(prefix="/api/certificates", tags=["certificates"])


@router.get("/verify/{verification_hash}", response_model=CertificateValidationResponse)
def verify_certificate(
    verification_hash: str,
    db: Session = Depends(get_db),
):
    return crud.validate_certificate(db, verification_hash)
