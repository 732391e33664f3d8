# Import every model so Base.metadata knows all tables
from .business_owners import BusinessOwner
from .documents import Document
from .business_associations import BusinessAssociation
from .verification_attempts import VerificationAttempt
from .document_verifications import DocumentVerification
from .verification_certificates import VerificationCertificate
from .activity_logs import ActivityLog
from .owner_notes import OwnerNote

__all__ = [
    "BusinessOwner",
    "Document",
    "BusinessAssociation",
    "VerificationAttempt",
    "DocumentVerification",
    "VerificationCertificate",
    "ActivityLog",
    "OwnerNote",
]
