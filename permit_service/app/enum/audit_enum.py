from enum import Enum


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditEntityType(str, Enum):
    BUSINESS_OWNER = "business_owner"
    DOCUMENT = "document"
    BUSINESS_ASSOCIATION = "business_association"
    VERIFICATION_ATTEMPT = "verification_attempt"
    DOCUMENT_VERIFICATION = "document_verification"
    VERIFICATION_CERTIFICATE = "verification_certificate"
    NOTE = "note"
