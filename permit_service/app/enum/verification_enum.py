from enum import Enum


class VerificationStatus(str, Enum):
    """Top-level status of a business owner."""
    UNVERIFIED = "UNVERIFIED"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    NEEDS_INFO = "NEEDS_INFO"


class VerificationDecision(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    NEEDS_INFO = "NEEDS_INFO"


class SectionStatus(str, Enum):
    INCOMPLETE = "INCOMPLETE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    NEEDS_INFO = "NEEDS_INFO"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_SECTION_STATUSES


TERMINAL_SECTION_STATUSES = frozenset(
    {SectionStatus.VERIFIED, SectionStatus.REJECTED, SectionStatus.NEEDS_INFO})


class VerificationSection(str, Enum):
    IDENTITY = "identity"
    ADDRESS = "address"
    BUSINESS_AFFILIATION = "businessAffiliation"


class DocumentVerificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    NEEDS_INFO = "NEEDS_INFO"


class DocumentCategory(str, Enum):
    IDENTITY = "IDENTITY"
    ADDRESS = "ADDRESS"
    BUSINESS = "BUSINESS"
    OTHER = "OTHER"


# owner status that mirrors a closing decision
OWNER_STATUS_BY_DECISION = {
    VerificationDecision.VERIFIED: VerificationStatus.VERIFIED,
    VerificationDecision.REJECTED: VerificationStatus.REJECTED,
    VerificationDecision.NEEDS_INFO: VerificationStatus.NEEDS_INFO,
}
