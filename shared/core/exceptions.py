from typing import Any, Dict, List, Optional, Type

from fastapi import HTTPException, status

from shared.core.schemas import JsonOutResult
from shared.utils.app_status_code import AppStatusCode


class PermitServiceError(HTTPException):
    """Base for every domain failure raised by the service.

    Subclasses HTTPException so the API layer renders them without any extra
    mapping; the wizard client rebuilds them from the failure envelope.
    """
    http_status: int = status.HTTP_400_BAD_REQUEST
    app_status_code: str = AppStatusCode.OPERATION_FAILED

    def __init__(self, message: str, app_status_code: Optional[str] = None, **details: Any):
        self.message = message
        if app_status_code:
            self.app_status_code = app_status_code
        self.details = details
        super().__init__(
            status_code=self.http_status,
            detail=JsonOutResult(
                data=details or None,
                status="Failure",
                status_code=self.app_status_code,
                message=message,
            ).model_dump(),
        )

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_envelope(cls, message: str, app_status_code: str, data: Optional[Dict[str, Any]]):
        return cls(message, app_status_code=app_status_code, **(data or {}))


class UnauthorizedError(PermitServiceError):
    """Caller is not the owner's assigned manager."""
    http_status = status.HTTP_403_FORBIDDEN
    app_status_code = AppStatusCode.AUTHORIZATION_FORBIDDEN


class NotFoundError(PermitServiceError):
    http_status = status.HTTP_404_NOT_FOUND
    app_status_code = AppStatusCode.RECORD_NOT_FOUND


class ConflictError(PermitServiceError):
    http_status = status.HTTP_409_CONFLICT
    app_status_code = AppStatusCode.DUPLICATE_ADD_ERROR


class ValidationError(PermitServiceError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    app_status_code = AppStatusCode.INVALID_INPUT


class InvalidTransitionError(PermitServiceError):
    http_status = status.HTTP_409_CONFLICT
    app_status_code = AppStatusCode.INVALID_STATE_TRANSITION


class IncompleteSubmissionError(InvalidTransitionError):
    app_status_code = AppStatusCode.INCOMPLETE_SUBMISSION

    def __init__(self, sections: List[str], message: Optional[str] = None, **details: Any):
        self.sections = list(sections)
        super().__init__(
            message or f"Verification cannot be submitted, incomplete sections: {', '.join(self.sections)}",
            sections=self.sections,
            **details,
        )

    @classmethod
    def from_envelope(cls, message, app_status_code, data):
        data = dict(data or {})
        return cls(data.pop("sections", []), message=message, **data)


ERRORS_BY_STATUS_CODE: Dict[str, Type[PermitServiceError]] = {
    AppStatusCode.AUTHORIZATION_FORBIDDEN: UnauthorizedError,
    AppStatusCode.RECORD_NOT_FOUND: NotFoundError,
    AppStatusCode.DUPLICATE_ADD_ERROR: ConflictError,
    AppStatusCode.STALE_VERSION: ConflictError,
    AppStatusCode.INVALID_INPUT: ValidationError,
    AppStatusCode.REQUIRED_VALIDATION_ERROR: ValidationError,
    AppStatusCode.INVALID_STATE_TRANSITION: InvalidTransitionError,
    AppStatusCode.INCOMPLETE_SUBMISSION: IncompleteSubmissionError,
}


def error_from_envelope(http_status: int, body: Any) -> PermitServiceError:
    """Rebuild the typed error from a failure envelope returned by the API."""
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or f"Request failed with HTTP {http_status}"
    code = str(body.get("status_code") or AppStatusCode.OPERATION_FAILED)
    data = body.get("data") if isinstance(body.get("data"), dict) else None

    error_cls = ERRORS_BY_STATUS_CODE.get(code, PermitServiceError)
    error = error_cls.from_envelope(message, code, data)
    if error_cls is PermitServiceError:
        error.status_code = http_status
    return error
