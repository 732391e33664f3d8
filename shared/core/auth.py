from datetime import datetime, timedelta
from typing import Optional
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from shared.core.config import settings
from shared.core.schemas import JsonOutResult, UserToken

security = HTTPBearer(auto_error=False)


def _unauthorized(message: str, status_code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=JsonOutResult(
            data=None,
            status="Failure",
            status_code=status_code,
            message=message
        ).model_dump(),
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    payload = data.copy()

    expires = datetime.utcnow() + timedelta(
        minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload['exp'] = expires

    # Ensure "name" exists (used as performedByName in audit entries)
    if 'name' not in payload and 'email' in payload:
        payload['name'] = payload['email']
    payload.setdefault('role', UserRole.PERMIT_MANAGER.value)

    return jwt.encode(payload, settings.JWT_SECRET,
                      algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token into the caller identity."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        user = UserToken(**payload)
    except JWTError:
        raise _unauthorized("Invalid or expired token",
                            AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED)
    except PydanticValidationError:
        raise _unauthorized("Invalid token structure",
                            AppStatusCode.AUTHENTICATION_TOKEN_INVALID)

    if not user.user_id:
        raise _unauthorized("Invalid token structure",
                            AppStatusCode.AUTHENTICATION_TOKEN_INVALID)
    return user


def validate_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserToken:
    if credentials is None:
        raise _unauthorized("Missing bearer token",
                            AppStatusCode.AUTHENTICATION_TOKEN_INVALID)
    return verify_token(credentials.credentials)
