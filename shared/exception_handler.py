import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from shared.core.schemas import JsonOutResult
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        # PermitServiceError and auth failures already carry the envelope
        if isinstance(exc.detail, dict) and "status_code" in exc.detail:
            wrapped = exc.detail
        else:
            wrapped = JsonOutResult(
                data=None,
                status="Failure",
                status_code=AppStatusCode.OPERATION_FAILED,
                message=str(exc.detail)
            ).model_dump()
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, wrapped["message"])
        else:
            logger.info("%s %s rejected (%s): %s", request.method,
                        request.url.path, exc.status_code, wrapped["message"])
        return JSONResponse(content=wrapped, status_code=exc.status_code or 400,
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        wrapped = JsonOutResult(
            data={"errors": jsonable_encoder(exc.errors())},
            status="Failure",
            status_code=AppStatusCode.INVALID_INPUT,
            message="Invalid request payload"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=422)

    # query models bound with Depends() validate their own fields
    @app.exception_handler(ValidationError)
    async def model_validation_exception_handler(request: Request, exc: ValidationError):
        wrapped = JsonOutResult(
            data={"errors": jsonable_encoder(exc.errors(include_url=False))},
            status="Failure",
            status_code=AppStatusCode.INVALID_INPUT,
            message="Invalid request parameters"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=422)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

        wrapped = JsonOutResult(
            data=None,
            status="Failure",
            status_code=AppStatusCode.OPERATION_FAILED,
            message="Internal server error"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=500)
