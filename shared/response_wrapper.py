import json
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import JSONResponse, Response

from shared.core.schemas import JsonOutResult
from shared.utils.app_status_code import AppStatusCode


class JsonResponseMiddleware(BaseHTTPMiddleware):
    """Wraps successful JSON bodies into the JsonOutResult envelope."""

    async def dispatch(self, request, call_next: Callable):
        # Skip OpenAPI/Swagger endpoints
        if request.url.path.startswith("/openapi") or request.url.path.startswith("/docs") or request.url.path.startswith("/redoc"):
            return await call_next(request)

        response = await call_next(request)

        # Only wrap successful JSON responses
        if 200 <= response.status_code < 400 and "application/json" in response.headers.get("content-type", ""):
            body_bytes = b""
            async for chunk in response.body_iterator:
                body_bytes += chunk

            try:
                data = json.loads(body_bytes.decode("utf-8"))
            except ValueError:
                # non-JSON, return as-is
                return Response(content=body_bytes, status_code=response.status_code,
                                headers=dict(response.headers))

            # Skip if already wrapped
            if isinstance(data, dict) and {"status", "status_code", "message"}.issubset(data.keys()):
                wrapped = data
            else:
                wrapped = JsonOutResult(
                    data=data,
                    status="Success",
                    status_code=AppStatusCode.OPERATION_SUCCESSFUL,
                    message="Request completed successfully"
                ).model_dump()

            return JSONResponse(
                content=wrapped,
                status_code=response.status_code,
                headers={k: v for k, v in response.headers.items()
                         if k.lower() != "content-length"}
            )

        return response
