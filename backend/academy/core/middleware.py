from __future__ import annotations

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies above the configured size before they reach a route.

    Profile photos and documents travel inline as base64, so the limit is
    generous but still bounded.
    """

    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        declared = request.headers.get("content-length")
        if not declared or not declared.isdigit():
            return await call_next(request)

        size = int(declared)
        if size > self._max_bytes:
            return JSONResponse(
                status_code=413,
                content={"message": f"Payload of {size} bytes exceeds the {self._max_bytes} byte limit.", "details": {}},
            )
        return await call_next(request)
