from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.context import request_id_ctx

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        rid = (request.headers.get("x-request-id") or "")[:64] or str(uuid.uuid4())
        token = request_id_ctx.set(rid)
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            response.headers["x-request-id"] = rid
            logger.info(
                "request_complete method=%s path=%s status=%d ms=%.1f",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response
        finally:
            request_id_ctx.reset(token)
