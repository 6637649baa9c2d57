from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


logger = logging.getLogger(__name__)

_GAME_PATH = re.compile(r"^/api/games/([^/]+)")


def game_id_from_path(path: str) -> Optional[str]:
    m = _GAME_PATH.match(path)
    return m.group(1) if m else None


class RequestIDLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, log request/response, and attach headers."""

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        game_id = game_id_from_path(request.url.path)

        logger.info(
            "request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "game_id": game_id,
            },
        )

        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["x-request-id"] = request_id
        response.headers["x-response-time-ms"] = str(duration_ms)

        logger.info(
            "response",
            extra={
                "request_id": request_id,
                "game_id": game_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
