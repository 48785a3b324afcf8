# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request logging context middleware.

Every log record emitted while a request is handled carries the request
id and, when the actor header is present, the acting user's id. The
request id is taken from the X-Request-ID header or generated, and is
echoed back on the response.
"""

import logging
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind per-request identifiers to the structlog context.

    Attributes:
        _actor_header: Header carrying the acting user's id.
    """

    def __init__(self, app: ASGIApp, actor_header: str) -> None:
        """Initialize the middleware.

        Args:
            app: ASGI application.
            actor_header: Header carrying the acting user's id.
        """
        super().__init__(app)
        self._actor_header = actor_header

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())

        clear_context()
        bind_context(request_id=request_id, method=request.method, path=request.url.path)
        actor_id = request.headers.get(self._actor_header)
        if actor_id:
            bind_context(actor_id=actor_id)

        try:
            response = await call_next(request)
        finally:
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
