"""Reject request bodies larger than the configured cap before they are parsed"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """
    Enforce ``max_body_bytes`` on every HTTP request.

    A declared Content-Length is checked up front. A body without one
    (chunked upload) is read here, up to the cap, and replayed to the app.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        content_length = request.headers.get("content-length")

        if content_length:
            try:
                too_large = int(content_length) > self.max_body_bytes
            except ValueError:
                response = JSONResponse(
                    status_code=400,
                    content={
                        "error": "Invalid request body",
                        "message": "Content-Length header is not a number",
                    },
                )
                await response(scope, receive, send)
                return
            if too_large:
                await self.reject(request, content_length, scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        chunks = []
        received = 0
        async for chunk in request.stream():
            received += len(chunk)
            if received > self.max_body_bytes:
                await self.reject(request, f"more than {received}", scope, receive, send)
                return
            chunks.append(chunk)

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def reject(self, request: Request, size, scope: Scope, receive: Receive, send: Send) -> None:
        logger.warning(
            f"Rejected {request.method} {request.url.path} - body of {size} bytes "
            f"exceeds {self.max_body_bytes}"
        )
        response = JSONResponse(
            status_code=413,
            content={
                "error": "Payload too large",
                "message": f"Request body must not exceed {self.max_body_bytes} bytes",
            },
        )
        await response(scope, receive, send)
