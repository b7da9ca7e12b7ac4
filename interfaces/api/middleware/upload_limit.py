"""Reject request bodies that cannot fit under the upload size ceiling."""

from __future__ import annotations

from contextlib import suppress
from typing import TYPE_CHECKING

import structlog
from fastapi import status
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger()

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class _BodyTooLargeError(Exception):
    pass


class UploadSizeLimitMiddleware:
    """Abort uploads as soon as the body grows past ``max_body_bytes``.

    A declared ``Content-Length`` over the limit is refused before the body is
    read. Otherwise bytes are counted as they arrive; once the limit is crossed
    the remaining body is never buffered and the app's own response is replaced
    by a 403.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in _BODY_METHODS:
            await self.app(scope, receive, send)
            return

        content_length = self._content_length(scope)
        if content_length is not None and content_length > self.max_body_bytes:
            logger.info("upload_rejected_content_length", content_length=content_length)
            await self._reject(scope, receive, send)
            return

        received = 0
        exceeded = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    exceeded = True
                    raise _BodyTooLargeError
            return message

        async def guarded_send(message: Message) -> None:
            if not exceeded:
                await send(message)

        with suppress(_BodyTooLargeError):
            await self.app(scope, limited_receive, guarded_send)

        if exceeded:
            logger.info("upload_rejected_streamed", received_bytes=received)
            await self._reject(scope, receive, send)

    @staticmethod
    def _content_length(scope: Scope) -> int | None:
        for key, value in scope.get("headers", []):
            if key == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(
            {"detail": "Request body exceeds the upload size limit"},
            status_code=status.HTTP_403_FORBIDDEN,
        )
        await response(scope, receive, send)
