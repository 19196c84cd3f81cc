from __future__ import annotations

import logging
from typing import TypeVar

import anyio

from bodybuffer.convertors import parse_size
from bodybuffer.datastructures import BufferedBody, StreamingBody
from bodybuffer.requests import ServerRequest
from bodybuffer.types import ASGIApp, CallNext, Receive, Scope, Send

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestBodyBuffer:
    """
    Buffers a request body in memory before calling the next stage.

    Bodies larger than `max_body_size` are discarded and the next stage sees
    an empty body instead. This is not an error: downstream code that cares
    has to look at the body size. Errors raised by the stream propagate and
    the next stage is never called.
    """

    def __init__(self, max_body_size: int | str | None = None) -> None:
        self.max_body_size = parse_size(max_body_size)

    async def __call__(self, request: ServerRequest, call_next: CallNext[T]) -> T:
        body = request.body_value

        # Nothing in this branch may await before call_next.
        if isinstance(body, BufferedBody):
            if body.size > self.max_body_size:
                logger.debug("Discarding buffered body of %d bytes, limit is %d", body.size, self.max_body_size)
                request = request.with_body(BufferedBody.empty())
            return await call_next(request)

        if body.size == 0:
            return await call_next(request.with_body(BufferedBody.empty()))

        limit = self.max_body_size
        if body.size is not None and body.size > limit:
            logger.debug("Declared body size %d exceeds limit %d, draining", body.size, limit)
            limit = 0

        content = await self.buffer(body, limit)
        return await call_next(request.with_body(BufferedBody(content)))

    async def buffer(self, body: StreamingBody, limit: int) -> bytes:
        chunks: list[bytes] = []
        received = 0
        exceeded = False

        try:
            async for chunk in body:
                if exceeded:
                    continue
                received += len(chunk)
                if received > limit:
                    logger.debug("Body exceeded limit of %d bytes, discarding", limit)
                    exceeded = True
                    chunks.clear()
                    continue
                chunks.append(chunk)
        except Exception:
            logger.debug("Request body stream failed after %d bytes", received, exc_info=True)
            raise
        finally:
            with anyio.CancelScope(shield=True):
                await body.aclose()

        return b"".join(chunks)


class RequestBodyBufferMiddleware:
    def __init__(self, app: ASGIApp, max_body_size: int | str | None = None) -> None:
        self.app = app
        self.buffer = RequestBodyBuffer(max_body_size)

    @property
    def max_body_size(self) -> int:
        return self.buffer.max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def call_next(request: ServerRequest) -> None:
            await self.app(request.scope, request.receive, send)

        request = ServerRequest.from_receive(scope, receive)
        if request.body_value.size == 0:
            # Read the transport's empty body so the app's later receive() calls get the disconnect.
            await self.buffer.buffer(request.body_value, 0)
            request = request.with_body(BufferedBody.empty())

        await self.buffer(request, call_next)
