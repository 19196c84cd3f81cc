from __future__ import annotations

from collections.abc import AsyncIterator

from starlette.datastructures import Headers
from starlette.requests import HTTPConnection
from starlette.types import Message, Receive, Scope

from bodybuffer.datastructures import Body, BufferedBody, StreamingBody


async def empty_receive() -> Message:
    return {"type": "http.disconnect"}


def declared_size(headers: Headers) -> int | None:
    content_length = headers.get("content-length")
    if content_length is None or not (content_length.isascii() and content_length.isdigit()):
        return None
    return int(content_length)


class ServerRequest(HTTPConnection):
    """
    An HTTP request carrying a replaceable body.

    Instances are never changed in place. `with_body()` hands back a new
    request that shares the scope and transport of the original.
    """

    def __init__(self, scope: Scope, body: Body, receive: Receive = empty_receive) -> None:
        super().__init__(scope)
        assert scope["type"] == "http"
        self._body_value = body
        self._transport_receive = receive

    @classmethod
    def from_receive(cls, scope: Scope, receive: Receive) -> ServerRequest:
        request = cls(scope, BufferedBody.empty(), receive)
        body = StreamingBody.from_receive(receive, size=declared_size(request.headers))
        return request.with_body(body)

    @property
    def method(self) -> str:
        return self.scope["method"]

    @property
    def body_value(self) -> Body:
        return self._body_value

    def with_body(self, body: Body) -> ServerRequest:
        return self.__class__(self.scope, body, self._transport_receive)

    async def body(self) -> bytes:
        if isinstance(self._body_value, BufferedBody):
            return self._body_value.content
        return b"".join([chunk async for chunk in self._body_value])

    @property
    def receive(self) -> Receive:
        """An ASGI receive callable that replays this request's body."""
        body = self._body_value
        transport_receive = self._transport_receive
        chunks: AsyncIterator[bytes] | None = None
        body_sent = False

        async def receive() -> Message:
            nonlocal chunks, body_sent
            # Once the body is out, the transport reports the disconnect.
            if body_sent:
                return await transport_receive()
            if isinstance(body, BufferedBody):
                body_sent = True
                return {"type": "http.request", "body": body.content, "more_body": False}
            if chunks is None:
                chunks = aiter(body)
            try:
                chunk = await anext(chunks)
            except StopAsyncIteration:
                body_sent = True
                return {"type": "http.request", "body": b"", "more_body": False}
            return {"type": "http.request", "body": chunk, "more_body": True}

        return receive
