from __future__ import annotations

import typing
from collections.abc import AsyncIterable, AsyncIterator

from starlette.requests import ClientDisconnect
from starlette.types import Receive


class BufferedBody:
    """A request body whose full content is available without waiting."""

    __slots__ = ("_content",)

    def __init__(self, content: bytes | bytearray | memoryview = b"") -> None:
        if not isinstance(content, (bytes, bytearray, memoryview)):
            raise TypeError(f"Body content must be bytes, not {type(content).__name__}")
        self._content = bytes(content)

    @classmethod
    def empty(cls) -> BufferedBody:
        return cls(b"")

    @property
    def size(self) -> int:
        return len(self._content)

    @property
    def content(self) -> bytes:
        return self._content

    def getvalue(self) -> bytes:
        return self._content

    def __len__(self) -> int:
        return len(self._content)

    def __bytes__(self) -> bytes:
        return self._content

    def __eq__(self, other: typing.Any) -> bool:
        if not isinstance(other, BufferedBody):
            return NotImplemented
        return self._content == other._content

    def __hash__(self) -> int:
        return hash(self._content)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={self.size})"


class StreamingBody:
    """
    A request body delivered as a sequence of chunks.

    Iteration ending normally is the end of the body; an exception raised
    while iterating is a transport error. `size` is the length the client
    declared up front, or `None` if it declared nothing.
    """

    def __init__(self, stream: AsyncIterable[bytes], size: int | None = None) -> None:
        if size is not None and size < 0:
            raise ValueError("Declared size must not be negative")
        self._stream = stream
        self._size = size
        self._consumed = False

    @classmethod
    def from_receive(cls, receive: Receive, size: int | None = None) -> StreamingBody:
        return cls(_receive_chunks(receive), size=size)

    @property
    def size(self) -> int | None:
        return self._size

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("Stream consumed")
        self._consumed = True
        return aiter(self._stream)

    async def aclose(self) -> None:
        aclose = getattr(self._stream, "aclose", None)
        if aclose is not None:
            await aclose()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={self.size!r})"


Body = typing.Union[BufferedBody, StreamingBody]


async def _receive_chunks(receive: Receive) -> AsyncIterator[bytes]:
    while True:
        message = await receive()
        if message["type"] == "http.request":
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                return
        elif message["type"] == "http.disconnect":  # pragma: no branch
            raise ClientDisconnect()
