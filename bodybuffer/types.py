from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from starlette.types import ASGIApp, Message, Receive, Scope, Send

if TYPE_CHECKING:
    from bodybuffer.requests import ServerRequest

T = TypeVar("T")

CallNext = Callable[["ServerRequest"], Awaitable[T]]

__all__ = ["ASGIApp", "CallNext", "Message", "Receive", "Scope", "Send"]
