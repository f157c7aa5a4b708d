"""Type definitions for the operation router."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Request:
    """One inbound operation from a connection."""

    connection_id: str
    operation: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorInfo:
    code: str
    message: str


@dataclass(frozen=True)
class Reply:
    """Outcome of an operation, reported back to the caller."""

    result: Any = None
    error: ErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


HandlerFunc = Callable[[Request], Awaitable[Reply]]
Middleware = Callable[[HandlerFunc], HandlerFunc]
OperationFunc = Callable[[Request, Any], Awaitable[Any]]
