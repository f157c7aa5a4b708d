"""lockstep.router: Inbound operation routing layer."""

from lockstep.router.middleware import error_replies, recoverer, timeout
from lockstep.router.router import Router
from lockstep.router.types import (
    ErrorInfo,
    HandlerFunc,
    Middleware,
    OperationFunc,
    Reply,
    Request,
)

__all__ = [
    "ErrorInfo",
    "HandlerFunc",
    "Middleware",
    "OperationFunc",
    "Reply",
    "Request",
    "Router",
    "error_replies",
    "recoverer",
    "timeout",
]
