"""Built-in middlewares."""

import logging

import anyio

from lockstep.rooms.errors import LockstepError
from lockstep.router.types import ErrorInfo, HandlerFunc, Middleware, Reply, Request

INTERNAL_ERROR = "InternalError"
TIMEOUT_ERROR = "Timeout"


def recoverer(
    logger: logging.Logger | None = None,
) -> Middleware:
    """Middleware that logs unexpected handler failures.

    Caller-facing errors (:class:`LockstepError`) pass through unlogged.
    """
    log = logger or logging.getLogger("lockstep.router")

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        async def handler(request: Request) -> Reply:
            try:
                return await next_handler(request)
            except LockstepError:
                raise
            except Exception:
                log.exception(
                    "Handler failed for %s from connection %s",
                    request.operation,
                    request.connection_id,
                )
                raise

        return handler

    return middleware


def error_replies(
    logger: logging.Logger | None = None,
) -> Middleware:
    """Middleware that turns exceptions into error replies.

    Keeps a failing request from affecting anything but its own reply.
    """
    log = logger or logging.getLogger("lockstep.router")

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        async def handler(request: Request) -> Reply:
            try:
                return await next_handler(request)
            except LockstepError as e:
                log.warning(
                    "Rejected %s from connection %s: %s",
                    request.operation,
                    request.connection_id,
                    e.message,
                )
                return Reply(error=ErrorInfo(e.code, e.message))
            except TimeoutError:
                return Reply(error=ErrorInfo(TIMEOUT_ERROR, "Operation timed out"))
            except Exception:
                return Reply(error=ErrorInfo(INTERNAL_ERROR, "Internal server error"))

        return handler

    return middleware


def timeout(seconds: float) -> Middleware:
    """Middleware that cancels handler if it takes too long."""

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        async def handler(request: Request) -> Reply:
            with anyio.fail_after(seconds):
                return await next_handler(request)

        return handler

    return middleware
