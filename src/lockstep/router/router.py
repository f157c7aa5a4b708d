"""Router - dispatches inbound operations to their handlers."""

import logging
from collections.abc import Callable

from pydantic import BaseModel, ValidationError

from lockstep.rooms.errors import BadRequest
from lockstep.router.handler import Handler
from lockstep.router.types import (
    HandlerFunc,
    Middleware,
    OperationFunc,
    Reply,
    Request,
)

logger = logging.getLogger(__name__)


class Router:
    """Routes requests by operation name through a middleware chain.

    Each operation has exactly one handler. The payload is validated
    against the handler's model before the handler runs.

    Usage:
        router = Router()
        router.add_middleware(error_replies(), recoverer())

        @router.handler("join_room", JoinRoom)
        async def join(request: Request, payload: JoinRoom) -> Room:
            ...
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self._middlewares: list[Middleware] = []
        self._chain: HandlerFunc | None = None

    def add_middleware(self, *middlewares: Middleware) -> None:
        """Append middlewares. The first one added is the outermost."""
        self._middlewares.extend(middlewares)
        self._chain = None

    def add_handler(
        self,
        name: str,
        payload_model: type[BaseModel],
        handler_func: OperationFunc,
    ) -> None:
        if name in self._handlers:
            msg = f"Handler for '{name}' already registered"
            raise ValueError(msg)
        self._handlers[name] = Handler(name, payload_model, handler_func)

    def handler(
        self,
        name: str,
        payload_model: type[BaseModel],
    ) -> Callable[[OperationFunc], OperationFunc]:
        """Decorator form of :meth:`add_handler`."""

        def decorator(func: OperationFunc) -> OperationFunc:
            self.add_handler(name, payload_model, func)
            return func

        return decorator

    @property
    def operations(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, request: Request) -> Reply:
        if self._chain is None:
            chain: HandlerFunc = self._route
            for middleware in reversed(self._middlewares):
                chain = middleware(chain)
            self._chain = chain
        return await self._chain(request)

    async def _route(self, request: Request) -> Reply:
        handler = self._handlers.get(request.operation)
        if handler is None:
            msg = f"Unknown operation '{request.operation}'"
            raise BadRequest(msg)

        try:
            payload = handler.payload_model.model_validate(request.payload)
        except ValidationError as e:
            raise BadRequest(_describe(e)) from e

        logger.debug(
            "Connection %s -> %s", request.connection_id, request.operation
        )
        result = await handler.handler_func(request, payload)
        return Reply(result=result)


def _describe(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "payload"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)
