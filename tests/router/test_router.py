"""Tests for Router."""

from typing import Any

import pytest
from pydantic import BaseModel

from lockstep.rooms import BadRequest
from lockstep.router import HandlerFunc, Reply, Request, Router

pytestmark = pytest.mark.anyio


class Echo(BaseModel):
    text: str
    times: int = 1


@pytest.fixture
def router() -> Router:
    router = Router()

    @router.handler("echo", Echo)
    async def echo(request: Request, payload: Echo) -> str:
        return payload.text * payload.times

    return router


class TestDispatch:
    async def test_routes_validated_payload(self, router: Router) -> None:
        reply = await router.dispatch(
            Request("c1", "echo", {"text": "ab", "times": 2})
        )

        assert reply.ok
        assert reply.result == "abab"

    async def test_unknown_operation(self, router: Router) -> None:
        with pytest.raises(BadRequest, match="Unknown operation 'nope'"):
            await router.dispatch(Request("c1", "nope"))

    async def test_invalid_payload(self, router: Router) -> None:
        with pytest.raises(BadRequest, match="text"):
            await router.dispatch(Request("c1", "echo", {"times": 2}))

    async def test_handler_sees_request(self) -> None:
        router = Router()
        seen: list[Request] = []

        async def record(request: Request, payload: Any) -> None:
            seen.append(request)

        router.add_handler("record", Echo, record)
        request = Request("c7", "record", {"text": "x"})

        await router.dispatch(request)

        assert seen == [request]


class TestRegistration:
    def test_duplicate_handler_rejected(self, router: Router) -> None:
        async def other(request: Request, payload: Echo) -> None:
            return None

        with pytest.raises(ValueError, match="already registered"):
            router.add_handler("echo", Echo, other)

    def test_operations(self, router: Router) -> None:
        assert router.operations == ["echo"]


class TestMiddleware:
    async def test_first_added_runs_outermost(self, router: Router) -> None:
        order: list[str] = []

        def tracing(name: str):
            def middleware(next_handler: HandlerFunc) -> HandlerFunc:
                async def handler(request: Request) -> Reply:
                    order.append(f"{name}:before")
                    reply = await next_handler(request)
                    order.append(f"{name}:after")
                    return reply

                return handler

            return middleware

        router.add_middleware(tracing("outer"), tracing("inner"))

        await router.dispatch(Request("c1", "echo", {"text": "x"}))

        assert order == ["outer:before", "inner:before", "inner:after", "outer:after"]

    async def test_middleware_added_later_is_used(self, router: Router) -> None:
        calls: list[str] = []
        await router.dispatch(Request("c1", "echo", {"text": "x"}))

        def counting(next_handler: HandlerFunc) -> HandlerFunc:
            async def handler(request: Request) -> Reply:
                calls.append(request.operation)
                return await next_handler(request)

            return handler

        router.add_middleware(counting)
        await router.dispatch(Request("c1", "echo", {"text": "x"}))

        assert calls == ["echo"]
