"""Metrics middleware and publisher decorator."""

import time
from typing import Any

from opentelemetry import metrics
from opentelemetry.metrics import MeterProvider

from lockstep.pubsub import Message, Publisher
from lockstep.router import HandlerFunc, Middleware, Reply, Request

METER_NAME = "lockstep.otel"


def metrics_middleware(
    meter_provider: MeterProvider | None = None,
) -> Middleware:
    """Create a metrics middleware for inbound operations.

    Tracks:
    - lockstep.operation.duration: Processing time histogram
    - lockstep.operations.processed: Operation count

    Both carry ``lockstep.operation``; failed operations also carry
    ``error.type`` (the reply's error code, or the exception class name).

    Args:
        meter_provider: OTEL MeterProvider (uses global if not provided).

    Returns:
        Middleware function.
    """
    provider = meter_provider or metrics.get_meter_provider()
    meter = provider.get_meter(METER_NAME)

    duration_histogram = meter.create_histogram(
        "lockstep.operation.duration",
        unit="s",
        description="Duration of inbound operation processing",
    )
    processed_counter = meter.create_counter(
        "lockstep.operations.processed",
        unit="{operation}",
        description="Number of inbound operations processed",
    )

    def middleware(handler: HandlerFunc) -> HandlerFunc:
        async def wrapper(request: Request) -> Reply:
            attributes: dict[str, Any] = {"lockstep.operation": request.operation}

            start = time.perf_counter()
            try:
                reply = await handler(request)
                if reply.error is not None:
                    attributes["error.type"] = reply.error.code
                return reply
            except Exception as e:
                attributes["error.type"] = type(e).__name__
                raise
            finally:
                processed_counter.add(1, attributes)
                duration_histogram.record(time.perf_counter() - start, attributes)

        return wrapper

    return middleware


class MetricsPublisher:
    """Publisher wrapper that counts outbound broadcasts.

    Tracks:
    - lockstep.broadcasts.sent: Message count, by ``lockstep.event``

    Example:
        publisher = MetricsPublisher(pubsub)
        await publisher.publish("connection.abc", message)
    """

    def __init__(
        self,
        publisher: Publisher,
        meter_provider: MeterProvider | None = None,
    ) -> None:
        self._publisher = publisher
        provider = meter_provider or metrics.get_meter_provider()
        meter = provider.get_meter(METER_NAME)

        self._sent_messages = meter.create_counter(
            "lockstep.broadcasts.sent",
            unit="{message}",
            description="Number of events handed to connections",
        )

    async def publish(self, topic: str, *messages: Message) -> None:
        await self._publisher.publish(topic, *messages)
        for message in messages:
            attributes = {"lockstep.event": message.metadata.get("event", "")}
            self._sent_messages.add(1, attributes)

    async def close(self) -> None:
        """Close the underlying publisher."""
        await self._publisher.close()

    async def __aenter__(self) -> "MetricsPublisher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()
