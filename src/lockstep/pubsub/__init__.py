"""lockstep.pubsub: Per-connection outbound channels."""

from lockstep.pubsub.memory import InMemoryPubSub
from lockstep.pubsub.message import Message
from lockstep.pubsub.publisher import Publisher

__all__ = ["InMemoryPubSub", "Message", "Publisher"]
