"""Message envelope carried through the pub/sub."""

from dataclasses import dataclass, field
from uuid import UUID, uuid4


@dataclass
class Message:
    """A unit of data travelling through a topic.

    Attributes:
        payload: Raw message body.
        metadata: String key/value pairs travelling with the payload.
        uuid: Unique identifier, generated when not supplied.
    """

    payload: bytes
    metadata: dict[str, str] = field(default_factory=dict)
    uuid: UUID = field(default_factory=uuid4)
