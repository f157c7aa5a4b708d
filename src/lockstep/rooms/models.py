"""Room domain models.

All models serialize with camelCase keys (``hostId``, ``isPlaying``) and
accept either camelCase or snake_case on input.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models that travel over the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class User(WireModel):
    """A member of one room."""

    id: str
    username: str
    is_host: bool = False
    last_known_time: float | None = None


class Room(WireModel):
    """Aggregate root: members, authority and playback state of one room."""

    id: str
    host_id: str
    users: list[User] = Field(default_factory=list)
    video_url: str = ""
    is_playing: bool = False
    current_time: float = Field(default=0.0, ge=0)
    duration: float | None = None

    def member(self, user_id: str) -> User | None:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def has_username(self, username: str) -> bool:
        """Case-insensitive username lookup."""
        wanted = username.casefold()
        return any(user.username.casefold() == wanted for user in self.users)

    @property
    def host(self) -> User | None:
        return self.member(self.host_id)


class MessageType(str, Enum):
    USER = "user"
    SYSTEM = "system"


class ChatMessage(WireModel):
    """A chat or system line as stamped by the relay."""

    id: str
    user_id: str = ""
    username: str
    content: str
    timestamp: int
    type: MessageType = MessageType.USER


class VideoState(WireModel):
    """Playback state reported by the host.

    Only ``is_playing`` and ``current_time`` are stored on the room; the
    other fields are relayed to members as-is.
    """

    is_playing: bool
    current_time: float = Field(ge=0)
    duration: float | None = None
    buffered: float | None = None
    playback_speed: float = Field(default=1.0, gt=0)


class UserTime(WireModel):
    """Informational playback position of one member."""

    room_id: str
    user_id: str
    current_time: float = Field(ge=0)
