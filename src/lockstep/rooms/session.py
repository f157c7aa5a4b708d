"""Session Binding - which room member a live connection speaks for."""

from dataclasses import dataclass

from lockstep.rooms.errors import UnboundConnection


@dataclass(frozen=True)
class Binding:
    connection_id: str
    room_id: str
    user_id: str


class SessionTable:
    """Maps each connection to at most one (room, user) pair.

    Owned by the transport adapter. Unbinding is idempotent, which is what
    turns "explicit leave followed by disconnect" into a single leave.
    """

    def __init__(self) -> None:
        self._by_connection: dict[str, Binding] = {}
        self._by_member: dict[tuple[str, str], str] = {}

    def bind(self, connection_id: str, room_id: str, user_id: str) -> Binding:
        """Bind a connection, replacing any binding it already had."""
        self.unbind(connection_id)
        binding = Binding(connection_id, room_id, user_id)
        self._by_connection[connection_id] = binding
        self._by_member[(room_id, user_id)] = connection_id
        return binding

    def unbind(self, connection_id: str) -> Binding | None:
        """Remove and return a connection's binding, if any."""
        binding = self._by_connection.pop(connection_id, None)
        if binding is not None:
            self._by_member.pop((binding.room_id, binding.user_id), None)
        return binding

    def resolve(self, connection_id: str) -> Binding:
        binding = self._by_connection.get(connection_id)
        if binding is None:
            raise UnboundConnection(connection_id)
        return binding

    def get(self, connection_id: str) -> Binding | None:
        return self._by_connection.get(connection_id)

    def lookup(self, room_id: str, user_id: str) -> str | None:
        """Connection currently speaking for a member, if any."""
        return self._by_member.get((room_id, user_id))

    def __len__(self) -> int:
        return len(self._by_connection)
