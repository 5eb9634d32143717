import asyncio
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set

from event_keys import ENVELOPE_DATA, ENVELOPE_EVENT
from logging_config import get_logger

logger = get_logger(__name__)


class UnknownConnectionError(KeyError):
    """Raised when the registry is asked about an id the transport never produced."""


class Connection:
    def __init__(self, connection_id: str, transport, address: Optional[str] = None):
        self.id = connection_id
        self.transport = transport
        self.address = address
        # Every connection is implicitly a member of its own private room
        self.rooms: Set[str] = {connection_id}

    def __repr__(self):
        return f"Connection(id={self.id!r}, rooms={sorted(self.rooms)!r})"


class ConnectionRegistry:
    """Live connections and the rooms each one belongs to."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, transport, address: Optional[str] = None) -> str:
        connection_id = str(uuid.uuid4())
        while connection_id in self._connections:
            connection_id = str(uuid.uuid4())
        self._connections[connection_id] = Connection(connection_id, transport, address)
        logger.debug(f"Registered connection {connection_id} from {address}")
        return connection_id

    def _require(self, connection_id: str) -> Connection:
        try:
            return self._connections[connection_id]
        except KeyError:
            raise UnknownConnectionError(connection_id) from None

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def add_membership(self, connection_id: str, room_id: str):
        self._require(connection_id).rooms.add(room_id)

    def remove_membership(self, connection_id: str, room_id: str):
        self._require(connection_id).rooms.discard(room_id)

    def rooms_of(self, connection_id: str) -> Set[str]:
        return set(self._require(connection_id).rooms)

    def unregister(self, connection_id: str) -> Set[str]:
        """Drop the connection and return the rooms it was still in (self room included)."""
        connection = self._require(connection_id)
        del self._connections[connection_id]
        logger.debug(f"Unregistered connection {connection_id}")
        return set(connection.rooms)

    def __contains__(self, connection_id) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)


class Room:
    """Arrival-ordered member set of one room.

    The host is whoever took the room from empty to one member. It is cleared
    when that member leaves and never reassigned while the room is populated.
    """

    def __init__(self, room_id: str):
        self.room_id = room_id
        # dict keeps insertion order, which is arrival order
        self.members: Dict[str, None] = {}
        self.host_id: Optional[str] = None

    def add(self, connection_id: str) -> int:
        if connection_id not in self.members:
            self.members[connection_id] = None
            if len(self.members) == 1:
                self.host_id = connection_id
        return len(self.members)

    def discard(self, connection_id: str) -> int:
        self.members.pop(connection_id, None)
        if connection_id == self.host_id:
            self.host_id = None
        return len(self.members)

    def is_host(self, connection_id: str) -> bool:
        return self.host_id is not None and self.host_id == connection_id

    def __len__(self) -> int:
        return len(self.members)


class RoomDirectory:
    """Room id -> Room. Rooms are never kept empty."""

    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def join(self, room_id: str, connection_id: str) -> int:
        room = self._rooms.get(room_id)
        if room is None:
            room = self._rooms[room_id] = Room(room_id)
        return room.add(connection_id)

    def leave(self, room_id: str, connection_id: str) -> int:
        room = self._rooms.get(room_id)
        if room is None:
            return 0
        count = room.discard(connection_id)
        if count == 0:
            del self._rooms[room_id]
        return count

    def count(self, room_id: str) -> int:
        room = self._rooms.get(room_id)
        return len(room) if room else 0

    def members(self, room_id: str) -> List[str]:
        room = self._rooms.get(room_id)
        return list(room.members) if room else []

    def is_host(self, room_id: str, connection_id: str) -> bool:
        room = self._rooms.get(room_id)
        return room is not None and room.is_host(connection_id)

    def host_of(self, room_id: str) -> Optional[str]:
        room = self._rooms.get(room_id)
        return room.host_id if room else None

    def room_ids(self) -> List[str]:
        return list(self._rooms)

    def __contains__(self, room_id) -> bool:
        return room_id in self._rooms


class SessionBackend:
    """Session state shared by the event router and the relay.

    Keeps the registry and the directory symmetric: every membership change
    goes through here and updates both sides. Also owns delivery, which is
    fire-and-forget: a recipient that fails or no longer exists never aborts
    delivery to the others.
    """

    def __init__(self, registry: Optional[ConnectionRegistry] = None, directory: Optional[RoomDirectory] = None):
        self.registry = registry or ConnectionRegistry()
        self.directory = directory or RoomDirectory()

    # Membership

    def connect(self, transport, address: Optional[str] = None) -> str:
        connection_id = self.registry.register(transport, address)
        self.directory.join(connection_id, connection_id)
        return connection_id

    def join(self, room_id: str, connection_id: str) -> int:
        self.registry.add_membership(connection_id, room_id)
        count = self.directory.join(room_id, connection_id)
        logger.debug(f"Connection {connection_id} in room {room_id} (members: {count})")
        return count

    def leave(self, room_id: str, connection_id: str) -> int:
        self.registry.remove_membership(connection_id, room_id)
        count = self.directory.leave(room_id, connection_id)
        logger.debug(f"Connection {connection_id} left room {room_id} (members: {count})")
        return count

    def shared_rooms(self, connection_id: str) -> Set[str]:
        """Rooms the connection joined, without its private self room."""
        return self.registry.rooms_of(connection_id) - {connection_id}

    def departure_count(self, connection_id: str, room_id: str) -> int:
        """Member count ``room_id`` will have once this connection is gone.

        Must be read while the connection is still a member.
        """
        count = self.directory.count(room_id)
        return count - 1 if connection_id in self.directory.members(room_id) else count

    def disconnect(self, connection_id: str) -> Set[str]:
        rooms = self.registry.unregister(connection_id)
        for room_id in rooms:
            self.directory.leave(room_id, connection_id)
        return rooms - {connection_id}

    def is_self_room(self, room_id: str) -> bool:
        return room_id in self.registry

    def shared_room_ids(self) -> List[str]:
        return [room_id for room_id in self.directory.room_ids() if not self.is_self_room(room_id)]

    # Delivery

    async def _deliver(self, connection_id: str, message: dict) -> bool:
        connection = self.registry.get(connection_id)
        if connection is None:
            logger.debug(f"Dropping message for unknown connection {connection_id}")
            return False
        try:
            await connection.transport.send_json(message)
            return True
        except Exception as e:
            logger.warning(f"Error sending to connection {connection_id}: {e}")
            return False

    async def _fan_out(self, recipients: Iterable[str], event: str, data: Any) -> int:
        message = {ENVELOPE_EVENT: event, ENVELOPE_DATA: data}
        send_tasks = [self._deliver(connection_id, message) for connection_id in recipients]
        if not send_tasks:
            return 0
        results = await asyncio.gather(*send_tasks, return_exceptions=True)
        return sum(1 for result in results if result is True)

    async def emit_to(self, connection_id: str, event: str, data: Any) -> bool:
        """Send to a single live connection. Unknown ids are dropped silently."""
        return await self._fan_out([connection_id], event, data) == 1

    async def emit_to_room(self, room_id: str, event: str, data: Any, skip: Optional[str] = None) -> int:
        """Send to every current member of ``room_id`` except ``skip``.

        The member list is snapshotted before any send so concurrent joins and
        leaves do not affect this delivery.
        """
        recipients = [member for member in self.directory.members(room_id) if member != skip]
        delivered = await self._fan_out(recipients, event, data)
        logger.debug(f"Emitted {event} to {delivered}/{len(recipients)} members of room {room_id}")
        return delivered
