from typing import Any

from access import AccessGate
from backend import SessionBackend
from event_keys import (
    EVENT_ERROR,
    EVENT_IS_HOST,
    EVENT_JOIN_ROOM_ACK,
    EVENT_ROOM_USERS_UPDATE,
    EVENT_SYNC_ACTION,
    EVENT_SYNC_TIME,
    EVENT_USER_JOINED,
    UNAUTHORIZED,
)
from logging_config import get_logger
from schemas.events import RoomPayload, SyncAction, SyncTime, parse_join_request

logger = get_logger(__name__)


class SessionEventRouter:
    """Room membership and playback sync events.

    Host status is never broadcast: each joiner is told only its own status.
    A host that leaves is not replaced; the room gets a new host only after
    it empties and someone joins it again.
    """

    def __init__(self, backend: SessionBackend, gate: AccessGate):
        self.backend = backend
        self.gate = gate

    async def join_room(self, sid: str, data: Any):
        request = parse_join_request(data)
        room_id = request.room_id

        if not self.gate.check_password(request.password):
            logger.warning(f"Join rejected for {sid} in room {room_id}: invalid password")
            await self.backend.emit_to(sid, EVENT_JOIN_ROOM_ACK, {"error": UNAUTHORIZED})
            return

        if self.backend.is_self_room(room_id):
            logger.warning(f"Join rejected for {sid}: room {room_id} is a private connection channel")
            await self.backend.emit_to(sid, EVENT_JOIN_ROOM_ACK, {"error": "Invalid room"})
            return

        count = self.backend.join(room_id, sid)
        is_host = self.backend.directory.is_host(room_id, sid)
        logger.info(f"User {sid} joined room: {room_id} (members: {count}, host: {is_host})")

        await self.backend.emit_to(sid, EVENT_JOIN_ROOM_ACK, {"success": True, "roomId": room_id})
        # Lets the host re-announce session state to the newcomer
        await self.backend.emit_to_room(room_id, EVENT_USER_JOINED, sid, skip=sid)
        await self.backend.emit_to_room(room_id, EVENT_ROOM_USERS_UPDATE, count)
        await self.backend.emit_to(sid, EVENT_IS_HOST, is_host)

    async def leave_room(self, sid: str, data: Any):
        room_id = data if isinstance(data, str) else RoomPayload.model_validate(data).room_id
        if room_id == sid:
            logger.warning(f"Connection {sid} tried to leave its private channel")
            return
        if room_id not in self.backend.shared_rooms(sid):
            logger.debug(f"Connection {sid} is not in room {room_id}, nothing to leave")
            return

        count = self.backend.leave(room_id, sid)
        logger.info(f"User {sid} left room: {room_id} (members: {count})")
        await self.backend.emit_to_room(room_id, EVENT_ROOM_USERS_UPDATE, count)

    async def disconnecting(self, sid: str):
        """Announce post-departure counts while ``sid`` is still a member of its rooms.

        Each room's count is read right before its own broadcast, so joins
        that land while an earlier room is being notified are reflected.
        """
        for room_id in sorted(self.backend.shared_rooms(sid)):
            count = self.backend.departure_count(sid, room_id)
            logger.info(f"User {sid} leaving room: {room_id} (members: {count})")
            await self.backend.emit_to_room(room_id, EVENT_ROOM_USERS_UPDATE, count, skip=sid)

    async def disconnect(self, sid: str):
        rooms = self.backend.disconnect(sid)
        logger.info(f"User disconnected {sid} (rooms: {sorted(rooms)})")

    async def sync_action(self, sid: str, data: Any):
        payload = SyncAction.model_validate(data)
        logger.info(f"Sync Action in {payload.room_id}: {payload.action} at {payload.time} (playing: {payload.playing})")
        await self.backend.emit_to_room(payload.room_id, EVENT_SYNC_ACTION, data, skip=sid)

    async def sync_time(self, sid: str, data: Any):
        # Periodic drift correction from the host; lost updates are masked by the next one
        payload = SyncTime.model_validate(data)
        await self.backend.emit_to_room(payload.room_id, EVENT_SYNC_TIME, data, skip=sid)

    async def send_error(self, sid: str, message: str):
        await self.backend.emit_to(sid, EVENT_ERROR, {"message": message})
