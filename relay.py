from typing import Any

from backend import SessionBackend
from event_keys import (
    EVENT_AGENT_DOWNLOAD_PROGRESS,
    EVENT_AGENT_FILE_ANNOUNCE,
    EVENT_HOST_FILE_META,
    EVENT_P2P_SIGNAL,
)
from logging_config import get_logger
from schemas.events import AgentDownloadProgress, AgentFileAnnounce, HostFileMeta, P2PSignal

logger = get_logger(__name__)


class SignalRelay:
    """Point-to-point signaling and file transfer announcements.

    Only metadata and progress pass through here; file bytes go peer to peer.
    """

    def __init__(self, backend: SessionBackend):
        self.backend = backend

    async def host_file_meta(self, sid: str, data: Any):
        payload = HostFileMeta.model_validate(data)
        meta = dict(data.get("meta") or {})
        logger.info(f"[{payload.room_id}] Host announced file: {meta.get('name')} ({meta.get('size')} bytes)")
        # Recipients address their p2p_signal offers to hostId
        meta["hostId"] = sid
        await self.backend.emit_to_room(payload.room_id, EVENT_HOST_FILE_META, meta, skip=sid)

    async def p2p_signal(self, sid: str, data: Any):
        payload = P2PSignal.model_validate(data)
        if payload.to not in self.backend.registry:
            logger.debug(f"Dropping p2p_signal from {sid}: target {payload.to} is not connected")
            return
        await self.backend.emit_to(payload.to, EVENT_P2P_SIGNAL, {"signal": payload.signal, "from": sid})

    async def agent_file_announce(self, sid: str, data: Any):
        payload = AgentFileAnnounce.model_validate(data)
        logger.info(f"[{payload.room_id}] Agent {sid} announced file")
        await self.backend.emit_to_room(payload.room_id, EVENT_AGENT_FILE_ANNOUNCE, data, skip=sid)

    async def agent_download_progress(self, sid: str, data: Any):
        payload = AgentDownloadProgress.model_validate(data)
        logger.debug(f"[{payload.room_id}] {sid} progress on {payload.file_name}: {payload.progress}")
        await self.backend.emit_to_room(payload.room_id, EVENT_AGENT_DOWNLOAD_PROGRESS, data, skip=sid)
