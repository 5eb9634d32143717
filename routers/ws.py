from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
import anyio
import json

from backend import UnknownConnectionError
from event_keys import (
    EVENT_AGENT_DOWNLOAD_PROGRESS,
    EVENT_AGENT_FILE_ANNOUNCE,
    EVENT_CONNECTED,
    EVENT_HOST_FILE_META,
    EVENT_JOIN_ROOM,
    EVENT_LEAVE_ROOM,
    EVENT_P2P_SIGNAL,
    EVENT_SYNC_ACTION,
    EVENT_SYNC_TIME,
)
from logging_config import get_logger
from schemas.events import Envelope

logger = get_logger(__name__)

socket_router = APIRouter(tags=["socket"])


def build_handlers(session, relay) -> dict:
    return {
        EVENT_JOIN_ROOM: session.join_room,
        EVENT_LEAVE_ROOM: session.leave_room,
        EVENT_SYNC_ACTION: session.sync_action,
        EVENT_SYNC_TIME: session.sync_time,
        EVENT_HOST_FILE_META: relay.host_file_meta,
        EVENT_P2P_SIGNAL: relay.p2p_signal,
        EVENT_AGENT_FILE_ANNOUNCE: relay.agent_file_announce,
        EVENT_AGENT_DOWNLOAD_PROGRESS: relay.agent_download_progress,
    }


async def handle_message(session, handlers: dict, sid: str, message: dict):
    """Decode one received ASGI frame and run its handler.

    Bad frames and bad payloads are answered with an ``error`` event; the
    connection stays open. Registry misuse is a bug and propagates.
    """
    raw = message.get("text")
    if raw is None:
        logger.warning(f"Non-text frame from {sid}")
        await session.send_error(sid, "Invalid message format")
        return

    try:
        envelope = Envelope.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError):
        logger.warning(f"Malformed frame from {sid}")
        await session.send_error(sid, "Invalid message format")
        return

    handler = handlers.get(envelope.event)
    if handler is None:
        logger.warning(f"Unknown event from {sid}: {envelope.event}")
        await session.send_error(sid, f"Unknown event: {envelope.event}")
        return

    try:
        await handler(sid, envelope.data)
    except ValidationError as e:
        logger.warning(f"Invalid {envelope.event} payload from {sid}: {e}")
        await session.send_error(sid, f"Invalid payload for {envelope.event}")
    except UnknownConnectionError:
        raise
    except Exception as e:
        logger.error(f"Error handling {envelope.event} from {sid}: {e}", exc_info=True)
        await session.send_error(sid, "Internal server error")


@socket_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """One client session. Frames are JSON ``{"event": ..., "data": ...}``.

    Events from one socket are handled one at a time, in arrival order.
    """
    state = websocket.app.state
    gate = state.gate
    client_ip = gate.client_address(websocket.headers, websocket.client.host if websocket.client else None)

    if not gate.is_address_allowed(client_ip):
        logger.info(f"[Security] Rejected connection from unauthorized IP: {client_ip}")
        await websocket.close(code=1008, reason="Forbidden: IP not authorized")
        return

    await websocket.accept()
    sid = state.backend.connect(websocket, client_ip)
    logger.info(f"User connected: {sid} from {client_ip}")
    handlers = build_handlers(state.session, state.relay)

    try:
        await state.backend.emit_to(sid, EVENT_CONNECTED, {"id": sid})
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            await handle_message(state.session, handlers, sid, message)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket closed for connection {sid}")
    finally:
        # Runs even when the server cancels this task (shutdown), so counts never go stale
        with anyio.CancelScope(shield=True):
            await state.session.disconnecting(sid)
            await state.session.disconnect(sid)
