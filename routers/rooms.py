from fastapi import APIRouter, HTTPException, Query, Request
from typing import Optional

from schemas.rooms import HealthResponse, RoomDetailsResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(tags=["rooms"])


@rooms_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    backend = request.app.state.backend
    return HealthResponse(
        status="ok",
        connections=len(backend.registry),
        rooms=len(backend.shared_room_ids()),
    )


@rooms_router.get("/rooms/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(
    room_id: str,
    request: Request,
    password: Optional[str] = Query(None, description="Room password (required if the server is password protected)"),
):
    """
    Live details of a room.

    Returns:
    - room_id: Room identifier
    - online_users_count: Current number of members
    - has_host: Whether the member that opened the room is still present
    - has_password: Whether joins require the shared password
    """
    backend = request.app.state.backend
    gate = request.app.state.gate
    logger.info(f"Room details request for {room_id} from {request.client.host if request.client else 'unknown'}")

    if gate.has_password and not gate.check_password(password):
        logger.warning(f"Room details failed: Invalid password for room {room_id}")
        raise HTTPException(status_code=401, detail="Invalid password")

    # Private per-connection channels are not rooms
    if room_id not in backend.directory or backend.is_self_room(room_id):
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        room_id=room_id,
        online_users_count=backend.directory.count(room_id),
        has_host=backend.directory.host_of(room_id) is not None,
        has_password=gate.has_password,
    )
