from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, Union


class Envelope(BaseModel):
    event: str
    data: Any = None


class RoomPayload(BaseModel):
    """Any room-scoped payload. Extra fields are kept and relayed untouched."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)


class JoinRoomRequest(RoomPayload):
    password: Optional[str] = None


class SyncAction(RoomPayload):
    action: Any = None
    time: Any = None
    playing: Any = None


class SyncTime(RoomPayload):
    time: Any = None


class FileMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Any = None
    size: Any = None
    type: Any = None


class HostFileMeta(RoomPayload):
    meta: FileMeta = Field(default_factory=FileMeta)


class AgentFileAnnounce(RoomPayload):
    pass


class AgentDownloadProgress(RoomPayload):
    file_name: Any = Field(default=None, alias="fileName")
    progress: Any = None
    downloaded: Any = None
    total: Any = None
    speed: Any = None


class P2PSignal(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    to: str = Field(min_length=1)
    signal: Any = None
    # Client supplied and never trusted; the relay overwrites it
    from_: Optional[str] = Field(default=None, alias="from")


def parse_join_request(data: Union[str, dict, None]) -> JoinRoomRequest:
    """join_room accepts a bare room id or {"roomId": ..., "password": ...}."""
    if isinstance(data, str):
        return JoinRoomRequest(roomId=data)
    return JoinRoomRequest.model_validate(data)
