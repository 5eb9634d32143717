from pydantic import BaseModel


class RoomDetailsResponse(BaseModel):
    room_id: str
    online_users_count: int
    has_host: bool
    has_password: bool


class HealthResponse(BaseModel):
    status: str
    connections: int
    rooms: int
