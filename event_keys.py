# Inbound (client -> server)
EVENT_JOIN_ROOM = "join_room"
EVENT_LEAVE_ROOM = "leave_room"
EVENT_SYNC_ACTION = "sync_action"  # {roomId, action, time, playing}
EVENT_SYNC_TIME = "sync_time"  # {roomId, time}
EVENT_HOST_FILE_META = "host_file_meta"  # {roomId, meta: {name, size, type}}
EVENT_P2P_SIGNAL = "p2p_signal"  # {to, signal}
EVENT_AGENT_FILE_ANNOUNCE = "agent_file_announce"  # {roomId, ...file descriptor}
EVENT_AGENT_DOWNLOAD_PROGRESS = "agent_download_progress"  # {roomId, fileName, progress, downloaded, total, speed}

# Outbound (server -> client)
EVENT_CONNECTED = "connected"  # {id}
EVENT_JOIN_ROOM_ACK = "join_room_ack"  # {success, roomId} | {error}
EVENT_USER_JOINED = "user_joined"  # connection id
EVENT_ROOM_USERS_UPDATE = "room_users_update"  # member count
EVENT_IS_HOST = "is_host"  # bool, only ever sent to the addressed connection
EVENT_ERROR = "error"  # {message}

# Wire envelope: {"event": ..., "data": ...}
ENVELOPE_EVENT = "event"
ENVELOPE_DATA = "data"

UNAUTHORIZED = "Unauthorized"
