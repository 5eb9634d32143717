import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Shared secret required on every join_room when set
ROOM_PASSWORD = os.getenv("ROOM_PASSWORD", None) or None

# Comma separated; empty means every address is accepted
ALLOWED_IPS = [ip.strip() for ip in os.getenv("ALLOWED_IPS", "").split(",") if ip.strip()]

# Behind a reverse proxy (Render, nginx...) the peer address is the proxy's
TRUST_PROXY = os.getenv("TRUST_PROXY", "true").lower() in ("1", "true", "yes")

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
