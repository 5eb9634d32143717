from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from typing import Optional

from access import AccessGate
from backend import SessionBackend
from constants import ALLOWED_IPS, CORS_ORIGINS, LOG_FILE, LOG_LEVEL, ROOM_PASSWORD, TRUST_PROXY
from logging_config import get_logger, setup_logging
from relay import SignalRelay
from routers.rooms import rooms_router
from routers.ws import socket_router
from session import SessionEventRouter

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(gate: Optional[AccessGate] = None, backend: Optional[SessionBackend] = None) -> FastAPI:
    """Build an application with its own, isolated session state."""
    application = FastAPI(title="SyncParty")

    gate = gate or AccessGate(password=ROOM_PASSWORD, allowed_ips=ALLOWED_IPS, trust_proxy=TRUST_PROXY)
    backend = backend or SessionBackend()
    application.state.gate = gate
    application.state.backend = backend
    application.state.session = SessionEventRouter(backend, gate)
    application.state.relay = SignalRelay(backend)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def ip_allow_list(request: Request, call_next):
        client_ip = gate.client_address(request.headers, request.client.host if request.client else None)
        if not gate.is_address_allowed(client_ip):
            logger.info(f"[Security] Blocked HTTP request from: {client_ip}")
            return PlainTextResponse("Forbidden", status_code=403)
        return await call_next(request)

    application.include_router(rooms_router)
    application.include_router(socket_router)
    return application


app = create_app()

logger.info("FastAPI application initialized")
