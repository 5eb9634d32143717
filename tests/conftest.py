import pytest
from fastapi.testclient import TestClient

from access import AccessGate
from app import create_app
from backend import SessionBackend
from relay import SignalRelay
from session import SessionEventRouter


class FakeTransport:
    """Stands in for a WebSocket: records every JSON frame sent to it."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail
        # Called with each delivered frame; lets a test mutate rooms mid-broadcast
        self.on_send = None

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(message)
        if self.on_send is not None:
            self.on_send(message)

    def events(self, name=None):
        return [(m["event"], m["data"]) for m in self.sent if name is None or m["event"] == name]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def backend():
    return SessionBackend()


@pytest.fixture
def gate():
    return AccessGate()


@pytest.fixture
def session(backend, gate):
    return SessionEventRouter(backend, gate)


@pytest.fixture
def relay(backend):
    return SignalRelay(backend)


@pytest.fixture
def connect(backend):
    """Register a fake connection and return (sid, transport)."""
    def _connect(fail=False):
        transport = FakeTransport(fail=fail)
        return backend.connect(transport, "127.0.0.1"), transport
    return _connect


@pytest.fixture
def make_client():
    """TestClient factory. Used as a context manager so all sockets share one event loop."""
    def _make(**gate_kwargs):
        return TestClient(create_app(gate=AccessGate(**gate_kwargs)))
    return _make
