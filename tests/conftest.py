"""
Shared pytest fixtures for Courierly tests.

This module provides common fixtures including:
- FakeTransport / FakeConnection: scripted session library with an event queue
- MemoryAuthStateStore: in-memory auth state store
- Redis mocks for the Redis auth state store
"""

import asyncio
import copy
import logging
import os
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Importing courierly.main reads configuration at import time
os.environ.setdefault("DEFAULT_RECIPIENT", "15550000000@s.whatsapp.net")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from courierly.modules.storage import AuthState, CredentialsUpdate
from courierly.modules.transport import ConnectionUpdate

DEFAULT_RECIPIENT = os.environ["DEFAULT_RECIPIENT"]

_END = object()


# =============================================================================
# Fake Session Library
# =============================================================================


class FakeConnection:
    """
    Scripted connection handle.

    Tests push events with open()/close_with()/creds(); the session manager
    reads them from events() in order.
    """

    def __init__(self, transport: "FakeTransport", index: int, state: AuthState):
        self.transport = transport
        self.index = index
        self.state = state
        self.queue: asyncio.Queue = asyncio.Queue()
        self.acked: List[str] = []
        self.sent: List[Tuple[str, Dict[str, Any]]] = []
        self.closed = False
        self.close_calls = 0
        self.send_error: Optional[Exception] = None
        # When set, send_message waits on it before recording the message
        self.send_gate: Optional[asyncio.Event] = None

    # Script helpers

    def open(self) -> None:
        self.queue.put_nowait(ConnectionUpdate(connection="open"))

    def close_with(self, status_code: Optional[int], error: str = "Connection Failure") -> None:
        self.queue.put_nowait(
            ConnectionUpdate(connection="close", status_code=status_code, error=error)
        )

    def creds(self, update_id: str, creds: Dict[str, Any] = None, keys: Dict[str, Any] = None):
        self.queue.put_nowait(
            CredentialsUpdate(update_id=update_id, creds=creds or {}, keys=keys or {})
        )

    def qr(self, code: str) -> None:
        self.queue.put_nowait(ConnectionUpdate(qr=code))

    def end_stream(self) -> None:
        self.queue.put_nowait(_END)

    # Connection protocol

    async def events(self):
        while True:
            event = await self.queue.get()
            if event is _END:
                return
            yield event

    async def acknowledge(self, update: CredentialsUpdate) -> None:
        if self.transport.on_ack is not None:
            await self.transport.on_ack(update)
        self.acked.append(update.update_id)

    async def send_message(self, jid: str, content: Dict[str, Any]) -> Dict[str, Any]:
        if self.send_gate is not None:
            await self.send_gate.wait()
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((jid, copy.deepcopy(content)))
        return {"key": {"remoteJid": jid, "fromMe": True, "id": f"MSG{len(self.sent)}"}}

    async def close(self) -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self.queue.put_nowait(_END)


class FakeTransport:
    """Transport that hands out FakeConnections and records every connect."""

    def __init__(self, auto_open: bool = True):
        self.auto_open = auto_open
        self.connections: List[FakeConnection] = []
        self.states: List[AuthState] = []
        # Errors raised by the next connect() calls, in order
        self.connect_errors: List[Exception] = []
        self.on_ack: Optional[Callable[[CredentialsUpdate], Awaitable[None]]] = None

    @property
    def connect_calls(self) -> int:
        return len(self.states)

    @property
    def latest(self) -> FakeConnection:
        return self.connections[-1]

    async def connect(self, state: AuthState) -> FakeConnection:
        self.states.append(copy.deepcopy(state))
        if self.connect_errors:
            raise self.connect_errors.pop(0)

        connection = FakeConnection(self, len(self.connections), state)
        self.connections.append(connection)
        if self.auto_open:
            connection.open()
        return connection


class MemoryAuthStateStore:
    """In-memory auth state store that counts writes."""

    def __init__(self, state: Optional[AuthState] = None):
        self.state = state or AuthState()
        self.applied: List[str] = []
        self.cleared = False

    @property
    def location(self) -> str:
        return "memory://auth"

    async def load(self) -> AuthState:
        return AuthState(creds=copy.deepcopy(self.state.creds), keys=copy.deepcopy(self.state.keys))

    async def apply(self, update: CredentialsUpdate) -> None:
        self.state.creds.update(update.creds)
        for name, value in update.keys.items():
            if value is None:
                self.state.keys.pop(name, None)
            else:
                self.state.keys[name] = value
        self.applied.append(update.update_id)

    async def clear(self) -> None:
        self.state = AuthState()
        self.cleared = True


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the event loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def fake_transport():
    """Transport whose connections open as soon as they are created."""
    return FakeTransport()


@pytest.fixture
def memory_store():
    """Auth state store holding a previously paired session."""
    return MemoryAuthStateStore(AuthState(creds={"me": {"id": "15551234567:1@s.whatsapp.net"}}))


# =============================================================================
# Redis Mocks
# =============================================================================


@pytest.fixture
def mock_pipeline():
    """Mock Redis transaction pipeline (commands buffer, execute() is awaited)."""
    pipe = MagicMock()
    pipe.hset = MagicMock(return_value=pipe)
    pipe.hdel = MagicMock(return_value=pipe)
    pipe.execute = AsyncMock(return_value=[])
    return pipe


@pytest.fixture
def mock_redis(mock_pipeline):
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()
    redis.hgetall = AsyncMock(return_value={})
    redis.delete = AsyncMock(return_value=2)
    redis.ping = AsyncMock(return_value=True)
    redis.close = AsyncMock()
    redis.pipeline = MagicMock(return_value=mock_pipeline)
    return redis


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )


@pytest.fixture
def log_capture(caplog):
    """caplog that also sees courierly records once logging has been configured."""
    logger = logging.getLogger("courierly")
    propagate = logger.propagate
    logger.propagate = True
    yield caplog
    logger.propagate = propagate
