"""
Session Manager for Courierly.

Owns the single connection to the messaging network:
- Opens connections from the stored authentication state
- Persists every credential update before acknowledging it
- Classifies closes and either reconnects (transient) or stops (logged out)
- Sends outbound messages on the live connection

Design Principles:
- One live handle at a time, owned by a single control loop task
- send() never waits for a connection: it fails fast with NOT_CONNECTED
- Errors from send() are returned as values, lifecycle errors only change status()
"""

import asyncio
import logging
from collections import deque
from contextlib import suppress
from dataclasses import dataclass
from typing import Deque, Optional

from ..storage import AuthStateStore, CredentialsUpdate
from ..transport import Connection, ConnectionUpdate, Transport, TransportError
from .messages import SendRequest
from .models import (
    ConnectionStatus,
    DisconnectInfo,
    DisconnectReason,
    SendErrorKind,
    SendResult,
    SessionSnapshot,
    StatusTransition,
    classify_disconnect,
    utcnow_iso,
)

logger = logging.getLogger(__name__)


@dataclass
class ReconnectPolicy:
    """
    Reconnect pacing.

    The first reconnect after a connection that reached "open" is immediate.
    Attempts that fail before opening back off exponentially up to max_delay.
    A base_delay of 0 always reconnects immediately.
    """

    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay(self, failures: int) -> float:
        """Delay before the next attempt after `failures` consecutive failed attempts."""
        if failures <= 0 or self.base_delay <= 0:
            return 0.0
        return min(self.base_delay * (2 ** (failures - 1)), self.max_delay)


class SessionManager:
    """
    Lifecycle manager for the single messaging session.

    State machine:
        DISCONNECTED --establish()--> CONNECTING --(open)--> CONNECTED
        CONNECTED/CONNECTING --(transient close)--> CONNECTING  (reconnect)
        CONNECTED/CONNECTING --(logged out)--> DISCONNECTED     (terminal)
    """

    HISTORY_SIZE = 20

    def __init__(
        self,
        transport: Transport,
        auth_store: AuthStateStore,
        default_recipient: str,
        reconnect_policy: Optional[ReconnectPolicy] = None,
    ):
        """
        Initialize session manager.

        Args:
            transport: Session library wrapper that opens connections
            auth_store: Durable store for the authentication state
            default_recipient: JID used when a request has no recipient
            reconnect_policy: Reconnect pacing (defaults to ReconnectPolicy())
        """
        if not default_recipient:
            raise ValueError("default_recipient is required")

        self.transport = transport
        self.auth_store = auth_store
        self.default_recipient = default_recipient
        self.reconnect_policy = reconnect_policy or ReconnectPolicy()

        self._connection: Optional[Connection] = None
        self._status = ConnectionStatus.DISCONNECTED
        self._since = utcnow_iso()
        self._history: Deque[StatusTransition] = deque(maxlen=self.HISTORY_SIZE)
        self._task: Optional[asyncio.Task] = None
        # Consecutive attempts that never reached "open"
        self._failures = 0

        self.reconnects = 0
        self.messages_sent = 0
        self.messages_failed = 0
        self.last_disconnect: Optional[DisconnectInfo] = None

    # Public interface

    def status(self) -> ConnectionStatus:
        """Current connection status. Never blocks."""
        return self._status

    def snapshot(self) -> SessionSnapshot:
        """Status detail for the status and metrics endpoints."""
        return SessionSnapshot(
            status=self._status,
            since=self._since,
            reconnects=self.reconnects,
            messages_sent=self.messages_sent,
            messages_failed=self.messages_failed,
            last_disconnect=self.last_disconnect,
            recent_transitions=list(self._history),
        )

    @property
    def running(self) -> bool:
        """True while the control loop is alive."""
        return self._task is not None and not self._task.done()

    async def establish(self) -> None:
        """
        Open the first connection and start the control loop.

        Returns once a connection attempt has been made; the loop keeps the
        session alive from then on.

        Raises:
            RuntimeError: If the session is already being managed
        """
        if self.running:
            raise RuntimeError("Session is already established")

        self._failures = 0
        try:
            connection = await self._open()
        except Exception:
            self._set_status(ConnectionStatus.DISCONNECTED)
            raise
        self._task = asyncio.create_task(self._run(connection), name="courierly-session")
        self._task.add_done_callback(self._on_loop_done)

    async def send(self, request: SendRequest) -> SendResult:
        """
        Send a message on the live connection.

        Args:
            request: Any send request model

        Returns:
            SendResult with the resolved recipient, or the failure kind
        """
        recipient = request.jid or self.default_recipient

        # Single read of the handle: a reconnect swapping it mid-call cannot
        # split this send across two connections
        connection = self._connection
        if connection is None or self._status is not ConnectionStatus.CONNECTED:
            self.messages_failed += 1
            logger.warning(
                f"Cannot send {request.kind.value} message to {recipient}: "
                f"session is {self._status.value}"
            )
            return SendResult.failure(SendErrorKind.NOT_CONNECTED, "Not connected", recipient)

        try:
            await connection.send_message(recipient, request.to_content())
        except Exception as e:
            self.messages_failed += 1
            logger.error(f"Error sending {request.kind.value} message to {recipient}: {e}")
            return SendResult.failure(SendErrorKind.TRANSPORT_ERROR, str(e), recipient)

        self.messages_sent += 1
        logger.debug(f"Sent {request.kind.value} message to {recipient}")
        return SendResult.success(recipient)

    async def shutdown(self) -> None:
        """Stop the control loop and release the live connection."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.close()

        self._set_status(ConnectionStatus.DISCONNECTED)
        logger.info("Session manager stopped")

    # Control loop

    async def _open(self) -> Optional[Connection]:
        """
        One establish attempt: load state and open a connection.

        Returns:
            The new connection, or None if the transport refused to open one
            (recorded in last_disconnect)
        """
        self._connection = None
        self._set_status(ConnectionStatus.CONNECTING)

        state = await self.auth_store.load()
        if state.is_new:
            logger.info("No stored credentials; the session must be paired by scanning a QR code")

        try:
            connection = await self.transport.connect(state)
        except TransportError as e:
            self._failures += 1
            self._record_disconnect(classify_disconnect(e.status_code), e.status_code, str(e))
            logger.warning(f"Failed to open connection: {e}")
            return None

        self._connection = connection
        return connection

    async def _run(self, connection: Optional[Connection]) -> None:
        """Drive connections until a logged-out close ends the session."""
        while True:
            if connection is not None:
                reason = await self._watch(connection)
            else:
                reason = self.last_disconnect.reason

            if reason is DisconnectReason.UNAUTHORIZED:
                self._connection = None
                self._set_status(ConnectionStatus.DISCONNECTED)
                logger.error(
                    f"Connection closed. Logged out. Clear the stored auth state at "
                    f"{self.auth_store.location} and restart to pair again."
                )
                return

            self._set_status(ConnectionStatus.CONNECTING)
            delay = self.reconnect_policy.delay(self._failures)
            if delay:
                logger.warning(f"Connection closed. Reconnecting in {delay:.1f}s...")
                await asyncio.sleep(delay)
            else:
                logger.warning("Connection closed. Reconnecting...")

            self.reconnects += 1
            try:
                connection = await self._open()
            except Exception as e:
                # Storage or transport blip while reconnecting: retry with backoff
                connection = None
                self._connection = None
                self._failures += 1
                self._record_disconnect(DisconnectReason.TRANSIENT, None, str(e))
                logger.error(f"Reconnect attempt failed: {e}", exc_info=True)

    async def _watch(self, connection: Connection) -> DisconnectReason:
        """Consume one connection's events until it closes."""
        opened = False
        try:
            async for event in connection.events():
                if isinstance(event, CredentialsUpdate):
                    await self._persist(connection, event)
                    continue

                if not isinstance(event, ConnectionUpdate):
                    continue

                if event.qr:
                    logger.info(f"Scan this QR code with the phone to pair the session: {event.qr}")

                if event.connection == "open":
                    opened = True
                    self._failures = 0
                    self._set_status(ConnectionStatus.CONNECTED)
                    logger.info("Connected to messaging network")
                elif event.connection == "close":
                    return self._closed(connection, event.status_code, event.error, opened)

            return self._closed(connection, None, "Event stream ended", opened)
        finally:
            # The handle is abandoned either way; its later events are never read
            await connection.close()

    def _closed(
        self,
        connection: Connection,
        status_code: Optional[int],
        error: Optional[str],
        opened: bool,
    ) -> DisconnectReason:
        if self._connection is connection:
            self._connection = None
        if not opened:
            self._failures += 1

        reason = classify_disconnect(status_code)
        self._record_disconnect(reason, status_code, error)
        if reason is DisconnectReason.UNAUTHORIZED:
            self._set_status(ConnectionStatus.DISCONNECTED)
        else:
            self._set_status(ConnectionStatus.CONNECTING)
        return reason

    async def _persist(self, connection: Connection, update: CredentialsUpdate) -> None:
        """Write-before-acknowledge: the ack only goes out once the store has the update."""
        await self.auth_store.apply(update)
        try:
            await connection.acknowledge(update)
        except TransportError as e:
            logger.warning(f"Credential update {update.update_id} persisted but not acknowledged: {e}")

    def _record_disconnect(
        self, reason: DisconnectReason, status_code: Optional[int], error: Optional[str]
    ) -> None:
        self.last_disconnect = DisconnectInfo(reason=reason, status_code=status_code, error=error)
        logger.info(
            f"Disconnect classified as {reason.value} "
            f"(status code: {status_code}, error: {error})"
        )

    def _set_status(self, status: ConnectionStatus) -> None:
        if status is self._status:
            return
        logger.debug(f"Session status {self._status.value} -> {status.value}")
        self._status = status
        self._since = utcnow_iso()
        self._history.append(StatusTransition(status=status, at=self._since))

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Session control loop crashed", exc_info=exc)
            self._connection = None
            self._set_status(ConnectionStatus.DISCONNECTED)
