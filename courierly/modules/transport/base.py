"""Transport interfaces following Black Box Design principles."""
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Protocol, Union

from ..storage.state import AuthState, CredentialsUpdate


class TransportError(Exception):
    """Raised by a transport when the underlying session library rejects a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ConnectionUpdate:
    """
    Connection state change reported by the transport.

    connection: "connecting", "open" or "close" (None for QR-only updates)
    status_code: Close code from the session library, if any
    """

    connection: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    qr: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionUpdate":
        """Create from dictionary (e.g., from JSON)."""
        status_code = data.get("statusCode", data.get("status_code"))
        return cls(
            connection=data.get("connection"),
            status_code=int(status_code) if status_code is not None else None,
            error=data.get("error"),
            qr=data.get("qr"),
        )


ConnectionEvent = Union[ConnectionUpdate, CredentialsUpdate]


class Connection(Protocol):
    """A single live session handle. Never reused after it closes."""

    def events(self) -> AsyncIterator[ConnectionEvent]:
        """
        Stream of lifecycle events, delivered serially.

        The stream ends after a close update or when the handle is released.
        """
        ...

    async def acknowledge(self, update: CredentialsUpdate) -> None:
        """Tell the session library a credential update has been persisted."""
        ...

    async def send_message(self, jid: str, content: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a message payload.

        Raises:
            TransportError: If the send is rejected or fails
        """
        ...

    async def close(self) -> None:
        """Release the handle. Safe to call more than once."""
        ...


class Transport(Protocol):
    """Protocol for session libraries - opens connections from stored state."""

    async def connect(self, state: AuthState) -> Connection:
        """
        Open a new connection using the given authentication state.

        Raises:
            TransportError: If the connection cannot be opened
        """
        ...
