"""
Session lifecycle data models.

These models describe the state of the single messaging session and the
results handed back to callers of SessionManager.send().
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

# Close code the session library reports when the account logged out or the
# stored credentials were revoked.
LOGGED_OUT_STATUS_CODE = 401


class ConnectionStatus(str, Enum):
    """Status of the messaging session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class DisconnectReason(str, Enum):
    """Why a connection closed. Decides whether to reconnect."""

    UNAUTHORIZED = "unauthorized"
    TRANSIENT = "transient"


class SendErrorKind(str, Enum):
    """Failure kinds returned by SessionManager.send()."""

    NOT_CONNECTED = "not_connected"
    TRANSPORT_ERROR = "transport_error"


def classify_disconnect(status_code: Optional[int]) -> DisconnectReason:
    """Only a logged-out close is permanent; everything else is retried."""
    if status_code == LOGGED_OUT_STATUS_CODE:
        return DisconnectReason.UNAUTHORIZED
    return DisconnectReason.TRANSIENT


def utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class SendResult:
    """Standardized send result."""

    ok: bool
    recipient: Optional[str]
    error: Optional[SendErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, recipient: str) -> "SendResult":
        return cls(ok=True, recipient=recipient)

    @classmethod
    def failure(
        cls, error: SendErrorKind, message: str, recipient: Optional[str] = None
    ) -> "SendResult":
        return cls(ok=False, recipient=recipient, error=error, message=message)


@dataclass
class DisconnectInfo:
    """Details of the most recent disconnect."""

    reason: DisconnectReason
    status_code: Optional[int] = None
    error: Optional[str] = None
    at: str = field(default_factory=utcnow_iso)


@dataclass
class StatusTransition:
    status: ConnectionStatus
    at: str = field(default_factory=utcnow_iso)


@dataclass
class SessionSnapshot:
    """Point-in-time view of the session for status and metrics endpoints."""

    status: ConnectionStatus
    since: str
    reconnects: int
    messages_sent: int
    messages_failed: int
    last_disconnect: Optional[DisconnectInfo] = None
    recent_transitions: List[StatusTransition] = field(default_factory=list)

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["connected"] = self.connected
        return data
