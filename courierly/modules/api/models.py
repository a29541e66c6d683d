"""
Courierly API data models.

Request models live with the session module (they know their own transport
payloads); the models here describe what the HTTP layer hands back.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..session import ConnectionStatus, DisconnectReason, MessageKind, SessionSnapshot

# Human readable confirmation per message kind
SENT_STATUS: Dict[MessageKind, str] = {
    MessageKind.TEXT: "Text message sent",
    MessageKind.IMAGE: "Image message sent",
    MessageKind.VIDEO: "Video message sent",
    MessageKind.AUDIO: "Audio message sent",
    MessageKind.DOCUMENT: "Document message sent",
    MessageKind.LOCATION: "Location message sent",
    MessageKind.CONTACT: "Contact message sent",
    MessageKind.REACTION: "Reaction sent",
    MessageKind.POLL: "Poll message sent",
}


# Response Models (API Output)


class SendResponse(BaseModel):
    """Confirmation that a message was handed to the live session."""

    status: str = Field(..., description="Confirmation text for the message kind")
    target: str = Field(..., description="Recipient JID the message was sent to")


class ErrorResponse(BaseModel):
    """Error body returned by send endpoints."""

    error: str


class DisconnectResponse(BaseModel):
    reason: DisconnectReason
    status_code: Optional[int] = None
    error: Optional[str] = None
    at: str


class TransitionResponse(BaseModel):
    status: ConnectionStatus
    at: str


class StatusResponse(BaseModel):
    """Session status as reported by GET /status."""

    status: ConnectionStatus
    connected: bool
    since: str
    reconnects: int = Field(0, ge=0)
    last_disconnect: Optional[DisconnectResponse] = None
    recent_transitions: List[TransitionResponse] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "StatusResponse":
        data = snapshot.to_dict()
        return cls(
            status=data["status"],
            connected=data["connected"],
            since=data["since"],
            reconnects=data["reconnects"],
            last_disconnect=data["last_disconnect"],
            recent_transitions=data["recent_transitions"],
        )
