"""
Session Module - Black Box Interface

Purpose: Own the single messaging session end to end
Interface: establish(), send(request), status()
Hidden: Control loop, reconnect decisions, credential persistence ordering

Replaceable with any lifecycle manager exposing the same three operations.
"""

from .manager import ReconnectPolicy, SessionManager
from .messages import (
    MessageKey,
    MessageKind,
    SendAudioRequest,
    SendContactRequest,
    SendDocumentRequest,
    SendImageRequest,
    SendLocationRequest,
    SendPollRequest,
    SendReactionRequest,
    SendRequest,
    SendTextRequest,
    SendVideoRequest,
)
from .models import (
    ConnectionStatus,
    DisconnectReason,
    SendErrorKind,
    SendResult,
    SessionSnapshot,
    classify_disconnect,
)

__all__ = [
    "ConnectionStatus",
    "DisconnectReason",
    "MessageKey",
    "MessageKind",
    "ReconnectPolicy",
    "SendAudioRequest",
    "SendContactRequest",
    "SendDocumentRequest",
    "SendErrorKind",
    "SendImageRequest",
    "SendLocationRequest",
    "SendPollRequest",
    "SendReactionRequest",
    "SendRequest",
    "SendResult",
    "SendTextRequest",
    "SendVideoRequest",
    "SessionManager",
    "SessionSnapshot",
    "classify_disconnect",
]
