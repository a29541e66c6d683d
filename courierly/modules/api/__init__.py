"""
API Module - Black Box Interface

Purpose: HTTP routing and module orchestration
Interface: REST API endpoints
Hidden: Module initialization, request handling, error responses

The API module only orchestrates - it contains no business logic.
All sending and lifecycle logic is delegated to the session module.
"""

from ..session import (
    SendAudioRequest,
    SendContactRequest,
    SendDocumentRequest,
    SendImageRequest,
    SendLocationRequest,
    SendPollRequest,
    SendReactionRequest,
    SendTextRequest,
    SendVideoRequest,
)
from .models import SENT_STATUS, ErrorResponse, SendResponse, StatusResponse

__all__ = [
    "SENT_STATUS",
    "ErrorResponse",
    "SendAudioRequest",
    "SendContactRequest",
    "SendDocumentRequest",
    "SendImageRequest",
    "SendLocationRequest",
    "SendPollRequest",
    "SendReactionRequest",
    "SendResponse",
    "SendTextRequest",
    "SendVideoRequest",
    "StatusResponse",
]
