"""
Transport Module - Black Box Interface

Purpose: Wrap the underlying messaging session library
Interface: Transport.connect(state) -> Connection (events, acknowledge, send_message, close)
Hidden: Wire protocol, gateway endpoints, event stream parsing

Replaceable with any session library that can resume from stored credentials
and report connection and credential changes as events.
"""

from .base import (
    Connection,
    ConnectionEvent,
    ConnectionUpdate,
    Transport,
    TransportError,
)
from .gateway import GatewayConnection, GatewayTransport

__all__ = [
    "Connection",
    "ConnectionEvent",
    "ConnectionUpdate",
    "GatewayConnection",
    "GatewayTransport",
    "Transport",
    "TransportError",
]
