"""
Courierly - Single-Session Messaging Relay

Keeps one persistent session to a messaging network and lets other
processes send messages through it over HTTP.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- session: Connection lifecycle, reconnect decisions, outbound sends
- storage: Authentication state persistence
- transport: Interface to the underlying session library / gateway
- auth: API key authentication for callers
- config: Configuration contract
- api: REST request and response models
"""

__version__ = "1.0.0"
