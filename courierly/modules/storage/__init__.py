"""
Storage Module - Black Box Interface

Purpose: Persist the session's authentication state across restarts
Interface: load(), apply(update), clear()
Hidden: Directory layout, Redis key names, serialization, atomic writes

Can be replaced with any storage backend without affecting other modules.
"""

from typing import Optional, Protocol

from .file_store import FileAuthStateStore
from .redis_store import RedisAuthStateStore
from .state import AuthState, CredentialsUpdate


class AuthStateStore(Protocol):
    """Protocol for authentication state stores."""

    @property
    def location(self) -> str:
        """Human readable location, used in logs."""
        ...

    async def load(self) -> AuthState:
        """Load the stored state (empty on first run)."""
        ...

    async def apply(self, update: CredentialsUpdate) -> None:
        """Durably persist an incremental update."""
        ...

    async def clear(self) -> None:
        """Remove all stored state."""
        ...


def build_auth_store(config, redis_client: Optional[object] = None) -> AuthStateStore:
    """
    Build the configured auth state store.

    Args:
        config: ConfigModule (or anything with get())
        redis_client: Async Redis client, required for the redis backend

    Returns:
        An AuthStateStore implementation

    Raises:
        ValueError: If the backend is unknown or Redis is missing
    """
    backend = config.get("auth_store_backend", "file")

    if backend == "file":
        return FileAuthStateStore(config.get("auth_state_dir"))

    if backend == "redis":
        if redis_client is None:
            raise ValueError("Redis auth state backend requires a Redis client")
        return RedisAuthStateStore(redis_client, config.get("session_name"))

    raise ValueError(f"Unsupported auth state backend: {backend}")


__all__ = [
    "AuthState",
    "AuthStateStore",
    "CredentialsUpdate",
    "FileAuthStateStore",
    "RedisAuthStateStore",
    "build_auth_store",
]
