import json
import logging

from .state import AuthState, CredentialsUpdate

logger = logging.getLogger(__name__)


class RedisAuthStateStore:
    """
    Stores authentication state in two Redis hashes.

    Keys:
        auth:{session}:creds  creds field -> JSON value
        auth:{session}:keys   key name -> JSON value

    Updates are applied in a single MULTI/EXEC transaction.
    """

    def __init__(self, redis_client, session_name: str):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            session_name: Name of the session whose state is stored
        """
        self.redis = redis_client
        self.session_name = session_name

    @property
    def creds_key(self) -> str:
        return f"auth:{self.session_name}:creds"

    @property
    def keys_key(self) -> str:
        return f"auth:{self.session_name}:keys"

    @property
    def location(self) -> str:
        return f"redis:auth:{self.session_name}"

    async def load(self) -> AuthState:
        """Load state; a missing hash is an empty (first run) state."""
        raw_creds = await self.redis.hgetall(self.creds_key)
        raw_keys = await self.redis.hgetall(self.keys_key)

        state = AuthState(
            creds={field: json.loads(value) for field, value in (raw_creds or {}).items()},
            keys={name: json.loads(value) for name, value in (raw_keys or {}).items()},
        )
        logger.info(
            f"Loaded auth state for session {self.session_name} "
            f"({'new session' if state.is_new else f'{len(state.keys)} keys'})"
        )
        return state

    async def apply(self, update: CredentialsUpdate) -> None:
        """Persist an incremental update atomically."""
        pipe = self.redis.pipeline(transaction=True)

        if update.creds:
            pipe.hset(
                self.creds_key,
                mapping={field: json.dumps(value) for field, value in update.creds.items()},
            )

        removed = [name for name, value in update.keys.items() if value is None]
        stored = {
            name: json.dumps(value) for name, value in update.keys.items() if value is not None
        }
        if stored:
            pipe.hset(self.keys_key, mapping=stored)
        if removed:
            pipe.hdel(self.keys_key, *removed)

        await pipe.execute()

    async def clear(self) -> None:
        """Remove all stored state (operator reset after logout)."""
        await self.redis.delete(self.creds_key, self.keys_key)
        logger.info(f"Cleared auth state for session {self.session_name}")
