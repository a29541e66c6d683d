"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    cors_origins: List[str]


@dataclass
class AuthConfig:
    """Caller authentication configuration."""
    api_keys: Dict[str, Optional[str]]

    @property
    def require_auth(self) -> bool:
        """Authentication is enforced only when keys are configured."""
        return bool(self.api_keys)


@dataclass
class ReconnectConfig:
    """Reconnect pacing configuration."""
    base_delay: float
    max_delay: float


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...

    def get_reconnect_config(self) -> ReconnectConfig:
        """Get reconnect pacing configuration."""
        ...


def parse_api_keys(api_keys_env: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Parse API_KEYS into a key -> service identity mapping.

    Format: API_KEYS="key1,service1:key2,service2:key3"
    """
    keys: Dict[str, Optional[str]] = {}
    for entry in (api_keys_env or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        if ":" in entry:
            service, key = entry.split(":", 1)
            keys[key.strip()] = service.strip() or None
        else:
            keys[entry] = None
    return keys


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=int(os.getenv("API_PORT", "3000")),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        )

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables."""
        return AuthConfig(api_keys=parse_api_keys(os.getenv("API_KEYS")))

    def get_reconnect_config(self) -> ReconnectConfig:
        """Get reconnect pacing from environment variables."""
        base_delay = float(os.getenv("RECONNECT_BASE_DELAY", "1.0"))
        max_delay = float(os.getenv("RECONNECT_MAX_DELAY", "30.0"))
        if base_delay < 0 or max_delay < 0:
            raise ValueError("Reconnect delays must not be negative")
        return ReconnectConfig(base_delay=base_delay, max_delay=max(base_delay, max_delay))
