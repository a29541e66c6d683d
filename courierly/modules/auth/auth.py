"""
Authentication module for the Courierly API.

This module validates API keys presented by callers of the send endpoints.
It's designed as a black box that can be replaced with any auth system
without affecting other modules.
"""

import logging
import secrets
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class AuthModule:
    """
    Authentication module for validating API keys.

    Keys map to an optional service identity so the logs show which
    process asked for a message to be sent.
    """

    def __init__(self, api_keys: Dict[str, Optional[str]]):
        """
        Initialize auth module.

        Args:
            api_keys: Mapping of API key -> service identity (or None)
        """
        self.api_keys = dict(api_keys)

    @property
    def enabled(self) -> bool:
        """Authentication is enforced only when keys are configured."""
        return bool(self.api_keys)

    async def verify_api_key(self, api_key: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Verify a caller API key.

        Args:
            api_key: API key from X-API-Key header

        Returns:
            Tuple of (is_valid, service_identity)
        """
        if not api_key:
            return False, None

        # Constant-time comparison against every configured key
        matched = None
        for key in self.api_keys:
            if secrets.compare_digest(api_key.encode("utf-8"), key.encode("utf-8")):
                matched = key

        if matched is None:
            logger.warning("Rejected request with an unknown API key")
            return False, None

        service_identity = self.api_keys[matched]
        logger.debug(f"API key verified for service: {service_identity or 'anonymous'}")
        return True, service_identity

    async def verify_credentials(
        self, api_key: Optional[str] = None
    ) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Verify credentials.

        Returns:
            Tuple of (is_valid, identity, auth_method)
        """
        if not self.enabled:
            return True, None, None

        is_valid, service_identity = await self.verify_api_key(api_key)
        if is_valid:
            return True, service_identity, "api_key"

        return False, None, None
