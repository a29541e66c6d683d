"""
Authentication Module - Black Box Interface

Purpose: Validate API keys of processes sending messages
Interface: build_auth_service(), AuthenticationService.authenticate()
Hidden: Key storage, comparison logic, key formats

This module can be completely replaced with any other auth implementation
(OAuth, JWT, external service) without affecting other modules.
"""

import logging

from ...config.provider import AuthConfig
from .auth import AuthModule
from .service import AuthenticationService, AuthResult, DefaultAuthenticationService

logger = logging.getLogger(__name__)


def build_auth_service(auth_config: AuthConfig) -> AuthenticationService:
    """
    Build the authentication stack.

    Args:
        auth_config: Caller authentication configuration

    Returns:
        AuthenticationService facade
    """
    if auth_config.require_auth:
        logger.info(f"API key authentication enabled ({len(auth_config.api_keys)} keys)")
    else:
        logger.warning("API_KEYS not set - send endpoints are unauthenticated")
    return DefaultAuthenticationService(AuthModule(auth_config.api_keys))


__all__ = [
    "AuthModule",
    "AuthResult",
    "AuthenticationService",
    "DefaultAuthenticationService",
    "build_auth_service",
]
