"""
Authentication state data models.

The transport owns the format of the credential material; Courierly only
stores it and hands it back on the next connect.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class AuthState:
    """
    Credential material needed to resume a session without pairing again.

    creds: Identity and account credentials (top-level fields)
    keys: Signal key material, addressed by "<type>/<id>" names
    """

    creds: Dict[str, Any] = field(default_factory=dict)
    keys: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_new(self) -> bool:
        """True until the first pairing has produced credentials."""
        return not self.creds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"creds": copy.deepcopy(self.creds), "keys": copy.deepcopy(self.keys)}


@dataclass
class CredentialsUpdate:
    """
    Incremental change to the authentication state emitted by the transport.

    creds fields are merged over the stored creds. A None value in keys
    deletes that key.
    """

    update_id: str
    creds: Dict[str, Any] = field(default_factory=dict)
    keys: Dict[str, Optional[Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CredentialsUpdate":
        """Create from dictionary (e.g., from JSON)."""
        return cls(
            update_id=str(data.get("updateId") or data.get("update_id") or ""),
            creds=data.get("creds") or {},
            keys=data.get("keys") or {},
        )
