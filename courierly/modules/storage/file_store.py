"""
Directory-backed authentication state store.

Layout:
    <directory>/creds.json          top-level credentials
    <directory>/key-<key-name>.json one file per signal key

Every file is replaced atomically (temp file, fsync, rename) so a crash
never leaves a half-written credential on disk.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict
from urllib.parse import quote, unquote

from .state import AuthState, CredentialsUpdate

logger = logging.getLogger(__name__)

CREDS_FILE = "creds.json"
# Keeps key files apart from creds.json, even for a key named "creds"
KEY_PREFIX = "key-"


def key_file_name(name: str) -> str:
    """Map a key name such as 'pre-key/1' or 'session:123' to a safe file name."""
    return KEY_PREFIX + quote(name, safe="") + ".json"


def key_name_from_file(file_name: str) -> str:
    """Inverse of key_file_name."""
    return unquote(file_name[len(KEY_PREFIX) : -len(".json")])


class FileAuthStateStore:
    """Stores authentication state as JSON files in a directory."""

    def __init__(self, directory: str):
        """
        Initialize file store.

        Args:
            directory: Directory holding the state files (created on first use)
        """
        self.directory = Path(directory)

    @property
    def location(self) -> str:
        return str(self.directory)

    async def load(self) -> AuthState:
        """Load state, creating an empty directory on first run."""
        return await asyncio.to_thread(self._load)

    async def apply(self, update: CredentialsUpdate) -> None:
        """Persist an incremental update before it is acknowledged."""
        await asyncio.to_thread(self._apply, update)

    async def clear(self) -> None:
        """Remove all stored state (operator reset after logout)."""
        await asyncio.to_thread(self._clear)

    def _load(self) -> AuthState:
        self.directory.mkdir(parents=True, exist_ok=True)
        state = AuthState()

        creds_path = self.directory / CREDS_FILE
        if creds_path.exists():
            state.creds = self._read_json(creds_path)

        for path in sorted(self.directory.glob(f"{KEY_PREFIX}*.json")):
            state.keys[key_name_from_file(path.name)] = self._read_json(path)

        logger.info(
            f"Loaded auth state from {self.directory} "
            f"({'new session' if state.is_new else f'{len(state.keys)} keys'})"
        )
        return state

    def _apply(self, update: CredentialsUpdate) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

        if update.creds:
            creds_path = self.directory / CREDS_FILE
            creds = self._read_json(creds_path) if creds_path.exists() else {}
            creds.update(update.creds)
            self._write_json(creds_path, creds)

        for name, value in update.keys.items():
            path = self.directory / key_file_name(name)
            if value is None:
                path.unlink(missing_ok=True)
            else:
                self._write_json(path, value)

    def _clear(self) -> None:
        if not self.directory.exists():
            return
        removed = 0
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)
            removed += 1
        logger.info(f"Cleared {removed} auth state files from {self.directory}")

    @staticmethod
    def _read_json(path: Path) -> Any:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".part")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            # Leave no partial temp file behind
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
