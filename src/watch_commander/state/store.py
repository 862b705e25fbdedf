"""
Save storage abstraction.

Separates persistence from domain logic for testability. The whole
campaign is one opaque blob under a fixed key; the session never knows
whether that blob lives on disk or in a dict.
"""

import json
import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .normalize import NormalizationError, normalize_game_state
from .schema import GameState

logger = logging.getLogger(__name__)

SAVE_KEY = "swat-commander-save"


class StoreError(Exception):
    """The backing store refused a read or write."""
    pass


class SaveFormatError(ValueError):
    """A save blob is corrupt or not a campaign."""
    pass


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Byte-blob key-value storage.

    Implementations:
    - FileKeyValueStore: one file per key (production)
    - MemoryKeyValueStore: dict-backed (testing)
    """

    def get(self, key: str) -> bytes | None:
        """Return the blob for key, or None if absent."""
        ...

    def set(self, key: str, data: bytes) -> None:
        """Store a blob. Raises StoreError on failure."""
        ...

    def remove(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        ...


class FileKeyValueStore:
    """
    File-based storage, one JSON file per key.

    Features:
    - Automatic backup of the previous blob on write
    - Keys are sanitized into safe file names
    """

    def __init__(self, save_dir: Path | str = "saves"):
        self.save_dir = Path(save_dir)
        self.save_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.save_dir / f"{safe}.json"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            # Backup previous save
            if path.exists():
                path.with_suffix(".json.bak").write_bytes(path.read_bytes())
            path.write_bytes(data)
        except OSError as e:
            raise StoreError(f"Cannot write {path}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class MemoryKeyValueStore:
    """
    In-memory storage for testing.

    No file I/O - all data lives in memory.
    """

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.fail_writes = False   # Test hook for write failures

    def get(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    def set(self, key: str, data: bytes) -> None:
        if self.fail_writes:
            raise StoreError("memory store is read-only")
        self.blobs[key] = data

    def remove(self, key: str) -> None:
        self.blobs.pop(key, None)

    def clear(self) -> None:
        """Clear all blobs (test utility)."""
        self.blobs.clear()


# -----------------------------------------------------------------------------
# Save codec
# -----------------------------------------------------------------------------

def dump_state(state: GameState) -> bytes:
    """Serialize a campaign to UTF-8 JSON."""
    return state.model_dump_json(indent=2).encode("utf-8")


def load_state(blob: bytes | str) -> GameState:
    """
    Deserialize a campaign blob.

    Raises SaveFormatError for anything that is not a campaign: bad JSON,
    a non-object payload, or fields of the wrong shape.
    """
    if isinstance(blob, bytes):
        try:
            blob = blob.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SaveFormatError(f"Save is not UTF-8 text: {e}") from e
    try:
        data = json.loads(blob)
    except ValueError as e:
        raise SaveFormatError(f"Save is not valid JSON: {e}") from e

    try:
        return normalize_game_state(data)
    except (NormalizationError, ValidationError, ValueError, TypeError, OverflowError, OSError) as e:
        raise SaveFormatError(f"Save does not describe a campaign: {e}") from e


def validate_import(blob: bytes | str) -> GameState:
    """
    Like load_state, but also insists on a named commander and squad
    and a roster list, which an exported campaign always has.
    """
    if isinstance(blob, bytes):
        blob = blob.decode("utf-8", errors="replace")
    try:
        data = json.loads(blob)
    except ValueError as e:
        raise SaveFormatError(f"Save is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SaveFormatError("Save is not a JSON object")
    commander = data.get("commander_name", data.get("commanderName"))
    squad = data.get("squad_name", data.get("squadName"))
    if not commander or not squad or not isinstance(data.get("officers"), list):
        raise SaveFormatError("Save is missing commander, squad or roster")

    try:
        return normalize_game_state(data)
    except (NormalizationError, ValidationError, ValueError, TypeError, OverflowError, OSError) as e:
        raise SaveFormatError(f"Save does not describe a campaign: {e}") from e
