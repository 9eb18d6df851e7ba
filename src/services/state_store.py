"""
Key-value stores for small persisted state records.

The traversal checkpoint only needs get/put of one string value by key.
FileStateStore keeps one file per key and uses atomic writes so a crash
mid-write never leaves a truncated record behind.
"""

import re
from pathlib import Path
from typing import Dict, Optional, Protocol

import structlog

from src.utils.exceptions import StateStoreError

logger = structlog.get_logger()

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class StateStore(Protocol):
    """Minimal key-value contract used by the checkpoint service"""

    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str) -> None: ...


class MemoryStateStore:
    """In-process store, used for tests and one-off runs"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value


class FileStateStore:
    """One ``<key>.json`` file per key under ``state_dir``"""

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise StateStoreError(f"Invalid state key: {key!r}")
        return self.state_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateStoreError(f"Failed to read state {key}: {e}") from e

    def put(self, key: str, value: str) -> None:
        path = self._path(key)

        # Atomic write: write to temp file, then rename
        temp_path = path.with_suffix(".tmp")
        try:
            temp_path.write_text(value, encoding="utf-8")
            temp_path.replace(path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StateStoreError(f"Failed to write state {key}: {e}") from e

        logger.debug("state_written", key=key, path=str(path))
