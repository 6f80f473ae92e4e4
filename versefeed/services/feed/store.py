# services/feed/store.py
"""
Persistent key-value storage for feed state.

Values are opaque strings (callers JSON-encode). JsonFileStore keeps every
key in one JSON file under the data directory; MemoryStore is the
in-process equivalent.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from versefeed.core import config

logger = logging.getLogger(__name__)

# Store keys
SELECTED_EDITION_KEY = "selected-edition-id"
LIKED_VERSES_KEY = "liked-verse-ids"
VERSE_SNAPSHOTS_KEY = "seen-verse-snapshots"

# One lock per store file, so separate JsonFileStore instances on the same
# file never interleave their read-modify-write
_file_locks: Dict[str, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _file_locks_guard:
        return _file_locks.setdefault(str(path.resolve()), threading.Lock())


class PersistentStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore(PersistentStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(PersistentStore):
    """
    Store backed by a single JSON file.

    Directory structure:
        {VERSEFEED_DATA_DIR}/
        └── store.json

    The file is re-read on every get so two processes sharing a data
    directory see each other's writes. Each set is one read-modify-write
    under a per-file lock (shared by every instance in the process), written
    to a private temp file and then moved into place.
    """

    def __init__(self, data_dir: Optional[str] = None, filename: str = "store.json"):
        self.base_path = Path(data_dir or config.VERSEFEED_DATA_DIR)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.path = self.base_path / filename
        self._lock = _lock_for(self.path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to read store file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            fd, tmp_path = tempfile.mkstemp(
                dir=self.base_path, prefix=f".{self.path.stem}-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise


def load_json(store: PersistentStore, key: str, default):
    """Decode a JSON value; default when missing, corrupt or of another type."""
    raw = store.get(key)
    if raw is None:
        return default
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring corrupt value for {key}")
        return default
    if not isinstance(value, type(default)):
        logger.warning(f"Ignoring value of unexpected type for {key}")
        return default
    return value


def save_json(store: PersistentStore, key: str, value) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False))
