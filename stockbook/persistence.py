"""
Key → JSON blob storage.

Stores only ever read a whole blob or write a whole blob; there are no
partial updates. ``get`` returns ``None`` for an absent key.
"""

import asyncio
import json
import os
import tempfile
from typing import Any, Optional, Protocol, runtime_checkable

from stockbook.errors import PersistenceError
from stockbook.logging_config import get_logger

log = get_logger("persistence")


@runtime_checkable
class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, blob: Any) -> None: ...


class InMemoryKeyValueStore:
    """Blobs kept as JSON text in a dict, so callers never share structure."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, blob: Any) -> None:
        self._data[key] = json.dumps(blob)


class JsonFileKeyValueStore:
    """One ``<key>.json`` file per key under ``directory``.

    File I/O runs in a worker thread; each write goes to its own temp file and
    is moved into place with ``os.replace``. A write that does not finish
    within ``write_timeout`` seconds is reported as a ``PersistenceError``,
    but only once its worker has ended, so the caller's lock still covers it
    and a later write can never be overtaken by it.
    """

    def __init__(self, directory: str, write_timeout: float = 5.0) -> None:
        self.directory = directory
        self.write_timeout = write_timeout
        os.makedirs(directory, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    # ── sync helpers (run off-loop) ──────────────────────────────────────────

    def _read_raw(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_raw(self, key: str, blob: Any) -> None:
        fd, temp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(blob, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self._path(key))
        except Exception:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    # ── async interface ──────────────────────────────────────────────────────

    async def get(self, key: str) -> Optional[Any]:
        try:
            return await asyncio.to_thread(self._read_raw, key)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read '{key}': {exc}", key=key) from exc

    async def set(self, key: str, blob: Any) -> None:
        write = asyncio.ensure_future(asyncio.to_thread(self._write_raw, key, blob))
        try:
            await asyncio.wait_for(asyncio.shield(write), self.write_timeout)
        except asyncio.TimeoutError as exc:
            # a worker thread cannot be interrupted; hold the caller until it ends
            await asyncio.wait([write])
            log.warning(
                "write finished after timeout",
                extra={"key": key, "landed": write.exception() is None},
            )
            raise PersistenceError(
                f"Write of '{key}' timed out after {self.write_timeout}s", key=key
            ) from exc
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Could not write '{key}': {exc}", key=key) from exc
