"""
Local key/value store implementations.

Durable async string map used for the profile, metric list and settings
flags. Values are JSON-encoded strings produced by the callers.
"""

import asyncio
import errno
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

from keto_tracker.utils.exceptions import LocalStoreError, QuotaExceededError
from keto_tracker.utils.parameters import LocalStoreConfig

logger = logging.getLogger(__name__)

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStore(Protocol):
    """Async key/value contract for local persistence."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


async def get_json(store: LocalStore, key: str) -> Any:
    """Read and decode a JSON value; None if the key is absent."""
    raw = await store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise LocalStoreError(f"Corrupt value for key {key!r}: {e}") from e


async def set_json(store: LocalStore, key: str, value: Any) -> None:
    """Encode a value as JSON and write it."""
    await store.set(key, json.dumps(value))


class InMemoryLocalStore:
    """Process-local store, for tests and throwaway sessions."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self._values: dict[str, str] = {}
        self.max_bytes = max_bytes

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._values.items() if k != key)
            if others + len(value.encode("utf-8")) > self.max_bytes:
                raise QuotaExceededError(f"Storing {key!r} would exceed quota of {self.max_bytes} bytes")
        self._values[key] = value


class JsonFileLocalStore:
    """
    Directory-backed store with one file per key.

    Writes go to a temporary file which then replaces the target, so a crash
    never leaves a half-written value behind. Blocking file I/O runs in a
    worker thread.
    """

    def __init__(self, config: LocalStoreConfig) -> None:
        """
        Initialize the store.

        Args:
            config: Local store configuration.
        """
        self.config = config
        self.root = Path(config.path)

    def _path_for(self, key: str) -> Path:
        return self.root / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def _read(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise LocalStoreError(f"Failed to read {key!r}: {e}") from e

    def _used_bytes(self, excluding: Path) -> int:
        if not self.root.exists():
            return 0
        return sum(p.stat().st_size for p in self.root.glob("*.json") if p != excluding)

    def _write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        data = value.encode("utf-8")

        if self.config.max_bytes is not None:
            if self._used_bytes(path) + len(data) > self.config.max_bytes:
                raise QuotaExceededError(
                    f"Storing {key!r} would exceed quota of {self.config.max_bytes} bytes"
                )

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            if e.errno in _QUOTA_ERRNOS:
                raise QuotaExceededError(f"Disk quota exceeded writing {key!r}: {e}") from e
            raise LocalStoreError(f"Failed to write {key!r}: {e}") from e

        logger.debug(f"Wrote {len(data)} bytes to {path}")

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)
