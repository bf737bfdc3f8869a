"""Slot storage backends for the complaint collection.

A backend stores opaque bytes under a named slot.  The complaint
repository keeps its whole collection in a single slot and rewrites it
on every change, so backends only need whole-value read and write.

Three implementations are provided:

* :class:`InMemoryStorageBackend` -- process-local, for tests and demos.
* :class:`FileStorageBackend` -- one JSON file per slot in a directory.
* :class:`RedisStorageBackend` -- one Redis key per slot.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

if TYPE_CHECKING:
    from config.settings import Settings

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Storage backend protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class StorageBackend(Protocol):
    """Async slot storage interface."""

    async def read(self, slot: str) -> bytes | None: ...

    async def write(self, slot: str, value: bytes) -> None: ...

    async def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryStorageBackend:
    """Dict-backed slots; contents are lost when the process exits."""

    __slots__ = ("_slots",)

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._slots: dict[str, bytes] = dict(initial or {})

    async def read(self, slot: str) -> bytes | None:
        return self._slots.get(slot)

    async def write(self, slot: str, value: bytes) -> None:
        self._slots[slot] = value

    async def close(self) -> None:
        return None


# ---------------------------------------------------------------------------
# File backend
# ---------------------------------------------------------------------------


class FileStorageBackend:
    """Stores each slot as ``<directory>/<slot>.json``.

    Writes go to a temporary file in the same directory followed by
    :func:`os.replace`, so readers never observe a half-written slot.
    Blocking file I/O runs in the default executor.
    """

    __slots__ = ("_directory",)

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    def _path(self, slot: str) -> Path:
        return self._directory / f"{slot}.json"

    def _read_sync(self, slot: str) -> bytes | None:
        try:
            return self._path(slot).read_bytes()
        except FileNotFoundError:
            return None

    def _write_sync(self, slot: str, value: bytes) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{slot}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(value)
            os.replace(tmp_name, self._path(slot))
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    async def read(self, slot: str) -> bytes | None:
        return await asyncio.to_thread(self._read_sync, slot)

    async def write(self, slot: str, value: bytes) -> None:
        await asyncio.to_thread(self._write_sync, slot, value)

    async def close(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisStorageBackend:
    """Redis-backed slots using ``redis.asyncio`` with connection pooling."""

    __slots__ = ("_namespace", "_pool", "_redis")

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        namespace: str = "civicdesk:",
        max_connections: int = 10,
    ) -> None:
        import redis.asyncio as aioredis

        self._namespace = namespace
        self._pool = aioredis.ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            decode_responses=False,
        )
        self._redis = aioredis.Redis(connection_pool=self._pool)

    async def read(self, slot: str) -> bytes | None:
        return await self._redis.get(f"{self._namespace}{slot}")

    async def write(self, slot: str, value: bytes) -> None:
        await self._redis.set(f"{self._namespace}{slot}", value)

    async def close(self) -> None:
        await self._redis.aclose()
        await self._pool.aclose()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_storage_backend(settings: Settings) -> StorageBackend:
    """Build the backend named by ``settings.storage_backend``."""
    kind = settings.storage_backend
    if kind == "memory":
        backend: StorageBackend = InMemoryStorageBackend()
    elif kind == "redis":
        backend = RedisStorageBackend(url=settings.redis_url)
    else:
        backend = FileStorageBackend(settings.storage_path)
    logger.info("storage.backend_selected", backend=kind)
    return backend
