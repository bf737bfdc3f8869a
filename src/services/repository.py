"""Complaint repository over a single storage slot.

The whole collection lives in one slot as a JSON array.  Every mutation
reads the array, changes it in memory and writes it back.  Within one
process the cycle is serialised by an :class:`asyncio.Lock`; across
processes the last writer wins.

Reads validate each record on its own and skip the ones that do not fit
the complaint schema.  Mutations work on the raw array, so skipped
records are written back untouched.  A slot that is not a JSON array at
all is treated as an empty collection.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import orjson
import structlog
from pydantic import ValidationError

from src.models.complaint import Complaint, find_by_tracking_id

if TYPE_CHECKING:
    from src.services.storage import StorageBackend

logger = structlog.get_logger(__name__)

DEFAULT_SLOT = "complaints"


def _record_id(record: Any) -> str | None:
    if isinstance(record, dict) and isinstance(record.get("id"), str):
        return record["id"]
    return None


class ComplaintRepository:
    """Read, add and delete complaints stored under one slot.

    Parameters
    ----------
    backend:
        Slot storage capability, injected by the caller.
    slot:
        Name of the slot holding the serialized collection.
    """

    __slots__ = ("_backend", "_lock", "_slot")

    def __init__(self, backend: StorageBackend, slot: str = DEFAULT_SLOT) -> None:
        self._backend = backend
        self._slot = slot
        self._lock = asyncio.Lock()

    @property
    def slot(self) -> str:
        return self._slot

    # -- serialisation -------------------------------------------------------

    def _load(self, raw: bytes | None) -> list[Any]:
        """Decode the slot into its raw JSON array."""
        if not raw:
            return []
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("repository.slot_undecodable", slot=self._slot, size=len(raw))
            return []
        if not isinstance(data, list):
            logger.warning("repository.slot_not_a_list", slot=self._slot, kind=type(data).__name__)
            return []
        return data

    def _validate(self, records: list[Any]) -> list[Complaint]:
        complaints: list[Complaint] = []
        for position, record in enumerate(records):
            try:
                complaints.append(Complaint.model_validate(record))
            except ValidationError as exc:
                logger.warning(
                    "repository.record_skipped",
                    slot=self._slot,
                    position=position,
                    complaint_id=_record_id(record),
                    errors=exc.error_count(),
                )
        return complaints

    async def _read_raw(self) -> list[Any]:
        return self._load(await self._backend.read(self._slot))

    async def _read(self) -> list[Complaint]:
        return self._validate(await self._read_raw())

    async def _write_raw(self, records: list[Any]) -> None:
        await self._backend.write(self._slot, orjson.dumps(records))

    # -- public API ----------------------------------------------------------

    async def list_all(self) -> list[Complaint]:
        """Return the valid stored records; a malformed slot reads as empty."""
        return await self._read()

    async def find(self, tracking_id: str) -> Complaint | None:
        return find_by_tracking_id(await self._read(), tracking_id)

    async def ids(self) -> set[str]:
        """Ids of every stored record, including ones that fail validation."""
        return {rid for rid in map(_record_id, await self._read_raw()) if rid is not None}

    async def add_new(self, build: Callable[[set[str]], Complaint]) -> Complaint:
        """Build a complaint from the ids in use and insert it at the head.

        *build* receives every stored id and runs under the repository
        lock, so an id it picks stays free until the record is written.
        """
        async with self._lock:
            records = await self._read_raw()
            taken = {rid for rid in map(_record_id, records) if rid is not None}
            complaint = build(taken)
            records.insert(0, complaint.to_record())
            await self._write_raw(records)
        logger.info("repository.complaint_added", complaint_id=complaint.id, total=len(records))
        return complaint

    async def prepend(self, complaint: Complaint) -> None:
        """Insert *complaint* at the head of the collection."""
        await self.add_new(lambda _taken: complaint)

    async def delete(self, tracking_id: str) -> bool:
        """Remove every record whose id equals *tracking_id*.

        Remaining records keep their values and relative order.  Returns
        whether anything was removed; the slot is left untouched otherwise.
        """
        async with self._lock:
            records = await self._read_raw()
            kept = [r for r in records if _record_id(r) != tracking_id]
            removed = len(records) - len(kept)
            if removed:
                await self._write_raw(kept)
        logger.info("repository.complaint_deleted", complaint_id=tracking_id, removed=removed)
        return removed > 0
