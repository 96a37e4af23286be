"""Capacity-bounded, newest-first history of generated results."""

from __future__ import annotations

import asyncio
import base64
import errno
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .contracts import ConcreteRatio, HistoryEntry, ImageAsset, Mode
from .errors import StorageQuotaExceeded


logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 15

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class HistoryBackend(Protocol):
    """Record store addressable by entry id.

    ``put`` raises ``StorageQuotaExceeded`` when the write is rejected for space.
    """

    async def put(self, entry: HistoryEntry) -> None:
        ...

    async def get_all(self) -> Sequence[HistoryEntry]:
        ...

    async def delete(self, entry_id: str) -> None:
        ...

    async def clear(self) -> None:
        ...


def entry_to_record(entry: HistoryEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "mode": entry.mode.value,
        "timestamp": entry.timestamp,
        "prompt": entry.prompt,
        "ratio": entry.ratio.label,
        "image": {
            "mime_type": entry.image.mime_type,
            "width": entry.image.width,
            "height": entry.image.height,
            "data": base64.b64encode(entry.image.data).decode("ascii"),
        },
    }


def entry_from_record(record: Mapping[str, Any]) -> HistoryEntry:
    if not isinstance(record, Mapping) or not isinstance(record.get("image"), Mapping):
        raise ValueError("History record is not a JSON object with an image.")
    image = record["image"]
    return HistoryEntry(
        id=str(record["id"]),
        mode=Mode(record["mode"]),
        timestamp=int(record["timestamp"]),
        prompt=str(record["prompt"]),
        ratio=ConcreteRatio.parse(record["ratio"]),
        image=ImageAsset(
            data=base64.b64decode(image["data"]),
            mime_type=str(image["mime_type"]),
            width=int(image["width"]),
            height=int(image["height"]),
        ),
    )


def _newest_first(entries: Sequence[HistoryEntry]) -> List[HistoryEntry]:
    return sorted(entries, key=lambda item: (item.timestamp, item.id), reverse=True)


class MemoryHistoryBackend:
    """In-process backend. ``max_entries`` simulates a storage quota."""

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self.max_entries = max_entries
        self._records: Dict[str, HistoryEntry] = {}

    async def put(self, entry: HistoryEntry) -> None:
        if (
            self.max_entries is not None
            and entry.id not in self._records
            and len(self._records) >= self.max_entries
        ):
            raise StorageQuotaExceeded(f"History backend is full ({self.max_entries} records).")
        self._records[entry.id] = entry

    async def get_all(self) -> Sequence[HistoryEntry]:
        return list(self._records.values())

    async def delete(self, entry_id: str) -> None:
        self._records.pop(entry_id, None)

    async def clear(self) -> None:
        self._records.clear()


class JsonDirectoryBackend:
    """One JSON record per entry id under ``root``.

    ``max_bytes`` caps the total size of stored records; writes that would
    exceed it, or that fail with ENOSPC/EDQUOT, raise ``StorageQuotaExceeded``.
    """

    def __init__(self, root: Path, max_bytes: Optional[int] = None) -> None:
        self.root = Path(root).expanduser()
        self.max_bytes = max_bytes

    def _path(self, entry_id: str) -> Path:
        safe = "".join(ch for ch in entry_id if ch.isalnum() or ch in "-_")
        if not safe:
            raise ValueError(f"Invalid history entry id: {entry_id!r}")
        return self.root / f"{safe}.json"

    def _used_bytes(self, exclude: Optional[Path] = None) -> int:
        total = 0
        for path in self.root.glob("*.json"):
            if exclude is not None and path == exclude:
                continue
            total += path.stat().st_size
        return total

    def _put_sync(self, entry: HistoryEntry) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(entry.id)
        payload = json.dumps(entry_to_record(entry), indent=2).encode("utf-8") + b"\n"
        if self.max_bytes is not None:
            used = self._used_bytes(exclude=path)
            if used + len(payload) > self.max_bytes:
                raise StorageQuotaExceeded(
                    f"History quota of {self.max_bytes} bytes exceeded ({used} used, {len(payload)} requested)."
                )
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with tmp_path.open("wb") as handle:
                handle.write(payload)
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            if exc.errno in _QUOTA_ERRNOS:
                raise StorageQuotaExceeded(f"History storage is full: {exc}") from exc
            raise

    def _get_all_sync(self) -> List[HistoryEntry]:
        if not self.root.exists():
            return []
        entries: List[HistoryEntry] = []
        for path in sorted(self.root.glob("*.json")):
            try:
                with path.open("r", encoding="utf-8") as handle:
                    entries.append(entry_from_record(json.load(handle)))
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping unreadable history record %s: %s", path.name, exc)
        return entries

    def _delete_sync(self, entry_id: str) -> None:
        self._path(entry_id).unlink(missing_ok=True)

    def _clear_sync(self) -> None:
        if not self.root.exists():
            return
        for path in self.root.glob("*.json"):
            path.unlink(missing_ok=True)

    async def put(self, entry: HistoryEntry) -> None:
        await asyncio.to_thread(self._put_sync, entry)

    async def get_all(self) -> Sequence[HistoryEntry]:
        return await asyncio.to_thread(self._get_all_sync)

    async def delete(self, entry_id: str) -> None:
        await asyncio.to_thread(self._delete_sync, entry_id)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear_sync)


class HistoryStore:
    """Newest-first history capped at ``capacity`` entries.

    Mutations are serialized so concurrent inserts cannot jointly exceed the
    cap. Use as ``async with HistoryStore(backend) as store:``.
    """

    def __init__(self, backend: HistoryBackend, capacity: int = MAX_HISTORY_ENTRIES) -> None:
        if capacity <= 0:
            raise ValueError("History capacity must be positive.")
        self.backend = backend
        self.capacity = capacity
        self._lock = asyncio.Lock()
        self._open = False

    async def open(self) -> "HistoryStore":
        self._open = True
        async with self._lock:
            await self._enforce_cap()
        return self

    async def close(self) -> None:
        async with self._lock:
            self._open = False

    async def __aenter__(self) -> "HistoryStore":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require_open(self) -> None:
        if not self._open:
            raise RuntimeError("HistoryStore is closed; call open() first.")

    async def insert(self, entry: HistoryEntry) -> None:
        self._require_open()
        async with self._lock:
            try:
                await self.backend.put(entry)
            except StorageQuotaExceeded as exc:
                oldest = await self._oldest(exclude=entry.id)
                if oldest is None:
                    raise
                logger.info("History quota hit (%s); evicting oldest entry %s and retrying.", exc, oldest.id)
                await self.backend.delete(oldest.id)
                await self.backend.put(entry)
            await self._enforce_cap()

    async def list(self) -> List[HistoryEntry]:
        self._require_open()
        return _newest_first(await self.backend.get_all())

    async def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in await self.list():
            if entry.id == entry_id:
                return entry
        return None

    async def delete(self, entry_id: str) -> None:
        self._require_open()
        async with self._lock:
            await self.backend.delete(entry_id)

    async def clear(self) -> None:
        self._require_open()
        async with self._lock:
            await self.backend.clear()

    async def _oldest(self, exclude: Optional[str] = None) -> Optional[HistoryEntry]:
        entries = [item for item in await self.backend.get_all() if item.id != exclude]
        if not entries:
            return None
        return _newest_first(entries)[-1]

    async def _enforce_cap(self) -> None:
        entries = _newest_first(await self.backend.get_all())
        for stale in entries[self.capacity:]:
            logger.info("Evicting history entry %s (capacity %d).", stale.id, self.capacity)
            await self.backend.delete(stale.id)
