"""Export history entries as image files with JSON receipts."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from .contracts import HistoryEntry, ImageAsset
from .effects import add_film_grain
from .utils import decode_image, encode_image, extension_from_mime


logger = logging.getLogger(__name__)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bytes):
        return f"<bytes:{len(value)}>"
    if is_dataclass(value):
        return {k: _serialize(v) for k, v in asdict(value).items()}
    if isinstance(value, Mapping):
        return {str(k): _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return str(value)


def build_receipt(entry: HistoryEntry, image_path: Path, receipt_path: Path, *, grain: float = 0.0) -> dict[str, Any]:
    return {
        "entry": {
            "id": entry.id,
            "mode": entry.mode.value,
            "timestamp": entry.timestamp,
            "created_at": datetime.fromtimestamp(entry.timestamp / 1000, tz=timezone.utc).isoformat(),
            "prompt": entry.prompt,
            "ratio": entry.ratio.label,
        },
        "image": _serialize(entry.image),
        "post_processing": {"film_grain": grain} if grain else {},
        "artifacts": {
            "image_path": str(image_path),
            "receipt_path": str(receipt_path),
        },
    }


def write_receipt(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
        handle.write("\n")


def export_entry(
    entry: HistoryEntry,
    out_dir: Path,
    *,
    grain: float = 0.0,
    stem: Optional[str] = None,
) -> Tuple[Path, Path]:
    """Write ``entry``'s image and a receipt next to it; return both paths."""
    out_dir = Path(out_dir).expanduser()
    out_dir.mkdir(parents=True, exist_ok=True)
    image: ImageAsset = entry.image
    if grain:
        with decode_image(image) as decoded:
            image = encode_image(add_film_grain(decoded, grain), "PNG")
    stem = stem or f"restyle-{entry.mode.value}-{entry.id}"
    image_path = out_dir / f"{stem}.{extension_from_mime(image.mime_type)}"
    image_path.write_bytes(image.data)
    receipt_path = out_dir / f"receipt-{stem}.json"
    write_receipt(receipt_path, build_receipt(entry, image_path, receipt_path, grain=grain))
    logger.info("Exported history entry %s to %s", entry.id, image_path)
    return image_path, receipt_path
