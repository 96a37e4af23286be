"""Utility helpers for Restyle Forge."""

from __future__ import annotations

import io
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from .contracts import ImageAsset
from .errors import InvalidDimensions

ImageInput = Union[str, Path, bytes, ImageAsset]

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

_FORMAT_TO_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def is_url(value: str) -> bool:
    return bool(_URL_RE.match(value or ""))


def read_input_bytes(value: Union[str, Path, bytes]) -> Tuple[bytes, Optional[str]]:
    if isinstance(value, bytes):
        return value, None
    if isinstance(value, Path):
        return value.read_bytes(), str(value)
    if isinstance(value, str):
        if is_url(value):
            raise ValueError("URL inputs must be downloaded before loading.")
        path = Path(value).expanduser().resolve()
        return path.read_bytes(), str(path)
    raise TypeError(f"Unsupported input type: {type(value)}")


def extension_from_mime(mime_type: Optional[str], fallback: str = "png") -> str:
    if mime_type:
        mime = mime_type.lower()
        if mime.endswith("/jpeg") or mime.endswith("/jpg"):
            return "jpg"
        if mime.endswith("/png"):
            return "png"
        if mime.endswith("/webp"):
            return "webp"
        if "/" in mime:
            return mime.split("/", 1)[1]
    if fallback == "jpeg":
        return "jpg"
    return fallback


def load_asset(value: ImageInput, mime_type: Optional[str] = None) -> ImageAsset:
    """Decode enough of an image to capture its media type and pixel size."""
    if isinstance(value, ImageAsset):
        return value
    data, _ = read_input_bytes(value)
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            detected = _FORMAT_TO_MIME.get((img.format or "").upper())
    except UnidentifiedImageError as exc:
        raise InvalidDimensions("Input is not a decodable image.") from exc
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"Image has no pixels ({width}x{height}).")
    return ImageAsset(
        data=data,
        mime_type=mime_type or detected or "application/octet-stream",
        width=width,
        height=height,
    )


def decode_image(asset: ImageAsset) -> Image.Image:
    img = Image.open(io.BytesIO(asset.data))
    img.load()
    return img


def encode_image(img: Image.Image, fmt: str = "PNG") -> ImageAsset:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return ImageAsset(
        data=buffer.getvalue(),
        mime_type=_FORMAT_TO_MIME.get(fmt.upper(), "image/png"),
        width=img.width,
        height=img.height,
    )
