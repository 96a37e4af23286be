"""Aspect ratio normalization: crop-to-fill previews and pad-to-contain payloads."""

from __future__ import annotations

import enum
from typing import Optional, Tuple, Union

from PIL import Image

from .contracts import AspectRatio, ConcreteRatio, ImageAsset
from .errors import InvalidDimensions, InvalidRatio
from .utils import decode_image, encode_image


Color = Union[str, Tuple[int, ...]]


class FitMode(str, enum.Enum):
    FILL = "fill"
    CONTAIN = "contain"


def _as_ratio(ratio: Union[AspectRatio, ConcreteRatio, Tuple[int, int]]) -> ConcreteRatio:
    if isinstance(ratio, ConcreteRatio):
        return ratio
    if isinstance(ratio, AspectRatio):
        return ratio.concrete()
    if isinstance(ratio, tuple) and len(ratio) == 2:
        return ConcreteRatio(int(ratio[0]), int(ratio[1]))
    raise InvalidRatio(f"Unsupported ratio value: {ratio!r}")


def fill_box(width: int, height: int, ratio: ConcreteRatio) -> Tuple[int, int, int, int]:
    """Largest centered ``(left, top, right, bottom)`` crop with the target ratio."""
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"Dimensions must be positive, got {width}x{height}.")
    tw, th = ratio.width, ratio.height
    if width * th > height * tw:
        crop_w = max(1, round(height * tw / th))
        left = (width - crop_w) // 2
        return left, 0, left + crop_w, height
    if width * th < height * tw:
        crop_h = max(1, round(width * th / tw))
        top = (height - crop_h) // 2
        return 0, top, width, top + crop_h
    return 0, 0, width, height


def contain_canvas(width: int, height: int, ratio: ConcreteRatio) -> Tuple[int, int, int, int]:
    """Canvas ``(width, height)`` holding the source uncropped, plus its paste offset."""
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"Dimensions must be positive, got {width}x{height}.")
    tw, th = ratio.width, ratio.height
    if width * th > height * tw:
        canvas_w, canvas_h = width, max(height, round(width * th / tw))
    elif width * th < height * tw:
        canvas_w, canvas_h = max(width, round(height * tw / th)), height
    else:
        canvas_w, canvas_h = width, height
    return canvas_w, canvas_h, (canvas_w - width) // 2, (canvas_h - height) // 2


def _background_mode(img: Image.Image) -> str:
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        return "RGBA"
    return "RGB"


def normalize(
    image: Image.Image,
    ratio: Union[AspectRatio, ConcreteRatio, Tuple[int, int]],
    mode: FitMode = FitMode.CONTAIN,
    *,
    background: Color = "white",
    canvas_size: Optional[Tuple[int, int]] = None,
) -> Image.Image:
    """Return a new image with the requested aspect ratio.

    FILL crops the centered maximal region of the target ratio and scales it
    onto ``canvas_size`` (the crop's own size when omitted). CONTAIN keeps
    every source pixel at native size, centered on a ``background`` canvas.
    The input image is never modified.
    """
    target = _as_ratio(ratio)
    width, height = image.size
    if FitMode(mode) is FitMode.FILL:
        box = fill_box(width, height, target)
        cropped = image.crop(box)
        if canvas_size is None or tuple(canvas_size) == cropped.size:
            return cropped
        cw, ch = canvas_size
        if cw <= 0 or ch <= 0:
            raise InvalidDimensions(f"Canvas must be positive, got {cw}x{ch}.")
        return cropped.resize((cw, ch), Image.LANCZOS)

    canvas_w, canvas_h, left, top = contain_canvas(width, height, target)
    source = image if image.mode in ("RGB", "RGBA") else image.convert(_background_mode(image))
    canvas = Image.new(source.mode, (canvas_w, canvas_h), background)
    if source.mode == "RGBA":
        canvas.paste(source, (left, top), source)
    else:
        canvas.paste(source, (left, top))
    return canvas


def normalize_asset(
    asset: ImageAsset,
    ratio: Union[AspectRatio, ConcreteRatio, Tuple[int, int]],
    mode: FitMode = FitMode.CONTAIN,
    *,
    background: Color = "white",
    canvas_size: Optional[Tuple[int, int]] = None,
) -> ImageAsset:
    """Normalize an encoded asset and re-encode it as PNG."""
    if asset.width <= 0 or asset.height <= 0:
        raise InvalidDimensions(f"Dimensions must be positive, got {asset.width}x{asset.height}.")
    with decode_image(asset) as img:
        result = normalize(img, ratio, mode, background=background, canvas_size=canvas_size)
    return encode_image(result, "PNG")
