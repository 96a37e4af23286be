"""Aspect ratio catalogue and nearest-ratio snapping."""

from __future__ import annotations

import re
from typing import Tuple, Union

from .contracts import AspectRatio, ConcreteRatio
from .errors import InvalidDimensions, InvalidRatio


_RATIO_RE = re.compile(r"^\s*(\d+)\s*[:/]\s*(\d+)\s*$")

# Ratios the Gemini image model accepts, in tie-break order.
SUPPORTED_RATIOS: Tuple[ConcreteRatio, ...] = (
    ConcreteRatio(1, 1),
    ConcreteRatio(2, 3),
    ConcreteRatio(3, 2),
    ConcreteRatio(3, 4),
    ConcreteRatio(4, 3),
    ConcreteRatio(4, 5),
    ConcreteRatio(5, 4),
    ConcreteRatio(9, 16),
    ConcreteRatio(16, 9),
    ConcreteRatio(21, 9),
)

RatioLike = Union[AspectRatio, ConcreteRatio, str]


def _check_dims(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"Dimensions must be positive, got {width}x{height}.")


def closest_supported(width: int, height: int) -> ConcreteRatio:
    """Return the catalogue ratio nearest to ``width/height``.

    Ties go to the entry listed first in ``SUPPORTED_RATIOS``.
    """
    _check_dims(width, height)
    target = width / height
    best = SUPPORTED_RATIOS[0]
    best_delta = abs(best.value - target)
    for candidate in SUPPORTED_RATIOS[1:]:
        delta = abs(candidate.value - target)
        if delta < best_delta:
            best, best_delta = candidate, delta
    return best


def parse_ratio(value: RatioLike) -> Union[AspectRatio, ConcreteRatio]:
    """Coerce user input into a selectable ratio or a concrete one.

    Selectable labels ("16:9") and the sentinel ("Match Reference", "match")
    map to ``AspectRatio``; any other ``W:H`` becomes a ``ConcreteRatio``.
    """
    if isinstance(value, (AspectRatio, ConcreteRatio)):
        return value
    text = str(value).strip()
    lowered = text.lower().replace("-", " ").replace("_", " ")
    if lowered in {"match", "match reference", "auto"}:
        return AspectRatio.MATCH_REFERENCE
    if lowered == "square":
        return AspectRatio.SQUARE
    match = _RATIO_RE.match(text)
    if not match:
        raise InvalidRatio(f"Unrecognized ratio '{value}'.")
    label = f"{int(match.group(1))}:{int(match.group(2))}"
    for member in AspectRatio:
        if member.value == label:
            return member
    return ConcreteRatio(int(match.group(1)), int(match.group(2)))


def concretize(ratio: RatioLike, width: int, height: int) -> ConcreteRatio:
    """Resolve the match-reference sentinel against an image's own size."""
    parsed = parse_ratio(ratio)
    if isinstance(parsed, ConcreteRatio):
        return parsed
    if parsed.is_sentinel:
        return closest_supported(width, height)
    return parsed.concrete()
