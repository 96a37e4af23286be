"""Resolve mode-specific generation parameters from raw selections."""

from __future__ import annotations

import enum
import re
from dataclasses import replace
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Type, TypeVar, Union

from .contracts import (
    AspectRatio,
    CameraPerspective,
    ColorTheory,
    GenerationParameters,
    ImageAsset,
    InteriorMaterial,
    InteriorParameters,
    InteriorStyle,
    LightingStyle,
    Mode,
    PortraitEnvironment,
    PortraitParameters,
    PortraitVibe,
    ProductParameters,
    ReferenceTactic,
)
from .errors import InvalidSelection
from .ratios import parse_ratio


E = TypeVar("E", bound=enum.Enum)

_FIELDS: Dict[Mode, Dict[str, Type[enum.Enum]]] = {
    Mode.PRODUCT: {
        "ratio": AspectRatio,
        "lighting": LightingStyle,
        "perspective": CameraPerspective,
        "color_theory": ColorTheory,
        "reference_tactic": ReferenceTactic,
    },
    Mode.PORTRAIT: {
        "ratio": AspectRatio,
        "environment": PortraitEnvironment,
        "vibe": PortraitVibe,
    },
    Mode.INTERIOR: {
        "ratio": AspectRatio,
        "style": InteriorStyle,
        "material": InteriorMaterial,
    },
}

_ALIASES: Dict[str, str] = {
    "aspect_ratio": "ratio",
    "angle": "perspective",
    "camera": "perspective",
    "camera_angle": "perspective",
    "color": "color_theory",
    "color_strategy": "color_theory",
    "tactic": "reference_tactic",
    "env": "environment",
    "interior_style": "style",
    "interior_material": "material",
    "portrait_env": "environment",
    "portrait_vibe": "vibe",
}

_PARAM_TYPES = {
    Mode.PRODUCT: ProductParameters,
    Mode.PORTRAIT: PortraitParameters,
    Mode.INTERIOR: InteriorParameters,
}


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")


def normalize_mode(mode: Union[Mode, str]) -> Mode:
    if isinstance(mode, Mode):
        return mode
    slug = _slug(str(mode))
    if slug == "studio":
        return Mode.PRODUCT
    for member in Mode:
        if slug in {member.value, _slug(member.name)}:
            return member
    raise InvalidSelection(f"Unknown mode '{mode}'.")


def coerce_choice(enum_type: Type[E], value: Any) -> E:
    """Accept an enum member, its display value, or its member name."""
    if isinstance(value, enum_type):
        return value
    text = str(value)
    for member in enum_type:
        if text == member.value:
            return member
    slug = _slug(text)
    for member in enum_type:
        if slug in {_slug(member.value), _slug(member.name)}:
            return member
    choices = ", ".join(member.value for member in enum_type)
    raise InvalidSelection(f"'{value}' is not a valid {enum_type.__name__} (choices: {choices}).")


def _canonical_key(key: str) -> str:
    normalized = _slug(key).replace("-", "_")
    return _ALIASES.get(normalized, normalized)


def resolve_parameters(
    mode: Union[Mode, str],
    selections: Optional[Mapping[str, Any]] = None,
    references: Iterable[ImageAsset] = (),
) -> GenerationParameters:
    """Build the tagged parameter variant for ``mode``.

    Unknown keys or values raise ``InvalidSelection``. For Product mode with a
    reference image and the Complete Mimicry tactic, lighting and perspective
    are forced to their match-reference members; the Ignore tactic (or
    ``use_reference=False``) drops the references.
    """
    active = normalize_mode(mode)
    fields = _FIELDS[active]
    kwargs: Dict[str, Any] = {}
    use_reference = True
    for raw_key, raw_value in (selections or {}).items():
        key = _canonical_key(raw_key)
        if key == "mode":
            if normalize_mode(raw_value) is not active:
                raise InvalidSelection(f"Selections are for mode '{raw_value}', not '{active.value}'.")
            continue
        if key == "use_reference" and active is Mode.PRODUCT:
            use_reference = bool(raw_value)
            continue
        if raw_value is None:
            continue
        enum_type = fields.get(key)
        if enum_type is None:
            raise InvalidSelection(f"'{raw_key}' is not an option for {active.value} mode.")
        if enum_type is AspectRatio:
            kwargs[key] = parse_ratio(raw_value)
        else:
            kwargs[key] = coerce_choice(enum_type, raw_value)

    refs: Sequence[ImageAsset] = tuple(references or ())
    if active is not Mode.PRODUCT:
        return _PARAM_TYPES[active](**kwargs)

    params = ProductParameters(**kwargs)
    if not use_reference:
        params = replace(params, reference_tactic=ReferenceTactic.IGNORE)
    if params.reference_tactic is ReferenceTactic.IGNORE:
        return params
    params = replace(params, references=refs)
    if refs and params.reference_tactic is ReferenceTactic.FULL:
        params = replace(
            params,
            lighting=LightingStyle.MATCH_REFERENCE,
            perspective=CameraPerspective.MATCH_REFERENCE,
        )
    return params


def selections_of(params: GenerationParameters) -> Dict[str, Any]:
    """Raw selections that resolve back to ``params``."""
    fields = _FIELDS[params.mode]
    return {key: getattr(params, key) for key in fields}
