"""Core data contracts for Restyle Forge."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .errors import InvalidRatio, RunError


class Mode(str, enum.Enum):
    PRODUCT = "product"
    PORTRAIT = "portrait"
    INTERIOR = "interior"


class AspectRatio(str, enum.Enum):
    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    WIDE = "16:9"
    TALL = "9:16"
    MATCH_REFERENCE = "Match Reference"

    @property
    def is_sentinel(self) -> bool:
        return self is AspectRatio.MATCH_REFERENCE

    def concrete(self) -> "ConcreteRatio":
        if self.is_sentinel:
            raise InvalidRatio("Match Reference must be concretized against an image first.")
        return ConcreteRatio.parse(self.value)


@dataclass(frozen=True)
class ConcreteRatio:
    """A resolved width:height ratio. Never the match-reference sentinel."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if not isinstance(self.width, int) or not isinstance(self.height, int):
            raise InvalidRatio(f"Ratio terms must be integers, got {self.width!r}:{self.height!r}.")
        if self.width <= 0 or self.height <= 0:
            raise InvalidRatio(f"Ratio terms must be positive, got {self.width}:{self.height}.")

    @classmethod
    def parse(cls, value: str) -> "ConcreteRatio":
        parts = str(value).replace("/", ":").split(":")
        if len(parts) != 2:
            raise InvalidRatio(f"Unrecognized ratio '{value}'.")
        try:
            w, h = int(parts[0].strip()), int(parts[1].strip())
        except ValueError as exc:
            raise InvalidRatio(f"Unrecognized ratio '{value}'.") from exc
        return cls(w, h)

    @property
    def value(self) -> float:
        return self.width / self.height

    @property
    def label(self) -> str:
        return f"{self.width}:{self.height}"

    def __str__(self) -> str:
        return self.label


# --- Product mode options ---


class LightingStyle(str, enum.Enum):
    MATCH_REFERENCE = "Match Reference Image"
    STUDIO = "Studio Lighting"
    NATURAL = "Natural Sunlight"
    NEON = "Cyberpunk Neon"
    CINEMATIC = "Cinematic & Moody"
    MINIMALIST = "Soft & Minimalist"
    PRODUCT_BOOST = "Bright Commercial"


class CameraPerspective(str, enum.Enum):
    MATCH_REFERENCE = "Match Reference Perspective"
    FRONT = "Front View"
    ISOMETRIC = "Isometric View"
    TOP_DOWN = "Flat Lay (Top Down)"
    LOW_ANGLE = "Low Angle (Hero Shot)"
    HIGH_ANGLE = "High Angle (Looking Down)"
    EYE_LEVEL = "Eye Level (Standard)"
    CLOSE_UP = "Macro Close-up"
    WIDE_ANGLE = "Wide Angle"
    DUTCH = "Dutch Angle (Dynamic Tilt)"


class ColorTheory(str, enum.Enum):
    AUTO = "AI Auto-Select"
    MONOCHROMATIC = "Monochromatic"
    TONE = "Tone on Tone"
    COMPLEMENTARY = "Complementary"
    SPLIT_COMPLEMENTARY = "Split Complementary"
    ANALOGOUS = "Analogous"
    TRIADIC = "Triadic"
    TETRADIC = "Tetradic"


class ReferenceTactic(str, enum.Enum):
    FULL = "Complete Mimicry"
    STYLE = "Visual Style (Colors/Textures)"
    LIGHTING = "Lighting & Atmosphere"
    COMPOSITION = "Composition & Layout"
    IGNORE = "Do Not Use Reference"


# --- Portrait mode options ---


class PortraitEnvironment(str, enum.Enum):
    OFFICE = "Modern Office"
    CAFE = "Cozy Cafe"
    NATURE = "Outdoor Nature"
    URBAN = "Urban Street"
    STUDIO_GREY = "Professional Studio Grey"
    LUXURY = "Luxury Hotel Lobby"
    BEACH = "Sunset Beach"


class PortraitVibe(str, enum.Enum):
    PROFESSIONAL = "Professional & Sharp"
    CANDID = "Candid & Soft"
    DRAMATIC = "Dramatic & High Contrast"
    GOLDEN_HOUR = "Warm Golden Hour"
    BW = "Black & White Artistic"


# --- Interior mode options ---


class InteriorStyle(str, enum.Enum):
    MINIMALIST = "Minimalist"
    INDUSTRIAL = "Industrial Loft"
    SCANDINAVIAN = "Scandinavian (Japandi)"
    MID_CENTURY = "Mid-Century Modern"
    BOHEMIAN = "Bohemian"
    LUXURY_CLASSIC = "Luxury Classic"


class InteriorMaterial(str, enum.Enum):
    WOOD_WHITE = "Warm Wood & White"
    CONCRETE_METAL = "Concrete & Black Metal"
    VELVET_GOLD = "Velvet & Gold Accents"
    EARTH_TONES = "Natural Earth Tones"
    MARBLE_GLASS = "Marble & Glass"
    COLORFUL = "Vibrant & Colorful"


@dataclass(frozen=True)
class ImageAsset:
    """Encoded image bytes plus the facts the pipeline needs about them."""

    data: bytes = field(repr=False)
    mime_type: str
    width: int
    height: int

    @property
    def size(self) -> tuple:
        return (self.width, self.height)


RatioChoice = Union[AspectRatio, ConcreteRatio]


@dataclass(frozen=True)
class ProductParameters:
    ratio: RatioChoice = AspectRatio.SQUARE
    lighting: LightingStyle = LightingStyle.STUDIO
    perspective: CameraPerspective = CameraPerspective.FRONT
    color_theory: ColorTheory = ColorTheory.AUTO
    reference_tactic: ReferenceTactic = ReferenceTactic.FULL
    references: Sequence[ImageAsset] = ()
    mode: Mode = field(default=Mode.PRODUCT, init=False)

    @property
    def uses_references(self) -> bool:
        return bool(self.references) and self.reference_tactic is not ReferenceTactic.IGNORE


@dataclass(frozen=True)
class PortraitParameters:
    ratio: RatioChoice = AspectRatio.SQUARE
    environment: PortraitEnvironment = PortraitEnvironment.OFFICE
    vibe: PortraitVibe = PortraitVibe.PROFESSIONAL
    mode: Mode = field(default=Mode.PORTRAIT, init=False)


@dataclass(frozen=True)
class InteriorParameters:
    ratio: RatioChoice = AspectRatio.SQUARE
    style: InteriorStyle = InteriorStyle.MINIMALIST
    material: InteriorMaterial = InteriorMaterial.WOOD_WHITE
    mode: Mode = field(default=Mode.INTERIOR, init=False)


GenerationParameters = Union[ProductParameters, PortraitParameters, InteriorParameters]


class RunPhase(str, enum.Enum):
    IDLE = "idle"
    PROMPT_PENDING = "prompt_pending"
    PROMPT_READY = "prompt_ready"
    IMAGE_PENDING = "image_pending"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RunState:
    """Immutable snapshot of one generation attempt."""

    run_id: int = 0
    phase: RunPhase = RunPhase.IDLE
    parameters: Optional[GenerationParameters] = None
    prompt: Optional[str] = None
    ratio: Optional[ConcreteRatio] = None
    image: Optional[ImageAsset] = None
    error: Optional[RunError] = None
    history_entry_id: Optional[str] = None
    history_error: Optional[RunError] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.phase is RunPhase.DONE and self.error is None and not self.stale


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    mode: Mode
    timestamp: int
    image: ImageAsset
    prompt: str
    ratio: ConcreteRatio
