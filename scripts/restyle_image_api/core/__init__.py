"""Core contracts and helpers."""

from .contracts import (
    AspectRatio,
    ConcreteRatio,
    GenerationParameters,
    HistoryEntry,
    ImageAsset,
    InteriorParameters,
    Mode,
    PortraitParameters,
    ProductParameters,
    RunPhase,
    RunState,
)
from .errors import ErrorKind, RestyleError, RunError

__all__ = [
    "AspectRatio",
    "ConcreteRatio",
    "ErrorKind",
    "GenerationParameters",
    "HistoryEntry",
    "ImageAsset",
    "InteriorParameters",
    "Mode",
    "PortraitParameters",
    "ProductParameters",
    "RestyleError",
    "RunError",
    "RunPhase",
    "RunState",
]
