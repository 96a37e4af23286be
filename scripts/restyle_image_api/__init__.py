"""RESTYLE FORGE public surface."""

from .api import (
    clear_history,
    delete_history,
    export_history,
    generate,
    list_history,
    preview,
    regenerate,
    regenerate_from_history,
)
from .core import AspectRatio, HistoryEntry, ImageAsset, Mode, RunPhase, RunState

__all__ = [
    "generate",
    "regenerate",
    "regenerate_from_history",
    "preview",
    "list_history",
    "delete_history",
    "clear_history",
    "export_history",
    "AspectRatio",
    "HistoryEntry",
    "ImageAsset",
    "Mode",
    "RunPhase",
    "RunState",
]
