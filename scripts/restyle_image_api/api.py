"""Public API for Restyle Forge."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from restyle_image_api.core.config import Settings, load_settings
from restyle_image_api.core.contracts import AspectRatio, ConcreteRatio, HistoryEntry, ImageAsset, Mode, RunState
from restyle_image_api.core.history import HistoryStore, JsonDirectoryBackend
from restyle_image_api.core.normalize import FitMode, normalize_asset
from restyle_image_api.core.orchestrator import Orchestrator
from restyle_image_api.core.ratios import concretize
from restyle_image_api.core.receipts import export_entry
from restyle_image_api.core.solver import resolve_parameters
from restyle_image_api.core.utils import ImageInput, load_asset
from restyle_image_api.providers import get_adapter
from restyle_image_api.providers.base import ProviderAdapter


def _settings(settings: Optional[Settings]) -> Settings:
    return settings if settings is not None else load_settings()


def _maybe_load(value: Optional[ImageInput]) -> Optional[ImageAsset]:
    if value is None:
        return None
    return load_asset(value)


def open_history(
    settings: Optional[Settings] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> HistoryStore:
    """Build a store over the JSON directory backend (call ``open`` or use ``async with``)."""
    cfg = _settings(settings)
    root = Path(history_dir) if history_dir else cfg.history_dir
    return HistoryStore(JsonDirectoryBackend(root, max_bytes=cfg.history_max_bytes))


def build_orchestrator(
    history: Optional[HistoryStore],
    settings: Optional[Settings] = None,
    adapter: Optional[ProviderAdapter] = None,
) -> Orchestrator:
    cfg = _settings(settings)
    if adapter is None:
        adapter = get_adapter(
            "gemini",
            api_key=cfg.api_key,
            prompt_model=cfg.prompt_model,
            image_model=cfg.image_model,
        )
    return Orchestrator(adapter, adapter, history, timeout=cfg.timeout)


async def generate(
    *,
    source: Optional[ImageInput],
    mode: Union[Mode, str] = Mode.PRODUCT,
    selections: Optional[Mapping[str, Any]] = None,
    references: Iterable[ImageInput] = (),
    settings: Optional[Settings] = None,
    adapter: Optional[ProviderAdapter] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> RunState:
    cfg = _settings(settings)
    parameters = resolve_parameters(mode, selections, [load_asset(ref) for ref in references])
    async with open_history(cfg, history_dir) as history:
        orchestrator = build_orchestrator(history, cfg, adapter)
        return await orchestrator.generate(_maybe_load(source), parameters)


async def regenerate(
    *,
    source: Optional[ImageInput],
    prompt: str,
    ratio: Union[AspectRatio, ConcreteRatio, str] = AspectRatio.SQUARE,
    mode: Union[Mode, str] = Mode.PRODUCT,
    settings: Optional[Settings] = None,
    adapter: Optional[ProviderAdapter] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> RunState:
    cfg = _settings(settings)
    async with open_history(cfg, history_dir) as history:
        orchestrator = build_orchestrator(history, cfg, adapter)
        return await orchestrator.regenerate(_maybe_load(source), prompt, ratio, mode)


async def regenerate_from_history(
    entry_id: str,
    *,
    source: Optional[ImageInput],
    prompt: Optional[str] = None,
    ratio: Union[AspectRatio, ConcreteRatio, str, None] = None,
    mode: Union[Mode, str, None] = None,
    settings: Optional[Settings] = None,
    adapter: Optional[ProviderAdapter] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> Optional[RunState]:
    """Re-render ``source`` with a saved entry's prompt, ratio and mode.

    Explicit ``prompt``/``ratio``/``mode`` arguments override the restored
    values. Returns ``None`` when no entry has ``entry_id``.
    """
    cfg = _settings(settings)
    async with open_history(cfg, history_dir) as history:
        entry = await history.get(entry_id)
        if entry is None:
            return None
        orchestrator = build_orchestrator(history, cfg, adapter)
        return await orchestrator.regenerate(
            _maybe_load(source),
            prompt if prompt is not None else entry.prompt,
            ratio if ratio is not None else entry.ratio,
            mode if mode is not None else entry.mode,
        )


async def list_history(
    settings: Optional[Settings] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> List[HistoryEntry]:
    async with open_history(settings, history_dir) as history:
        return await history.list()


async def delete_history(
    entry_id: str,
    settings: Optional[Settings] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> None:
    async with open_history(settings, history_dir) as history:
        await history.delete(entry_id)


async def clear_history(
    settings: Optional[Settings] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> None:
    async with open_history(settings, history_dir) as history:
        await history.clear()


async def export_history(
    entry_id: str,
    out_dir: Union[str, Path],
    *,
    grain: float = 0.0,
    settings: Optional[Settings] = None,
    history_dir: Optional[Union[str, Path]] = None,
) -> Optional[Tuple[Path, Path]]:
    async with open_history(settings, history_dir) as history:
        entry = await history.get(entry_id)
    if entry is None:
        return None
    return export_entry(entry, Path(out_dir), grain=grain)


def preview(
    source: ImageInput,
    ratio: Union[AspectRatio, ConcreteRatio, str],
    canvas_size: Optional[Tuple[int, int]] = None,
) -> ImageAsset:
    """Center-crop ``source`` to ``ratio`` for an operator preview."""
    asset = load_asset(source)
    concrete = concretize(ratio, asset.width, asset.height)
    return normalize_asset(asset, concrete, FitMode.FILL, canvas_size=canvas_size)
