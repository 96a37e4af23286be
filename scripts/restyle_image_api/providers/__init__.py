"""Provider adapter registry."""

from __future__ import annotations

from typing import Any, Dict

from .base import ImageSynthesizer, PromptSynthesizer, ProviderAdapter


_ADAPTERS: Dict[str, ProviderAdapter] = {}


def _build_adapter(provider: str, **options: Any) -> ProviderAdapter:
    key = provider.strip().lower()
    if key in {"gemini", "google"}:
        from .gemini import GeminiAdapter
        return GeminiAdapter(**options)
    raise ValueError(f"No adapter registered for provider '{provider}'.")


def get_adapter(provider: str = "gemini", **options: Any) -> ProviderAdapter:
    """Return a cached adapter; passing options always builds a fresh one."""
    key = provider.strip().lower()
    if options:
        return _build_adapter(key, **options)
    adapter = _ADAPTERS.get(key)
    if adapter is not None:
        return adapter
    adapter = _build_adapter(key)
    _ADAPTERS[key] = adapter
    return adapter


__all__ = ["get_adapter", "ImageSynthesizer", "PromptSynthesizer", "ProviderAdapter"]
