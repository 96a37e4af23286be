"""Environment-driven settings for Restyle Forge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv


DEFAULT_HISTORY_DIR = Path("outputs") / "restyle_forge" / "history"
DEFAULT_TIMEOUT = 120.0


@dataclass
class Settings:
    api_key: Optional[str] = None
    prompt_model: Optional[str] = None
    image_model: Optional[str] = None
    history_dir: Path = DEFAULT_HISTORY_DIR
    history_max_bytes: Optional[int] = None
    timeout: Optional[float] = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    dotenv_path: Optional[Path] = None


def load_repo_dotenv() -> Optional[Path]:
    """Load the nearest ``.env`` without overriding variables already set."""
    found = find_dotenv(usecwd=True)
    if found:
        load_dotenv(dotenv_path=found, override=False)
        return Path(found)
    return None


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from exc


def _optional_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    if raw.lower() in {"none", "off", "0"}:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}.") from exc


def load_settings(*, use_dotenv: bool = True) -> Settings:
    dotenv_path = load_repo_dotenv() if use_dotenv else None
    return Settings(
        api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
        prompt_model=os.getenv("RESTYLE_PROMPT_MODEL") or None,
        image_model=os.getenv("RESTYLE_IMAGE_MODEL") or None,
        history_dir=Path(os.getenv("RESTYLE_HISTORY_DIR") or DEFAULT_HISTORY_DIR).expanduser(),
        history_max_bytes=_optional_int("RESTYLE_HISTORY_MAX_BYTES"),
        timeout=_optional_float("RESTYLE_TIMEOUT", DEFAULT_TIMEOUT),
        log_level=(os.getenv("RESTYLE_LOG_LEVEL") or "INFO").upper(),
        dotenv_path=dotenv_path,
    )
