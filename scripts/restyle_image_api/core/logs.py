"""Logging setup for the command-line front-end."""

from __future__ import annotations

import logging
from typing import Optional

from .config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(settings: Optional[Settings] = None, level: Optional[str] = None) -> logging.Logger:
    name = (level or (settings.log_level if settings else "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
    return logging.getLogger("restyle_image_api")
