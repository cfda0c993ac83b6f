from __future__ import annotations
"""server/app/core/logging.py
~~~~~~~~~~~~~~~~~~~~~~~~
Configuration logs.
"""
import logging

from app.core.config import settings


def setup_logging(level: int | str | None = None) -> None:
    """Configure le logger racine (niveau par défaut : settings.LOG_LEVEL)."""
    if level is None:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
