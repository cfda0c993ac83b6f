# coding: utf-8
# server/app/core/utils/datetime.py
"""server/app/core/utils/datetime.py
~~~~~~~~~~~~~~~~~~~~~~~~
Utilitaires pour la gestion des dates et heures.
"""

from datetime import datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Datetime courant, aware UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Rend un datetime aware UTC.
    SQLite renvoie des datetimes naïfs : on les considère comme UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO 8601 UTC, ou None si absent."""
    dt = ensure_utc(dt)
    return dt.isoformat() if dt else None


def local_time_of(dt: datetime, tz_name: str = "UTC") -> time:
    """Heure murale (sans tzinfo) de `dt` dans le fuseau `tz_name`."""
    tz = timezone.utc if tz_name.upper() == "UTC" else ZoneInfo(tz_name)
    return ensure_utc(dt).astimezone(tz).time().replace(tzinfo=None)
