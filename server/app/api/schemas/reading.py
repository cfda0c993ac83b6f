from __future__ import annotations
"""
server/app/api/schemas/reading.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Payload d'ingestion d'une lecture capteur.
"""

from pydantic import BaseModel


class ReadingIn(BaseModel):
    sensor_id: str
    value: float
    # ISO 8601 ; absent -> maintenant (UTC)
    taken_at: str | None = None
