from __future__ import annotations
"""
server/app/api/schemas/alert.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Payload de création d'une alerte manuelle.
"""

from typing import Any

from pydantic import BaseModel


class AlertIn(BaseModel):
    # Champs requis validés côté repository (ValidationError nommée -> 422)
    installation_id: str | None = None
    message: str | None = None
    severity: str | None = None
    sensor_id: str | None = None
    type: str | None = None
    recorded_value: float | None = None
    metadata: dict[str, Any] | None = None
