from __future__ import annotations
"""
server/app/api/schemas/threshold.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Payloads des seuils capteur.

La cohérence des bornes (min <= max, sévérité connue) est validée par le
repository : les erreurs remontent en 422 avec le champ fautif.
"""

from pydantic import BaseModel, Field


class ThresholdIn(BaseModel):
    """Remplacement complet du seuil d'un capteur (upsert)."""

    min_value: float | None = None
    max_value: float | None = None
    optimal_value: float | None = None
    # None -> "warning"
    alert_level: str | None = Field(default=None, description="info | warning | critical")
    active: bool | None = None


class ThresholdActiveIn(BaseModel):
    active: bool
