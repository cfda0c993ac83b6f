from __future__ import annotations
"""
server/app/api/schemas/schedule_rule.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Payloads des règles de planification.

- Les heures sont des chaînes "HH:MM[:SS]" (heure murale de SCHEDULE_TIMEZONE).
- Le patch refuse tout champ inconnu ; seuls les champs envoyés sont fusionnés
  (un null explicite efface la valeur, sauf name, kind, action, active et
  crosses_midnight : refusé en 422 avec le champ nommé).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ScheduleRuleFields(BaseModel):
    name: str | None = None
    kind: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    crosses_midnight: bool | None = None
    condition_min: float | None = None
    condition_max: float | None = None
    measurement_type: str | None = None
    duration_minutes: int | None = None
    action: str | None = None
    active: bool | None = None


class ScheduleRuleIn(ScheduleRuleFields):
    installation_id: str


class ScheduleRulePatch(ScheduleRuleFields):
    model_config = ConfigDict(extra="forbid")


class DueIn(BaseModel):
    """Lectures courantes {measurement_type: valeur} + instant optionnel."""

    readings: dict[str, float] = {}
    at: datetime | None = None
