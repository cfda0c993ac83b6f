from __future__ import annotations
"""server/app/application/services/schedule_evaluation_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Évaluation des règles de planification (lecture seule) :
- fenêtre horaire : heure murale (settings.SCHEDULE_TIMEZONE) dans [début, fin],
  avec passage de minuit
- condition : dernière valeur connue hors de la plage souhaitée
- hybride : les deux

Produit des intentions (rule_id, action, ...) ; aucun état de marche n'est
tenu ici : une règle encore due est ré-émise à chaque passage ("keep running").
Le dispatch vers les actionneurs est externe.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.utils.datetime import local_time_of, utcnow
from app.domain.models import ActuationIntent
from app.domain.policies import ScheduleKind, coerce_kind, rule_due_reason
from app.infrastructure.persistence.repositories.schedule_repository import ScheduleRepository

logger = logging.getLogger(__name__)


def _reading_for(rule: Any, current_readings: Mapping[str, Any]) -> Optional[float]:
    measurement = (getattr(rule, "measurement_type", None) or settings.SCHEDULE_DEFAULT_MEASUREMENT).lower()
    value = current_readings.get(measurement)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Valeur non numérique ignorée pour %s: %r", measurement, value)
        return None


def evaluate_rules(
    rules: Iterable[Any],
    current_readings: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> list[ActuationIntent]:
    """Fonction pure : règles + lectures courantes + instant -> intentions dues."""
    now = now or utcnow()
    local = local_time_of(now, tz_name or settings.SCHEDULE_TIMEZONE)
    readings = {str(k).lower(): v for k, v in (current_readings or {}).items()}

    intents: list[ActuationIntent] = []
    for rule in rules:
        value = None
        if coerce_kind(rule.kind) != ScheduleKind.TIME_WINDOW.value:
            value = _reading_for(rule, readings)
        reason = rule_due_reason(rule, local, value)
        if reason is None:
            continue
        intents.append(
            ActuationIntent(
                rule_id=rule.id,
                installation_id=rule.installation_id,
                action=rule.action,
                duration_minutes=rule.duration_minutes,
                reason=reason,
            )
        )
    return intents


def due_now(
    session: Session,
    installation_id: UUID,
    current_readings: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> list[ActuationIntent]:
    """Règles actives de l'installation dues à l'instant `now` (défaut : maintenant)."""
    rules = ScheduleRepository(session).list_active(installation_id)
    intents = evaluate_rules(rules, current_readings, now=now)
    logger.debug("Installation %s : %d règle(s) due(s) sur %d", installation_id, len(intents), len(rules))
    return intents
