from __future__ import annotations
"""
server/app/application/services/ingestion_service.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Service d’orchestration de l’ingestion d’une lecture capteur.

Rôle :
    - Valider la valeur (numérique finie) et normaliser taken_at (UTC)
    - Enregistrer la lecture (commit dédié : la lecture est conservée même
      si l’évaluation échoue ensuite)
    - Évaluer la lecture contre le seuil du capteur (alerte 0/1) puis commit

Appelé depuis l’endpoint POST /readings et depuis la tâche Celery `tasks.ingest`.
"""

import logging
import math
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.utils.datetime import ensure_utc, utcnow
from app.domain.errors import ValidationError
from app.domain.models import EvaluationResult, Reading
from app.application.services.evaluation_service import evaluate_reading
from app.infrastructure.persistence.database.errors import commit
from app.infrastructure.persistence.repositories.reading_repository import ReadingRepository
from app.infrastructure.persistence.repositories.sensor_repository import SensorRepository

logger = logging.getLogger(__name__)


def _parse_reading(sensor_id: Any, value: Any, taken_at: Any) -> Reading:
    try:
        sid = sensor_id if isinstance(sensor_id, uuid.UUID) else uuid.UUID(str(sensor_id))
    except (TypeError, ValueError):
        raise ValidationError("sensor_id", "must be a UUID") from None

    if isinstance(value, bool):
        raise ValidationError("value", "must be a number")
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError("value", "must be a number") from None
    if not math.isfinite(v):
        raise ValidationError("value", "must be a finite number")

    if taken_at is None:
        ts = utcnow()
    elif isinstance(taken_at, datetime):
        ts = ensure_utc(taken_at)
    else:
        try:
            raw = str(taken_at).strip()
            if raw.endswith("Z"):
                raw = raw[:-1] + "+00:00"
            ts = ensure_utc(datetime.fromisoformat(raw))
        except ValueError:
            raise ValidationError("taken_at", "must be an ISO 8601 timestamp") from None
    return Reading(sensor_id=sid, value=v, taken_at=ts)


def ingest_reading(
    session: Session,
    *,
    sensor_id: Any,
    value: Any,
    taken_at: Optional[Any] = None,
) -> EvaluationResult:
    """
    Enregistre puis évalue une lecture.

    Raises:
        ValidationError: lecture mal formée
        NotFound: capteur inconnu
        EvaluationFailed: échec du store pendant l'évaluation (lecture conservée)
    """
    reading = _parse_reading(sensor_id, value, taken_at)

    SensorRepository(session).require(reading.sensor_id)
    ReadingRepository(session).add(reading.sensor_id, reading.value, reading.taken_at)
    commit(session)

    try:
        result = evaluate_reading(session, reading)
        commit(session)
    except Exception:
        session.rollback()
        raise

    logger.debug("Lecture évaluée", extra=result.as_dict())
    return result
