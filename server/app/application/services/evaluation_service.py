from __future__ import annotations
"""server/app/application/services/evaluation_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Évaluation d'une lecture contre le seuil de son capteur :
- résout les bornes (seuil capteur actif, sinon seuils recommandés du type
  de mesure ; un seuil capteur désactivé coupe l'alerte pour ce capteur)
- calcule le sens du dépassement (min/max stricts, l'optimal n'alerte jamais)
- dé-duplique : une alerte ouverte du même capteur et du même sens suffit
- sinon crée UNE alerte (read/attended/resolved = False)

Le couple "chercher l'alerte ouverte" / "créer" est exécuté sous le verrou de
ligne du capteur (SELECT ... FOR UPDATE) : deux lectures concurrentes du même
capteur ne peuvent pas ouvrir deux alertes. Le commit appartient à l'appelant.
"""

import datetime as dt
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.utils.datetime import ensure_utc
from app.domain.errors import EvaluationFailed, StoreError
from app.domain.models import Bounds, EvaluationOutcome, EvaluationResult, Reading
from app.domain.policies import BreachDirection, breach_direction, normalize_severity
from app.infrastructure.persistence.database.models.installed_sensor import InstalledSensor
from app.infrastructure.persistence.repositories.alert_repository import AlertRepository
from app.infrastructure.persistence.repositories.sensor_repository import SensorRepository
from app.infrastructure.persistence.repositories.threshold_repository import ThresholdRepository

logger = logging.getLogger(__name__)


def resolve_bounds(session: Session, sensor: InstalledSensor) -> Optional[Bounds]:
    """
    Bornes applicables au capteur, ou None si rien n'est résoluble.
    Les seuils recommandés ne sont jamais persistés comme seuil capteur.
    """
    trepo = ThresholdRepository(session)
    row = trepo.get_row(sensor.id)
    if row is not None:
        if not row.active:
            return None
        return Bounds(
            min_value=row.min_value,
            max_value=row.max_value,
            optimal_value=row.optimal_value,
            alert_level=row.alert_level,
            source="sensor",
            threshold_id=row.id,
        )

    defaults = trepo.get_defaults(sensor.measurement_type)
    if defaults is None or (defaults.min_value is None and defaults.max_value is None):
        return None
    return Bounds(
        min_value=defaults.min_value,
        max_value=defaults.max_value,
        optimal_value=defaults.optimal_value,
        alert_level=normalize_severity(settings.DEFAULT_ALERT_LEVEL, "DEFAULT_ALERT_LEVEL"),
        source="default",
    )


def _message(sensor: InstalledSensor, value: float, direction: BreachDirection, bounds: Bounds) -> str:
    unit = f" {sensor.unit}" if sensor.unit else ""
    if direction is BreachDirection.BELOW_MIN:
        return f"{sensor.name}: {value}{unit} below minimum {bounds.min_value}{unit}"
    return f"{sensor.name}: {value}{unit} above maximum {bounds.max_value}{unit}"


def evaluate_reading(
    session: Session,
    reading: Reading,
    *,
    dedup_window_minutes: Optional[int] = None,
) -> EvaluationResult:
    """
    Évalue une lecture : 0 ou 1 nouvelle alerte.

    Args:
        dedup_window_minutes: fenêtre de dé-duplication ; None ->
            settings.ALERT_DEDUP_WINDOW_MINUTES (None = sans coupure temporelle).

    Raises:
        NotFound: capteur inconnu
        EvaluationFailed: le store a échoué (lecture du seuil ou écriture) ;
            jamais converti en "pas de dépassement".
    """
    if dedup_window_minutes is None:
        dedup_window_minutes = settings.ALERT_DEDUP_WINDOW_MINUTES
    taken_at = ensure_utc(reading.taken_at)

    try:
        sensor = SensorRepository(session).lock(reading.sensor_id)
        bounds = resolve_bounds(session, sensor)
    except StoreError as exc:
        logger.error("Lecture du seuil impossible pour le capteur %s", reading.sensor_id, exc_info=True)
        raise EvaluationFailed(reading.sensor_id, "threshold lookup failed") from exc

    if bounds is None:
        logger.debug("Aucun seuil résoluble pour le capteur %s : évaluation ignorée", sensor.id)
        return EvaluationResult(EvaluationOutcome.SKIPPED, sensor.id)

    direction = breach_direction(reading.value, bounds.min_value, bounds.max_value)
    if direction is None:
        return EvaluationResult(EvaluationOutcome.WITHIN_BOUNDS, sensor.id)

    since = None
    if dedup_window_minutes:
        since = taken_at - dt.timedelta(minutes=int(dedup_window_minutes))

    try:
        arepo = AlertRepository(session)
        existing = arepo.find_open(sensor.id, direction, since=since)
        if existing is not None:
            logger.debug(
                "Dépassement répété (%s) pour le capteur %s : alerte %s maintenue",
                direction.value, sensor.id, existing.id,
            )
            return EvaluationResult(EvaluationOutcome.DEDUPLICATED, sensor.id, direction.value, existing.id)

        alert = arepo.add_threshold_alert(
            installation_id=sensor.installation_id,
            sensor_id=sensor.id,
            threshold_id=bounds.threshold_id,
            direction=direction,
            severity=bounds.alert_level,
            message=_message(sensor, reading.value, direction, bounds),
            recorded_value=reading.value,
            created_at=taken_at,
            metadata={
                "direction": direction.value,
                "min": bounds.min_value,
                "max": bounds.max_value,
                "optimal": bounds.optimal_value,
                "source": bounds.source,
                "taken_at": taken_at.isoformat(),
            },
        )
    except StoreError as exc:
        logger.error("Persistance de l'alerte impossible pour le capteur %s", sensor.id, exc_info=True)
        raise EvaluationFailed(sensor.id, "alert persistence failed") from exc

    logger.info(
        "Alerte créée",
        extra={"alert_id": str(alert.id), "sensor_id": str(sensor.id), "severity": alert.severity},
    )
    return EvaluationResult(EvaluationOutcome.CREATED, sensor.id, direction.value, alert.id)
