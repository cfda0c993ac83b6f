from __future__ import annotations
"""server/app/workers/tasks/ingest_tasks.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Ingestion asynchrone d'une lecture + évaluation immédiate du seuil.
"""

from celery.utils.log import get_task_logger

from app.application.services.ingestion_service import ingest_reading
from app.domain.errors import EvaluationFailed, NotFound, ValidationError
from app.infrastructure.persistence.database.session import get_sync_session
from app.workers.celery_app import celery

logger = get_task_logger(__name__)


def enqueue_reading(*, sensor_id: str, value: float, taken_at: str | None = None) -> None:
    """Place une lecture en file (adaptateur d'ingestion côté producteur)."""
    celery.send_task("tasks.ingest", args=[sensor_id, value, taken_at])


@celery.task(name="tasks.ingest")
def process_reading(sensor_id: str, value: float, taken_at: str | None = None) -> dict:
    """
    Écrit la lecture et l'évalue.
    Un échec d'évaluation est rapporté comme tel ({"status": "failed"}),
    jamais comme "pas de dépassement" ; pas de retry ici.
    """
    with get_sync_session() as session:
        try:
            result = ingest_reading(session, sensor_id=sensor_id, value=value, taken_at=taken_at)
        except (ValidationError, NotFound) as exc:
            logger.warning("Lecture rejetée pour le capteur %s: %s", sensor_id, exc)
            return {"status": "rejected", "sensor_id": str(sensor_id), "reason": str(exc)}
        except EvaluationFailed as exc:
            logger.error("Échec d'évaluation pour le capteur %s: %s", sensor_id, exc, exc_info=True)
            return {"status": "failed", "sensor_id": str(sensor_id), "reason": str(exc)}
    return result.as_dict()
