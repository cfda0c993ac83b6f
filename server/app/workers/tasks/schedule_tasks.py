from __future__ import annotations
"""server/app/workers/tasks/schedule_tasks.py
~~~~~~~~~~~~~~~~~~~~~~~~
Évaluation périodique des règles de planification.

- Itère les installations ayant au moins une règle active
- Lit la dernière valeur par type de mesure, calcule les règles dues
- Remet chaque intention au dispatcher d'actionneurs (file "actuate")
- Tolérance aux erreurs : une installation en erreur n'interrompt pas le batch
"""

from celery.utils.log import get_task_logger

from app.application.services.schedule_evaluation_service import due_now
from app.domain.errors import EngineError
from app.domain.models import ActuationIntent
from app.infrastructure.persistence.database.session import get_sync_session
from app.infrastructure.persistence.repositories.reading_repository import ReadingRepository
from app.infrastructure.persistence.repositories.schedule_repository import ScheduleRepository
from app.workers.celery_app import celery

logger = get_task_logger(__name__)


def dispatch_intent(intent: ActuationIntent) -> None:
    """Remet une intention au collaborateur d'actionnement."""
    celery.send_task("tasks.actuate", kwargs=intent.as_dict())


@celery.task(name="tasks.schedule")
def evaluate_schedules() -> int:
    """Retourne le nombre d'intentions émises."""
    total = 0
    with get_sync_session() as session:
        installation_ids = ScheduleRepository(session).installations_with_active_rules()
        for installation_id in installation_ids:
            try:
                readings = ReadingRepository(session).latest_by_measurement(installation_id)
                intents = due_now(session, installation_id, readings)
            except EngineError as exc:
                session.rollback()
                logger.exception("Échec de l'évaluation du planning pour l'installation %s: %s", installation_id, exc)
                continue
            for intent in intents:
                dispatch_intent(intent)
                total += 1

    if total:
        logger.info("Planning évalué : %d intention(s) émise(s).", total)
    return total
