from __future__ import annotations
"""server/app/workers/scheduler/beat_schedule.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Planification périodique des tâches Celery (Beat).

L'évaluation des règles tolère retard ou saut d'un tick ; le retard d'une
décision "due" reste borné par un intervalle.
"""

from app.core.config import settings

beat_schedule = {
    "evaluate-schedules": {
        "task": "tasks.schedule",
        "schedule": float(settings.SCHEDULE_EVAL_INTERVAL_SECONDS),
        # un tick non consommé avant le suivant est périmé
        "options": {"expires": float(settings.SCHEDULE_EVAL_INTERVAL_SECONDS)},
    },
}
