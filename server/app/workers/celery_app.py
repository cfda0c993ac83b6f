from __future__ import annotations
"""app/workers/celery_app.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Celery app + routage + auto-import des modules de tâches + beat schedule.
"""
from celery import Celery

from app.core.config import settings
from app.workers.scheduler.beat_schedule import beat_schedule

celery = Celery("aquacontrol", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

# Routage par files ; "tasks.actuate" est consommée par le dispatcher d'actionneurs (externe)
celery.conf.task_routes = {
    "tasks.ingest": {"queue": "ingest"},
    "tasks.schedule": {"queue": "schedule"},
    "tasks.actuate": {"queue": "actuate"},
}

celery.conf.update(
    imports=[
        "app.workers.tasks.ingest_tasks",
        "app.workers.tasks.schedule_tasks",
    ],
)

celery.conf.beat_schedule = beat_schedule
