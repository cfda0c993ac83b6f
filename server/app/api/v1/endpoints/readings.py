from __future__ import annotations
"""
server/app/api/v1/endpoints/readings.py
~~~~~~~~~~~~~~~~~~~~~~~~
POST /readings : ingestion synchrone d'une lecture (écriture + évaluation).

La voie asynchrone passe par la tâche Celery `tasks.ingest`.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.schemas.reading import ReadingIn
from app.application.services.ingestion_service import ingest_reading
from app.infrastructure.persistence.database.session import get_db

router = APIRouter(prefix="/readings")


@router.post("")
def post_reading(payload: ReadingIn, db: Session = Depends(get_db)) -> dict:
    result = ingest_reading(db, sensor_id=payload.sensor_id, value=payload.value, taken_at=payload.taken_at)
    return result.as_dict()
