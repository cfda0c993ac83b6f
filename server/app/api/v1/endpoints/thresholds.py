from __future__ import annotations
"""
server/app/api/v1/endpoints/thresholds.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Seuils par capteur installé.

- GET    /thresholds/sensor/{sensor_id}          : seuil actif (null si absent)
- PUT    /thresholds/sensor/{sensor_id}          : remplacement (upsert atomique)
- PUT    /thresholds/sensor/{sensor_id}/active   : activer / désactiver
- DELETE /thresholds/sensor/{sensor_id}          : désactivation (ligne conservée)
- GET    /thresholds/installation/{id}           : seuils des capteurs d'une installation
- GET    /thresholds/defaults/{measurement_type} : bornes recommandées (null si absentes)
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.schemas.threshold import ThresholdActiveIn, ThresholdIn
from app.api.v1.serializers.threshold import serialize_defaults, serialize_threshold
from app.infrastructure.persistence.database.errors import commit
from app.infrastructure.persistence.database.session import get_db
from app.infrastructure.persistence.repositories.threshold_repository import ThresholdRepository

router = APIRouter(prefix="/thresholds")


@router.get("/sensor/{sensor_id}")
def get_threshold(sensor_id: uuid.UUID, db: Session = Depends(get_db)) -> dict | None:
    return serialize_threshold(ThresholdRepository(db).get(sensor_id))


@router.put("/sensor/{sensor_id}")
def put_threshold(sensor_id: uuid.UUID, payload: ThresholdIn, db: Session = Depends(get_db)) -> dict:
    row = ThresholdRepository(db).upsert(sensor_id, **payload.model_dump())
    commit(db)
    return serialize_threshold(row)


@router.put("/sensor/{sensor_id}/active")
def set_threshold_active(sensor_id: uuid.UUID, payload: ThresholdActiveIn, db: Session = Depends(get_db)) -> dict:
    row = ThresholdRepository(db).set_active(sensor_id, payload.active)
    commit(db)
    return serialize_threshold(row)


@router.delete("/sensor/{sensor_id}")
def deactivate_threshold(sensor_id: uuid.UUID, db: Session = Depends(get_db)) -> dict:
    row = ThresholdRepository(db).deactivate(sensor_id)
    commit(db)
    return serialize_threshold(row)


@router.get("/installation/{installation_id}")
def list_installation_thresholds(installation_id: uuid.UUID, db: Session = Depends(get_db)) -> list[dict]:
    return [serialize_threshold(t) for t in ThresholdRepository(db).list_for_installation(installation_id)]


@router.get("/defaults/{measurement_type}")
def get_default_thresholds(measurement_type: str, db: Session = Depends(get_db)) -> dict | None:
    return serialize_defaults(ThresholdRepository(db).get_defaults(measurement_type))
