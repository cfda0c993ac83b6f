from __future__ import annotations
"""
server/app/api/v1/endpoints/alerts.py
~~~~~~~~~~~~~~~~~~~~~~~~
Alertes d'une installation (ou d'un capteur) + transitions de cycle de vie.

Notes :
- Utilise Depends(get_db) pour une session auto-fermée ; le commit est fait ici.
- Les transitions (read / resolve) sont idempotentes.
- Une modification concurrente de la même alerte remonte en 409.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.schemas.alert import AlertIn
from app.api.v1.serializers.alert import serialize_alert
from app.infrastructure.persistence.database.errors import commit
from app.infrastructure.persistence.database.session import get_db
from app.infrastructure.persistence.repositories.alert_repository import AlertRepository
from app.infrastructure.persistence.repositories.sensor_repository import SensorRepository

router = APIRouter(prefix="/alerts")


@router.get("/installation/{installation_id}")
def list_alerts(
    installation_id: uuid.UUID,
    sensor_id: uuid.UUID | None = None,
    unread_only: bool = False,
    unresolved_only: bool = False,
    limit: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[dict]:
    rows = AlertRepository(db).list(
        installation_id,
        sensor_id=sensor_id,
        unread_only=unread_only,
        unresolved_only=unresolved_only,
        limit=limit,
    )
    return [serialize_alert(a) for a in rows]


@router.get("/sensor/{sensor_id}")
def list_sensor_alerts(
    sensor_id: uuid.UUID,
    unread_only: bool = False,
    unresolved_only: bool = False,
    limit: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[dict]:
    """Alertes d'un capteur, toutes installations confondues ; 404 si capteur inconnu."""
    SensorRepository(db).require(sensor_id)
    rows = AlertRepository(db).list(
        sensor_id=sensor_id,
        unread_only=unread_only,
        unresolved_only=unresolved_only,
        limit=limit,
    )
    return [serialize_alert(a) for a in rows]


@router.get("/installation/{installation_id}/count")
def count_unread(installation_id: uuid.UUID, db: Session = Depends(get_db)) -> dict[str, int]:
    return {"unread": AlertRepository(db).count_unread(installation_id)}


@router.get("/installation/{installation_id}/stats")
def alert_stats(installation_id: uuid.UUID, db: Session = Depends(get_db)) -> dict[str, int]:
    return AlertRepository(db).stats(installation_id).as_dict()


@router.put("/installation/{installation_id}/read-all")
def mark_all_read(installation_id: uuid.UUID, db: Session = Depends(get_db)) -> dict[str, int]:
    updated = AlertRepository(db).mark_read_all(installation_id)
    commit(db)
    return {"updated": updated}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_alert(payload: AlertIn, db: Session = Depends(get_db)) -> dict:
    alert = AlertRepository(db).create(payload.model_dump(exclude_none=True))
    commit(db)
    return serialize_alert(alert)


@router.put("/{alert_id}/read")
def mark_read(alert_id: uuid.UUID, db: Session = Depends(get_db)) -> dict:
    alert = AlertRepository(db).mark_read(alert_id)
    commit(db)
    return serialize_alert(alert)


@router.put("/{alert_id}/resolve")
def resolve(alert_id: uuid.UUID, db: Session = Depends(get_db)) -> dict:
    alert = AlertRepository(db).resolve(alert_id)
    commit(db)
    return serialize_alert(alert)


@router.delete("/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_alert(alert_id: uuid.UUID, db: Session = Depends(get_db)) -> Response:
    AlertRepository(db).delete(alert_id)
    commit(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
