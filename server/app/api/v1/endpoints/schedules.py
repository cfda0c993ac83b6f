from __future__ import annotations
"""
server/app/api/v1/endpoints/schedules.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Règles de planification (aération, pompes...).

- POST  /schedules                          : création (validation de l'enregistrement complet)
- PATCH /schedules/{id}                     : mise à jour partielle (fusion puis validation)
- POST  /schedules/installation/{id}/due    : règles dues pour des lectures données
  (lecture seule : le dispatch vers les actionneurs reste externe)
"""

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.schemas.schedule_rule import DueIn, ScheduleRuleIn, ScheduleRulePatch
from app.api.v1.serializers.schedule_rule import serialize_schedule_rule
from app.application.services.schedule_evaluation_service import due_now
from app.domain.errors import ValidationError
from app.infrastructure.persistence.database.errors import commit
from app.infrastructure.persistence.database.session import get_db
from app.infrastructure.persistence.repositories.schedule_repository import ScheduleRepository

router = APIRouter(prefix="/schedules")


@router.get("/installation/{installation_id}")
def list_rules(installation_id: uuid.UUID, db: Session = Depends(get_db)) -> list[dict]:
    return [serialize_schedule_rule(r) for r in ScheduleRepository(db).list_by_installation(installation_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_rule(payload: ScheduleRuleIn, db: Session = Depends(get_db)) -> dict:
    try:
        installation_id = uuid.UUID(payload.installation_id)
    except ValueError:
        raise ValidationError("installation_id", "must be a UUID") from None
    data = payload.model_dump(exclude={"installation_id"}, exclude_unset=True)
    rule = ScheduleRepository(db).create(installation_id, data)
    commit(db)
    return serialize_schedule_rule(rule)


@router.patch("/{rule_id}")
def update_rule(rule_id: uuid.UUID, payload: ScheduleRulePatch, db: Session = Depends(get_db)) -> dict:
    rule = ScheduleRepository(db).update(rule_id, payload.model_dump(exclude_unset=True))
    commit(db)
    return serialize_schedule_rule(rule)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(rule_id: uuid.UUID, db: Session = Depends(get_db)) -> Response:
    ScheduleRepository(db).delete(rule_id)
    commit(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/installation/{installation_id}/due")
def due_rules(installation_id: uuid.UUID, payload: DueIn, db: Session = Depends(get_db)) -> list[dict]:
    intents = due_now(db, installation_id, payload.readings, now=payload.at)
    return [i.as_dict() for i in intents]
