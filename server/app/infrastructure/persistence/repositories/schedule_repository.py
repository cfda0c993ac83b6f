from __future__ import annotations

"""
server/app/infrastructure/persistence/repositories/schedule_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Store des règles de planification (CRUD).

Mise à jour partielle :
- seuls les champs de `SCHEDULE_MUTABLE_FIELDS` sont acceptés (un nom de champ
  inconnu est rejeté, jamais interpolé dans une requête) ;
- null explicite refusé sur name, kind, action, active, crosses_midnight ;
- le patch est appliqué sur une *copie* de l'enregistrement courant, la copie
  fusionnée est validée, puis seulement écrite.

Pas de commit ici (unit of work côté appelant).
"""

from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.errors import NotFound, ValidationError
from app.domain.policies import (
    SCHEDULE_MUTABLE_FIELDS,
    SCHEDULE_NON_NULLABLE_FIELDS,
    normalize_schedule_rule,
)
from app.infrastructure.persistence.database.errors import store_errors
from app.infrastructure.persistence.database.models.installation import Installation
from app.infrastructure.persistence.database.models.schedule_rule import ScheduleRule


def _snapshot(rule: ScheduleRule) -> dict[str, Any]:
    """Copie des champs modifiables d'une règle."""
    return {f: getattr(rule, f) for f in SCHEDULE_MUTABLE_FIELDS}


class ScheduleRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    # --------------------------------------------------------------
    # Requêtes
    # --------------------------------------------------------------

    def get(self, rule_id: UUID) -> Optional[ScheduleRule]:
        with store_errors():
            return self.db.get(ScheduleRule, rule_id)

    def require(self, rule_id: UUID) -> ScheduleRule:
        rule = self.get(rule_id)
        if rule is None:
            raise NotFound("schedule_rule", rule_id)
        return rule

    def list_by_installation(self, installation_id: UUID) -> list[ScheduleRule]:
        with store_errors():
            return list(
                self.db.scalars(
                    select(ScheduleRule)
                    .where(ScheduleRule.installation_id == installation_id)
                    .order_by(ScheduleRule.created_at.desc())
                ).all()
            )

    def list_active(self, installation_id: UUID) -> list[ScheduleRule]:
        with store_errors():
            return list(
                self.db.scalars(
                    select(ScheduleRule)
                    .where(
                        ScheduleRule.installation_id == installation_id,
                        ScheduleRule.active.is_(True),
                    )
                    .order_by(ScheduleRule.name)
                ).all()
            )

    def installations_with_active_rules(self) -> list[UUID]:
        with store_errors():
            return list(
                self.db.scalars(
                    select(ScheduleRule.installation_id)
                    .where(ScheduleRule.active.is_(True))
                    .distinct()
                ).all()
            )

    # --------------------------------------------------------------
    # Mutations
    # --------------------------------------------------------------

    def create(self, installation_id: UUID, data: Mapping[str, Any]) -> ScheduleRule:
        """
        Crée une règle après validation de l'enregistrement complet.

        Raises:
            ValidationError: champ inconnu ou invariant violé (champ nommé)
            NotFound: installation inexistante
        """
        self._reject_unknown(data)
        fields = {f: data.get(f) for f in SCHEDULE_MUTABLE_FIELDS}
        fields = normalize_schedule_rule(fields)

        with store_errors():
            if self.db.get(Installation, installation_id) is None:
                raise NotFound("installation", installation_id)

        rule = ScheduleRule(installation_id=installation_id, **fields)
        self.db.add(rule)
        with store_errors():
            self.db.flush()
        return rule

    def update(self, rule_id: UUID, patch: Mapping[str, Any]) -> ScheduleRule:
        """
        Mise à jour partielle : fusion sur copie -> validation du résultat ->
        écriture. Un patch vide est un no-op ; un null explicite efface la valeur,
        sauf pour les champs de SCHEDULE_NON_NULLABLE_FIELDS (rejeté).
        """
        self._reject_unknown(patch)
        for field in SCHEDULE_NON_NULLABLE_FIELDS:
            if field in patch and patch[field] is None:
                raise ValidationError(field, "cannot be null")
        rule = self.require(rule_id)
        if not patch:
            return rule

        merged = _snapshot(rule)
        merged.update(patch)
        merged = normalize_schedule_rule(merged)

        for field in SCHEDULE_MUTABLE_FIELDS:
            if getattr(rule, field) != merged[field]:
                setattr(rule, field, merged[field])
        with store_errors():
            self.db.flush()
        return rule

    def delete(self, rule_id: UUID) -> None:
        rule = self.require(rule_id)
        with store_errors():
            self.db.delete(rule)
            self.db.flush()

    @staticmethod
    def _reject_unknown(data: Mapping[str, Any]) -> None:
        unknown = sorted(set(data) - set(SCHEDULE_MUTABLE_FIELDS))
        if unknown:
            raise ValidationError(unknown[0], "is not an updatable field")
