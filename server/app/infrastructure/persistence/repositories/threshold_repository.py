from __future__ import annotations

"""
server/app/infrastructure/persistence/repositories/threshold_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Store des seuils par capteur installé + seuils recommandés par type de mesure.

Principes :
- Le repo **reçoit** une Session gérée par l'appelant et **ne commit pas**.
- `upsert` est un INSERT ... ON CONFLICT (sensor_id) DO UPDATE : remplacement
  atomique de l'unique ligne du capteur, même en cas d'upserts concurrents.
- `get` ne renvoie que le seuil actif ; absence = None (pas une erreur).
- `get_defaults` est consultatif : il ne crée jamais de seuil capteur.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.domain.errors import NotFound
from app.domain.policies import normalize_severity, validate_bounds
from app.infrastructure.persistence.database.errors import store_errors
from app.infrastructure.persistence.database.models.installed_sensor import InstalledSensor
from app.infrastructure.persistence.database.models.recommended_threshold import RecommendedThreshold
from app.infrastructure.persistence.database.models.threshold import SensorThreshold

logger = logging.getLogger(__name__)

_UPSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class ThresholdRepository:
    def __init__(self, session: Session) -> None:
        self.s = session

    # --------------------------------------------------------------
    # Requêtes
    # --------------------------------------------------------------

    def get_row(self, sensor_id: UUID) -> Optional[SensorThreshold]:
        """Ligne du capteur, active ou non."""
        with store_errors():
            return self.s.scalar(
                select(SensorThreshold).where(SensorThreshold.sensor_id == sensor_id)
            )

    def get(self, sensor_id: UUID) -> Optional[SensorThreshold]:
        """Seuil actif du capteur, ou None."""
        row = self.get_row(sensor_id)
        return row if row is not None and row.active else None

    def list_for_installation(self, installation_id: UUID) -> list[SensorThreshold]:
        with store_errors():
            return list(
                self.s.scalars(
                    select(SensorThreshold)
                    .join(InstalledSensor, InstalledSensor.id == SensorThreshold.sensor_id)
                    .where(InstalledSensor.installation_id == installation_id)
                    .order_by(InstalledSensor.name)
                ).all()
            )

    def get_defaults(self, measurement_type: str) -> Optional[RecommendedThreshold]:
        """Bornes recommandées (toutes espèces) pour un type de mesure, ou None."""
        if not measurement_type:
            return None
        with store_errors():
            return self.s.scalars(
                select(RecommendedThreshold)
                .where(
                    RecommendedThreshold.measurement_type == measurement_type.strip().lower(),
                    RecommendedThreshold.species.is_(None),
                )
                .limit(1)
            ).first()

    # --------------------------------------------------------------
    # Mutations
    # --------------------------------------------------------------

    def upsert(
        self,
        sensor_id: UUID,
        *,
        min_value: Any = None,
        max_value: Any = None,
        optimal_value: Any = None,
        alert_level: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> SensorThreshold:
        """
        Remplace la ligne de seuil du capteur (insert-or-update sur sensor_id).

        Raises:
            ValidationError: min > max, sévérité inconnue, valeur non numérique
            NotFound: capteur inexistant
        """
        lo, hi, opt, warnings = validate_bounds(min_value, max_value, optimal_value)
        level = normalize_severity(alert_level, "alert_level") if alert_level is not None else "warning"
        is_active = True if active is None else bool(active)
        for w in warnings:
            logger.warning("Seuil capteur %s : %s", sensor_id, w)

        with store_errors():
            if self.s.get(InstalledSensor, sensor_id) is None:
                raise NotFound("sensor", sensor_id)

        now = datetime.now(timezone.utc)
        values = {
            "min_value": lo,
            "max_value": hi,
            "optimal_value": opt,
            "alert_level": level,
            "active": is_active,
            "updated_at": now,
        }

        insert_fn = _UPSERT_BY_DIALECT.get(self.s.get_bind().dialect.name)
        with store_errors():
            if insert_fn is not None:
                stmt = (
                    insert_fn(SensorThreshold)
                    .values(id=uuid.uuid4(), sensor_id=sensor_id, created_at=now, **values)
                    .on_conflict_do_update(index_elements=["sensor_id"], set_=values)
                )
                self.s.execute(stmt)
            else:
                # Dialecte sans ON CONFLICT : lecture puis écriture dans la transaction
                row = self.get_row(sensor_id)
                if row is None:
                    self.s.add(SensorThreshold(sensor_id=sensor_id, created_at=now, **values))
                else:
                    for k, v in values.items():
                        setattr(row, k, v)
                self.s.flush()

            return self.s.scalars(
                select(SensorThreshold)
                .where(SensorThreshold.sensor_id == sensor_id)
                .execution_options(populate_existing=True)
            ).one()

    def set_active(self, sensor_id: UUID, active: bool) -> SensorThreshold:
        row = self.get_row(sensor_id)
        if row is None:
            raise NotFound("threshold", sensor_id)
        if row.active != bool(active):
            row.active = bool(active)
            with store_errors():
                self.s.flush()
        return row

    def deactivate(self, sensor_id: UUID) -> SensorThreshold:
        """Suppression "douce" : la ligne reste pour la provenance des alertes."""
        return self.set_active(sensor_id, False)

    def register_default(
        self,
        measurement_type: str,
        *,
        min_value: Any = None,
        max_value: Any = None,
        optimal_value: Any = None,
        description: Optional[str] = None,
    ) -> RecommendedThreshold:
        """Crée ou met à jour les bornes recommandées (toutes espèces) d'un type de mesure."""
        lo, hi, opt, _ = validate_bounds(min_value, max_value, optimal_value)
        row = self.get_defaults(measurement_type)
        if row is None:
            row = RecommendedThreshold(measurement_type=measurement_type.strip().lower(), species=None)
            self.s.add(row)
        row.min_value, row.max_value, row.optimal_value = lo, hi, opt
        row.description = description
        with store_errors():
            self.s.flush()
        return row
