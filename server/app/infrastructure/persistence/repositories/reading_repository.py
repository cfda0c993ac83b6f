from __future__ import annotations
"""server/app/infrastructure/persistence/repositories/reading_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~
Repo lectures capteurs : écriture + dernière valeur par type de mesure.
"""
import datetime as dt
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.infrastructure.persistence.database.errors import store_errors
from app.infrastructure.persistence.database.models.installed_sensor import InstalledSensor
from app.infrastructure.persistence.database.models.sensor_reading import SensorReading


class ReadingRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, sensor_id: UUID, value: float, taken_at: dt.datetime) -> SensorReading:
        row = SensorReading(sensor_id=sensor_id, value=float(value), taken_at=taken_at)
        self.db.add(row)
        with store_errors():
            self.db.flush()
        return row

    def latest_by_measurement(self, installation_id: UUID) -> dict[str, float]:
        """
        {measurement_type: valeur} de la lecture la plus récente par type de
        mesure pour l'installation (tous capteurs confondus).
        """
        latest = (
            select(
                SensorReading.sensor_id.label("sensor_id"),
                func.max(SensorReading.taken_at).label("taken_at"),
            )
            .group_by(SensorReading.sensor_id)
            .subquery()
        )
        stmt = (
            select(InstalledSensor.measurement_type, SensorReading.value)
            .join(SensorReading, SensorReading.sensor_id == InstalledSensor.id)
            .join(
                latest,
                and_(
                    latest.c.sensor_id == SensorReading.sensor_id,
                    latest.c.taken_at == SensorReading.taken_at,
                ),
            )
            .where(InstalledSensor.installation_id == installation_id)
            .order_by(SensorReading.taken_at.desc())
        )
        out: dict[str, float] = {}
        with store_errors():
            for measurement_type, value in self.db.execute(stmt).all():
                # tri décroissant : la première occurrence est la plus récente
                out.setdefault(measurement_type, value)
        return out
