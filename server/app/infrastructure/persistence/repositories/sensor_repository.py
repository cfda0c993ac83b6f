from __future__ import annotations
"""server/app/infrastructure/persistence/repositories/sensor_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~
Repo capteurs installés (lecture seule + verrou par capteur).
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.errors import NotFound
from app.infrastructure.persistence.database.errors import store_errors
from app.infrastructure.persistence.database.models.installed_sensor import InstalledSensor


class SensorRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, sensor_id: UUID) -> Optional[InstalledSensor]:
        with store_errors():
            return self.db.get(InstalledSensor, sensor_id)

    def require(self, sensor_id: UUID) -> InstalledSensor:
        sensor = self.get(sensor_id)
        if sensor is None:
            raise NotFound("sensor", sensor_id)
        return sensor

    def _begin_immediate_sqlite(self) -> None:
        """
        SQLite ignore FOR UPDATE et pysqlite n'ouvre la transaction qu'au
        premier INSERT/UPDATE : on prend le verrou d'écriture (BEGIN IMMEDIATE)
        avant la lecture. Si le driver est déjà en transaction, une écriture a
        eu lieu et le verrou est déjà détenu.
        """
        conn = self.db.connection()
        raw = conn.connection.dbapi_connection
        if not raw.in_transaction:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    def lock(self, sensor_id: UUID) -> InstalledSensor:
        """
        Point de sérialisation par capteur pour le check-then-act de la
        dé-duplication des alertes, relâché au commit/rollback de l'appelant.
        - PostgreSQL : SELECT ... FOR UPDATE sur la ligne du capteur
        - SQLite     : verrou d'écriture de la base (BEGIN IMMEDIATE)
        """
        with store_errors():
            if self.db.get_bind().dialect.name == "sqlite":
                self._begin_immediate_sqlite()
            sensor = self.db.scalar(
                select(InstalledSensor)
                .where(InstalledSensor.id == sensor_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        if sensor is None:
            raise NotFound("sensor", sensor_id)
        return sensor
