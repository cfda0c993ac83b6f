from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/sensor_reading.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table sensor_readings (lectures horodatées d'un capteur installé).
"""
import uuid
import datetime as dt

from sqlalchemy import DateTime, Float, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database.base import Base


class SensorReading(Base):
    __tablename__ = "sensor_readings"

    __table_args__ = (
        Index("ix_sensor_readings_sensor_taken_at", "sensor_id", "taken_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sensor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("installed_sensors.id", ondelete="CASCADE"),
        nullable=False,
    )
    value: Mapped[float] = mapped_column(Float, nullable=False)
    taken_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
