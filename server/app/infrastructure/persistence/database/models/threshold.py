from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/threshold.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table sensor_thresholds : UNE ligne par capteur installé (upsert par sensor_id).
Désactivée plutôt que supprimée, pour garder la provenance des alertes.
"""
import uuid
import datetime as dt

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, ForeignKey, String, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database.base import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SensorThreshold(Base):
    __tablename__ = "sensor_thresholds"

    __table_args__ = (
        CheckConstraint(
            "min_value IS NULL OR max_value IS NULL OR min_value <= max_value",
            name="ck_sensor_thresholds_min_le_max",
        ),
        CheckConstraint(
            "alert_level IN ('info', 'warning', 'critical')",
            name="ck_sensor_thresholds_alert_level",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sensor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("installed_sensors.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    min_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    optimal_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    alert_level: Mapped[str] = mapped_column(String(16), nullable=False, default="warning", server_default="warning")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
