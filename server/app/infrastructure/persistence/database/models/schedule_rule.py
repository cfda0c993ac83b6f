from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/schedule_rule.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table schedule_rules : règles d'actionnement planifié (fenêtre horaire,
condition capteur, ou les deux). Jamais modifiées par l'évaluation.
"""
import uuid
import datetime as dt

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Time, Uuid, false, true
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database.base import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ScheduleRule(Base):
    __tablename__ = "schedule_rules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    installation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("installations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="time_window", server_default="time_window")

    start_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    crosses_midnight: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    condition_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    condition_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    # type de mesure contrôlé par la condition (NULL -> settings.SCHEDULE_DEFAULT_MEASUREMENT)
    measurement_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
