from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/installed_sensor.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table installed_sensors : un capteur physique déployé sur une installation.
Le catalogue (CRUD) est hors périmètre ; la table sert de clé étrangère,
de point de sérialisation par capteur et porte le type de mesure.
"""
import uuid
import datetime as dt

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database.base import Base


class InstalledSensor(Base):
    __tablename__ = "installed_sensors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    installation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("installations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    # ex: "dissolved_oxygen", "temperature", "ph"
    measurement_type: Mapped[str] = mapped_column(String(50), nullable=False)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=lambda: dt.datetime.now(dt.timezone.utc))
