from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/alert.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table alerts.

Le triplet read/attended/resolved est conservé pour compatibilité de stockage ;
l'état explicite (open/seen/attended/resolved) est dérivé via `state`.
Invariants portés par des CHECK :
- resolved  => attended ET resolved_at renseigné
- !resolved => resolved_at NULL
`version` sert au contrôle optimiste (StaleDataError -> Conflict).
"""
import uuid
import datetime as dt
from typing import Any

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.policies import AlertFlags, AlertState, alert_state
from app.infrastructure.persistence.database.base import Base


class Alert(Base):
    __tablename__ = "alerts"

    __table_args__ = (
        CheckConstraint(
            "NOT resolved OR (attended AND resolved_at IS NOT NULL)",
            name="ck_alerts_resolved_implies_attended",
        ),
        CheckConstraint(
            "resolved OR resolved_at IS NULL",
            name="ck_alerts_unresolved_has_no_resolved_at",
        ),
        CheckConstraint(
            "severity IN ('info', 'warning', 'critical')",
            name="ck_alerts_severity",
        ),
        Index("ix_alerts_sensor_open", "sensor_id", "resolved", "breach_direction"),
        Index("ix_alerts_installation_created", "installation_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    installation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("installations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sensor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("installed_sensors.id", ondelete="SET NULL"),
        nullable=True,
    )
    # provenance (pas de FK : le seuil peut évoluer après coup)
    threshold_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="manual")
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="warning")
    recorded_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    # "below_min" / "above_max" ; NULL pour une alerte manuelle
    breach_direction: Mapped[str | None] = mapped_column(String(16), nullable=True)

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: dt.datetime.now(dt.timezone.utc))
    resolved_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # "metadata" est réservé par la déclarative : attribut `meta`, colonne "metadata"
    meta: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def flags(self) -> AlertFlags:
        return AlertFlags(read=bool(self.read), attended=bool(self.attended), resolved=bool(self.resolved))

    @property
    def state(self) -> AlertState:
        return alert_state(bool(self.read), bool(self.attended), bool(self.resolved))
