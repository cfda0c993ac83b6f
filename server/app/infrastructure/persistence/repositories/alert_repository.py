from __future__ import annotations
"""server/app/infrastructure/persistence/repositories/alert_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~
Repo alerts : création (seuil / manuelle), transitions du cycle de vie,
listes filtrées et statistiques.

- Pas de commit ici : l'appelant contrôle la transaction.
- Les transitions passent toutes par `policies.apply_transition` : l'invariant
  resolved => attended + resolved_at est posé à un seul endroit (`_apply`).
- Les mises à jour unitaires utilisent le contrôle optimiste de version
  (StaleDataError -> Conflict).
"""
import datetime as dt
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.domain.errors import NotFound, ValidationError
from app.domain.models import AlertStats
from app.domain.policies import (
    ALERT_TYPE_BY_DIRECTION,
    MANUAL_ALERT_TYPE,
    AlertFlags,
    AlertTransition,
    BreachDirection,
    Severity,
    apply_transition,
    normalize_severity,
)
from app.infrastructure.persistence.database.errors import store_errors
from app.infrastructure.persistence.database.models.alert import Alert
from app.infrastructure.persistence.database.models.installation import Installation
from app.infrastructure.persistence.database.models.installed_sensor import InstalledSensor


def _as_uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(field, "must be a UUID") from None


class AlertRepository:
    """Repository pour la gestion des alertes."""

    def __init__(self, session: Session):
        """Initialise le repository avec une session SQLAlchemy."""
        self.s = session

    # ------------------------------------------------------------------
    # Lectures
    # ------------------------------------------------------------------

    def get(self, alert_id: UUID) -> Optional[Alert]:
        with store_errors():
            return self.s.get(Alert, alert_id)

    def require(self, alert_id: UUID) -> Alert:
        alert = self.get(alert_id)
        if alert is None:
            raise NotFound("alert", alert_id)
        return alert

    def list(
        self,
        installation_id: Optional[UUID] = None,
        *,
        sensor_id: Optional[UUID] = None,
        unread_only: bool = False,
        unresolved_only: bool = False,
        limit: Optional[int] = None,
    ) -> list[Alert]:
        """
        Alertes d'une installation et/ou d'un capteur, plus récentes d'abord.
        Au moins un des deux filtres est requis.
        """
        if installation_id is None and sensor_id is None:
            raise ValidationError("installation_id", "installation_id or sensor_id is required")
        limit = settings.ALERT_LIST_DEFAULT_LIMIT if limit is None else int(limit)
        if limit <= 0:
            raise ValidationError("limit", "must be a positive integer")

        stmt = select(Alert)
        if installation_id is not None:
            stmt = stmt.where(Alert.installation_id == installation_id)
        if sensor_id is not None:
            stmt = stmt.where(Alert.sensor_id == sensor_id)
        if unread_only:
            stmt = stmt.where(Alert.read.is_(False))
        if unresolved_only:
            stmt = stmt.where(Alert.resolved.is_(False))
        stmt = stmt.order_by(Alert.created_at.desc()).limit(limit)

        with store_errors():
            return list(self.s.scalars(stmt).all())

    def find_open(
        self,
        sensor_id: UUID,
        direction: BreachDirection,
        *,
        since: Optional[dt.datetime] = None,
    ) -> Optional[Alert]:
        """Alerte ouverte (resolved=False) du capteur pour ce sens de dépassement."""
        stmt = select(Alert).where(
            Alert.sensor_id == sensor_id,
            Alert.breach_direction == BreachDirection(direction).value,
            Alert.resolved.is_(False),
        )
        if since is not None:
            stmt = stmt.where(Alert.created_at >= since)
        stmt = stmt.order_by(Alert.created_at.desc()).limit(1)
        with store_errors():
            return self.s.scalar(stmt)

    def count_unread(self, installation_id: UUID) -> int:
        with store_errors():
            return int(
                self.s.scalar(
                    select(func.count(Alert.id)).where(
                        Alert.installation_id == installation_id,
                        Alert.read.is_(False),
                    )
                )
                or 0
            )

    def stats(self, installation_id: UUID) -> AlertStats:
        """
        Instantané calculé sur l'ensemble courant des alertes (pas de compteur
        incrémental qui pourrait dériver).
        """
        def _count(cond):
            return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)

        stmt = select(
            func.count(Alert.id),
            _count(Alert.read.is_(False)),
            _count(Alert.resolved.is_(False)),
            _count(Alert.severity == Severity.CRITICAL.value),
            _count(Alert.severity == Severity.WARNING.value),
            _count(Alert.severity == Severity.INFO.value),
        ).where(Alert.installation_id == installation_id)

        with store_errors():
            row = self.s.execute(stmt).one()
        total, unread, unresolved, critical, warning, info = (int(v or 0) for v in row)
        return AlertStats(
            total=total,
            unread=unread,
            unresolved=unresolved,
            critical=critical,
            warning=warning,
            info=info,
        )

    # ------------------------------------------------------------------
    # Créations
    # ------------------------------------------------------------------

    def add_threshold_alert(
        self,
        *,
        installation_id: UUID,
        sensor_id: UUID,
        threshold_id: Optional[UUID],
        direction: BreachDirection,
        severity: str,
        message: str,
        recorded_value: float,
        created_at: dt.datetime,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Alert:
        """Nouvelle alerte de dépassement : read/attended/resolved = False."""
        direction = BreachDirection(direction)
        alert = Alert(
            installation_id=installation_id,
            sensor_id=sensor_id,
            threshold_id=threshold_id,
            type=ALERT_TYPE_BY_DIRECTION[direction],
            message=message,
            severity=normalize_severity(severity),
            recorded_value=recorded_value,
            breach_direction=direction.value,
            read=False,
            attended=False,
            resolved=False,
            created_at=created_at,
            meta=metadata,
        )
        self.s.add(alert)
        with store_errors():
            self.s.flush()
        return alert

    def create(self, data: Mapping[str, Any]) -> Alert:
        """
        Alerte manuelle. Requis : installation_id, message, severity.
        type = 'manual' si absent.

        Raises:
            ValidationError: champ requis manquant / invalide (champ nommé)
            NotFound: installation ou capteur inexistant
        """
        if data.get("installation_id") in (None, ""):
            raise ValidationError("installation_id", "is required")
        installation_id = _as_uuid(data["installation_id"], "installation_id")

        message = data.get("message")
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("message", "is required")
        severity = normalize_severity(data.get("severity"))

        sensor_id = data.get("sensor_id")
        sensor_id = _as_uuid(sensor_id, "sensor_id") if sensor_id not in (None, "") else None

        alert_type = data.get("type")
        alert_type = alert_type.strip() if isinstance(alert_type, str) and alert_type.strip() else MANUAL_ALERT_TYPE

        recorded_value = data.get("recorded_value")
        if recorded_value is not None:
            try:
                recorded_value = float(recorded_value)
            except (TypeError, ValueError):
                raise ValidationError("recorded_value", "must be a number") from None

        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise ValidationError("metadata", "must be an object")

        with store_errors():
            if self.s.get(Installation, installation_id) is None:
                raise NotFound("installation", installation_id)
            if sensor_id is not None:
                sensor = self.s.get(InstalledSensor, sensor_id)
                if sensor is None:
                    raise NotFound("sensor", sensor_id)
                if sensor.installation_id != installation_id:
                    raise ValidationError("sensor_id", "sensor does not belong to installation")

        alert = Alert(
            installation_id=installation_id,
            sensor_id=sensor_id,
            type=alert_type,
            message=message.strip(),
            severity=severity,
            recorded_value=recorded_value,
            read=False,
            attended=False,
            resolved=False,
            created_at=dt.datetime.now(dt.timezone.utc),
            meta=metadata,
        )
        self.s.add(alert)
        with store_errors():
            self.s.flush()
        return alert

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _apply(self, alert: Alert, flags: AlertFlags, now: dt.datetime) -> Alert:
        """Écrit le triplet ; seul endroit qui pose/efface resolved_at."""
        if flags == alert.flags:
            return alert  # idempotent : aucune écriture
        alert.read = flags.read
        alert.attended = flags.attended or flags.resolved
        if flags.resolved and not alert.resolved:
            alert.resolved_at = now
        alert.resolved = flags.resolved
        if not flags.resolved:
            alert.resolved_at = None
        with store_errors():
            self.s.flush()
        return alert

    def mark_read(self, alert_id: UUID) -> Alert:
        alert = self.require(alert_id)
        flags = apply_transition(alert.flags, AlertTransition.MARK_READ)
        return self._apply(alert, flags, dt.datetime.now(dt.timezone.utc))

    def resolve(self, alert_id: UUID, *, now: Optional[dt.datetime] = None) -> Alert:
        """resolved + attended + resolved_at ; re-résoudre est un no-op."""
        alert = self.require(alert_id)
        flags = apply_transition(alert.flags, AlertTransition.RESOLVE)
        return self._apply(alert, flags, now or dt.datetime.now(dt.timezone.utc))

    def mark_read_all(self, installation_id: UUID) -> int:
        """Marque lues toutes les alertes non lues ; 0 si aucune (pas d'erreur)."""
        stmt = (
            update(Alert)
            .where(
                Alert.installation_id == installation_id,
                Alert.read.is_(False),
            )
            .values(read=True, version=Alert.version + 1)
            .execution_options(synchronize_session=False)
        )
        with store_errors():
            result = self.s.execute(stmt)
        # Les instances déjà chargées dans la session sont rafraîchies au prochain accès
        for obj in list(self.s.identity_map.values()):
            if isinstance(obj, Alert):
                self.s.expire(obj)
        return result.rowcount or 0

    def delete(self, alert_id: UUID) -> None:
        """Suppression physique (purge opérateur)."""
        alert = self.require(alert_id)
        with store_errors():
            self.s.delete(alert)
            self.s.flush()
