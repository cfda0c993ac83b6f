from __future__ import annotations
"""server/app/domain/models.py
~~~~~~~~~~~~~~~~~~~~~~~~
Objets valeur du domaine (indépendants de l'ORM).
"""

import enum
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class Reading:
    sensor_id: uuid.UUID
    value: float
    taken_at: datetime


@dataclass(frozen=True)
class Bounds:
    """Bornes effectivement appliquées à une lecture (seuil capteur ou défaut)."""
    min_value: Optional[float]
    max_value: Optional[float]
    optimal_value: Optional[float]
    alert_level: str
    source: str  # "sensor" | "default"
    threshold_id: Optional[uuid.UUID] = None


class EvaluationOutcome(str, enum.Enum):
    SKIPPED = "skipped"              # aucun seuil résoluble
    WITHIN_BOUNDS = "within_bounds"
    CREATED = "created"
    DEDUPLICATED = "deduplicated"    # alerte ouverte existante, même sens


@dataclass(frozen=True)
class EvaluationResult:
    outcome: EvaluationOutcome
    sensor_id: uuid.UUID
    direction: Optional[str] = None
    alert_id: Optional[uuid.UUID] = None

    @property
    def created(self) -> bool:
        return self.outcome is EvaluationOutcome.CREATED

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.outcome.value,
            "sensor_id": str(self.sensor_id),
            "direction": self.direction,
            "alert_id": str(self.alert_id) if self.alert_id else None,
        }


@dataclass(frozen=True)
class ActuationIntent:
    """Intention d'actionner un équipement, remise au dispatcher externe."""
    rule_id: uuid.UUID
    installation_id: uuid.UUID
    action: str
    duration_minutes: Optional[int]
    reason: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "rule_id": str(self.rule_id),
            "installation_id": str(self.installation_id),
            "action": self.action,
            "duration_minutes": self.duration_minutes,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class AlertStats:
    total: int = 0
    unread: int = 0
    unresolved: int = 0
    critical: int = 0
    warning: int = 0
    info: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)
