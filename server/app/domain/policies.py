# server/app/domain/policies.py

from __future__ import annotations
"""
Règles métier pures (aucun accès au store).

Trois familles :
- seuils    : validation des bornes, sens du dépassement d'une lecture
- alertes   : état explicite (open/seen/attended/resolved) dérivé du triplet
              de booléens stocké, et transitions autorisées
- planning  : validation d'une règle de planification, tests "due"
              (fenêtre horaire avec passage de minuit, condition capteur)
"""

import enum
import math
import re
from dataclasses import dataclass, replace
from datetime import time
from typing import Any, Mapping, Optional

from app.domain.errors import ValidationError


# ---------------------------------------------------------------------------
# Sévérités
# ---------------------------------------------------------------------------

class Severity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


SEVERITIES = tuple(s.value for s in Severity)


def normalize_severity(value: Any, field: str = "severity") -> str:
    """Normalise ('  Critical ' -> 'critical') et valide une sévérité."""
    if isinstance(value, Severity):
        return value.value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    v = value.strip().lower()
    if v not in SEVERITIES:
        raise ValidationError(field, f"must be one of {', '.join(SEVERITIES)}")
    return v


# ---------------------------------------------------------------------------
# Seuils
# ---------------------------------------------------------------------------

class BreachDirection(str, enum.Enum):
    BELOW_MIN = "below_min"
    ABOVE_MAX = "above_max"


MANUAL_ALERT_TYPE = "manual"
ALERT_TYPE_BY_DIRECTION = {
    BreachDirection.BELOW_MIN: "threshold_low",
    BreachDirection.ABOVE_MAX: "threshold_high",
}


def _as_number(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, "must be a number") from None
    if not math.isfinite(v):
        raise ValidationError(field, "must be a finite number")
    return v


def validate_bounds(
    min_value: Any,
    max_value: Any,
    optimal_value: Any = None,
) -> tuple[Optional[float], Optional[float], Optional[float], list[str]]:
    """
    Valide un triplet (min, max, optimal).

    - min > max (les deux renseignés) -> ValidationError
    - optimal hors [min, max] -> simple avertissement (retourné, non bloquant)

    Retourne (min, max, optimal, warnings).
    """
    lo = _as_number(min_value, "min_value")
    hi = _as_number(max_value, "max_value")
    opt = _as_number(optimal_value, "optimal_value")

    if lo is not None and hi is not None and lo > hi:
        raise ValidationError("min_value", f"must be <= max_value ({lo} > {hi})")

    warnings: list[str] = []
    if opt is not None:
        if (lo is not None and opt < lo) or (hi is not None and opt > hi):
            warnings.append(f"optimal_value {opt} lies outside [{lo}, {hi}]")
    return lo, hi, opt, warnings


def breach_direction(
    value: float,
    min_value: Optional[float],
    max_value: Optional[float],
) -> Optional[BreachDirection]:
    """
    Sens du dépassement (inégalités strictes) ou None si la valeur est dans
    les bornes. La valeur optimale n'intervient jamais.
    """
    if min_value is not None and value < min_value:
        return BreachDirection.BELOW_MIN
    if max_value is not None and value > max_value:
        return BreachDirection.ABOVE_MAX
    return None


# ---------------------------------------------------------------------------
# Cycle de vie des alertes
# ---------------------------------------------------------------------------

class AlertState(str, enum.Enum):
    OPEN = "open"
    SEEN = "seen"
    ATTENDED = "attended"
    RESOLVED = "resolved"


class AlertTransition(str, enum.Enum):
    MARK_READ = "mark_read"
    RESOLVE = "resolve"


@dataclass(frozen=True)
class AlertFlags:
    """Triplet de booléens stocké en base ; l'état explicite en est dérivé."""
    read: bool = False
    attended: bool = False
    resolved: bool = False

    @property
    def state(self) -> AlertState:
        return alert_state(self.read, self.attended, self.resolved)


def alert_state(read: bool, attended: bool, resolved: bool) -> AlertState:
    # resolved sans read est toléré (aucune règle read-avant-resolve)
    if resolved:
        return AlertState.RESOLVED
    if attended:
        return AlertState.ATTENDED
    if read:
        return AlertState.SEEN
    return AlertState.OPEN


def apply_transition(flags: AlertFlags, transition: AlertTransition) -> AlertFlags:
    """
    Applique une transition. Les deux transitions sont idempotentes ;
    RESOLVED est terminal (mark_read y positionne seulement `read`).
    """
    if transition is AlertTransition.MARK_READ:
        return replace(flags, read=True)
    if transition is AlertTransition.RESOLVE:
        return replace(flags, attended=True, resolved=True)
    raise ValueError(f"unknown transition {transition!r}")


# ---------------------------------------------------------------------------
# Planification
# ---------------------------------------------------------------------------

class ScheduleKind(str, enum.Enum):
    TIME_WINDOW = "time_window"
    CONDITION = "condition"
    HYBRID = "hybrid"


# Champs modifiables d'une règle (mise à jour partielle)
SCHEDULE_MUTABLE_FIELDS = (
    "name",
    "kind",
    "start_time",
    "end_time",
    "crosses_midnight",
    "condition_min",
    "condition_max",
    "measurement_type",
    "duration_minutes",
    "action",
    "active",
)

# Champs qui ne peuvent pas être effacés par un null explicite
SCHEDULE_NON_NULLABLE_FIELDS = ("name", "kind", "action", "active", "crosses_midnight")

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def coerce_kind(value: Any) -> str:
    if value is None:
        return ScheduleKind.TIME_WINDOW.value
    raw = value.value if isinstance(value, ScheduleKind) else str(value).strip().lower()
    try:
        return ScheduleKind(raw).value
    except ValueError:
        allowed = ", ".join(k.value for k in ScheduleKind)
        raise ValidationError("kind", f"must be one of {allowed}") from None


def coerce_time(value: Any, field: str) -> Optional[time]:
    """Accepte un `datetime.time` ou une chaîne 'HH:MM[:SS]'."""
    if value is None or isinstance(value, time):
        return value
    m = _TIME_RE.match(str(value))
    if not m:
        raise ValidationError(field, "must be a time of day HH:MM[:SS]")
    hh, mm, ss = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    try:
        return time(hh, mm, ss)
    except ValueError:
        raise ValidationError(field, "must be a time of day HH:MM[:SS]") from None


def normalize_schedule_rule(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalise puis valide l'enregistrement *complet* d'une règle.
    Utilisé à la création comme après fusion d'une mise à jour partielle.
    """
    rule = dict(fields)

    name = rule.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name", "is required")
    rule["name"] = name.strip()

    action = rule.get("action")
    if not isinstance(action, str) or not action.strip():
        raise ValidationError("action", "is required")
    rule["action"] = action.strip()

    kind = coerce_kind(rule.get("kind"))
    rule["kind"] = kind
    rule["start_time"] = coerce_time(rule.get("start_time"), "start_time")
    rule["end_time"] = coerce_time(rule.get("end_time"), "end_time")
    rule["crosses_midnight"] = bool(rule.get("crosses_midnight") or False)
    rule["condition_min"] = _as_number(rule.get("condition_min"), "condition_min")
    rule["condition_max"] = _as_number(rule.get("condition_max"), "condition_max")
    rule["active"] = True if rule.get("active") is None else bool(rule["active"])
    measurement = rule.get("measurement_type")
    rule["measurement_type"] = measurement.strip().lower() if isinstance(measurement, str) and measurement.strip() else None

    duration = rule.get("duration_minutes")
    if duration is not None:
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise ValidationError("duration_minutes", "must be a positive integer")

    if kind in (ScheduleKind.TIME_WINDOW.value, ScheduleKind.HYBRID.value):
        start, end = rule["start_time"], rule["end_time"]
        if start is None:
            raise ValidationError("start_time", f"is required for a {kind} rule")
        if end is None:
            raise ValidationError("end_time", f"is required for a {kind} rule")
        if start > end and not rule["crosses_midnight"]:
            raise ValidationError(
                "end_time",
                f"must not be before start_time ({end} < {start}) unless crosses_midnight is set",
            )
        if start < end and rule["crosses_midnight"]:
            raise ValidationError("crosses_midnight", "window does not cross midnight")

    if kind in (ScheduleKind.CONDITION.value, ScheduleKind.HYBRID.value):
        lo, hi = rule["condition_min"], rule["condition_max"]
        if lo is None and hi is None:
            raise ValidationError("condition_min", f"condition_min or condition_max is required for a {kind} rule")
        if lo is not None and hi is not None and lo > hi:
            raise ValidationError("condition_min", f"must be <= condition_max ({lo} > {hi})")

    return rule


def in_time_window(t: time, start: time, end: time, crosses_midnight: bool = False) -> bool:
    """
    True si `t` est dans [start, end] (bornes incluses).
    Fenêtre passant minuit : comparaison "en boucle" (t >= start ou t <= end).
    start == end avec passage de minuit : journée entière.
    """
    if crosses_midnight and start == end:
        return True
    if start <= end:
        return start <= t <= end
    return t >= start or t <= end


def condition_due(
    value: Optional[float],
    condition_min: Optional[float],
    condition_max: Optional[float],
) -> bool:
    """
    La condition décrit la plage *souhaitée* : la règle est due quand la
    dernière valeur connue en sort. Valeur inconnue -> pas due.
    """
    if value is None:
        return False
    if condition_min is not None and value < condition_min:
        return True
    if condition_max is not None and value > condition_max:
        return True
    return False


def rule_due_reason(rule: Any, local_time: time, value: Optional[float]) -> Optional[str]:
    """
    Décide si une règle (objet exposant les attributs de ScheduleRule) est due.
    Retourne la raison lisible, ou None si la règle n'est pas due.
    """
    if not getattr(rule, "active", False):
        return None

    kind = coerce_kind(rule.kind)
    window_ok = condition_ok = True
    reasons: list[str] = []

    if kind in (ScheduleKind.TIME_WINDOW.value, ScheduleKind.HYBRID.value):
        if rule.start_time is None or rule.end_time is None:
            return None
        window_ok = in_time_window(local_time, rule.start_time, rule.end_time, bool(rule.crosses_midnight))
        if window_ok:
            reasons.append(f"{local_time:%H:%M} within {rule.start_time:%H:%M}-{rule.end_time:%H:%M}")

    if kind in (ScheduleKind.CONDITION.value, ScheduleKind.HYBRID.value):
        condition_ok = condition_due(value, rule.condition_min, rule.condition_max)
        if condition_ok:
            reasons.append(f"value {value} outside [{rule.condition_min}, {rule.condition_max}]")

    if window_ok and condition_ok:
        return "; ".join(reasons)
    return None
