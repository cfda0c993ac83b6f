# server/app/api/v1/serializers/schedule_rule.py
"""
Sérialise une ScheduleRule ; heures au format "HH:MM:SS".
"""

from __future__ import annotations
from typing import Any, Dict, TYPE_CHECKING

from app.core.utils.datetime import isoformat_utc

if TYPE_CHECKING:
    from app.infrastructure.persistence.database.models.schedule_rule import ScheduleRule


def serialize_schedule_rule(r: ScheduleRule) -> Dict[str, Any]:
    return {
        "id": str(r.id),
        "installation_id": str(r.installation_id),
        "name": r.name,
        "kind": r.kind,
        "start_time": r.start_time.isoformat() if r.start_time else None,
        "end_time": r.end_time.isoformat() if r.end_time else None,
        "crosses_midnight": bool(r.crosses_midnight),
        "condition_min": r.condition_min,
        "condition_max": r.condition_max,
        "measurement_type": r.measurement_type,
        "duration_minutes": r.duration_minutes,
        "action": r.action,
        "active": bool(r.active),
        "created_at": isoformat_utc(r.created_at),
        "updated_at": isoformat_utc(r.updated_at),
    }
