# server/app/api/v1/serializers/threshold.py
"""
Sérialise seuils capteur et seuils recommandés.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, TYPE_CHECKING

from app.core.utils.datetime import isoformat_utc

if TYPE_CHECKING:
    from app.infrastructure.persistence.database.models.recommended_threshold import RecommendedThreshold
    from app.infrastructure.persistence.database.models.threshold import SensorThreshold


def serialize_threshold(t: Optional[SensorThreshold]) -> Optional[Dict[str, Any]]:
    if t is None:
        return None
    return {
        "id": str(t.id),
        "sensor_id": str(t.sensor_id),
        "min_value": t.min_value,
        "max_value": t.max_value,
        "optimal_value": t.optimal_value,
        "alert_level": t.alert_level,
        "active": bool(t.active),
        "created_at": isoformat_utc(t.created_at),
        "updated_at": isoformat_utc(t.updated_at),
    }


def serialize_defaults(r: Optional[RecommendedThreshold]) -> Optional[Dict[str, Any]]:
    if r is None:
        return None
    return {
        "measurement_type": r.measurement_type,
        "min_value": r.min_value,
        "max_value": r.max_value,
        "optimal_value": r.optimal_value,
        "description": r.description,
    }
