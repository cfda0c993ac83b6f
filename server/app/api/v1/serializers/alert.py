# server/app/api/v1/serializers/alert.py
"""
Sérialise une Alert en dictionnaire JSON prêt à exposer.
"""

from __future__ import annotations
from typing import Any, Dict, TYPE_CHECKING

from app.core.utils.datetime import isoformat_utc

if TYPE_CHECKING:
    from app.infrastructure.persistence.database.models.alert import Alert


def serialize_alert(a: Alert) -> Dict[str, Any]:
    return {
        "id": str(a.id),
        "installation_id": str(a.installation_id),
        "sensor_id": str(a.sensor_id) if a.sensor_id else None,
        "threshold_id": str(a.threshold_id) if a.threshold_id else None,
        "type": a.type,
        "message": a.message,
        "severity": a.severity,
        "recorded_value": a.recorded_value,
        "breach_direction": a.breach_direction,

        # Triplet stocké + état explicite dérivé
        "read": bool(a.read),
        "attended": bool(a.attended),
        "resolved": bool(a.resolved),
        "state": a.state.value,

        "created_at": isoformat_utc(a.created_at),
        "resolved_at": isoformat_utc(a.resolved_at),
        "metadata": a.meta,
    }
