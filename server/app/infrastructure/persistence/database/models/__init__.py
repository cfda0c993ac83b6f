from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/__init__.py
~~~~~~~~~~~~~~~~~~~~~~~~
Modèles ORM (register for Alembic).
"""

from .installation import Installation
from .installed_sensor import InstalledSensor
from .threshold import SensorThreshold
from .recommended_threshold import RecommendedThreshold
from .alert import Alert
from .schedule_rule import ScheduleRule
from .sensor_reading import SensorReading

__all__ = ["Installation", "InstalledSensor", "SensorThreshold", "RecommendedThreshold", "Alert", "ScheduleRule", "SensorReading"]
