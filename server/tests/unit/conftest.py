# server/tests/unit/conftest.py
# ─────────────────────────────────────────────────────────────────────────────
# Conftest pour les TESTS UNITAIRES.
#
# Pose les ENV *avant* les imports app.* pour que Settings() voie une base
# SQLite et un fuseau de planification déterministe.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import os
import sys
import importlib


def pytest_configure(config) -> None:
    """S'exécute avant la collecte → parfait pour poser les ENV lues par Settings()."""
    os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    os.environ.setdefault("SCHEDULE_TIMEZONE", "UTC")
    os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "1")

    # Si app.core.config a déjà été importé, on le recharge pour
    # ré-instancier Settings() avec ces ENV.
    if "app.core.config" in sys.modules:
        importlib.reload(sys.modules["app.core.config"])
