from __future__ import annotations
"""server/app/core/config.py
~~~~~~~~~~~~~~~~~~~~~~~~
Paramètres (pydantic-settings).
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+psycopg://postgres:postgres@db:5432/aquacontrol"
    DB_CONNECT_TIMEOUT: int = 5
    # Timeout par requête / verrou (Postgres) ou busy timeout (SQLite)
    DB_STATEMENT_TIMEOUT_MS: int = 5000
    REDIS_URL: str = "redis://redis:6379/0"

    # Fenêtre de dé-duplication des alertes (None = pas de coupure temporelle)
    ALERT_DEDUP_WINDOW_MINUTES: Optional[int] = None
    # Sévérité utilisée quand l'alerte provient des seuils recommandés
    DEFAULT_ALERT_LEVEL: str = "warning"
    ALERT_LIST_DEFAULT_LIMIT: int = 50

    SCHEDULE_EVAL_INTERVAL_SECONDS: int = 60
    SCHEDULE_TIMEZONE: str = "UTC"
    SCHEDULE_DEFAULT_MEASUREMENT: str = "dissolved_oxygen"

    CORS_ALLOW_ORIGINS: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

settings = Settings()
