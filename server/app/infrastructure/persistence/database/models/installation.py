from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/installation.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table installations (site physique : capteurs + actionneurs).
"""
import uuid
import datetime as dt

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database.base import Base


class Installation(Base):
    __tablename__ = "installations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=lambda: dt.datetime.now(dt.timezone.utc))
