from __future__ import annotations
"""server/app/infrastructure/persistence/database/models/recommended_threshold.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table recommended_thresholds : bornes recommandées par type de mesure
(éventuellement par espèce). Consultatif : ne crée jamais de seuil capteur.
"""
import uuid

from sqlalchemy import Float, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database.base import Base


class RecommendedThreshold(Base):
    __tablename__ = "recommended_thresholds"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    measurement_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    species: Mapped[str | None] = mapped_column(String(100), nullable=True)
    min_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    optimal_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
