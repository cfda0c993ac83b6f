from __future__ import annotations
"""server/app/domain/errors.py
~~~~~~~~~~~~~~~~~~~~~~~~
Taxonomie des erreurs remontées par les stores et les moteurs d'évaluation.

- ValidationError : entrée mal formée / contradictoire (jamais rejouée)
- NotFound        : entité cible inexistante
- Conflict        : course détectée par le contrôle optimiste (rejouable une fois)
- StoreTimeout    : timeout requête/verrou du store
- StoreUnavailable: store injoignable
- EvaluationFailed: une lecture n'a pas pu être évaluée (≠ "pas de dépassement")

Aucune de ces erreurs n'est rejouée par le moteur : la politique de retry
appartient à l'appelant.
"""

from typing import Any, Optional


class EngineError(Exception):
    """Erreur de base du moteur."""

    kind = "error"


class ValidationError(EngineError):
    kind = "validation_error"

    def __init__(self, field: Optional[str], message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)


class NotFound(EngineError):
    kind = "not_found"

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class Conflict(EngineError):
    kind = "conflict"


class StoreError(EngineError):
    """Erreur d'accès au store (transport/infra)."""


class StoreTimeout(StoreError):
    kind = "timeout"


class StoreUnavailable(StoreError):
    kind = "unavailable"


class EvaluationFailed(EngineError):
    kind = "evaluation_failed"

    def __init__(self, sensor_id: Any, reason: str) -> None:
        self.sensor_id = sensor_id
        self.reason = reason
        super().__init__(f"evaluation failed for sensor {sensor_id}: {reason}")
