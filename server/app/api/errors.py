from __future__ import annotations
"""server/app/api/errors.py
~~~~~~~~~~~~~~~~~~~~~~~~
Traduction des erreurs du moteur en réponses HTTP.

Corps uniforme : {"error": <kind>, "detail": <message>, "field": <champ|None>}
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.domain.errors import (
    Conflict,
    EngineError,
    EvaluationFailed,
    NotFound,
    StoreTimeout,
    StoreUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Ordre significatif : la première classe correspondante gagne
_STATUS_BY_ERROR: tuple[tuple[type[EngineError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Conflict, status.HTTP_409_CONFLICT),
    (StoreTimeout, status.HTTP_504_GATEWAY_TIMEOUT),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (EvaluationFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: EngineError) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(exc: EngineError) -> dict:
    detail = exc.message if isinstance(exc, ValidationError) else str(exc)
    return {"error": exc.kind, "detail": detail, "field": getattr(exc, "field", None)}


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s -> %d: %s", request.method, request.url.path, code, exc)
    return JSONResponse(status_code=code, content=error_body(exc))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EngineError, engine_error_handler)
