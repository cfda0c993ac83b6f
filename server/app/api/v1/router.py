from __future__ import annotations
"""server/app/api/v1/router.py
~~~~~~~~~~~~~~~~~~~~~~~~
Router principal API v1.
"""
from fastapi import APIRouter
from app.api.v1.endpoints import alerts, health, readings, schedules, thresholds


api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(readings.router, tags=["readings"])
api_router.include_router(thresholds.router, tags=["thresholds"])
api_router.include_router(alerts.router, tags=["alerts"])
api_router.include_router(schedules.router, tags=["schedules"])
