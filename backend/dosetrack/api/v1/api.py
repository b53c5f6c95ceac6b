"""Module: api."""

# backend/dosetrack/api/v1/api.py
from fastapi import APIRouter

# Core operational routes.
from dosetrack.api.v1.routes.health import router as health_router

# Medication course and dose tracking routes.
from dosetrack.api.v1.routes.medications import router as medications_router
from dosetrack.api.v1.routes.doses import router as doses_router


api_router = APIRouter()

# Register operational endpoints first for service-level concerns.
api_router.include_router(health_router, prefix="/health", tags=["health"])

# Register business/domain endpoints consumed by the application UI and reminder links.
api_router.include_router(medications_router, prefix="/medications", tags=["medications"])
api_router.include_router(doses_router, prefix="/doses", tags=["doses"])
