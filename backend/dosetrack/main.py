"""Module: main."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dosetrack.api.dose_page import router as dose_page_router
from dosetrack.api.v1.api import api_router
from dosetrack.core.config import settings
from dosetrack.core.errors import DoseTrackingError
from dosetrack.core.logging_config import configure_logging
from dosetrack.db.init_db import init_db

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        init_db()
    yield


app = FastAPI(title="Pet Dose Tracker API", version="0.1.0", lifespan=lifespan)

app.include_router(api_router, prefix="/api/v1")
app.include_router(dose_page_router, prefix="/dose", tags=["dose-links"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain failures render as {"detail": ..., "code": ...} with their own status.
@app.exception_handler(DoseTrackingError)
async def dose_tracking_error_handler(request: Request, exc: DoseTrackingError):
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())
