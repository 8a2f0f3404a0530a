"""
ISO Limits & Fits Calculator - service entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from fitcalc import __version__
from fitcalc.api import api_router
from fitcalc.api.dependencies import get_reference_index
from fitcalc.core.config import get_settings
from fitcalc.core.errors import FitCalcError
from fitcalc.utils.logging import setup_logging

settings = get_settings()

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the reference index before the first request."""
    logger.info("Starting fit calculator...")
    index = get_reference_index()
    logger.info("Reference index ready", extra={"rows": len(index.rows)})
    yield
    logger.info("Shutting down fit calculator...")


app = FastAPI(
    title="ISO Limits & Fits Calculator",
    description="ISO 286 limits and fits for hole/shaft pairs",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": "ISO Limits & Fits Calculator",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health_check():
    """Liveness plus a summary of the loaded reference data."""
    current_settings = get_settings()
    index = get_reference_index()
    return {
        "status": "healthy",
        "reference_index": {
            "rows": len(index.rows),
            "entries": len(index),
            "buckets": len(index.size_ranges),
            "source": current_settings.REFERENCE_INDEX_PATH or current_settings.REFERENCE_RAW_PATH,
        },
        "config": {
            "drop_empty": current_settings.RECONCILE_DROP_EMPTY,
            "tie_break": current_settings.RECONCILE_TIE_BREAK,
            "sign_patterns": current_settings.RECONCILE_SIGN_PATTERNS,
            "zone_sort_mode": current_settings.ZONE_SORT_MODE,
            "log_level": current_settings.LOG_LEVEL,
        },
    }


@app.get("/ready")
def readiness_check():
    try:
        get_reference_index()
    except FitCalcError as exc:
        logger.error("Readiness check failed: %s", exc.message, extra={"error_code": exc.code.value})
        raise HTTPException(status_code=503, detail="Reference index not ready") from exc
    return {"status": "ready"}


if __name__ == "__main__":
    uvicorn.run(
        "fitcalc.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
    )
