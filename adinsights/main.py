from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adinsights.api.routes_analysis import router as analysis_router
from adinsights.api.routes_memory import router as memory_router
from adinsights.config import settings
from adinsights.db.session import init_metadata_db

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Ads Insights API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    init_metadata_db()
    logger.info("Started in %s mode (memory provider: %s)", settings.app_env, settings.memory_provider)


@app.get("/health")
def healthcheck():
    return {"status": "ok", "environment": settings.app_env}


app.include_router(analysis_router)
app.include_router(memory_router)
