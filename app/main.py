"""Application entry-point – creates the FastAPI app."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import router
from app.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=== Portfolio service ready (model=%s, endpoint=%s) ===",
                settings.llm_model, settings.llm_base_url)
    yield


app = FastAPI(
    title="Instant Bento",
    description=(
        "Turns a photo and a short self description into a bento-grid "
        "portfolio, streaming the model's progress while it works."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api")
