"""REST API routes for the portfolio generator."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from app.config import settings
from app.ingestion.errors import StreamFailedError
from app.ingestion.pipeline import ingest_stream
from app.ingestion.schemas import document_to_dict
from app.services.generator import generate_ndjson

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------

class GenerateRequest(BaseModel):
    image: str = Field(..., min_length=1, description="The user's photo as a data URI.")
    text: str = Field(..., min_length=1, description="A short free-text self description.")


class Diagnostic(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    raw_line: str = Field(..., alias="rawLine")
    reason: str


class PortfolioResponse(BaseModel):
    document: dict[str, Any]
    narration: str
    diagnostics: list[Diagnostic]


class HealthResponse(BaseModel):
    status: str
    llm_model: str


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check():
    """Return service health and the configured model."""
    return HealthResponse(status="ok", llm_model=settings.llm_model)


@router.post("/generate-portfolio", tags=["portfolio"])
async def generate_portfolio(body: GenerateRequest):
    """Stream the generation run as newline-delimited JSON records.

    ``chunk`` records carry the model's thinking, ``data`` records the final
    portfolio payload and a closing ``image`` record the hero image.
    """
    logger.info("Starting portfolio generation (%d chars of input).", len(body.text))
    return StreamingResponse(
        generate_ndjson(body.image, body.text),
        media_type="application/x-ndjson",
        headers={"Cache-Control": "no-cache"},
    )


@router.post(
    "/portfolio",
    response_model=PortfolioResponse,
    response_model_by_alias=True,
    tags=["portfolio"],
)
async def assemble_portfolio(body: GenerateRequest):
    """Generate a portfolio and return the validated document in one response.

    A stream that ends without portfolio data still yields a document built
    from defaults; only an upstream failure is an error.
    """
    try:
        session = await ingest_stream(
            generate_ndjson(body.image, body.text, relay_errors=False),
            fallback_image=body.image,
        )
    except StreamFailedError as exc:
        logger.exception("Portfolio generation failed.")
        raise HTTPException(
            status_code=502,
            detail=f"Generation failed, please retry. ({exc})",
        ) from exc

    return PortfolioResponse(
        document=document_to_dict(session.document),
        narration=session.narration,
        diagnostics=[
            Diagnostic(raw_line=d.raw_line, reason=d.reason) for d in session.diagnostics
        ],
    )
