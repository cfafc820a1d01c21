"""FastAPI application exposing the address intelligence operations."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from addrintel import __version__
from addrintel.bridge.orchestrator import InboundMessage, MessageStatus
from addrintel.cohort.models import GroupAnalysisFilter
from addrintel.config.response_templates import MessageType
from addrintel.errors import EmptyCohortError, UnknownTemplateError
from addrintel.extraction.patterns import canonical_address, is_wallet_address
from addrintel.models import Channel
from addrintel.services.container import IntelligenceServices


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    services: dict[str, bool]


class MessageRequest(BaseModel):
    """Inbound message observed by the messaging system."""

    id: str
    recipient: str
    content: str = ""
    channel: Channel = Channel.APP
    status: MessageStatus = MessageStatus.SENT
    campaign: str | None = None
    response_time: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ExtractionResponse(BaseModel):
    addresses: list[str]
    confidence: float
    method: str
    source: str


class Transaction(BaseModel):
    """Raw on-chain transaction for pattern analysis."""

    timestamp: datetime
    value: float = 0.0
    type: str | None = None


class TransactionsRequest(BaseModel):
    transactions: list[Transaction]


class CampaignRequest(BaseModel):
    addresses: list[str]
    message_type: MessageType = MessageType.PROMOTION


class GroupAnalysisRequest(BaseModel):
    filter: GroupAnalysisFilter
    analysis_name: str
    requested_by: str = "admin"


class PreviewRequest(BaseModel):
    filter: GroupAnalysisFilter


class QuickAnalysisRequest(BaseModel):
    analysis_name: str | None = None
    requested_by: str = "admin"


def get_services(request: Request) -> IntelligenceServices:
    return request.app.state.services


router = APIRouter(prefix="/api/v1")


@router.get("/health", response_model=HealthResponse)
async def health_check(services: IntelligenceServices = Depends(get_services)) -> HealthResponse:
    """
    Health check endpoint.

    Reports the profile repository and language model availability. The
    service is "ok" whenever profiles can be read; a missing model only
    disables LLM narratives.
    """
    try:
        checks = await services.health_check()
    except Exception:
        checks = {"profiles": False, "llm": False}

    return HealthResponse(
        status="ok" if checks["profiles"] else "degraded",
        version=__version__,
        services=checks,
    )


@router.post("/messages", response_model=ExtractionResponse)
async def process_message(
    message: MessageRequest,
    services: IntelligenceServices = Depends(get_services),
) -> ExtractionResponse:
    """Run an inbound message through extraction, profiling and response hooks."""
    result = await services.bridge.handle_message(InboundMessage(**message.model_dump()))
    return ExtractionResponse(**result.to_dict())


@router.post("/addresses/{address}/events")
async def ingest_event(
    address: str,
    event: dict[str, Any],
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    try:
        profile = await services.ingestor.ingest(address, event)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid event: {e}") from e
    if profile is None:
        raise HTTPException(status_code=400, detail=f"Malformed address: {address}")
    return profile.to_dict()


@router.post("/addresses/{address}/transactions")
async def ingest_transactions(
    address: str,
    body: TransactionsRequest,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    if not is_wallet_address(address):
        raise HTTPException(status_code=400, detail=f"Malformed address: {address}")
    try:
        profile = await services.ingestor.ingest_transactions(
            address, [t.model_dump() for t in body.transactions]
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid transaction data: {e}") from e
    return profile.to_dict()


@router.get("/addresses/top")
async def top_addresses(
    limit: int | None = None,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    profiles = await services.store.top_by_value(limit or services.config.top_value_default_limit)
    return {"profiles": [p.to_dict() for p in profiles], "count": len(profiles)}


@router.get("/addresses/{address}")
async def get_address(
    address: str,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    """Profile for one address; unknown addresses return a null profile."""
    address = canonical_address(address)
    profile = await services.store.get(address)
    return {"address": address, "profile": profile.to_dict() if profile else None}


@router.get("/segments/{segment}")
async def segment_addresses(
    segment: str,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    profiles = await services.store.by_segment(segment)
    return {"segment": segment, "profiles": [p.to_dict() for p in profiles], "count": len(profiles)}


@router.get("/report")
async def intelligence_report(
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    return await services.bridge.intelligence_report()


@router.post("/campaigns/optimize")
async def optimize_campaign(
    body: CampaignRequest,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    return await services.bridge.optimize_campaign(body.addresses, body.message_type)


@router.get("/group-analysis/templates")
async def group_analysis_templates(
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    return {"templates": [t.to_dict() for t in services.cohort.templates()]}


@router.post("/group-analysis")
async def create_group_analysis(
    body: GroupAnalysisRequest,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    result = await services.cohort.analyze(body.filter, body.analysis_name, body.requested_by)
    return {"analysis": result.to_dict()}


@router.post("/group-analysis/preview")
async def preview_group_analysis(
    body: PreviewRequest,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    return {"preview": await services.cohort.preview(body.filter)}


@router.post("/group-analysis/quick/{template}")
async def quick_group_analysis(
    template: str,
    body: QuickAnalysisRequest | None = None,
    services: IntelligenceServices = Depends(get_services),
) -> dict[str, Any]:
    body = body or QuickAnalysisRequest()
    matched, result = await services.cohort.analyze_template(
        template, body.analysis_name, body.requested_by
    )
    return {"analysis": result.to_dict(), "template": matched.name}


def create_app(services: IntelligenceServices | None = None) -> FastAPI:
    """Build the API around a service container.

    Args:
        services: Pre-built services (built from IntelConfig if None)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with app.state.services:
            yield

    app = FastAPI(
        title="Address Intelligence API",
        description="Wallet profiling, scoring and cohort analysis",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services or IntelligenceServices()
    app.include_router(router)

    @app.exception_handler(EmptyCohortError)
    async def empty_cohort_handler(request: Request, exc: EmptyCohortError) -> JSONResponse:
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(UnknownTemplateError)
    async def unknown_template_handler(request: Request, exc: UnknownTemplateError) -> JSONResponse:
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": "Address Intelligence API",
            "version": __version__,
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app


app = create_app()
