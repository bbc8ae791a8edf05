import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from pactflow.exceptions import AggregationSourceUnavailable
from pactflow.models import ContractStatus
from pactflow.repositories.base import ContractFilter
from pactflow.routers.actor import Actor, get_actor
from pactflow.schemas.kpi import (
    ExpiringContract,
    KPIResponse,
    LegalKPI,
    ProcurementKPI,
    RiskDistribution,
    WeeklyExpiryResponse,
)
from pactflow.services.kpi_service import KPIService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboards"])


def get_kpi_service() -> KPIService:
    # Placeholder: overridden in main.py with real DB session injection
    raise NotImplementedError("Dependency override not configured")


def _unavailable(e: AggregationSourceUnavailable) -> HTTPException:
    return HTTPException(status_code=503, detail={"kind": e.kind, "message": str(e)})


@router.get("/kpi", response_model=KPIResponse)
async def get_kpi(
    response: Response,
    q: str | None = Query(None, max_length=200),
    company_id: uuid.UUID | None = Query(None),
    actor: Actor = Depends(get_actor),
    service: KPIService = Depends(get_kpi_service),
):
    """Management KPI snapshot. ``state`` is ready, empty or failed."""
    result = await service.load_snapshot(ContractFilter(search=q, company_id=company_id))
    if not result.ok:
        logger.error(f"KPI request failed: {result.error}")
        response.status_code = 503
    return result.to_response()


@router.get("/expiring", response_model=list[ExpiringContract])
async def get_expiring(
    within_days: int = Query(90, ge=0, le=3650),
    company_id: uuid.UUID | None = Query(None),
    actor: Actor = Depends(get_actor),
    service: KPIService = Depends(get_kpi_service),
):
    """Contracts ending within the window, soonest first, classified with card-badge thresholds."""
    try:
        return await service.expiring(within_days, ContractFilter(company_id=company_id))
    except AggregationSourceUnavailable as e:
        raise _unavailable(e)


@router.get("/expiring/weekly", response_model=WeeklyExpiryResponse)
async def get_weekly_expiry(
    weeks: int = Query(13, ge=1, le=104),
    company_id: uuid.UUID | None = Query(None),
    actor: Actor = Depends(get_actor),
    service: KPIService = Depends(get_kpi_service),
):
    try:
        counts = await service.weekly_expiry(weeks, ContractFilter(company_id=company_id))
    except AggregationSourceUnavailable as e:
        raise _unavailable(e)
    return WeeklyExpiryResponse(week_counts=counts)


@router.get("/legal", response_model=LegalKPI)
async def get_legal_kpi(
    company_id: uuid.UUID | None = Query(None),
    actor: Actor = Depends(get_actor),
    service: KPIService = Depends(get_kpi_service),
):
    try:
        return await service.legal_kpi(ContractFilter(company_id=company_id))
    except AggregationSourceUnavailable as e:
        raise _unavailable(e)


@router.get("/procurement", response_model=ProcurementKPI)
async def get_procurement_kpi(
    company_id: uuid.UUID | None = Query(None),
    actor: Actor = Depends(get_actor),
    service: KPIService = Depends(get_kpi_service),
):
    try:
        return await service.procurement_kpi(ContractFilter(company_id=company_id))
    except AggregationSourceUnavailable as e:
        raise _unavailable(e)


@router.get("/risk", response_model=RiskDistribution)
async def get_risk_distribution(
    risk: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    company_id: uuid.UUID | None = Query(None),
    actor: Actor = Depends(get_actor),
    service: KPIService = Depends(get_kpi_service),
):
    """Risk center counts. ``All`` or an omitted filter means no filtering."""
    risk = None if not risk or risk == "All" else risk
    if not status_filter or status_filter == "All":
        status_filter = None
    else:
        try:
            status_filter = ContractStatus.parse(status_filter).value
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    try:
        return await service.risk_distribution(
            ContractFilter(risk=risk, status=status_filter, company_id=company_id)
        )
    except AggregationSourceUnavailable as e:
        raise _unavailable(e)
