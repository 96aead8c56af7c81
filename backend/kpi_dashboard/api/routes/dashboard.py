from fastapi import APIRouter, Depends, Query, Request

from kpi_dashboard.core.config import OfficeSettings, get_settings
from kpi_dashboard.core.deps import get_cache, get_office, get_orchestrator
from kpi_dashboard.core.rate_limit import limiter
from kpi_dashboard.models.period import Period
from kpi_dashboard.schemas.dashboard import DashboardPayload
from kpi_dashboard.services.cache import DashboardCache
from kpi_dashboard.services.orchestrator import DashboardOrchestrator

settings = get_settings()

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/{office_id}", response_model=DashboardPayload)
@limiter.limit(settings.DASHBOARD_RATE_LIMIT)
async def office_dashboard(
    request: Request,
    period: Period = Query(default=Period.current_month),
    office: OfficeSettings = Depends(get_office),
    orchestrator: DashboardOrchestrator = Depends(get_orchestrator),
    cache: DashboardCache = Depends(get_cache),
):
    cached = cache.get(office.id, period)
    if cached is not None:
        return cached
    payload = await orchestrator.get_dashboard(office.id, period, on_retry=cache.put)
    cache.put(payload)
    return payload
