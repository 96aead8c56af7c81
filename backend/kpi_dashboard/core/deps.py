from functools import lru_cache
from typing import Callable

from fastapi import Depends, HTTPException, status

from kpi_dashboard.core.config import OfficeSettings, Settings, get_settings
from kpi_dashboard.services.cache import DashboardCache
from kpi_dashboard.services.crm import CrmClient, HttpCrmClient
from kpi_dashboard.services.orchestrator import DashboardOrchestrator


def get_office(office_id: str, settings: Settings = Depends(get_settings)) -> OfficeSettings:
    office = settings.office(office_id)
    if office is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown office: {office_id}")
    return office


def crm_client_factory(settings: Settings) -> Callable[[str], CrmClient]:
    clients: dict[str, HttpCrmClient] = {}

    def client_for(office_id: str) -> CrmClient:
        if office_id not in clients:
            office = settings.office(office_id)
            if office is None:
                raise KeyError(office_id)
            clients[office_id] = HttpCrmClient(
                base_url=office.base_url or settings.CRM_BASE_URL,
                api_key=office.api_key,
                office_id=office.id,
                timeout=settings.CRM_TIMEOUT_SECONDS,
            )
        return clients[office_id]

    return client_for


@lru_cache
def get_orchestrator() -> DashboardOrchestrator:
    settings = get_settings()
    return DashboardOrchestrator(
        crm_client_factory(settings),
        page_size=settings.FETCH_PAGE_SIZE,
        summary_enabled=settings.CRM_SUMMARY_ENABLED,
        year_anchor=settings.CURRENT_YEAR_ANCHOR,
        retry_delay=settings.RETRY_DELAY_SECONDS,
        seed=settings.ANALYTICS_SEED,
    )


@lru_cache
def get_cache() -> DashboardCache:
    return DashboardCache(ttl_seconds=get_settings().CACHE_TTL_SECONDS)
