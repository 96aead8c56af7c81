import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from kpi_dashboard.models.period import Period
from kpi_dashboard.models.records import RecordSet
from kpi_dashboard.schemas.dashboard import DashboardPayload
from kpi_dashboard.services.analytics import aggregate, apply_summary, build_degraded_payload
from kpi_dashboard.services.crm import CrmClient
from kpi_dashboard.services.errors import SourceUnavailable, SummaryUnavailable, TotalFailure
from kpi_dashboard.services.mock import build_mock_payload
from kpi_dashboard.services.normalize import (
    SummarySnapshot,
    normalize_activity,
    normalize_attachment,
    normalize_contact,
    normalize_estimate,
    normalize_job,
    normalize_many,
    normalize_summary,
    normalize_task,
)
from kpi_dashboard.services.periods import DEFAULT_YEAR_ANCHOR, resolve_range
from kpi_dashboard.services.randomness import Jitter

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 3.0

# RecordSet field -> (client method, normalizer)
_SOURCES: dict[str, tuple[str, Callable[[dict[str, Any], int], Any]]] = {
    "contacts": ("fetch_contacts", normalize_contact),
    "jobs": ("fetch_jobs", normalize_job),
    "tasks": ("fetch_tasks", normalize_task),
    "estimates": ("fetch_estimates", normalize_estimate),
    "activities": ("fetch_activities", normalize_activity),
    "attachments": ("fetch_attachments", normalize_attachment),
}

RetryCallback = Callable[[DashboardPayload], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DashboardOrchestrator:
    """Fetches one office's CRM data and turns it into a dashboard payload.

    Never raises for CRM trouble: every call returns a payload whose
    ``source`` says how much real data went into it (summary, live,
    degraded or mock).
    """

    def __init__(
        self,
        client_for: Callable[[str], CrmClient],
        *,
        page_size: int = 50,
        summary_enabled: bool = True,
        year_anchor: int = DEFAULT_YEAR_ANCHOR,
        retry_delay: float = RETRY_DELAY_SECONDS,
        seed: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._client_for = client_for
        self.page_size = page_size
        self.summary_enabled = summary_enabled
        self.year_anchor = year_anchor
        self.retry_delay = retry_delay
        self.seed = seed
        self._clock = clock
        self._retries: set[asyncio.Task] = set()

    async def get_dashboard(
        self,
        office: str,
        period: Period,
        on_retry: RetryCallback | None = None,
    ) -> DashboardPayload:
        try:
            return await self._build(office, period)
        except TotalFailure as exc:
            logger.error("%s; serving illustrative data", exc)
            self._schedule_retry(office, period, on_retry)
            return self._mock(office, period)
        except Exception:
            logger.exception(
                "Office %s %s dashboard could not be aggregated; serving illustrative data",
                office,
                period.value,
            )
            return self._mock(office, period)

    def _mock(self, office: str, period: Period) -> DashboardPayload:
        now = self._clock()
        return build_mock_payload(office, period, resolve_range(period, now, self.year_anchor), now)

    async def _fetch(self, client: CrmClient, method: str, *args: Any) -> Any:
        return await asyncio.to_thread(getattr(client, method), *args)

    async def _build(self, office: str, period: Period) -> DashboardPayload:
        client = self._client_for(office)
        now = self._clock()

        calls = [self._fetch(client, method, 1, self.page_size) for method, _ in _SOURCES.values()]
        if self.summary_enabled:
            calls.append(self._fetch(client, "fetch_dashboard_summary"))
        results = await asyncio.gather(*calls, return_exceptions=True)

        collected: dict[str, list[Any]] = {}
        unavailable: list[str] = []
        for (name, (_, normalizer)), result in zip(_SOURCES.items(), results):
            try:
                collected[name] = self._records(name, result, normalizer)
            except SourceUnavailable as exc:
                logger.warning("Office %s: %s (%s)", office, exc, exc.cause)
                unavailable.append(exc.resource)
                collected[name] = []
        records = RecordSet(**collected)

        snapshot: SummarySnapshot | None = None
        if self.summary_enabled:
            try:
                snapshot = self._summary(results[-1], now)
            except SummaryUnavailable as exc:
                logger.info("Office %s: summary unavailable, aggregating locally (%s)", office, exc)

        if snapshot is None and len(unavailable) == len(_SOURCES):
            raise TotalFailure(office)

        rng = Jitter(self.seed)
        if snapshot is not None:
            local = aggregate(records, period, now, rng, office=office, year_anchor=self.year_anchor)
            payload = apply_summary(local, snapshot)
        elif not unavailable:
            payload = aggregate(records, period, now, rng, office=office, year_anchor=self.year_anchor)
        else:
            payload = build_degraded_payload(records, period, now, office=office, year_anchor=self.year_anchor)

        logger.info(
            "Office %s %s dashboard built from %s data (%s records)",
            office,
            period.value,
            payload.source.value,
            records.total_records,
        )
        return payload.model_copy(update={"unavailable_sources": unavailable})

    def _records(self, name: str, result: Any, normalizer: Callable[[dict[str, Any], int], Any]) -> list[Any]:
        if isinstance(result, BaseException):
            raise SourceUnavailable(name, result)
        try:
            return normalize_many(result, normalizer)
        except (TypeError, ValueError, AttributeError) as exc:
            raise SourceUnavailable(name, exc) from exc

    def _summary(self, result: Any, now: datetime) -> SummarySnapshot:
        if isinstance(result, BaseException):
            raise SummaryUnavailable(str(result)) from result
        try:
            snapshot = normalize_summary(result, now)
        except (TypeError, ValueError) as exc:
            raise SummaryUnavailable(str(exc)) from exc
        if not snapshot.kpis:
            raise SummaryUnavailable("summary carries no KPIs")
        return snapshot

    def _schedule_retry(self, office: str, period: Period, on_retry: RetryCallback | None) -> None:
        task = asyncio.get_running_loop().create_task(self._retry(office, period, on_retry))
        self._retries.add(task)
        task.add_done_callback(self._retries.discard)

    async def _retry(self, office: str, period: Period, on_retry: RetryCallback | None) -> DashboardPayload | None:
        await asyncio.sleep(self.retry_delay)
        try:
            payload = await self._build(office, period)
        except TotalFailure:
            logger.error("Retry for office %s %s failed; keeping illustrative data", office, period.value)
            return None
        except Exception:
            logger.exception("Retry for office %s %s could not be aggregated", office, period.value)
            return None
        logger.info("Retry for office %s %s succeeded with %s data", office, period.value, payload.source.value)
        if on_retry is not None:
            try:
                on_retry(payload)
            except Exception:
                logger.exception("Retry callback for office %s %s failed", office, period.value)
        return payload

    async def drain(self) -> None:
        """Wait for scheduled retries to finish."""
        if self._retries:
            await asyncio.gather(*list(self._retries), return_exceptions=True)
