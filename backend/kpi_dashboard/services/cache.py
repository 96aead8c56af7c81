import threading
import time
from typing import Callable

from kpi_dashboard.models.period import Period
from kpi_dashboard.schemas.dashboard import DashboardPayload, DataSource

CACHEABLE_SOURCES = frozenset({DataSource.summary, DataSource.live})


class DashboardCache:
    """Small in-process TTL cache of dashboard payloads keyed by (office, period).

    Only payloads built from real CRM data are stored.
    """

    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, Period], tuple[float, DashboardPayload]] = {}
        self._lock = threading.Lock()

    def get(self, office: str, period: Period) -> DashboardPayload | None:
        key = (office, period)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, payload = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                return None
            return payload

    def put(self, payload: DashboardPayload) -> bool:
        if self.ttl_seconds <= 0 or payload.source not in CACHEABLE_SOURCES:
            return False
        with self._lock:
            self._entries[(payload.office, payload.period)] = (self._clock(), payload)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
