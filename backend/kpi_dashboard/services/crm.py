import logging
from typing import Any, Protocol

import requests

from kpi_dashboard.services.errors import CrmError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15


class CrmClient(Protocol):
    def fetch_contacts(self, page: int = 1, page_size: int = 50) -> Any: ...

    def fetch_jobs(self, page: int = 1, page_size: int = 50) -> Any: ...

    def fetch_tasks(self, page: int = 1, page_size: int = 50) -> Any: ...

    def fetch_estimates(self, page: int = 1, page_size: int = 50) -> Any: ...

    def fetch_activities(self, page: int = 1, page_size: int = 50) -> Any: ...

    def fetch_attachments(self, page: int = 1, page_size: int = 50) -> Any: ...

    def fetch_dashboard_summary(self) -> Any: ...


class HttpCrmClient:
    """JobNimbus-style REST client scoped to one office.

    Calls are synchronous; the orchestrator runs them in worker threads.
    """

    def __init__(self, base_url: str, api_key: str, office_id: str, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.office_id = office_id
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "X-LOCATION": office_id,
                "Accept": "application/json",
            }
        )

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            res = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CrmError(f"{path}: {exc}") from exc

        if not (200 <= res.status_code < 300):
            raise CrmError(f"{path}: HTTP {res.status_code}: {res.text[:200]}", status_code=res.status_code)
        try:
            return res.json()
        except ValueError as exc:
            raise CrmError(f"{path}: response is not JSON") from exc

    def _page(self, resource: str, page: int, page_size: int) -> Any:
        logger.debug("Fetching %s page %s for office %s", resource, page, self.office_id)
        return self._get(resource, params={"from": (max(page, 1) - 1) * page_size, "size": page_size})

    def fetch_contacts(self, page: int = 1, page_size: int = 50) -> Any:
        return self._page("contacts", page, page_size)

    def fetch_jobs(self, page: int = 1, page_size: int = 50) -> Any:
        return self._page("jobs", page, page_size)

    def fetch_tasks(self, page: int = 1, page_size: int = 50) -> Any:
        return self._page("tasks", page, page_size)

    def fetch_estimates(self, page: int = 1, page_size: int = 50) -> Any:
        return self._page("estimates", page, page_size)

    def fetch_activities(self, page: int = 1, page_size: int = 50) -> Any:
        return self._page("activities", page, page_size)

    def fetch_attachments(self, page: int = 1, page_size: int = 50) -> Any:
        return self._page("files", page, page_size)

    def fetch_dashboard_summary(self) -> Any:
        return self._get("dashboard/summary")
