"""Shared fixtures: a fixed clock, record builders and a scriptable CRM fake."""

import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

# Settings are read once and cached; pin them before the app is imported.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault(
    "OFFICES",
    json.dumps(
        [
            {"id": "guilford", "name": "Guilford", "location": "Guilford, CT", "api_key": "test-key-g"},
            {"id": "stamford", "name": "Stamford", "location": "Stamford, CT", "api_key": "test-key-s"},
        ]
    ),
)
os.environ.setdefault("ANALYTICS_SEED", "7")
os.environ.setdefault("RETRY_DELAY_SECONDS", "0")

from kpi_dashboard.models.records import Activity, Contact, Job, Task  # noqa: E402
from kpi_dashboard.services.errors import CrmError  # noqa: E402
from kpi_dashboard.services.randomness import Jitter  # noqa: E402

NOW = datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc)


def make_job(index: int, status_name: str = "In Progress", active: bool = True, **kwargs) -> Job:
    fields = {
        "id": f"job-{index}",
        "display_name": f"Job #{index}",
        "status_name": status_name,
        "is_active": active,
        "created_at": NOW - timedelta(days=1),
    }
    fields.update(kwargs)
    return Job(**fields)


def make_task(index: int, owner: str = "Ana Rodriguez", completed: bool = False, **kwargs) -> Task:
    fields = {
        "id": f"task-{index}",
        "display_name": f"Task {index}",
        "created_by_name": owner,
        "is_completed": completed,
        "is_active": not completed,
        "created_at": NOW - timedelta(days=1),
    }
    fields.update(kwargs)
    return Task(**fields)


def make_contact(index: int, **kwargs) -> Contact:
    fields = {
        "id": f"contact-{index}",
        "first_name": "Pat",
        "last_name": f"Customer{index}",
        "is_customer": True,
        "created_at": NOW - timedelta(days=2),
    }
    fields.update(kwargs)
    return Contact(**fields)


def make_activity(index: int, **kwargs) -> Activity:
    fields = {
        "id": f"activity-{index}",
        "note": f"Called customer about job {index}",
        "activity_type": "call",
        "rep_name": "John Parker",
        "created_at": NOW - timedelta(hours=index),
    }
    fields.update(kwargs)
    return Activity(**fields)


def epoch(moment: datetime) -> int:
    return int(moment.timestamp())


class FakeCrmClient:
    """Returns canned JSON per resource; a resource mapped to an exception raises it."""

    def __init__(self, responses: dict[str, Any] | None = None):
        self.responses = responses or {}
        self.calls: list[tuple[str, tuple]] = []

    def _answer(self, resource: str, *args: Any) -> Any:
        self.calls.append((resource, args))
        answer = self.responses.get(resource, {"results": []})
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def fetch_contacts(self, page: int = 1, page_size: int = 50) -> Any:
        return self._answer("contacts", page, page_size)

    def fetch_jobs(self, page: int = 1, page_size: int = 50) -> Any:
        return self._answer("jobs", page, page_size)

    def fetch_tasks(self, page: int = 1, page_size: int = 50) -> Any:
        return self._answer("tasks", page, page_size)

    def fetch_estimates(self, page: int = 1, page_size: int = 50) -> Any:
        return self._answer("estimates", page, page_size)

    def fetch_activities(self, page: int = 1, page_size: int = 50) -> Any:
        return self._answer("activities", page, page_size)

    def fetch_attachments(self, page: int = 1, page_size: int = 50) -> Any:
        return self._answer("files", page, page_size)

    def fetch_dashboard_summary(self) -> Any:
        return self._answer("summary")


RECORD_RESOURCES = ("contacts", "jobs", "tasks", "estimates", "activities", "files")


def failing_client(*resources: str) -> FakeCrmClient:
    """Every named resource raises; others (and the summary, unless named) answer empty."""
    return FakeCrmClient({name: CrmError(f"{name}: HTTP 503", status_code=503) for name in resources})


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rng() -> Jitter:
    return Jitter(42)
