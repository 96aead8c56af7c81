from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Contact:
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    is_customer: bool = False
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Job:
    id: str
    display_name: str = ""
    customer: str = ""
    status: str = ""
    status_name: str = ""
    is_active: bool = False
    is_closed: bool = False
    is_archived: bool = False
    created_at: datetime | None = None
    last_estimate: float | None = None


@dataclass(frozen=True)
class Task:
    id: str
    display_name: str = ""
    created_by_name: str = ""
    assigned_to: str = ""
    owner_name: str = ""
    sales_rep_name: str = ""
    is_completed: bool = False
    status: str = ""
    is_active: bool = False
    is_archived: bool = False
    created_at: datetime | None = None


@dataclass(frozen=True)
class Estimate:
    id: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class Activity:
    id: str
    note: str = ""
    activity_type: str = ""
    rep_name: str = ""
    created_at: datetime | None = None


@dataclass(frozen=True)
class Attachment:
    id: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class RecordSet:
    """The six CRM collections one aggregation run works on."""

    contacts: list[Contact] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    estimates: list[Estimate] = field(default_factory=list)
    activities: list[Activity] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return (
            len(self.contacts)
            + len(self.jobs)
            + len(self.tasks)
            + len(self.estimates)
            + len(self.activities)
            + len(self.attachments)
        )
