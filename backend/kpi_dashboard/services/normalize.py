"""Ingestion boundary: CRM payloads -> internal record shapes.

The CRM (and the proxy in front of it) is loose about field names and
envelopes, so every alias is resolved here once. Nothing downstream looks at
raw dictionaries.
"""

from dataclasses import dataclass, field
import math
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from kpi_dashboard.models.records import Activity, Attachment, Contact, Estimate, Job, Task
from kpi_dashboard.schemas.dashboard import KPI, ActivityItem, Alert, StatusSlice, Trend
from kpi_dashboard.services.taxonomy import classify
from kpi_dashboard.services.trends import DEFAULT_JOB_REVENUE

T = TypeVar("T")

_ENVELOPE_KEYS = ("results", "data", "items", "estimates", "files", "activities")

# Pre-aggregated summary KPI names -> dashboard KPI keys.
_SUMMARY_KPI_ALIASES: dict[str, tuple[str, ...]] = {
    "total_contacts": ("totalContacts", "total_contacts"),
    "active_jobs": ("activeJobs", "active_jobs"),
    "pending_tasks": ("pendingTasks", "pending_tasks"),
    "monthly_revenue": ("periodRevenue", "monthlyRevenue", "monthly_revenue"),
    "conversion_rate": ("conversionRate", "conversion_rate"),
    "team_productivity": ("teamProductivity", "team_productivity"),
}
_PERCENT_KPIS = frozenset({"conversion_rate", "team_productivity"})


def _first(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return default


def _text(raw: dict[str, Any], *keys: str, default: str = "") -> str:
    value = _first(raw, *keys)
    return str(value) if value is not None else default


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _amount(value: Any) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        amount = float(str(value).replace(",", ""))
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def parse_timestamp(value: Any) -> datetime | None:
    """Seconds (or milliseconds) since epoch, or an ISO-8601 string."""
    if value in (None, "") or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        try:
            value = float(text)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        seconds = float(value)
        if seconds > 1e11:
            seconds /= 1000
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def extract_items(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = []
        for key in _ENVELOPE_KEYS:
            if isinstance(data.get(key), list):
                items = data[key]
                break
    else:
        items = []
    return [item for item in items if isinstance(item, dict)]


def _record_id(raw: dict[str, Any], prefix: str, index: int) -> str:
    return _text(raw, "jnid", "id", default=f"{prefix}_{index}")


def _first_name_of(value: Any) -> str:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        return _text(value, "name", "display_name", "id")
    return str(value) if value not in (None, "") else ""


def normalize_contact(raw: dict[str, Any], index: int = 0) -> Contact:
    record_type = _text(raw, "record_type_name", default="Customer").lower()
    return Contact(
        id=_record_id(raw, "contact", index),
        first_name=_text(raw, "first_name", "firstName"),
        last_name=_text(raw, "last_name", "lastName"),
        email=_first_name_of(_first(raw, "email", "primary_email")) or None,
        is_customer=record_type == "customer" and not _flag(raw.get("is_lead")),
        created_at=parse_timestamp(_first(raw, "date_created", "created_date")),
    )


def normalize_job(raw: dict[str, Any], index: int = 0) -> Job:
    number = _text(raw, "number", "recid")
    return Job(
        id=_record_id(raw, "job", index),
        display_name=_text(raw, "display_name", "name", "title", default=f"Job #{number or index}"),
        customer=_first_name_of(raw.get("primary")) or _text(raw, "customer_name", "contact_name", "customer"),
        status=_text(raw, "status"),
        status_name=_text(raw, "status_name"),
        is_active=_flag(raw.get("is_active")),
        is_closed=_flag(raw.get("is_closed")),
        is_archived=_flag(raw.get("is_archived")),
        created_at=parse_timestamp(raw.get("date_created")),
        last_estimate=_amount(raw.get("last_estimate")),
    )


def normalize_task(raw: dict[str, Any], index: int = 0) -> Task:
    return Task(
        id=_record_id(raw, "task", index),
        display_name=_text(raw, "display_name", "name", "title", "subject"),
        created_by_name=_text(raw, "created_by_name"),
        assigned_to=_first_name_of(_first(raw, "assigned_to", "assigned_name", "assigned_user")),
        owner_name=_first_name_of(raw.get("owners")),
        sales_rep_name=_text(raw, "sales_rep_name"),
        is_completed=_flag(raw.get("is_completed")) or _flag(raw.get("completed")),
        status=_text(raw, "status"),
        is_active=_flag(raw.get("is_active")),
        is_archived=_flag(raw.get("is_archived")),
        created_at=parse_timestamp(raw.get("date_created")),
    )


def normalize_estimate(raw: dict[str, Any], index: int = 0) -> Estimate:
    return Estimate(id=_record_id(raw, "estimate", index), created_at=parse_timestamp(raw.get("date_created")))


def normalize_activity(raw: dict[str, Any], index: int = 0) -> Activity:
    return Activity(
        id=_record_id(raw, "activity", index),
        note=_text(raw, "note", "description", "subject"),
        activity_type=_text(raw, "activity_type", "type", "record_type_name"),
        rep_name=_text(raw, "rep_name", "created_by_name", "assigned_name"),
        created_at=parse_timestamp(_first(raw, "date_created", "date")),
    )


def normalize_attachment(raw: dict[str, Any], index: int = 0) -> Attachment:
    return Attachment(id=_record_id(raw, "file", index), created_at=parse_timestamp(raw.get("date_created")))


def normalize_many(data: Any, normalizer: Callable[[dict[str, Any], int], T]) -> list[T]:
    return [normalizer(raw, index) for index, raw in enumerate(extract_items(data))]


@dataclass
class SummarySnapshot:
    """Pre-aggregated numbers served by the CRM proxy's summary endpoint."""

    period: str = ""
    kpis: dict[str, KPI] = field(default_factory=dict)
    trends: list[Trend] = field(default_factory=list)
    job_status: list[StatusSlice] = field(default_factory=list)
    recent_activity: list[ActivityItem] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)
    total_contacts: int = 0
    total_jobs: int = 0


def _summary_kpi(raw: Any) -> KPI | None:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = _amount(raw)
        return KPI(value=max(value, 0)) if value is not None else None
    if not isinstance(raw, dict):
        return None
    value = _amount(raw.get("value"))
    if value is None:
        return None
    change = _amount(_first(raw, "change", "changePercent", "change_percent")) or 0
    return KPI(value=max(value, 0), change_percent=change)


def normalize_summary(raw: dict[str, Any], now: datetime) -> SummarySnapshot:
    if not isinstance(raw, dict):
        raise ValueError("dashboard summary must be an object")

    raw_kpis = raw.get("kpis") if isinstance(raw.get("kpis"), dict) else {}
    kpis: dict[str, KPI] = {}
    for key, aliases in _SUMMARY_KPI_ALIASES.items():
        for alias in aliases:
            kpi = _summary_kpi(raw_kpis.get(alias))
            if kpi is not None:
                if key in _PERCENT_KPIS:
                    kpi.value = min(kpi.value, 100)
                kpis[key] = kpi
                break

    charts = raw.get("charts") if isinstance(raw.get("charts"), dict) else {}
    trends = [
        Trend(
            month=_text(t, "month"),
            contacts=round(_amount(t.get("contacts")) or 0),
            jobs=round(_amount(t.get("jobs")) or 0),
            revenue=_amount(t.get("revenue")) or 0,
            satisfaction=_amount(t.get("satisfaction")) or 0,
            efficiency=round(_amount(t.get("efficiency")) or 0),
        )
        for t in extract_items(charts.get("monthlyTrends"))
    ]
    job_status = []
    for s in extract_items(charts.get("jobStatus")):
        name = _text(s, "name", default="No Status")
        count = round(_amount(s.get("value")) or 0)
        job_status.append(
            StatusSlice(
                name=name,
                value=count,
                color=_text(s, "color") or classify(name).color,
                revenue=_amount(s.get("revenue")) or count * DEFAULT_JOB_REVENUE,
            )
        )

    recent = [
        ActivityItem(
            id=_text(a, "id", "jnid", default=str(index)),
            type=_text(a, "type", default="activity"),
            title=_text(a, "title", default="Activity recorded"),
            description=_text(a, "description"),
            timestamp=parse_timestamp(a.get("timestamp")) or now,
            user=_text(a, "user", default="System"),
            status=_text(a, "status", default="Active"),
        )
        for index, a in enumerate(extract_items(raw.get("recentActivity")))
    ]
    alerts = [
        Alert(
            kind=_text(a, "kind", default="summary"),
            type=_text(a, "type", default="info"),
            urgency=_text(a, "urgency", default="medium"),
            message=_text(a, "message"),
            action=_text(a, "action"),
        )
        for a in extract_items(raw.get("alerts"))
    ]

    summary = raw.get("summary") if isinstance(raw.get("summary"), dict) else {}
    return SummarySnapshot(
        period=_text(raw, "period"),
        kpis=kpis,
        trends=trends,
        job_status=job_status,
        recent_activity=recent,
        alerts=alerts,
        total_contacts=round(_amount(summary.get("total_contacts")) or 0),
        total_jobs=round(_amount(summary.get("total_jobs")) or 0),
    )
