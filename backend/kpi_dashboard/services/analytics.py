from dataclasses import dataclass
from datetime import datetime
import math

from kpi_dashboard.models.period import CHANGE_MULTIPLIER, DEFAULT_CHANGE_MULTIPLIER, DateRange, Period
from kpi_dashboard.models.records import Activity, Contact, Job, RecordSet, Task
from kpi_dashboard.schemas.dashboard import (
    KPI,
    ActivityItem,
    ContactOut,
    DashboardCharts,
    DashboardPayload,
    DashboardSummary,
    DataSource,
    DateRangeOut,
    FlowPoint,
    JobOut,
    PerformanceMetrics,
    RecordDetails,
    TaskOut,
    TeamMember,
    empty_kpis,
)
from kpi_dashboard.services.alerts import generate_alerts, generate_insights
from kpi_dashboard.services.classifier import classify_job, classify_task, split_jobs, split_tasks
from kpi_dashboard.services.normalize import SummarySnapshot
from kpi_dashboard.services.periods import DEFAULT_YEAR_ANCHOR, as_aware, filter_by_range, resolve_range
from kpi_dashboard.services.randomness import Jitter
from kpi_dashboard.services.revenue import synthesize_flow
from kpi_dashboard.services.status import distribute_by_status
from kpi_dashboard.services.team import analyze_team, resolve_assignee
from kpi_dashboard.services.trends import DEFAULT_JOB_REVENUE, build_trends

# Placeholder headcount for revenue-per-employee; the CRM has no payroll data.
ASSUMED_EMPLOYEES = 5
RECENT_ACTIVITY_LIMIT = 4

# Productivity shown when there are no tasks to measure.
PRODUCTIVITY_WITH_JOBS = 75.0
PRODUCTIVITY_NO_DATA = 65.0
DEGRADED_PRODUCTIVITY = KPI(value=68, change_percent=2.3)

DEGRADED_NOTICE = "Live analytics are unavailable; showing the records that could be loaded."


@dataclass(frozen=True)
class PeriodCounts:
    contacts: int = 0
    jobs: int = 0
    tasks: int = 0
    estimates: int = 0
    activities: int = 0
    attachments: int = 0
    active_jobs: int = 0
    completed_jobs: int = 0
    pending_tasks: int = 0
    completed_tasks: int = 0


@dataclass(frozen=True)
class Rates:
    completion: float
    task: float
    conversion: float
    engagement: float
    tasks_per_job: float
    attachments_per_job: float
    utilization: float


def _round1(value: float) -> float:
    return round(value * 10) / 10


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def compute_rates(c: PeriodCounts) -> Rates:
    completion = c.completed_jobs / max(c.jobs, 1) * 100 if c.jobs else 0.0
    if c.tasks:
        task = c.completed_tasks / c.tasks * 100
    elif c.jobs:
        task = PRODUCTIVITY_WITH_JOBS
    else:
        task = PRODUCTIVITY_NO_DATA
    conversion = c.jobs / max(c.contacts, 1) * 100 if c.contacts else 0.0
    engagement = c.activities / max(c.contacts, 1) if c.activities else 0.0
    return Rates(
        completion=completion,
        task=task,
        conversion=conversion,
        engagement=engagement,
        tasks_per_job=c.tasks / max(c.jobs, 1) if c.jobs else 0.0,
        attachments_per_job=c.attachments / max(c.jobs, 1) if c.jobs else 0.0,
        utilization=(c.contacts + c.jobs + c.tasks + c.estimates) / 4,
    )


def _change_vs_previous(current: int, baseline: int, multiplier: float) -> float:
    if current <= 0:
        return 0.0
    previous = max(round(baseline * multiplier), 1)
    return _round1((current - previous) / previous * 100)


def build_kpis(c: PeriodCounts, r: Rates, period: Period) -> dict[str, KPI]:
    multiplier = CHANGE_MULTIPLIER.get(period, DEFAULT_CHANGE_MULTIPLIER)
    revenue = c.completed_jobs * DEFAULT_JOB_REVENUE

    kpis = {
        "total_contacts": KPI(value=c.contacts, change_percent=_change_vs_previous(c.contacts, c.contacts, multiplier)),
        "active_jobs": KPI(value=c.active_jobs, change_percent=_change_vs_previous(c.active_jobs, c.jobs, multiplier)),
        "pending_tasks": KPI(value=c.pending_tasks, change_percent=-5.2 if c.pending_tasks > 0 else 0),
        "monthly_revenue": KPI(value=revenue, change_percent=18.7 if c.completed_jobs > 5 else 8.3),
        "conversion_rate": KPI(value=min(_round1(r.conversion), 100), change_percent=12.5 if r.conversion > 10 else 3.2),
        "team_productivity": KPI(
            value=_round1(r.task),
            change_percent=8.7 if r.task > 70 else 4.1 if r.task > 0 else 0,
        ),
        # Illustrative placeholders built from fixed constants.
        "customer_lifetime_value": KPI(value=round(revenue / max(c.contacts, 1)), change_percent=14.2),
        "project_completion_rate": KPI(value=_round1(r.completion), change_percent=5.1 if r.completion > 80 else 2.3),
        "revenue_per_employee": KPI(value=round(revenue / ASSUMED_EMPLOYEES), change_percent=16.3),
        "customer_retention_rate": KPI(value=_round1(min(r.engagement * 20, 100)), change_percent=7.2),
        "average_project_duration": KPI(value=_round1(r.tasks_per_job * 2.5), change_percent=-12.4),
        "profit_margin": KPI(value=_round1(min(r.completion * 0.4, 45)), change_percent=9.8),
    }
    for kpi in kpis.values():
        kpi.value = max(_finite(kpi.value), 0)
    return kpis


def build_performance(r: Rates) -> PerformanceMetrics:
    return PerformanceMetrics(
        response_speed=round(max(2.1, 6 - r.engagement * 0.5), 2),
        customer_satisfaction=round(min(4.2 + r.completion * 0.03, 5.0), 2),
        operational_efficiency=_round1(r.task),
        burnout_index=_round1(max(15, 40 - r.task * 0.3)),
        average_profitability=_round1(min(r.completion * 0.4, 45)),
        predictive_score=_round1(min(70 + r.conversion * 2, 95)),
    )


def business_health(completion_rate: float) -> str:
    if completion_rate > 80:
        return "excellent"
    if completion_rate > 60:
        return "good"
    return "needs attention"


def recent_activity(activities: list[Activity], now: datetime, rng: Jitter) -> list[ActivityItem]:
    items: list[ActivityItem] = []
    for index, activity in enumerate(activities[:RECENT_ACTIVITY_LIMIT]):
        snippet = activity.note[:50] or "No description"
        items.append(
            ActivityItem(
                id=activity.id or str(index),
                type=activity.activity_type or "activity",
                title=activity.note or "Activity recorded",
                description=f"{snippet}... - CRM ID: {activity.id}",
                timestamp=activity.created_at or now,
                user=activity.rep_name or "System",
                status="Active",
                revenue_impact=rng.up_to(10000),
            )
        )
    return items


def record_details(contacts: list[Contact], jobs: list[Job], tasks: list[Task]) -> RecordDetails:
    task_rows = []
    for task in tasks:
        state = classify_task(task)
        task_rows.append(
            TaskOut(
                id=task.id,
                display_name=task.display_name,
                assignee=resolve_assignee(task),
                completed=state.completed,
                pending=state.pending,
                created_at=task.created_at,
            )
        )
    return RecordDetails(
        contacts=[
            ContactOut(id=c.id, name=c.full_name, email=c.email, is_customer=c.is_customer, created_at=c.created_at)
            for c in contacts
        ],
        jobs=[
            JobOut(
                id=j.id,
                display_name=j.display_name,
                customer=j.customer,
                status_name=j.status_name or j.status,
                category=classify_job(j).category,
                last_estimate=j.last_estimate,
                created_at=j.created_at,
            )
            for j in jobs
        ],
        tasks=task_rows,
    )


def _range_out(date_range: DateRange) -> DateRangeOut:
    return DateRangeOut(start=date_range.start, end=date_range.end, label=date_range.label)


def aggregate(
    records: RecordSet,
    period: Period,
    now: datetime,
    rng: Jitter,
    office: str = "",
    year_anchor: int = DEFAULT_YEAR_ANCHOR,
) -> DashboardPayload:
    """Build the full dashboard from one snapshot of CRM records.

    Contacts, jobs and tasks are scoped to the period's date range; the
    count-only collections (estimates, activities, attachments) are used as
    fetched. Trends look at every job because they carry their own window.
    """
    now = as_aware(now)
    date_range = resolve_range(period, now, year_anchor)

    contacts = filter_by_range(records.contacts, date_range)
    jobs = filter_by_range(records.jobs, date_range)
    tasks = filter_by_range(records.tasks, date_range)

    active_jobs, completed_jobs = split_jobs(jobs)
    pending_tasks, completed_tasks = split_tasks(tasks)

    counts = PeriodCounts(
        contacts=len(contacts),
        jobs=len(jobs),
        tasks=len(tasks),
        estimates=len(records.estimates),
        activities=len(records.activities),
        attachments=len(records.attachments),
        active_jobs=len(active_jobs),
        completed_jobs=len(completed_jobs),
        pending_tasks=len(pending_tasks),
        completed_tasks=len(completed_tasks),
    )
    rates = compute_rates(counts)

    charts = DashboardCharts(
        monthly_trends=build_trends(records.jobs, period, now, rng),
        job_status=distribute_by_status(jobs),
        team_performance=analyze_team(tasks, rng),
        revenue_flow=synthesize_flow(completed_jobs, period, now, rng),
    )
    insights = generate_insights(rates.completion, rates.conversion, rates.task, rates.engagement)

    return DashboardPayload(
        office=office,
        period=period,
        range=_range_out(date_range),
        source=DataSource.live,
        kpis=build_kpis(counts, rates, period),
        charts=charts,
        recent_activity=recent_activity(records.activities, now, rng),
        alerts=generate_alerts(counts.contacts, counts.active_jobs, counts.pending_tasks, counts.completed_jobs),
        insights=insights,
        performance=build_performance(rates),
        summary=DashboardSummary(
            total_records=records.total_records,
            insights=12 + math.floor(rates.utilization / 100),
            business_health=business_health(rates.completion),
        ),
        details=record_details(contacts, jobs, tasks),
        generated_at=now,
    )


def _flow_from_trends(snapshot: SummarySnapshot) -> list[FlowPoint]:
    return [
        FlowPoint(
            label=f"S{index + 1}",
            income=trend.revenue,
            expense=round(trend.revenue * 0.7, 2),
            profit=round(trend.revenue * 0.3, 2),
        )
        for index, trend in enumerate(snapshot.trends[-4:])
    ]


def apply_summary(local: DashboardPayload, snapshot: SummarySnapshot) -> DashboardPayload:
    """Overlay the CRM's pre-aggregated numbers on a locally built payload.

    Summary values win wherever the summary has them; local aggregation
    fills in everything else.
    """
    kpis = dict(local.kpis)
    kpis.update(snapshot.kpis)

    team = local.charts.team_performance
    if not team:
        team = [
            TeamMember(
                member="Office Team",
                tasks=snapshot.total_jobs,
                completed=round(kpis["active_jobs"].value),
                efficiency=kpis["team_productivity"].value,
            )
        ]

    charts = DashboardCharts(
        monthly_trends=snapshot.trends or local.charts.monthly_trends,
        job_status=snapshot.job_status or local.charts.job_status,
        team_performance=team,
        revenue_flow=_flow_from_trends(snapshot) or local.charts.revenue_flow,
    )
    return local.model_copy(
        update={
            "source": DataSource.summary,
            "kpis": kpis,
            "charts": charts,
            "recent_activity": snapshot.recent_activity or local.recent_activity,
            "alerts": snapshot.alerts or local.alerts,
        }
    )


def build_degraded_payload(
    records: RecordSet,
    period: Period,
    now: datetime,
    office: str = "",
    year_anchor: int = DEFAULT_YEAR_ANCHOR,
) -> DashboardPayload:
    now = as_aware(now)
    date_range = resolve_range(period, now, year_anchor)
    kpis = empty_kpis()
    kpis["team_productivity"] = DEGRADED_PRODUCTIVITY.model_copy()
    return DashboardPayload(
        office=office,
        period=period,
        range=_range_out(date_range),
        source=DataSource.degraded,
        notice=DEGRADED_NOTICE,
        kpis=kpis,
        details=record_details(records.contacts, records.jobs, records.tasks),
        generated_at=now,
    )
