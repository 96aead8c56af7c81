import calendar
from datetime import datetime, timedelta

from kpi_dashboard.models.period import DateRange, Period
from kpi_dashboard.schemas.dashboard import (
    KPI,
    ActivityItem,
    DashboardCharts,
    DashboardPayload,
    DashboardSummary,
    DataSource,
    DateRangeOut,
    FlowPoint,
    PerformanceMetrics,
    StatusSlice,
    TeamMember,
    Trend,
)
from kpi_dashboard.services.alerts import generate_alerts, generate_insights
from kpi_dashboard.services.periods import as_aware, shift_month
from kpi_dashboard.services.taxonomy import classify
from kpi_dashboard.services.trends import DEFAULT_JOB_REVENUE


MOCK_NOTICE = "The CRM could not be reached; showing illustrative data."

PERIOD_MULTIPLIER: dict[Period, float] = {
    Period.current_month: 1.0,
    Period.last_month: 0.95,
    Period.last_quarter: 0.92,
    Period.current_year: 0.88,
    Period.last_year: 0.85,
}

# (base value, change %, scales with period)
_BASE_KPIS: dict[str, tuple[float, float, bool]] = {
    "total_contacts": (1247, 12.5, True),
    "active_jobs": (89, 8.3, True),
    "pending_tasks": (156, -5.2, True),
    "monthly_revenue": (284750, 18.7, True),
    "conversion_rate": (23.4, 3.2, False),
    "team_productivity": (87.5, 4.1, False),
    "customer_lifetime_value": (15420, 14.2, False),
    "project_completion_rate": (94.2, 2.3, False),
    "revenue_per_employee": (47800, 11.4, False),
    "customer_retention_rate": (89.3, 3.7, False),
    "average_project_duration": (18.5, -8.1, False),
    "profit_margin": (31.8, 4.6, False),
}
_BASE_COMPLETED_JOBS = 45
_BASE_ENGAGEMENT = 4.2

_TRENDS = [(98, 15, 45000), (125, 22, 67000), (156, 28, 89000), (189, 35, 125000), (234, 42, 156000), (287, 51, 198000)]
_STATUSES = [("Completed", 45), ("In Progress", 32), ("Pending", 18), ("Cancelled", 5)]
_TEAM = [
    ("John Parker", 23, 21),
    ("Maria Garcia", 19, 18),
    ("Carlos Lopez", 27, 22),
    ("Ana Rodriguez", 31, 28),
    ("Luis Martin", 15, 14),
]
_FLOW = [("S1", 45000, 32000, 13000), ("S2", 52000, 35000, 17000), ("S3", 48000, 31000, 17000), ("S4", 67000, 42000, 25000)]
_ACTIVITY = [
    ("contact", "New customer registered", "Maria Gonzalez - remodeling project", "John Parker", "Active"),
    ("job", "Job completed", "Roof installation - Rodriguez residence", "Carlos Lopez", "Completed"),
    ("task", "Task overdue", "Post-sale follow-up, customer #1234", "Ana Rodriguez", "Overdue"),
    ("activity", "Call scheduled", "Commercial project quote", "Luis Martin", "Scheduled"),
]


def _mock_kpis(multiplier: float) -> dict[str, KPI]:
    kpis: dict[str, KPI] = {}
    for key, (base, change, scales) in _BASE_KPIS.items():
        value = round(base * multiplier) if scales else base
        kpis[key] = KPI(value=value, change_percent=change)
    return kpis


def _mock_charts(now: datetime, multiplier: float) -> DashboardCharts:
    trends = []
    for index, (contacts, jobs, revenue) in enumerate(_TRENDS):
        _, month = shift_month(now.year, now.month, index - len(_TRENDS) + 1)
        trends.append(
            Trend(
                month=calendar.month_abbr[month],
                contacts=round(contacts * multiplier),
                jobs=round(jobs * multiplier),
                revenue=round(revenue * multiplier),
                satisfaction=round(3.8 + index * 0.15, 2),
                efficiency=70 + index * 5,
            )
        )
    return DashboardCharts(
        monthly_trends=trends,
        job_status=[
            StatusSlice(name=name, value=count, color=classify(name).color, revenue=count * DEFAULT_JOB_REVENUE)
            for name, count in _STATUSES
        ],
        team_performance=[
            TeamMember(member=name, tasks=tasks, completed=done, efficiency=round(done / tasks * 100))
            for name, tasks, done in _TEAM
        ],
        revenue_flow=[
            FlowPoint(label=label, income=income, expense=expense, profit=profit)
            for label, income, expense, profit in _FLOW
        ],
    )


def build_mock_payload(office: str, period: Period, date_range: DateRange, now: datetime) -> DashboardPayload:
    """Complete stand-in payload for when no CRM data could be fetched.

    Deterministic for a given period and ``now``; nothing in it comes from
    CRM records.
    """
    now = as_aware(now)
    multiplier = PERIOD_MULTIPLIER.get(period, 1.0)
    kpis = _mock_kpis(multiplier)

    contacts = int(kpis["total_contacts"].value)
    active_jobs = int(kpis["active_jobs"].value)
    pending_tasks = int(kpis["pending_tasks"].value)
    completed_jobs = round(_BASE_COMPLETED_JOBS * multiplier)
    completion = kpis["project_completion_rate"].value
    conversion = kpis["conversion_rate"].value
    productivity = kpis["team_productivity"].value

    insights = generate_insights(completion, conversion, productivity, _BASE_ENGAGEMENT)

    return DashboardPayload(
        office=office,
        period=period,
        range=DateRangeOut(start=date_range.start, end=date_range.end, label=date_range.label),
        source=DataSource.mock,
        is_illustrative=True,
        notice=MOCK_NOTICE,
        kpis=kpis,
        charts=_mock_charts(now, multiplier),
        recent_activity=[
            ActivityItem(
                id=str(index + 1),
                type=kind,
                title=title,
                description=description,
                timestamp=now - timedelta(minutes=45 * index),
                user=user,
                status=status,
            )
            for index, (kind, title, description, user, status) in enumerate(_ACTIVITY)
        ],
        alerts=generate_alerts(contacts, active_jobs, pending_tasks, completed_jobs),
        insights=insights,
        performance=PerformanceMetrics(
            response_speed=4.2,
            customer_satisfaction=4.6,
            operational_efficiency=productivity,
            burnout_index=23.4,
            average_profitability=kpis["profit_margin"].value,
            predictive_score=78.9,
        ),
        summary=DashboardSummary(total_records=0, insights=len(insights), business_health="excellent"),
        generated_at=now,
    )
