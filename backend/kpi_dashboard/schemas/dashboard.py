from datetime import datetime
import enum

from pydantic import BaseModel, Field

from kpi_dashboard.models.period import Period


class DataSource(str, enum.Enum):
    summary = "summary"
    live = "live"
    degraded = "degraded"
    mock = "mock"


KPI_KEYS = (
    "total_contacts",
    "active_jobs",
    "pending_tasks",
    "monthly_revenue",
    "conversion_rate",
    "team_productivity",
    "customer_lifetime_value",
    "project_completion_rate",
    "revenue_per_employee",
    "customer_retention_rate",
    "average_project_duration",
    "profit_margin",
)


class KPI(BaseModel):
    value: float = 0
    change_percent: float = 0


class Trend(BaseModel):
    month: str
    contacts: int
    jobs: int
    revenue: float
    satisfaction: float
    efficiency: int


class StatusSlice(BaseModel):
    name: str
    value: int
    color: str
    revenue: float


class TeamMember(BaseModel):
    member: str
    tasks: int
    completed: int
    efficiency: float
    revenue: float = 0
    satisfaction: float = 0


class FlowPoint(BaseModel):
    label: str
    income: float
    expense: float
    profit: float
    roi: float | None = None


class DashboardCharts(BaseModel):
    monthly_trends: list[Trend] = Field(default_factory=list)
    job_status: list[StatusSlice] = Field(default_factory=list)
    team_performance: list[TeamMember] = Field(default_factory=list)
    revenue_flow: list[FlowPoint] = Field(default_factory=list)


class ActivityItem(BaseModel):
    id: str
    type: str
    title: str
    description: str
    timestamp: datetime
    user: str
    status: str
    priority: str = "normal"
    revenue_impact: int = 0


class Alert(BaseModel):
    kind: str
    type: str
    urgency: str
    message: str
    action: str
    revenue_at_risk: int | None = None


class Insight(BaseModel):
    type: str
    title: str
    description: str
    confidence: float
    action_recommended: str


class PerformanceMetrics(BaseModel):
    # Advanced indicators derived from the headline rates (estimates).
    response_speed: float = 0
    customer_satisfaction: float = 0
    operational_efficiency: float = 0
    burnout_index: float = 0
    average_profitability: float = 0
    predictive_score: float = 0


class DashboardSummary(BaseModel):
    total_records: int = 0
    insights: int = 0
    business_health: str = "needs attention"


class DateRangeOut(BaseModel):
    start: datetime
    end: datetime
    label: str


class ContactOut(BaseModel):
    id: str
    name: str
    email: str | None = None
    is_customer: bool = False
    created_at: datetime | None = None


class JobOut(BaseModel):
    id: str
    display_name: str
    customer: str
    status_name: str
    category: str
    last_estimate: float | None = None
    created_at: datetime | None = None


class TaskOut(BaseModel):
    id: str
    display_name: str
    assignee: str
    completed: bool
    pending: bool
    created_at: datetime | None = None


class RecordDetails(BaseModel):
    contacts: list[ContactOut] = Field(default_factory=list)
    jobs: list[JobOut] = Field(default_factory=list)
    tasks: list[TaskOut] = Field(default_factory=list)


class DashboardPayload(BaseModel):
    office: str
    period: Period
    range: DateRangeOut
    source: DataSource
    is_illustrative: bool = False
    notice: str | None = None
    unavailable_sources: list[str] = Field(default_factory=list)
    kpis: dict[str, KPI]
    charts: DashboardCharts = Field(default_factory=DashboardCharts)
    recent_activity: list[ActivityItem] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    performance: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    summary: DashboardSummary = Field(default_factory=DashboardSummary)
    details: RecordDetails = Field(default_factory=RecordDetails)
    generated_at: datetime


def empty_kpis() -> dict[str, KPI]:
    return {key: KPI() for key in KPI_KEYS}
