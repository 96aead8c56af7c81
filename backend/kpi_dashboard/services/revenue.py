import calendar
from datetime import datetime

from kpi_dashboard.models.period import Period
from kpi_dashboard.models.records import Job
from kpi_dashboard.schemas.dashboard import FlowPoint
from kpi_dashboard.services.periods import as_aware, last_quarter_months
from kpi_dashboard.services.randomness import Jitter


def flow_labels(period: Period, now: datetime) -> list[str]:
    if period == Period.last_year:
        return ["Q1", "Q2", "Q3", "Q4"]
    if period == Period.last_quarter:
        return [calendar.month_abbr[month] for _, month in last_quarter_months(as_aware(now))]
    return ["S1", "S2", "S3", "S4"]


def synthesize_flow(completed_jobs: list[Job], period: Period, now: datetime, rng: Jitter) -> list[FlowPoint]:
    """Illustrative income/expense projection scaled by completed jobs.

    This is not bookkeeping: figures grow linearly per bucket with bounded
    noise and must not be read alongside the trend revenue series.
    """
    base = max(1, len(completed_jobs))
    points: list[FlowPoint] = []
    for index, label in enumerate(flow_labels(period, now)):
        step = index + 1
        points.append(
            FlowPoint(
                label=label,
                income=base * 3750 * step + rng.up_to(20000),
                expense=base * 2500 * step + rng.up_to(15000),
                profit=base * 1250 * step + rng.up_to(5000),
                roi=25 + rng.up_to(20),
            )
        )
    return points
