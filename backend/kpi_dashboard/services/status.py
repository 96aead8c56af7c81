from kpi_dashboard.models.records import Job
from kpi_dashboard.schemas.dashboard import StatusSlice
from kpi_dashboard.services.taxonomy import classify
from kpi_dashboard.services.trends import DEFAULT_JOB_REVENUE

NO_STATUS_LABEL = "No Status"


def status_label(job: Job) -> str:
    return job.status_name or job.status or NO_STATUS_LABEL


def distribute_by_status(jobs: list[Job]) -> list[StatusSlice]:
    counts: dict[str, int] = {}
    for job in jobs:
        label = status_label(job)
        counts[label] = counts.get(label, 0) + 1

    return [
        StatusSlice(
            name=label,
            value=count,
            color=classify(label).color,
            revenue=count * DEFAULT_JOB_REVENUE,
        )
        for label, count in counts.items()
    ]
