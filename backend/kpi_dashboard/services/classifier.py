"""Job and task state classification.

Both classifiers are pure and total: every record gets exactly one category,
and records with missing or unknown labels simply fall through to "other".
"""

from dataclasses import dataclass

from kpi_dashboard.models.records import Job, Task
from kpi_dashboard.services.taxonomy import (
    COMPLETED_STATUS_CODE,
    StatusCategory,
    classify,
    is_active_job_label,
    is_completed_label,
)

_COMPLETED_TASK_STATUSES = {"completed", "complete"}


@dataclass(frozen=True)
class JobClassification:
    active: bool
    completed: bool
    pending: bool

    @property
    def category(self) -> str:
        if self.completed:
            return "completed"
        if self.active:
            return "active"
        return "other"


@dataclass(frozen=True)
class TaskClassification:
    completed: bool
    pending: bool


def is_job_completed(job: Job) -> bool:
    if is_completed_label(job.status_name):
        return True
    return (job.status or "").lower() == COMPLETED_STATUS_CODE


def is_job_active(job: Job) -> bool:
    if not job.is_active or job.is_closed or job.is_archived:
        return False
    return is_active_job_label(job.status_name)


def classify_job(job: Job) -> JobClassification:
    completed = is_job_completed(job)
    active = not completed and is_job_active(job)
    pending = (
        not completed
        and not active
        and classify(job.status_name).category == StatusCategory.pending
    )
    return JobClassification(active=active, completed=completed, pending=pending)


def is_task_completed(task: Task) -> bool:
    if task.is_completed:
        return True
    return (task.status or "").strip().lower() in _COMPLETED_TASK_STATUSES


def classify_task(task: Task) -> TaskClassification:
    completed = is_task_completed(task)
    pending = task.is_active and not completed and not task.is_archived
    return TaskClassification(completed=completed, pending=pending)


def split_jobs(jobs: list[Job]) -> tuple[list[Job], list[Job]]:
    """Return (active, completed) job lists."""
    active: list[Job] = []
    completed: list[Job] = []
    for job in jobs:
        c = classify_job(job)
        if c.completed:
            completed.append(job)
        elif c.active:
            active.append(job)
    return active, completed


def split_tasks(tasks: list[Task]) -> tuple[list[Task], list[Task]]:
    """Return (pending, completed) task lists."""
    pending: list[Task] = []
    completed: list[Task] = []
    for task in tasks:
        c = classify_task(task)
        if c.completed:
            completed.append(task)
        if c.pending:
            pending.append(task)
    return pending, completed
