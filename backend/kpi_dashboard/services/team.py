from dataclasses import dataclass

from kpi_dashboard.models.records import Task
from kpi_dashboard.schemas.dashboard import TeamMember
from kpi_dashboard.services.classifier import is_task_completed
from kpi_dashboard.services.randomness import Jitter

GENERAL_TEAM = "General Team"
TOP_MEMBERS = 6
MAX_LABEL = 20
TASK_REVENUE_BASE = 2500
TASK_REVENUE_SPREAD = 2000


@dataclass
class _Tally:
    total: int = 0
    completed: int = 0
    revenue: float = 0


def resolve_assignee(task: Task) -> str:
    return (
        task.created_by_name
        or task.assigned_to
        or task.owner_name
        or task.sales_rep_name
        or GENERAL_TEAM
    )


def display_label(name: str) -> str:
    if len(name) > MAX_LABEL:
        return name[:17] + "..."
    return name


def analyze_team(tasks: list[Task], rng: Jitter) -> list[TeamMember]:
    tallies: dict[str, _Tally] = {}
    for task in tasks:
        tally = tallies.setdefault(resolve_assignee(task), _Tally())
        tally.total += 1
        if is_task_completed(task):
            tally.completed += 1
            # Estimated value of a finished task, not booked revenue.
            tally.revenue += TASK_REVENUE_BASE + rng.up_to(TASK_REVENUE_SPREAD)

    ranked = sorted(
        ((name, t) for name, t in tallies.items() if t.total > 0),
        key=lambda item: item[1].completed,
        reverse=True,
    )[:TOP_MEMBERS]

    members: list[TeamMember] = []
    for name, tally in ranked:
        efficiency = round(tally.completed / max(tally.total, 1) * 100)
        members.append(
            TeamMember(
                member=display_label(name),
                tasks=tally.total,
                completed=tally.completed,
                efficiency=efficiency,
                revenue=tally.revenue,
                satisfaction=round(min(5.0, 3.5 + efficiency * 0.015 + rng.scaled(0.8)), 2),
            )
        )
    return members
