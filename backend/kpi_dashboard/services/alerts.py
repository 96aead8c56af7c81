from kpi_dashboard.schemas.dashboard import Alert, Insight

HIGH_DEMAND_JOBS = 20
MILESTONE_COMPLETED_JOBS = 10
REVENUE_AT_RISK_PER_TASK = 1000


def generate_alerts(contacts: int, active_jobs: int, pending_tasks: int, completed_jobs: int) -> list[Alert]:
    alerts: list[Alert] = []

    if pending_tasks > active_jobs * 2:
        alerts.append(
            Alert(
                kind="overload",
                type="error",
                urgency="critical",
                message=f"Overload: {pending_tasks} pending tasks vs {active_jobs} active jobs",
                action="Optimize workflow",
                revenue_at_risk=pending_tasks * REVENUE_AT_RISK_PER_TASK,
            )
        )

    if active_jobs > HIGH_DEMAND_JOBS:
        alerts.append(
            Alert(
                kind="high_demand",
                type="warning",
                urgency="high",
                message=f"High demand: {active_jobs} concurrent jobs, consider expanding capacity",
                action="Plan resources",
            )
        )

    if completed_jobs > MILESTONE_COMPLETED_JOBS:
        alerts.append(
            Alert(
                kind="milestone",
                type="success",
                urgency="info",
                message=f"{completed_jobs} jobs completed, ahead of expectations",
                action="Celebrate the win",
            )
        )

    alerts.append(
        Alert(
            kind="contact_base",
            type="info",
            urgency="medium",
            message=f"Database: {contacts:,} contacts on record",
            action="View opportunities",
        )
    )
    return alerts


def generate_insights(completion_rate: float, conversion_rate: float, task_rate: float, engagement: float) -> list[Insight]:
    # task_rate is not used by any template yet.
    return [
        Insight(
            type="trend",
            title="Efficiency analysis",
            description=(
                f"A completion rate of {completion_rate:.1f}% indicates "
                f"{'excellent' if completion_rate > 80 else 'good'} operational management."
            ),
            confidence=0.94,
            action_recommended="Optimize processes" if completion_rate < 80 else "Maintain standard",
        ),
        Insight(
            type="optimization",
            title="Conversion opportunity",
            description=(
                f"Current conversion rate: {conversion_rate:.1f}%. "
                f"{'Solid performance' if conversion_rate > 15 else 'Room for improvement identified'}."
            ),
            confidence=0.87,
            action_recommended="Review the sales pipeline",
        ),
        Insight(
            type="revenue",
            title="Engagement indicator",
            description=(
                f"Average engagement of {engagement:.1f} activities per customer, "
                f"{'excellent' if engagement > 5 else 'good'} level of interaction."
            ),
            confidence=0.91,
            action_recommended="Personalized follow-up strategy",
        ),
    ]
