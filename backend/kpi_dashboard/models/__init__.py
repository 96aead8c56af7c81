from kpi_dashboard.models.period import DateRange, Period
from kpi_dashboard.models.records import Activity, Attachment, Contact, Estimate, Job, RecordSet, Task

__all__ = [
    "Period",
    "DateRange",
    "Contact",
    "Job",
    "Task",
    "Estimate",
    "Activity",
    "Attachment",
    "RecordSet",
]
