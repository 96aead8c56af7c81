import enum
from dataclasses import dataclass


class StatusCategory(str, enum.Enum):
    completed = "completed"
    active = "active"
    pending = "pending"
    cancelled = "cancelled"
    other = "other"


STATUS_COLORS: dict[StatusCategory, str] = {
    StatusCategory.completed: "#2e7d32",
    StatusCategory.active: "#1976d2",
    StatusCategory.pending: "#ed6c02",
    StatusCategory.cancelled: "#d32f2f",
    StatusCategory.other: "#9c27b0",
}

# First match wins; order matters ("pending complete" is completed).
_CATEGORY_RULES: list[tuple[StatusCategory, tuple[str, ...]]] = [
    (StatusCategory.completed, ("complete", "done")),
    (StatusCategory.active, ("active", "progress")),
    (StatusCategory.pending, ("pending", "new")),
    (StatusCategory.cancelled, ("cancel",)),
]

# Job workflow labels that count as live work in the CRM. The misspelled
# "aproval" variant exists in real office workflows.
ACTIVE_JOB_LABELS = (
    "appointment scheduled",
    "estimating",
    "pending customer signature",
    "pending customer aproval",
    "pending customer approval",
    "lead",
    "in progress",
    "work in progress",
    "sold",
    "production",
)

COMPLETED_STATUS_CODE = "completed"


@dataclass(frozen=True)
class StatusClass:
    category: StatusCategory
    color: str


def classify(label: str | None) -> StatusClass:
    text = (label or "").lower()
    for category, needles in _CATEGORY_RULES:
        if any(n in text for n in needles):
            return StatusClass(category, STATUS_COLORS[category])
    return StatusClass(StatusCategory.other, STATUS_COLORS[StatusCategory.other])


def is_completed_label(label: str | None) -> bool:
    return classify(label).category == StatusCategory.completed


def is_active_job_label(label: str | None) -> bool:
    text = (label or "").lower()
    if not text:
        return False
    if any(s in text for s in ACTIVE_JOB_LABELS):
        return True
    return "active" in text or "progress" in text
