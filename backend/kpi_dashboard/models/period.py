from dataclasses import dataclass
from datetime import datetime
import enum


class Period(str, enum.Enum):
    current_month = "current-month"
    current_year = "current-year"
    last_month = "last-month"
    last_quarter = "last-quarter"
    last_year = "last-year"


# Trend buckets shown per period; anything not listed gets 6.
TREND_WINDOW: dict[Period, int] = {
    Period.current_year: 12,
    Period.last_year: 12,
    Period.last_quarter: 3,
    Period.current_month: 4,
}

# Previous-period scaling used for change percentages on live data.
CHANGE_MULTIPLIER: dict[Period, float] = {
    Period.last_year: 0.85,
    Period.last_quarter: 0.92,
}
DEFAULT_CHANGE_MULTIPLIER = 0.95


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime
    label: str

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end
