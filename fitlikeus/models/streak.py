from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

MatchMode = Literal["date", "weekday"]


@dataclass(frozen=True)
class StreakRecord:
    """
    Habit streak counter as stored in `streaks`. Dates are local YYYY-MM-DD strings.
    """

    user_id: str
    habit_id: str
    count: int = 0
    last_completed_date: Optional[str] = None
    title: str = ""
    id: Optional[str] = None

    def to_data(self) -> dict:
        return {
            "user_id": self.user_id,
            "habit_id": self.habit_id,
            "count": self.count,
            "last_completed_date": self.last_completed_date,
            "title": self.title,
        }


@dataclass(frozen=True)
class ActivityRecord:
    """One input row for the consistency window: a timestamp and a value (reps)."""

    timestamp: Optional[datetime]
    value: int = 0


@dataclass(frozen=True)
class ChartPoint:
    label: str
    value: int
    day: Optional[str] = None  # ISO date of the record, None when untimed


@dataclass(frozen=True)
class ConsistencyMetrics:
    total_count: int = 0
    average_value: int = 0
    max_value: int = 0
    streak_days: int = 0


@dataclass(frozen=True)
class ConsistencyReport:
    data: List[ChartPoint] = field(default_factory=list)
    metrics: ConsistencyMetrics = field(default_factory=ConsistencyMetrics)
    window: int = 7
    match: MatchMode = "date"
