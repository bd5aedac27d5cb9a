"""
Consistency window over recent workouts.

compute_consistency() is pure: it takes the N most recent activity records
and returns the chart series (oldest to newest) plus summary metrics,
including the number of consecutive active days ending at (or shortly
before) today.
"""
from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence

from fitlikeus.core.config import Settings, settings
from fitlikeus.core.store import DocumentStore, Query
from fitlikeus.models.streak import (
    ActivityRecord,
    ChartPoint,
    ConsistencyMetrics,
    ConsistencyReport,
    MatchMode,
)
from fitlikeus.models.workout import Workout, WorkoutStats

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
UNTIMED_LABEL = "N/A"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def weekday_label(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _chronological(records: Iterable[ActivityRecord]) -> List[ActivityRecord]:
    # Stable: records sharing a timestamp keep their relative order.
    return sorted(records, key=lambda r: _aware(r.timestamp) if r.timestamp else _EPOCH)


def _to_point(record: ActivityRecord) -> ChartPoint:
    value = record.value or 0
    if record.timestamp is None:
        return ChartPoint(label=UNTIMED_LABEL, value=value, day=None)
    day = _aware(record.timestamp).astimezone(timezone.utc).date()
    return ChartPoint(label=weekday_label(day), value=value, day=day.isoformat())


def _is_active(points: Sequence[ChartPoint], day: date, match: MatchMode) -> bool:
    if match == "weekday":
        label = weekday_label(day)
        return any(p.label == label for p in points)
    iso = day.isoformat()
    return any(p.day == iso for p in points)


def count_streak_days(points: Sequence[ChartPoint], today: date, window: int, match: MatchMode = "date") -> int:
    """Walk back from today over `window` days.

    Inactive days before the first active one are skipped; after that the
    first inactive day ends the streak.
    """
    streak = 0
    for offset in range(window):
        if _is_active(points, today - timedelta(days=offset), match):
            streak += 1
        elif streak > 0:
            break
    return streak


def compute_consistency(
    records: Iterable[ActivityRecord],
    *,
    window: int = 7,
    today: Optional[date] = None,
    match: MatchMode = "date",
) -> ConsistencyReport:
    if window < 1:
        raise ValueError("window must be at least 1 day")
    if match not in ("date", "weekday"):
        raise ValueError(f"unknown match mode: {match}")

    points = [_to_point(r) for r in _chronological(records)]
    if not points:
        return ConsistencyReport(data=[], metrics=ConsistencyMetrics(), window=window, match=match)

    total = sum(p.value for p in points)
    metrics = ConsistencyMetrics(
        total_count=len(points),
        average_value=round_half_up(Decimal(total) / Decimal(len(points))),
        max_value=max(p.value for p in points),
        streak_days=count_streak_days(
            points,
            today or datetime.now(timezone.utc).date(),
            window,
            match,
        ),
    )
    return ConsistencyReport(data=points, metrics=metrics, window=window, match=match)


def workout_stats(workouts: Sequence[Workout], now: Optional[datetime] = None) -> WorkoutStats:
    """Totals, favorite exercise and recent counts for a user's workouts."""
    now = _aware(now or datetime.now(timezone.utc))
    week_ago = now - timedelta(days=7)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    favorite = None
    if workouts:
        tally = Counter(w.exercise for w in workouts)
        # most_common keeps first-seen order among equal counts
        favorite = tally.most_common(1)[0][0]

    stamps = [_aware(w.timestamp) for w in workouts if w.timestamp is not None]
    return WorkoutStats(
        total_workouts=len(workouts),
        total_reps=sum(w.reps or 0 for w in workouts),
        favorite_exercise=favorite,
        this_week=sum(1 for t in stamps if t > week_ago),
        this_month=sum(1 for t in stamps if t >= month_start),
    )


class ConsistencyService:
    def __init__(self, store: DocumentStore, settings_obj: Optional[Settings] = None):
        self._store = store
        self._settings = settings_obj or settings

    def recent_activity(self, user_id: str, days: int) -> List[ActivityRecord]:
        docs = self._store.query(
            Query("workouts")
            .where("user_id", "==", user_id)
            .order_by("timestamp", descending=True)
            .limit(days)
        )
        return [ActivityRecord(timestamp=doc.get("timestamp"), value=doc.get("reps") or 0) for doc in docs]

    def window(
        self,
        user_id: str,
        days: Optional[int] = None,
        *,
        today: Optional[date] = None,
        match: Optional[MatchMode] = None,
    ) -> ConsistencyReport:
        days = days or self._settings.CONSISTENCY_WINDOW_DAYS
        return compute_consistency(
            self.recent_activity(user_id, days),
            window=days,
            today=today,
            match=match or self._settings.CONSISTENCY_MATCH_MODE,
        )
