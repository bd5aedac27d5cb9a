"""Consistency window: chart series, averages and the active-day streak."""

from datetime import date, datetime, timedelta, timezone

import pytest

from fitlikeus.core.store import MemoryDocumentStore
from fitlikeus.features.streaks.consistency import (
    ConsistencyService,
    compute_consistency,
    workout_stats,
)
from fitlikeus.features.workouts.service import WorkoutService
from fitlikeus.models.streak import ActivityRecord
from fitlikeus.models.workout import Workout

TODAY = date(2024, 3, 14)  # a Thursday


def at(day: date, hour: int = 9) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


def days_ago(n: int, value: int = 10, hour: int = 9) -> ActivityRecord:
    return ActivityRecord(timestamp=at(TODAY - timedelta(days=n), hour), value=value)


def test_empty_records_give_zero_metrics():
    report = compute_consistency([], today=TODAY)
    assert report.data == []
    assert report.metrics.total_count == 0
    assert report.metrics.average_value == 0
    assert report.metrics.max_value == 0
    assert report.metrics.streak_days == 0


def test_total_count_and_average():
    records = [days_ago(0, 10), days_ago(1, 20), days_ago(2, 31)]
    report = compute_consistency(records, today=TODAY)
    assert report.metrics.total_count == 3
    assert report.metrics.average_value == 20  # 61 / 3 = 20.33
    assert report.metrics.max_value == 31


def test_average_rounds_half_up():
    report = compute_consistency([days_ago(0, 1), days_ago(1, 2)], today=TODAY)
    assert report.metrics.average_value == 2  # 1.5


def test_missing_value_counts_as_zero():
    records = [ActivityRecord(timestamp=at(TODAY), value=None), days_ago(1, 10)]
    report = compute_consistency(records, today=TODAY)
    assert [p.value for p in report.data] == [10, 0]
    assert report.metrics.average_value == 5


def test_series_is_oldest_first_with_weekday_labels():
    # Newest first, as the store query returns them
    records = [days_ago(0, 3), days_ago(1, 2), days_ago(2, 1)]
    report = compute_consistency(records, today=TODAY)
    assert [p.value for p in report.data] == [1, 2, 3]
    assert [p.label for p in report.data] == ["Tue", "Wed", "Thu"]
    assert report.data[-1].day == "2024-03-14"


def test_untimed_record_is_labelled_na():
    report = compute_consistency([ActivityRecord(timestamp=None, value=4)], today=TODAY)
    assert report.data[0].label == "N/A"
    assert report.data[0].day is None
    assert report.metrics.streak_days == 0


def test_consecutive_days_counted():
    records = [days_ago(0), days_ago(1), days_ago(2)]
    assert compute_consistency(records, today=TODAY).metrics.streak_days == 3


def test_walk_skips_leading_inactive_days():
    # Nothing logged today yet; yesterday and the day before still count
    records = [days_ago(1), days_ago(2)]
    assert compute_consistency(records, today=TODAY).metrics.streak_days == 2


def test_walk_stops_at_first_gap():
    records = [days_ago(0), days_ago(1), days_ago(3), days_ago(4)]
    assert compute_consistency(records, today=TODAY).metrics.streak_days == 2


def test_multiple_records_on_one_day_count_once():
    records = [days_ago(0, hour=8), days_ago(0, hour=18), days_ago(1)]
    report = compute_consistency(records, today=TODAY)
    assert report.metrics.total_count == 3
    assert report.metrics.streak_days == 2


def test_streak_bounded_by_window_and_count():
    records = [days_ago(n) for n in range(10)]
    report = compute_consistency(records, window=7, today=TODAY)
    assert report.metrics.streak_days == 7

    few = compute_consistency(records[:3], window=7, today=TODAY)
    assert few.metrics.streak_days <= few.metrics.total_count


def test_date_mode_ignores_same_weekday_from_previous_week():
    records = [days_ago(7), days_ago(8)]
    report = compute_consistency(records, window=7, today=TODAY, match="date")
    assert report.metrics.streak_days == 0


def test_weekday_mode_matches_by_weekday_name():
    # Thursday and Wednesday a week ago look like today and yesterday
    records = [days_ago(7), days_ago(8)]
    report = compute_consistency(records, window=7, today=TODAY, match="weekday")
    assert report.metrics.streak_days == 2


def test_invalid_arguments_rejected():
    with pytest.raises(ValueError):
        compute_consistency([], window=0)
    with pytest.raises(ValueError):
        compute_consistency([], match="month")


def test_window_preserves_count_and_order():
    store = MemoryDocumentStore()
    workouts = WorkoutService(store)
    for n, reps in [(4, 40), (0, 5), (2, 20), (1, 10), (3, 30)]:
        workouts.log_workout("u1", "Squats", reps, timestamp=at(TODAY - timedelta(days=n)))
    workouts.log_workout("u2", "Plank", 99, timestamp=at(TODAY))

    report = ConsistencyService(store).window("u1", 3, today=TODAY)
    assert report.metrics.total_count == 3
    assert [p.value for p in report.data] == [20, 10, 5]
    assert report.metrics.streak_days == 3

    everything = ConsistencyService(store).window("u1", 10, today=TODAY)
    assert [p.day for p in everything.data] == sorted(p.day for p in everything.data)
    assert everything.metrics.total_count == 5


def test_workout_stats():
    now = datetime(2024, 3, 14, 12, tzinfo=timezone.utc)
    workouts = [
        Workout(id="a", user_id="u", exercise="Pushups", reps=10, timestamp=now - timedelta(days=1)),
        Workout(id="b", user_id="u", exercise="Squats", reps=15, timestamp=now - timedelta(days=2)),
        Workout(id="c", user_id="u", exercise="Squats", reps=5, timestamp=now - timedelta(days=10)),
        Workout(id="d", user_id="u", exercise="Pushups", reps=20, timestamp=now - timedelta(days=20)),
    ]
    stats = workout_stats(workouts, now)
    assert stats.total_workouts == 4
    assert stats.total_reps == 50
    assert stats.favorite_exercise == "Pushups"  # tie, first seen wins
    assert stats.this_week == 2
    assert stats.this_month == 3


def test_workout_stats_empty():
    stats = workout_stats([], datetime(2024, 3, 14, tzinfo=timezone.utc))
    assert stats.total_workouts == 0
    assert stats.favorite_exercise is None


def test_non_utc_timestamps_use_the_utc_calendar_day():
    # 2024-03-14 01:00 at UTC+5 is still 2024-03-13 in UTC
    plus_five = timezone(timedelta(hours=5))
    record = ActivityRecord(timestamp=datetime(2024, 3, 14, 1, tzinfo=plus_five), value=10)

    report = compute_consistency([record], today=TODAY)
    assert report.data[0].day == "2024-03-13"
    assert report.data[0].label == "Wed"
    assert report.metrics.streak_days == 1

    late_evening = ActivityRecord(timestamp=datetime(2024, 3, 13, 22, tzinfo=timezone(timedelta(hours=-4))), value=5)
    assert compute_consistency([late_evening], today=TODAY).data[0].day == "2024-03-14"
