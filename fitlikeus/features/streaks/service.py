from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from fitlikeus.core.logging import log_event
from fitlikeus.core.metrics import streak_updates_total
from fitlikeus.core.store import DocumentStore, Query
from fitlikeus.models.streak import StreakRecord

STREAKS = "streaks"


def streak_doc_id(user_id: str, habit_id: str) -> str:
    return f"{user_id}:{habit_id}"


def _parse_day(value: str) -> date:
    return date.fromisoformat(value[:10])


def advance_streak(
    existing: Optional[StreakRecord],
    today: date,
    *,
    user_id: str,
    habit_id: str,
) -> StreakRecord:
    """Apply one completion on `today` to a habit streak.

    Same day is a no-op, the next day extends the streak, and any other gap
    (including a last date in the future) restarts it at 1.
    """
    today_iso = today.isoformat()
    if existing is None or not existing.last_completed_date:
        return StreakRecord(
            user_id=user_id,
            habit_id=habit_id,
            count=1,
            last_completed_date=today_iso,
            title=(existing.title if existing and existing.title else f"Streak for {habit_id}"),
            id=existing.id if existing else None,
        )

    gap = (today - _parse_day(existing.last_completed_date)).days
    if gap == 0:
        return existing
    count = existing.count + 1 if gap == 1 else 1
    return StreakRecord(
        user_id=existing.user_id,
        habit_id=existing.habit_id,
        count=count,
        last_completed_date=today_iso,
        title=existing.title,
        id=existing.id,
    )


def _outcome(before: Optional[StreakRecord], after: StreakRecord) -> str:
    if before is None:
        return "created"
    if after is before:
        return "unchanged"
    return "extended" if after.count == before.count + 1 else "reset"


class StreakService:
    """Habit streak counters stored one document per (user, habit)."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def get(self, user_id: str, habit_id: str) -> Optional[StreakRecord]:
        doc = self._store.get(STREAKS, streak_doc_id(user_id, habit_id))
        return self._to_record(doc) if doc else None

    def list(self, user_id: str) -> List[StreakRecord]:
        docs = self._store.query(Query(STREAKS).where("user_id", "==", user_id))
        return [self._to_record(doc) for doc in docs]

    def update_streak(self, user_id: str, habit_id: str, today: Optional[date] = None) -> StreakRecord:
        # Read-modify-write without a transaction; concurrent completions race.
        today = today or datetime.now(timezone.utc).date()
        existing = self.get(user_id, habit_id)
        updated = advance_streak(existing, today, user_id=user_id, habit_id=habit_id)
        outcome = _outcome(existing, updated)
        if outcome != "unchanged":
            doc = self._store.set(STREAKS, streak_doc_id(user_id, habit_id), updated.to_data())
            updated = self._to_record(doc)

        streak_updates_total.inc(labels={"outcome": outcome})
        log_event(
            "info",
            "streak.updated",
            user_id=user_id,
            event_type=f"streak.{outcome}",
            extra={"habit_id": habit_id, "count": updated.count},
        )
        return updated

    def summary(self, user_id: str) -> dict:
        streaks = self.list(user_id)
        return {
            "active_streak_count": sum(1 for s in streaks if s.count > 0),
            "longest_streak": max((s.count for s in streaks), default=0),
            "total_streak_days": sum(s.count for s in streaks),
            "streaks": streaks,
        }

    @staticmethod
    def _to_record(doc) -> StreakRecord:
        return StreakRecord(
            user_id=doc.get("user_id"),
            habit_id=doc.get("habit_id"),
            count=int(doc.get("count") or 0),
            last_completed_date=doc.get("last_completed_date"),
            title=doc.get("title") or "",
            id=doc.id,
        )
