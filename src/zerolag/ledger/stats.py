"""Incremental stats updates and the daily completion streak.

Counters only ever grow; each function returns an updated copy.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from zerolag.ledger.models import Stats

ONE_DAY = timedelta(days=1)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed, floored (23h59m is 0 days, 47h is 1 day)."""
    return (later - earlier) // ONE_DAY


def next_streak(current_streak: int, last_completed_at: datetime | None, now: datetime) -> int:
    """Streak after an approval at ``now``.

    First completion starts at 1; a completion within one whole day of the
    previous one extends the streak, a longer gap restarts it at 1.
    """
    if last_completed_at is None:
        return 1
    if days_between(last_completed_at, now) <= 1:
        return current_streak + 1
    return 1


def on_task_created(stats: Stats, amount: Decimal) -> Stats:
    return stats.model_copy(update={
        "total_tasks": stats.total_tasks + 1,
        "total_staked": stats.total_staked + amount,
    })


def on_task_approved(stats: Stats, amount: Decimal, now: datetime) -> Stats:
    streak = next_streak(stats.current_streak, stats.last_completed_at, now)
    return stats.model_copy(update={
        "completed_tasks": stats.completed_tasks + 1,
        "total_returned": stats.total_returned + amount,
        "current_streak": streak,
        "longest_streak": max(stats.longest_streak, streak),
        "last_completed_at": now,
    })


def on_task_rejected(stats: Stats, amount: Decimal) -> Stats:
    # longest_streak is left alone
    return stats.model_copy(update={
        "failed_tasks": stats.failed_tasks + 1,
        "total_burned": stats.total_burned + amount,
        "current_streak": 0,
    })
