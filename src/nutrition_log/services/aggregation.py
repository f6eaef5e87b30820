"""Pure aggregation over entry snapshots: day buckets, totals and trends."""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo

from nutrition_log.domain.entries import DailyMacros, LogEntry, MacroTotals
from nutrition_log.domain.profiles import MacroGoals


@dataclass(frozen=True)
class TrendSummary:
    """Aggregated totals and averages over a trend range."""

    days: int
    logged_days: int
    totals: MacroTotals
    average: MacroTotals


@dataclass(frozen=True)
class GoalProgress:
    """Progress toward one macro goal."""

    macro: str
    consumed: float
    goal: float
    remaining: float
    percent: float


def entry_day(entry: LogEntry, tz: tzinfo = UTC) -> date | None:
    """Return the local calendar day of an entry, or None without a timestamp."""
    timestamp = entry.timestamp
    if isinstance(timestamp, bool) or not isinstance(timestamp, int | float):
        return None
    return datetime.fromtimestamp(timestamp / 1000, tz=tz).date()


def entries_on_day(
    entries: Iterable[LogEntry], day: date, tz: tzinfo = UTC
) -> list[LogEntry]:
    """Return entries logged on the given day.

    Entries without a timestamp are kept for every day.
    """
    matched = []
    for entry in entries:
        logged_day = entry_day(entry, tz)
        if logged_day is None or logged_day == day:
            matched.append(entry)
    return matched


def sum_macros(entries: Iterable[LogEntry]) -> MacroTotals:
    """Sum macros across entries; empty input gives zeros."""
    items = list(entries)
    return MacroTotals(
        calories=math.fsum(entry.calories for entry in items),
        protein=math.fsum(entry.protein for entry in items),
        carbs=math.fsum(entry.carbs for entry in items),
        fat=math.fsum(entry.fat for entry in items),
    )


def trend(
    entries: Iterable[LogEntry], start: date, end: date, tz: tzinfo = UTC
) -> list[DailyMacros]:
    """Return daily totals from start to end inclusive, with zero-filled gaps.

    Entries without a timestamp are left out. Unlike entries_on_day, which
    shows them on every day, a trend would otherwise count such an entry once
    per day of the range, so a day here can total less than the same day
    summed from entries_on_day.
    """
    if end < start:
        raise ValueError("end must not be before start")
    buckets: dict[date, list[LogEntry]] = {}
    for entry in entries:
        logged_day = entry_day(entry, tz)
        if logged_day is None or not start <= logged_day <= end:
            continue
        buckets.setdefault(logged_day, []).append(entry)

    daily = []
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        bucket = buckets.get(day, [])
        daily.append(
            DailyMacros(day=day, totals=sum_macros(bucket), entry_count=len(bucket))
        )
    return daily


def summarize_trend(daily: Sequence[DailyMacros]) -> TrendSummary:
    """Compute totals and per-day averages for a trend series."""
    totals = MacroTotals()
    for item in daily:
        totals = totals + item.totals
    days = max(len(daily), 1)
    return TrendSummary(
        days=len(daily),
        logged_days=sum(1 for item in daily if item.entry_count),
        totals=totals,
        average=MacroTotals(
            calories=totals.calories / days,
            protein=totals.protein / days,
            carbs=totals.carbs / days,
            fat=totals.fat / days,
        ),
    )


def goal_progress(totals: MacroTotals, goals: MacroGoals) -> list[GoalProgress]:
    """Compare consumed macros with daily goals."""
    progress = []
    for macro in ("calories", "protein", "carbs", "fat"):
        consumed = getattr(totals, macro)
        goal = getattr(goals, macro)
        percent = round(consumed / goal * 100, 1) if goal > 0 else 0.0
        progress.append(
            GoalProgress(
                macro=macro,
                consumed=consumed,
                goal=goal,
                remaining=max(goal - consumed, 0.0),
                percent=percent,
            )
        )
    return progress
