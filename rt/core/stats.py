"""Streak and compliance numbers, recomputed from the full session list every time."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class StreakStats:
    current_streak: int
    best_streak: int
    days_met_goal_last_7_days: int


@dataclass(frozen=True)
class SessionStatistics:
    total_time: float
    average_time: float
    session_count: int


def daily_totals(sessions):
    """Total off-time per calendar day, keyed by the day each session started."""
    totals = defaultdict(float)
    for session in sessions:
        totals[session.day] += session.duration
    return dict(totals)


def is_goal_met(day: date, totals, first_day: date, goal):
    # Days before anything was recorded never count, even though their total is zero.
    if day < first_day:
        return False
    return totals.get(day, 0.0) <= goal


def streak_stats(sessions, goal, today: date):
    totals = daily_totals(sessions)
    first_day = min(totals) if totals else today

    # An unfinished today that is already over the goal doesn't break a streak that ran through yesterday.
    current = 0
    check = today if is_goal_met(today, totals, first_day, goal) else today - timedelta(days=1)
    while is_goal_met(check, totals, first_day, goal):
        current += 1
        check -= timedelta(days=1)

    best = 0
    run = 0
    day = first_day
    while day <= today:
        if is_goal_met(day, totals, first_day, goal):
            run += 1
            best = max(best, run)
        else:
            run = 0
        day += timedelta(days=1)

    last_7 = sum(1 for i in range(7) if is_goal_met(today - timedelta(days=i), totals, first_day, goal))

    return StreakStats(current_streak=current, best_streak=best, days_met_goal_last_7_days=last_7)


def session_statistics(sessions):
    sessions = list(sessions)
    total = sum(s.duration for s in sessions)
    average = total / len(sessions) if sessions else 0.0
    return SessionStatistics(total_time=total, average_time=average, session_count=len(sessions))


def history(sessions, today: date, days=7):
    """(day, total seconds) for the last ``days`` days ending today, oldest first."""
    totals = daily_totals(sessions)
    return [(today - timedelta(days=i), totals.get(today - timedelta(days=i), 0.0)) for i in range(days - 1, -1, -1)]
