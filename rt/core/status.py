"""Display status shared by the main window and any companion display.

A companion never gets a ticking feed. It reads the persisted snapshot (or
the pushed status file) and works out its own "now" for a running timer.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from rt.common.logger import log
from rt.common.setup import PATHS
from rt.core.config import STATE_PATH, TimerSnapshot
from rt.util import atomic_write_json

STATUS_PATH = PATHS.current / "status.json"


class GoalStatus(Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER_LIMIT = "over_limit"


def classify(progress, goal, danger):
    if progress <= goal:
        return GoalStatus.ON_TRACK
    if progress <= danger:
        return GoalStatus.WARNING
    return GoalStatus.OVER_LIMIT


@dataclass(frozen=True)
class DisplayStatus:
    is_running: bool
    accumulated_time: float
    goal: float
    danger: float
    # now - accumulated while running, so a display can count up from it on its own
    effective_start: datetime

    @property
    def goal_status(self):
        return classify(self.accumulated_time, self.goal, self.danger)

    def live_progress(self, now):
        if self.is_running:
            return max(0.0, (now - self.effective_start).total_seconds())
        return self.accumulated_time

    def to_dict(self):
        data = asdict(self)
        data["effective_start"] = self.effective_start.isoformat()
        data["goal_status"] = self.goal_status.value
        return data


def status_from_snapshot(snapshot: TimerSnapshot, now):
    """Live status for ``now``. A snapshot from an earlier day reads as zero and stopped."""
    accumulated = snapshot.accumulated_time
    running = snapshot.is_running
    if running:
        accumulated += max(0.0, (now - snapshot.start_time).total_seconds())
    if snapshot.last_reset_date.astimezone(now.tzinfo).date() != now.date():
        accumulated = 0.0
        running = False
    return DisplayStatus(
        is_running=running,
        accumulated_time=accumulated,
        goal=snapshot.goal,
        danger=snapshot.danger,
        effective_start=now - timedelta(seconds=accumulated) if running else now,
    )


def read_status(now, path=None):
    """Status straight from the snapshot file, for readers outside the main process."""
    path = Path(path) if path is not None else STATE_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            snapshot = TimerSnapshot.from_dict(json.load(f))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError, KeyError, TypeError, ValueError, OverflowError):
        log.debug(f"No readable snapshot at '{path}' for status", exc_info=True)
        return None
    return status_from_snapshot(snapshot, now)


# Writes each pushed status to a small JSON file a companion display can poll.
class StatusFileSink:

    def __init__(self, path=None):
        self.path = Path(path) if path is not None else STATUS_PATH

    def push(self, status):
        try:
            atomic_write_json(self.path, status.to_dict())
        except OSError:
            log.warning(f"Failed to write status to '{self.path}'", exc_info=True)
