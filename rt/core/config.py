import json
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from rt.common.logger import log
from rt.common.setup import PATHS
from rt.util import atomic_write_json, from_reference_seconds, start_of_day, to_reference_seconds

#region === Helpers and Paths ===

STATE_PATH = PATHS.current / "timer_state.json"

# Where older builds kept the snapshot, before everything moved under `current`. Used only for relocation.
_LEGACY_STATE_PATH = PATHS.data / "timerState.json"

DEFAULT_GOAL = 7200.0
DEFAULT_DANGER = 14400.0


# Snapshot dates are reference-relative floats; ISO strings are accepted too so hand-edited files still load.
def _decode_date(value):
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"Expected a date, got {value!r}")
    if isinstance(value, (int, float)):
        return from_reference_seconds(value)
    if isinstance(value, str):
        dt = datetime.fromisoformat(value)
        return dt if dt.tzinfo is not None else dt.astimezone()
    raise TypeError(f"Expected a date, got {value!r}")

def _encode_date(value):
    return None if value is None else to_reference_seconds(value)

#endregion === Helpers and Paths ===


@dataclass
class TimerSnapshot:
    """Everything needed to rebuild the engine after a restart.

    ``is_running`` implies ``current_session_start`` is set, and a stopped
    snapshot never carries one.
    """
    start_time: datetime
    is_running: bool
    accumulated_time: float
    last_reset_date: datetime
    reminder_start_time: datetime | None = None
    current_session_start: datetime | None = None
    goal: float = DEFAULT_GOAL
    danger: float = DEFAULT_DANGER

    def to_dict(self):
        data = {
            "startTime": to_reference_seconds(self.start_time),
            "isRunning": self.is_running,
            "accumulatedTime": float(self.accumulated_time),
            "lastResetDate": to_reference_seconds(self.last_reset_date),
            "goal": float(self.goal),
            "danger": float(self.danger),
        }
        # Optional keys are left out entirely when empty
        if self.reminder_start_time is not None:
            data["reminderStartTime"] = _encode_date(self.reminder_start_time)
        if self.current_session_start is not None:
            data["currentSessionStart"] = _encode_date(self.current_session_start)
        return data

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError("Timer snapshot must be a JSON object")
        defaulted_values = set()

        start_time = _decode_date(data["startTime"])
        is_running = data["isRunning"]
        if not isinstance(is_running, bool):
            raise TypeError(f"isRunning must be a bool, got {is_running!r}")
        accumulated = float(data["accumulatedTime"])

        if "lastResetDate" in data:
            last_reset = _decode_date(data["lastResetDate"])
        else:
            defaulted_values.add("lastResetDate")
            last_reset = start_of_day(start_time)

        goal = data.get("goal")
        if not isinstance(goal, (int, float)) or isinstance(goal, bool) or goal <= 0:
            defaulted_values.add("goal")
            goal = DEFAULT_GOAL
        danger = data.get("danger")
        if not isinstance(danger, (int, float)) or isinstance(danger, bool) or danger < goal:
            defaulted_values.add("danger")
            danger = max(DEFAULT_DANGER, goal)

        snapshot = cls(
            start_time=start_time,
            is_running=is_running,
            accumulated_time=max(0.0, accumulated),
            last_reset_date=last_reset,
            reminder_start_time=_decode_date(data.get("reminderStartTime")),
            current_session_start=_decode_date(data.get("currentSessionStart")),
            goal=float(goal),
            danger=float(danger),
        )

        # Repair the running/open-interval invariant rather than refusing the whole snapshot
        if snapshot.is_running and snapshot.current_session_start is None:
            log.warning("Snapshot claims to be running without an open interval, using startTime as its start.")
            snapshot.current_session_start = snapshot.start_time
        elif not snapshot.is_running and snapshot.current_session_start is not None:
            log.warning("Snapshot is stopped but carries an open interval, dropping it.")
            snapshot.current_session_start = None

        if defaulted_values:
            log.warning(f"Timer snapshot was missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
        return snapshot


class TimerStateStore:
    """Loads and saves the single timer snapshot key.

    Loading never fails: anything missing or unreadable is treated as "no
    prior state". Saving never raises either; the in-memory state stays
    authoritative until the next save goes through.
    """

    def __init__(self, path=None, legacy_path=None):
        self.path = Path(path) if path is not None else STATE_PATH
        self.legacy_path = Path(legacy_path) if legacy_path is not None else _LEGACY_STATE_PATH

    # Moves the snapshot from its legacy location once, if the new location is still empty.
    def relocate_legacy(self):
        if self.path.exists() or not self.legacy_path.exists():
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            os.replace(self.legacy_path, self.path)
        except OSError:
            log.warning(f"Failed to relocate legacy snapshot '{self.legacy_path}' to '{self.path}'", exc_info=True)
            return False
        log.info(f"Relocated legacy snapshot '{self.legacy_path}' to '{self.path}'")
        return True

    def load(self):
        self.relocate_legacy()
        if not self.path.exists():
            log.info(f"No existing snapshot at '{self.path}', starting fresh.")
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                snapshot = TimerSnapshot.from_dict(json.load(f))
        # Fall back to a fresh engine in case of error, but warn in log
        except (json.JSONDecodeError, OSError, UnicodeDecodeError, KeyError, TypeError, ValueError, OverflowError):
            log.warning(f"Ran into an error while loading '{self.path}', starting fresh.", exc_info=True)
            return None
        log.info(f"Successfully loaded timer snapshot from '{self.path}'.")
        return snapshot

    def save(self, snapshot):
        try:
            atomic_write_json(self.path, snapshot.to_dict())
        except (OSError, TypeError, ValueError):
            log.warning(f"Failed to save timer snapshot to '{self.path}'", exc_info=True)
            return False
        log.debug(f"Saved timer snapshot to '{self.path}'")
        return True
