from PySide6.QtCore import QObject, Signal
from rt.common.logger import log
from rt.core import stats
from rt.core.clock import SystemClock
from rt.core.config import DEFAULT_DANGER, DEFAULT_GOAL, TimerSnapshot, TimerStateStore
from rt.core.engine import TimerEngine
from rt.core.reminder import ReminderCountdown
from rt.core.sessions import SessionStore
from rt.core.settings import REMINDER_CHOICES, SettingsStore, clamp_thresholds
from rt.core.signals import NullStatusSink
from rt.core.status import classify, status_from_snapshot
from rt.util import start_of_day


# Binds the engine, the session list and the reminder together. The engine knows nothing about sessions; this is
# the only place where the two are reconciled, and the only place that persists the combined snapshot.
class TimerCoordinator(QObject):

    progress_changed = Signal(float)
    running_changed = Signal(bool)
    sessions_changed = Signal()
    reminder_changed = Signal(int)

    def __init__(self, state_store=None, session_store=None, settings_store=None, engine=None, reminder=None,
                 notifier=None, status_sink=None, clock=None, parent=None):
        super().__init__(parent)
        self._clock = clock or SystemClock()
        self._state_store = state_store or TimerStateStore()
        self._sessions = session_store or SessionStore()
        self._settings_store = settings_store or SettingsStore()
        self._settings = self._settings_store.load()
        self._engine = engine or TimerEngine(clock=self._clock)
        self._reminder = reminder or ReminderCountdown(notifier=notifier, clock=self._clock)
        self._reminder.minutes = self._settings["default_reminder_minutes"]
        self._status_sink = status_sink or NullStatusSink()

        self.goal = DEFAULT_GOAL
        self.danger = DEFAULT_DANGER
        self.current_session_start = None
        self.last_reset_date = start_of_day(self._clock.now())

        self._load_state()

        self._engine.progress_changed.connect(self._on_progress)
        self._engine.running_changed.connect(self.running_changed.emit)
        self._reminder.countdown_changed.connect(self.reminder_changed.emit)

        self.check_for_midnight_reset()
        if self.is_running:
            self._engine.resume()
            if self._reminder.started_at is not None:
                self._reminder.resume_from(self._reminder.started_at)

    #region === Read-only views ===

    @property
    def is_running(self):
        return self._engine.running

    @property
    def current_progress(self):
        return self._engine.current_progress

    @property
    def accumulated_time(self):
        return self._engine.accumulated

    @property
    def reminder_countdown(self):
        return self._reminder.remaining

    @property
    def goal_status(self):
        return classify(self.current_progress, self.goal, self.danger)

    @property
    def all_sessions(self):
        return self._sessions.sessions

    # Today's sessions, newest first.
    @property
    def today_sessions(self):
        return self._sessions.today(self._clock.now().date())

    def statistics(self):
        return stats.session_statistics(self.today_sessions)

    def streak_stats(self):
        return stats.streak_stats(self._sessions.sessions, self.goal, self._clock.now().date())

    def history(self, days=7):
        return stats.history(self._sessions.sessions, self._clock.now().date(), days)

    #endregion === Read-only views ===

    #region === Settings ===

    @property
    def selected_reminder(self):
        return self._settings["default_reminder_minutes"]

    @selected_reminder.setter
    def selected_reminder(self, minutes):
        if minutes not in REMINDER_CHOICES:
            raise ValueError(f"Reminder must be one of {REMINDER_CHOICES}, got {minutes!r}")
        self._settings["default_reminder_minutes"] = minutes
        self._reminder.minutes = minutes
        self._settings_store.save(self._settings)

    @property
    def show_goal_status(self):
        return self._settings["show_goal_status"]

    @show_goal_status.setter
    def show_goal_status(self, value):
        self._settings["show_goal_status"] = bool(value)
        self._settings_store.save(self._settings)

    def set_thresholds(self, goal, danger):
        self.goal, self.danger = clamp_thresholds(goal, danger)
        log.info(f"Thresholds set to goal={self.goal:.0f}s, danger={self.danger:.0f}s")
        self.save_state()

    #endregion === Settings ===

    #region === Timer control ===

    def toggle(self):
        self._engine.toggle()
        now = self._clock.now()

        if self._engine.running:
            self.current_session_start = now
            self._reminder.start(self.selected_reminder)
            log.info(f"Started off-interval at {now.isoformat()}")
        else:
            if self.current_session_start is not None:
                # A clock that jumped backwards would make the end precede the start
                self._sessions.add(self.current_session_start, max(now, self.current_session_start))
                self.current_session_start = None
                self.sessions_changed.emit()
            self._reminder.stop()
            log.info(f"Stopped off-interval at {now.isoformat()}")

        self.save_state()

    def reset(self):
        self._engine.reset()
        self._reminder.stop()
        self.last_reset_date = start_of_day(self._clock.now())
        self.current_session_start = None
        log.info("Timer reset")
        self.save_state()

    def app_will_become_inactive(self):
        self._engine.pause()
        self.save_state()

    def app_did_become_active(self):
        self.check_for_midnight_reset()
        self._engine.resume()
        if self._engine.running and self._reminder.started_at is not None:
            self._reminder.resume_from(self._reminder.started_at)
        self.save_state()

    # Final save on the way out. The engine stays logically running so the next launch picks the interval up.
    def shutdown(self):
        self._engine.pause()
        self.save_state()

    #endregion === Timer control ===

    #region === Midnight rollover ===

    def check_for_midnight_reset(self):
        midnight = start_of_day(self._clock.now())
        if self.last_reset_date.astimezone(midnight.tzinfo).date() == midnight.date():
            return False
        # Updated first: the engine restart below publishes progress, which calls straight back in here.
        self.last_reset_date = midnight
        self._handle_midnight_crossing(midnight)
        self.save_state()
        return True

    def _handle_midnight_crossing(self, midnight):
        start = self.current_session_start
        if self._engine.running and start is not None:
            if start < midnight:
                self._sessions.add(start, midnight)
                self.current_session_start = midnight
                # Post-midnight share only; the pre-midnight part now lives in the session just added.
                carried = self._today_total(self._clock.now())
                self._engine.stop()
                self._engine.set_accumulated_time(carried)
                self._engine.start()
                log.info(f"Split running interval at midnight {midnight.isoformat()}, "
                         f"{(midnight - start).total_seconds():.0f}s booked to the previous day, "
                         f"{carried:.0f}s carried into today")
                self.sessions_changed.emit()
        else:
            log.info(f"Day changed to {midnight.date().isoformat()}, recalculating from today's sessions")
            self.recalculate_accumulated_time()

    #endregion === Midnight rollover ===

    #region === Session edits ===

    def undo_last_session(self):
        removed = self._sessions.undo_last()
        self.sessions_changed.emit()
        self.recalculate_accumulated_time()
        return removed

    # Raises InvalidSessionError (nothing is persisted) when new_end is before new_start.
    def update_session(self, session, new_start, new_end):
        updated = self._sessions.update(session, new_start, new_end)
        self.sessions_changed.emit()
        self.recalculate_accumulated_time()
        return updated

    def delete_session(self, session):
        self._sessions.delete(session)
        self.sessions_changed.emit()
        self.recalculate_accumulated_time()

    def delete_all_today_sessions(self):
        today = self._clock.now().date()
        removed = self._sessions.delete_all(lambda s: s.day == today)
        self.sessions_changed.emit()
        self.recalculate_accumulated_time()
        return removed

    # Pushes the session list's view of today back into the engine.
    def recalculate_accumulated_time(self):
        total = self._today_total(self._clock.now())
        self._engine.set_accumulated_time(total)
        log.debug(f"Recalculated accumulated time from today's sessions: {total:.1f}s")
        self.save_state()

    # Sum of today's sessions, plus the open interval's share of today while running.
    def _today_total(self, now):
        total = sum(s.duration for s in self._sessions.today(now.date()))
        if self._engine.running and self.current_session_start is not None:
            open_since = max(self.current_session_start, start_of_day(now))
            total += max(0.0, (now - open_since).total_seconds())
        return total

    #endregion === Session edits ===

    #region === Persistence ===

    def snapshot(self):
        running = self._engine.running
        open_interval = None
        if running:
            open_interval = self.current_session_start or self._engine.started_at
        return TimerSnapshot(
            start_time=self._engine.started_at,
            is_running=running,
            accumulated_time=self._engine.accumulated,
            last_reset_date=self.last_reset_date,
            reminder_start_time=self._reminder.started_at,
            current_session_start=open_interval,
            goal=self.goal,
            danger=self.danger,
        )

    def save_state(self):
        snapshot = self.snapshot()
        self._state_store.save(snapshot)
        try:
            self._status_sink.push(status_from_snapshot(snapshot, self._clock.now()))
        except Exception:
            log.warning("Failed to push status to the companion display", exc_info=True)
        return snapshot

    def _load_state(self):
        snapshot = self._state_store.load()
        if snapshot is None:
            return
        # Stored dates come back in the process's zone; day boundaries are judged in the clock's.
        tz = self._clock.now().tzinfo
        local = lambda dt: None if dt is None else dt.astimezone(tz)
        self.goal, self.danger = snapshot.goal, snapshot.danger
        self.last_reset_date = local(snapshot.last_reset_date)
        self.current_session_start = local(snapshot.current_session_start)
        self._engine.set_initial_state(local(snapshot.start_time), snapshot.is_running, snapshot.accumulated_time)
        self._reminder.set_initial_state(local(snapshot.reminder_start_time))

    def _on_progress(self, value):
        self.progress_changed.emit(value)
        self.check_for_midnight_reset()

    #endregion === Persistence ===
