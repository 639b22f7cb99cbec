from datetime import datetime
from PySide6.QtCore import QObject, Signal
from rt.common.logger import log
from rt.core.clock import SystemClock
from rt.core.signals import NullNotifier
from rt.core.ticker import QtTicker

REMINDER_INTERVAL_MS = 1000


# Countdown shown on the main button until the reminder fires. Remaining time is recomputed from the monotonic
# anchor each tick rather than decremented, so sleep and missed ticks don't make it drift.
class ReminderCountdown(QObject):

    countdown_changed = Signal(int)

    def __init__(self, notifier=None, clock=None, ticker_factory=None, minutes=0, parent=None):
        super().__init__(parent)
        self._notifier = notifier or NullNotifier()
        self._clock = clock or SystemClock()
        self._ticker = (ticker_factory or QtTicker)(REMINDER_INTERVAL_MS, self._sample)

        # Selected default duration, and the duration of the countdown actually in progress.
        self.minutes = int(minutes)
        self._active_minutes = None
        self.remaining = 0
        self.started_at = None
        self._mono = None

    @property
    def active(self):
        return self.remaining > 0

    def _total_seconds(self):
        minutes = self._active_minutes if self._active_minutes is not None else self.minutes
        return minutes * 60

    def start(self, minutes=None):
        minutes = self.minutes if minutes is None else int(minutes)
        if minutes <= 0:
            self.stop()
            return

        self._ticker.stop()
        self._active_minutes = minutes
        self.remaining = minutes * 60
        self.started_at = self._clock.now()
        self._mono = self._clock.uptime()
        self._schedule(self.remaining)
        self._ticker.start()
        log.info(f"Reminder countdown started for {minutes} minutes")
        self.countdown_changed.emit(self.remaining)

    def stop(self):
        self._ticker.stop()
        was_active = self.remaining > 0 or self.started_at is not None
        self.remaining = 0
        self.started_at = None
        self._mono = None
        self._active_minutes = None
        self._cancel()
        if was_active:
            log.info("Reminder countdown stopped")
        self.countdown_changed.emit(0)

    # Picks a countdown back up. The monotonic anchor only exists within the process that started the countdown,
    # so its absence (e.g. after a restart) is what triggers the wall-clock fallback. A pending notification died
    # with that process too, so it is requested again for whatever time is left.
    def resume_from(self, start_time: datetime):
        restarted = self._mono is None
        if not restarted:
            elapsed = int(self._clock.uptime() - self._mono)
        else:
            elapsed = int((self._clock.now() - start_time).total_seconds())
            self.started_at = start_time
            self._mono = self._clock.uptime() - max(0, elapsed)
        self.remaining = max(0, self._total_seconds() - elapsed)

        if self.remaining > 0:
            if restarted:
                self._schedule(self.remaining)
            self._ticker.start()
            log.debug(f"Reminder countdown resumed with {self.remaining}s remaining")
            self.countdown_changed.emit(self.remaining)
        else:
            log.debug("Reminder countdown already elapsed on resume, stopping")
            self.stop()

    def set_initial_state(self, reminder_start_time):
        self.started_at = reminder_start_time

    def _sample(self):
        if self._mono is not None:
            elapsed = int(self._clock.uptime() - self._mono)
            self.remaining = max(0, self._total_seconds() - elapsed)
        else:
            self.remaining = max(0, self.remaining - 1)
        if self.remaining <= 0:
            self._expire()
        else:
            self.countdown_changed.emit(self.remaining)

    # Natural end of the countdown. The notification is due right now, so it is left alone rather than cancelled.
    def _expire(self):
        self._ticker.stop()
        self.remaining = 0
        self.started_at = None
        self._mono = None
        self._active_minutes = None
        log.info("Reminder countdown reached zero")
        self.countdown_changed.emit(0)

    #region === Notifier calls ===

    # A failing notifier only costs the notification, never the countdown.
    def _schedule(self, seconds):
        try:
            self._notifier.schedule(seconds)
        except Exception:
            log.warning("Failed to schedule reminder notification", exc_info=True)

    def _cancel(self):
        try:
            self._notifier.cancel()
        except Exception:
            log.warning("Failed to cancel reminder notification", exc_info=True)

    #endregion === Notifier calls ===
