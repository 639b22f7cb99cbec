from datetime import datetime
from PySide6.QtCore import QObject, Signal
from rt.common.logger import log
from rt.core.clock import SystemClock
from rt.core.ticker import QtTicker

UPDATE_INTERVAL_MS = 100


# Tracks elapsed "off" time. The live sampling loop measures with the monotonic clock, so clock changes never show
# up as jumps in progress. The wall-clock mark (started_at) is what gets persisted, and is also used to bridge
# suspend/resume and full process restarts, where the monotonic counter can't be trusted.
class TimerEngine(QObject):

    progress_changed = Signal(float)
    running_changed = Signal(bool)

    def __init__(self, clock=None, ticker_factory=None, interval_ms=UPDATE_INTERVAL_MS, parent=None):
        super().__init__(parent)
        self._clock = clock or SystemClock()
        self._ticker = (ticker_factory or QtTicker)(interval_ms, self._sample)

        self.running = False
        self.accumulated = 0.0
        self.progress = 0.0
        # Wall-clock and monotonic marks, always taken at the same instant.
        self.started_at = self._clock.now()
        self._mono = self._clock.uptime()

    # Accumulated plus the live segment, if any.
    @property
    def current_progress(self):
        if self.running:
            return self.accumulated + (self._clock.uptime() - self._mono)
        return self.accumulated

    #region === State transitions ===

    def toggle(self):
        if self.running:
            self.stop()
        else:
            self.start()

    def start(self):
        if self.running:
            return
        self.running = True
        self._mark()
        self._ticker.start()
        log.debug(f"Engine started at {self.started_at.isoformat()} with {self.accumulated:.1f}s accumulated")
        self.running_changed.emit(True)
        self._publish(self.accumulated)

    def stop(self):
        if not self.running:
            return
        self._ticker.stop()
        self.accumulated += self._clock.uptime() - self._mono
        self.running = False
        log.debug(f"Engine stopped with {self.accumulated:.1f}s accumulated")
        self.running_changed.emit(False)
        self._publish(self.accumulated)

    # Folds the live segment in ahead of a suspend, but stays logically running.
    def pause(self):
        if not self.running:
            return
        self._ticker.stop()
        now_mono = self._clock.uptime()
        self.accumulated += now_mono - self._mono
        self._mono = now_mono
        self.started_at = self._clock.now()
        log.debug(f"Engine paused with {self.accumulated:.1f}s accumulated")

    # Counterpart to pause(). Time spent suspended is measured on the wall clock, since the monotonic counter may
    # not have advanced while the process was asleep.
    def resume(self):
        if not self.running:
            self._publish(self.accumulated)
            return
        now = self._clock.now()
        self.accumulated += max(0.0, (now - self.started_at).total_seconds())
        self.started_at = now
        self._mono = self._clock.uptime()
        self._ticker.start()
        log.debug(f"Engine resumed with {self.accumulated:.1f}s accumulated")
        self._publish(self.accumulated)

    def reset(self):
        was_running = self.running
        self._ticker.stop()
        self.running = False
        self.accumulated = 0.0
        self._mark()
        log.debug("Engine reset to 0.0")
        if was_running:
            self.running_changed.emit(False)
        self._publish(0.0)

    #endregion === State transitions ===

    #region === Restoring and overriding ===

    # Overwrites the accumulated total, e.g. after the session list changed underneath us.
    def set_accumulated_time(self, seconds):
        self.accumulated = max(0.0, float(seconds))
        if self.running:
            self._mono = self._clock.uptime()
            self.started_at = self._clock.now()
        self._publish(self.accumulated)

    # Restores from a persisted snapshot. A snapshot that says "running" means the process died (or was killed)
    # mid-run, so the wall-clock gap since the stored start is folded in right away.
    def set_initial_state(self, start_time: datetime, running, accumulated):
        self._ticker.stop()
        self.started_at = start_time
        self.accumulated = max(0.0, float(accumulated))
        was_running = self.running
        self.running = bool(running)

        if self.running:
            now = self._clock.now()
            self.accumulated += max(0.0, (now - start_time).total_seconds())
            self.started_at = now
            self._mono = self._clock.uptime()
            self._ticker.start()
        else:
            self._mono = self._clock.uptime()
        log.debug(f"Engine restored: running={self.running}, accumulated={self.accumulated:.1f}s, "
                  f"stored start {start_time.isoformat()}")
        if was_running != self.running:
            self.running_changed.emit(self.running)
        self._publish(self.accumulated)

    #endregion === Restoring and overriding ===

    def _mark(self):
        self.started_at = self._clock.now()
        self._mono = self._clock.uptime()

    def _sample(self):
        if not self.running:
            return
        self._publish(self.accumulated + (self._clock.uptime() - self._mono))

    def _publish(self, value):
        self.progress = value
        self.progress_changed.emit(value)
