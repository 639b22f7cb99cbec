from PySide6.QtCore import QObject, QTimer
from rt.common.logger import log


# One run of a ticker. Each start() hands out a fresh token, and a timeout only reaches the callback while its
# token is still the live, uncancelled one.
class _Token:
    __slots__ = ("cancelled",)

    def __init__(self):
        self.cancelled = False


# Repeating timer with cooperative cancellation. Timeouts are delivered on the owning thread's event loop, and
# stop() is synchronous: once it returns, the callback will not run again for that run, even if a timeout event
# was already queued.
class QtTicker(QObject):

    def __init__(self, interval_ms, callback, parent=None):
        super().__init__(parent)
        self._callback = callback
        self._token = None
        self._timer = QTimer(self)
        self._timer.setInterval(int(interval_ms))
        self._timer.timeout.connect(self._on_timeout)

    @property
    def active(self):
        return self._token is not None and not self._token.cancelled

    @property
    def interval_ms(self):
        return self._timer.interval()

    def start(self):
        self.stop()
        self._token = _Token()
        self._timer.start()
        log.debug(f"Ticker started with interval {self._timer.interval()} ms")

    def stop(self):
        if self._token is not None:
            self._token.cancelled = True
            self._token = None
        self._timer.stop()

    def _on_timeout(self):
        token = self._token
        if token is None or token.cancelled:
            return
        self._callback()
