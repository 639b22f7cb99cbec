"""Deterministic stand-ins for the clock and the ticker, shared by the test modules."""

from datetime import datetime, timedelta, timezone

TZ = timezone(timedelta(hours=-5))


class FakeClock:
    """Wall clock and monotonic clock that only move when told to."""

    def __init__(self, start=None, uptime=1000.0):
        self._now = start or datetime(2026, 3, 10, 9, 0, tzinfo=TZ)
        self._uptime = uptime

    def now(self):
        return self._now

    def uptime(self):
        return self._uptime

    def advance(self, seconds):
        self._now += timedelta(seconds=seconds)
        self._uptime += seconds

    # Wall clock moves but the monotonic counter doesn't, like a suspended process.
    def sleep_wall_only(self, seconds):
        self._now += timedelta(seconds=seconds)

    def set_wall(self, dt):
        self._now = dt


class ManualTicker:
    """Ticker that fires only when the test calls fire()."""

    instances = []

    def __init__(self, interval_ms, callback):
        self.interval_ms = interval_ms
        self._callback = callback
        self.active = False
        self.starts = 0
        ManualTicker.instances.append(self)

    def start(self):
        self.active = True
        self.starts += 1

    def stop(self):
        self.active = False

    def fire(self, times=1):
        for _ in range(times):
            if self.active:
                self._callback()


def at(day_offset, hour, minute=0, base=None):
    """Aware datetime ``day_offset`` days from 2026-03-10 at hour:minute."""
    base = base or datetime(2026, 3, 10, tzinfo=TZ)
    return base + timedelta(days=day_offset, hours=hour, minutes=minute)
