"""Tests for the reminder countdown.

Covers: rt.core.reminder, rt.core.signals
"""

import unittest
from datetime import timedelta

from helpers import FakeClock, ManualTicker


class RecordingNotifier:
    def __init__(self, fail=False):
        self.scheduled = []
        self.cancels = 0
        self.fail = fail

    def request_permission(self):
        return True

    def schedule(self, seconds):
        if self.fail:
            raise RuntimeError("notification center unavailable")
        self.scheduled.append(seconds)

    def cancel(self):
        self.cancels += 1


class TestReminderCountdown(unittest.TestCase):
    """Start/stop/resume and drift handling of ReminderCountdown."""

    def setUp(self):
        from rt.core.reminder import ReminderCountdown
        self.clock = FakeClock()
        self.notifier = RecordingNotifier()
        self.reminder = ReminderCountdown(notifier=self.notifier, clock=self.clock,
                                          ticker_factory=ManualTicker, minutes=15)
        self.ticker = self.reminder._ticker
        self.seen = []
        self.reminder.countdown_changed.connect(self.seen.append)

    def test_zero_minutes_schedules_nothing(self):
        self.reminder.start(0)
        self.assertEqual(self.notifier.scheduled, [])
        self.assertEqual(self.reminder.remaining, 0)
        self.assertFalse(self.ticker.active)
        self.assertIsNone(self.reminder.started_at)

    def test_start_schedules_and_counts(self):
        self.reminder.start(15)
        self.assertEqual(self.notifier.scheduled, [900])
        self.assertEqual(self.reminder.remaining, 900)
        self.assertTrue(self.ticker.active)
        self.assertEqual(self.reminder.started_at, self.clock.now())
        self.assertEqual(self.ticker.interval_ms, 1000)

    def test_start_uses_selected_minutes_by_default(self):
        self.reminder.start()
        self.assertEqual(self.reminder.remaining, 900)

    def test_remaining_follows_monotonic_clock(self):
        self.reminder.start(15)
        # Only one tick delivered for two minutes of real time
        self.clock.advance(125)
        self.ticker.fire()
        self.assertEqual(self.reminder.remaining, 775)
        self.assertEqual(self.seen[-1], 775)

    def test_reaching_zero_stops_without_cancelling_notification(self):
        self.reminder.start(15)
        cancels = self.notifier.cancels
        self.clock.advance(900)
        self.ticker.fire()
        self.assertEqual(self.reminder.remaining, 0)
        self.assertFalse(self.ticker.active)
        self.assertIsNone(self.reminder.started_at)
        self.assertEqual(self.notifier.cancels, cancels)
        self.assertEqual(self.seen[-1], 0)

    def test_stop_cancels_and_clears(self):
        self.reminder.start(15)
        cancels = self.notifier.cancels
        self.reminder.stop()
        self.assertEqual(self.reminder.remaining, 0)
        self.assertIsNone(self.reminder.started_at)
        self.assertIsNone(self.reminder._mono)
        self.assertFalse(self.ticker.active)
        self.assertEqual(self.notifier.cancels, cancels + 1)

    def test_no_ticks_after_stop(self):
        self.reminder.start(15)
        self.reminder.stop()
        count = len(self.seen)
        self.clock.advance(10)
        self.ticker.fire(3)
        self.assertEqual(len(self.seen), count)

    def test_restart_replaces_running_countdown(self):
        self.reminder.start(15)
        self.clock.advance(60)
        self.reminder.start(20)
        self.assertEqual(self.reminder.remaining, 1200)
        self.assertEqual(self.notifier.scheduled, [900, 1200])

    def test_resume_with_anchor(self):
        self.reminder.start(15)
        self.clock.advance(300)
        self.reminder.resume_from(self.reminder.started_at)
        self.assertEqual(self.reminder.remaining, 600)
        self.assertTrue(self.ticker.active)

    def test_resume_without_anchor_uses_wall_clock(self):
        from rt.core.reminder import ReminderCountdown
        fresh = ReminderCountdown(notifier=self.notifier, clock=self.clock, ticker_factory=ManualTicker, minutes=15)
        start = self.clock.now() - timedelta(seconds=300)
        fresh.set_initial_state(start)
        fresh.resume_from(start)
        self.assertEqual(fresh.remaining, 600)
        self.assertTrue(fresh._ticker.active)
        self.assertEqual(self.notifier.scheduled, [600])
        # Later ticks run off the monotonic anchor set during resume
        self.clock.advance(100)
        fresh._ticker.fire()
        self.assertEqual(fresh.remaining, 500)

    def test_resume_after_expiry_stops(self):
        from rt.core.reminder import ReminderCountdown
        fresh = ReminderCountdown(notifier=self.notifier, clock=self.clock, ticker_factory=ManualTicker, minutes=15)
        start = self.clock.now() - timedelta(seconds=1000)
        fresh.resume_from(start)
        self.assertEqual(fresh.remaining, 0)
        self.assertFalse(fresh._ticker.active)
        self.assertIsNone(fresh.started_at)
        self.assertEqual(self.notifier.scheduled, [])

    def test_notifier_failure_does_not_break_countdown(self):
        from rt.core.reminder import ReminderCountdown
        reminder = ReminderCountdown(notifier=RecordingNotifier(fail=True), clock=self.clock,
                                     ticker_factory=ManualTicker)
        reminder.start(20)
        self.assertEqual(reminder.remaining, 1200)
        self.assertTrue(reminder.active)

    def test_null_notifier_default(self):
        from rt.core.reminder import ReminderCountdown
        reminder = ReminderCountdown(clock=self.clock, ticker_factory=ManualTicker)
        reminder.start(30)
        reminder.stop()
        self.assertEqual(reminder.remaining, 0)


if __name__ == "__main__":
    unittest.main()
