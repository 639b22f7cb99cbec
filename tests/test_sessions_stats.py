"""Tests for the session store and the stats calculator.

Covers: rt.core.sessions, rt.core.stats
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path

from helpers import at


# ──────────────────────────────────────────────────────────────────────────
# sessions.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestSessionStore(unittest.TestCase):
    """CRUD, ordering and failure handling of SessionStore."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = Path(self.tmpdir) / "sessions.json"

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _store(self):
        from rt.core.sessions import SessionStore
        return SessionStore(self.path)

    def test_empty_when_no_file(self):
        store = self._store()
        self.assertEqual(store.sessions, [])

    def test_add_persists_and_sorts(self):
        store = self._store()
        store.add(at(0, 15), at(0, 16))
        store.add(at(0, 9), at(0, 10))
        starts = [s.start for s in store.sessions]
        self.assertEqual(starts, [at(0, 9), at(0, 15)])

        # A second store sees the same data on disk
        reloaded = self._store()
        self.assertEqual([s.id for s in reloaded.sessions], [s.id for s in store.sessions])

    def test_duration(self):
        store = self._store()
        session = store.add(at(0, 9), at(0, 10, 30))
        self.assertEqual(session.duration, 5400.0)

    def test_add_rejects_end_before_start(self):
        from rt.core.sessions import InvalidSessionError
        store = self._store()
        with self.assertRaises(InvalidSessionError):
            store.add(at(0, 10), at(0, 9))
        self.assertFalse(self.path.exists())

    def test_update_replaces_times(self):
        store = self._store()
        session = store.add(at(0, 9), at(0, 10))
        updated = store.update(session, at(0, 8), at(0, 10))
        self.assertEqual(updated.id, session.id)
        self.assertEqual([(s.id, s.start) for s in store.sessions], [(session.id, at(0, 8))])
        self.assertEqual(len(store.sessions), 1)

    def test_update_rejects_end_before_start(self):
        from rt.core.sessions import InvalidSessionError
        store = self._store()
        session = store.add(at(0, 9), at(0, 10))
        with self.assertRaises(InvalidSessionError):
            store.update(session, at(0, 11), at(0, 10))
        self.assertEqual([s.start for s in self._store().sessions], [at(0, 9)])

    def test_delete(self):
        store = self._store()
        keep = store.add(at(0, 9), at(0, 10))
        drop = store.add(at(0, 11), at(0, 12))
        store.delete(drop)
        self.assertEqual([s.id for s in store.sessions], [keep.id])

    def test_delete_all_with_predicate(self):
        store = self._store()
        store.add(at(-1, 9), at(-1, 10))
        store.add(at(0, 9), at(0, 10))
        store.add(at(0, 13), at(0, 14))
        removed = store.delete_all(lambda s: s.day == at(0, 0).date())
        self.assertEqual(removed, 2)
        self.assertEqual([s.start for s in store.sessions], [at(-1, 9)])

    def test_undo_last_removes_latest_start(self):
        store = self._store()
        # Written out of order on purpose
        store.add(at(0, 15), at(0, 15, 30))
        store.add(at(0, 9), at(0, 9, 30))
        store.add(at(0, 12), at(0, 12, 30))
        removed = store.undo_last()
        self.assertEqual(removed.start, at(0, 15))
        self.assertEqual([s.start for s in store.sessions], [at(0, 9), at(0, 12)])

    def test_undo_last_on_empty(self):
        self.assertIsNone(self._store().undo_last())

    def test_today_view_is_descending(self):
        store = self._store()
        store.add(at(-1, 20), at(-1, 21))
        store.add(at(0, 8), at(0, 9))
        store.add(at(0, 18), at(0, 19))
        today = store.today(at(0, 0).date())
        self.assertEqual([s.start for s in today], [at(0, 18), at(0, 8)])

    def test_corrupt_file_is_empty_list(self):
        with open(self.path, "w") as f:
            f.write("[{not json")
        self.assertEqual(self._store().sessions, [])

    def test_non_list_file_is_empty_list(self):
        with open(self.path, "w") as f:
            json.dump({"sessions": []}, f)
        self.assertEqual(self._store().sessions, [])

    def test_malformed_records_are_skipped(self):
        with open(self.path, "w") as f:
            json.dump([
                {"id": "a", "start": at(0, 9).isoformat(), "end": at(0, 10).isoformat()},
                {"id": "b", "start": "yesterday-ish"},
                {"id": "c", "start": at(0, 12).isoformat(), "end": at(0, 11).isoformat()},
            ], f)
        store = self._store()
        self.assertEqual([s.id for s in store.sessions], ["a"])

    def test_write_leaves_no_temp_files(self):
        store = self._store()
        store.add(at(0, 9), at(0, 10))
        self.assertEqual(os.listdir(self.tmpdir), ["sessions.json"])


# ──────────────────────────────────────────────────────────────────────────
# stats.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestStats(unittest.TestCase):
    """Streaks, daily totals and summaries."""

    GOAL = 3600.0

    def _sessions(self, *spans):
        from rt.core.sessions import Session
        return [Session(start=start, end=end) for start, end in spans]

    def test_streak_three_days_under_goal(self):
        from rt.core.stats import streak_stats
        sessions = self._sessions(
            (at(-2, 9), at(-2, 9, 30)),
            (at(-1, 9), at(-1, 9, 45)),
            (at(0, 9), at(0, 10)),
        )
        result = streak_stats(sessions, self.GOAL, at(0, 0).date())
        self.assertEqual(result.current_streak, 3)
        self.assertGreaterEqual(result.best_streak, 3)
        self.assertEqual(result.days_met_goal_last_7_days, 3)

    def test_over_goal_today_does_not_break_streak(self):
        from rt.core.stats import streak_stats
        sessions = self._sessions(
            (at(-2, 9), at(-2, 9, 30)),
            (at(-1, 9), at(-1, 9, 30)),
            (at(0, 9), at(0, 11)),
        )
        result = streak_stats(sessions, self.GOAL, at(0, 0).date())
        self.assertEqual(result.current_streak, 2)
        self.assertEqual(result.best_streak, 2)
        self.assertEqual(result.days_met_goal_last_7_days, 2)

    def test_over_goal_day_breaks_streak(self):
        from rt.core.stats import streak_stats
        sessions = self._sessions(
            (at(-3, 9), at(-3, 9, 30)),
            (at(-2, 9), at(-2, 12)),
            (at(-1, 9), at(-1, 9, 30)),
            (at(0, 9), at(0, 9, 30)),
        )
        result = streak_stats(sessions, self.GOAL, at(0, 0).date())
        self.assertEqual(result.current_streak, 2)
        self.assertEqual(result.best_streak, 2)
        self.assertEqual(result.days_met_goal_last_7_days, 3)

    def test_empty_days_after_first_record_count_as_met(self):
        from rt.core.stats import streak_stats
        sessions = self._sessions((at(-4, 9), at(-4, 9, 10)))
        result = streak_stats(sessions, self.GOAL, at(0, 0).date())
        self.assertEqual(result.current_streak, 5)
        self.assertEqual(result.best_streak, 5)
        self.assertEqual(result.days_met_goal_last_7_days, 5)

    def test_no_sessions(self):
        from rt.core.stats import streak_stats
        result = streak_stats([], self.GOAL, at(0, 0).date())
        self.assertEqual((result.current_streak, result.best_streak, result.days_met_goal_last_7_days), (1, 1, 1))

    def test_daily_totals_group_by_start_day(self):
        from rt.core.stats import daily_totals
        sessions = self._sessions(
            (at(0, 9), at(0, 10)),
            (at(0, 23, 30), at(1, 0, 30)),
            (at(1, 8), at(1, 8, 15)),
        )
        totals = daily_totals(sessions)
        self.assertEqual(totals[at(0, 0).date()], 3600.0 + 3600.0)
        self.assertEqual(totals[at(1, 0).date()], 900.0)

    def test_session_statistics(self):
        from rt.core.stats import session_statistics
        stats = session_statistics(self._sessions((at(0, 9), at(0, 10)), (at(0, 12), at(0, 12, 30))))
        self.assertEqual(stats.session_count, 2)
        self.assertEqual(stats.total_time, 5400.0)
        self.assertEqual(stats.average_time, 2700.0)
        self.assertEqual(session_statistics([]).average_time, 0.0)

    def test_history_is_oldest_first(self):
        from rt.core.stats import history
        rows = history(self._sessions((at(-1, 9), at(-1, 9, 20))), at(0, 0).date())
        self.assertEqual(len(rows), 7)
        self.assertEqual(rows[0][0], at(-6, 0).date())
        self.assertEqual(rows[-1][0], at(0, 0).date())
        self.assertEqual(rows[-2][1], 1200.0)

    def test_is_goal_met_before_first_day(self):
        from rt.core.stats import is_goal_met
        first = at(0, 0).date()
        self.assertFalse(is_goal_met(at(-1, 0).date(), {}, first, self.GOAL))
        self.assertTrue(is_goal_met(first, {}, first, self.GOAL))
        self.assertFalse(is_goal_met(first, {first: 4000.0}, first, self.GOAL))


if __name__ == "__main__":
    unittest.main()
