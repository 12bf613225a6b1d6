#!/usr/bin/env python3
"""
Progress aggregator tests.

Run with: python -m unittest tests.test_progress
"""

import threading
import unittest

from errors import ContentionError
from progress import ProgressAggregator, running_average, zero_progress_row
from tests.fake_supabase import FakeSupabase

USER = "user-1"


class TestRunningAverage(unittest.TestCase):

    def test_first_sample(self):
        self.assertEqual(running_average(0.0, 0, 100.0), 100.0)

    def test_fold(self):
        self.assertEqual(running_average(100.0, 1, 0.0), 50.0)
        self.assertAlmostEqual(running_average(50.0, 2, 100.0), 66.6666667, places=5)

    def test_negative_count_treated_as_empty(self):
        self.assertEqual(running_average(40.0, -3, 80.0), 80.0)


class TestProgressAggregator(unittest.TestCase):

    def setUp(self):
        self.fake = FakeSupabase()
        self.agg = ProgressAggregator(sb=self.fake)

    def test_lazy_zero_record(self):
        """First read creates an all-zero record; later reads reuse it."""
        p = self.agg.get_progress(USER)

        self.assertEqual(p.total_sessions, 0)
        self.assertEqual(p.gto_accuracy, 0.0)
        self.assertEqual(p.icm_score, 0.0)
        self.assertEqual(p.win_rate, 0.0)
        self.agg.get_progress(USER)
        self.assertEqual(len(self.fake.rows("user_progress")), 1)

    def test_correct_incorrect_correct(self):
        """[correct, incorrect, correct] -> 100, 50, 66.67."""
        seen = []
        for ok in (True, False, True):
            p = self.agg.record_outcome(USER, "gto", ok)
            seen.append(p.gto_accuracy)
            self.assertEqual(p.icm_score, 0.0)

        self.assertEqual(seen, [100.0, 50.0, 66.67])
        p = self.agg.get_progress(USER)
        self.assertEqual(p.total_sessions, 3)
        self.assertEqual(p.gto_samples, 3)

    def test_types_are_independent(self):
        """ICM results never touch the GTO average or its weight."""
        self.agg.record_outcome(USER, "gto", True)
        self.agg.record_outcome(USER, "icm", False)
        self.agg.record_outcome(USER, "icm", False)
        p = self.agg.record_outcome(USER, "gto", False)

        self.assertEqual(p.gto_accuracy, 50.0)
        self.assertEqual(p.gto_samples, 2)
        self.assertEqual(p.icm_score, 0.0)
        self.assertEqual(p.icm_samples, 2)
        self.assertEqual(p.total_sessions, 4)

    def test_first_icm_after_gto_history(self):
        self.agg.record_outcome(USER, "gto", False)
        self.agg.record_outcome(USER, "gto", False)
        p = self.agg.record_outcome(USER, "icm", True)

        self.assertEqual(p.icm_score, 100.0)
        self.assertEqual(p.gto_accuracy, 0.0)

    def test_unknown_type(self):
        with self.assertRaises(ValueError):
            self.agg.record_outcome(USER, "omaha", True)

    def test_win_rate_sample_does_not_count_session(self):
        p = self.agg.record_sample(USER, "win_rate", 40.0)

        self.assertEqual(p.win_rate, 40.0)
        self.assertEqual(p.win_rate_samples, 1)
        self.assertEqual(p.total_sessions, 0)

    def test_sample_is_clamped(self):
        self.assertEqual(self.agg.record_sample(USER, "preflop", 140.0).preflop_accuracy, 100.0)
        self.assertEqual(self.agg.record_sample(USER, "postflop", -5.0).postflop_accuracy, 0.0)

    def test_unknown_series(self):
        with self.assertRaises(ValueError):
            self.agg.record_sample(USER, "bluffing", 50.0)

    def test_version_bumps_every_write(self):
        self.agg.record_outcome(USER, "gto", True)
        p = self.agg.record_outcome(USER, "icm", True)
        self.assertEqual(p.version, 2)

    def test_concurrent_outcomes_all_land(self):
        """Racing folds retry on version mismatch; none is lost."""
        self.agg.get_progress(USER)
        barrier = threading.Barrier(4)

        def record():
            barrier.wait()
            self.agg.record_outcome(USER, "gto", True)

        threads = [threading.Thread(target=record) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        p = self.agg.get_progress(USER)
        self.assertEqual(p.total_sessions, 4)
        self.assertEqual(p.gto_samples, 4)
        self.assertEqual(p.gto_accuracy, 100.0)

    def test_contention_gives_up(self):
        self.agg.get_progress(USER)

        def bump(f, table, op):
            if table == "user_progress" and op == "update":
                v = f.rows("user_progress")[0]["version"]
                f.patch("user_progress", {"user_id": USER}, {"version": v + 1})

        self.fake.before_execute(bump)
        with self.assertRaises(ContentionError):
            self.agg.record_outcome(USER, "gto", True)

    def test_to_dict_has_every_column(self):
        d = self.agg.get_progress(USER).to_dict()
        for col in zero_progress_row():
            self.assertIn(col, d)


if __name__ == "__main__":
    unittest.main(verbosity=2)
