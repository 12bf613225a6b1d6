#!/usr/bin/env python3
"""
Scenario catalog + seeding tests.

Run with: python -m unittest tests.test_scenario_catalog
"""

import json
import unittest

from errors import ScenarioNotFound
from scenario_catalog import DIFFICULTY_TIERS, Scenario, ScenarioCatalog
from scenario_seed import GTO_COST, ICM_COST, all_seed_scenarios, seed_scenarios
from tests.fake_supabase import FakeSupabase


class TestSeeding(unittest.TestCase):

    def test_seed_inserts_all_authored_spots(self):
        fake = FakeSupabase()
        self.assertEqual(seed_scenarios(sb=fake), 13)
        self.assertEqual(len(fake.rows("scenarios")), 13)

    def test_seed_is_idempotent(self):
        """Second run inserts nothing."""
        fake = FakeSupabase()
        seed_scenarios(sb=fake)
        self.assertEqual(seed_scenarios(sb=fake), 0)
        self.assertEqual(len(fake.rows("scenarios")), 13)

    def test_seed_fills_only_missing_titles(self):
        fake = FakeSupabase()
        fake.put("scenarios", all_seed_scenarios()[0])
        self.assertEqual(seed_scenarios(sb=fake), 12)

    def test_authored_optimal_is_best_value(self):
        """Every authored spot's optimal action carries the highest value."""
        for row in all_seed_scenarios():
            row = dict(row, id=1)
            s = Scenario.from_row(row)
            best = max(v for _, v in s.actions)
            self.assertEqual(s.value_of(s.optimal_action), best, row["title"])


class TestCatalog(unittest.TestCase):

    def setUp(self):
        self.fake = FakeSupabase()
        seed_scenarios(sb=self.fake)
        self.catalog = ScenarioCatalog(sb=self.fake)

    def test_get_by_id(self):
        s = self.catalog.get_by_id(1)

        self.assertEqual(s.title, "Button vs BB 3-bet")
        self.assertEqual(s.type, "gto")
        self.assertEqual(s.cost, GTO_COST)
        self.assertEqual(s.optimal_action, "4-bet to $55")
        self.assertEqual(s.action_labels, ["Fold", "Call", "4-bet to $55"])
        self.assertEqual(s.hero_cards, ("A♠", "K♠"))

    def test_get_by_id_is_repeatable(self):
        """No side effects: the same id returns an equal scenario every time."""
        self.assertEqual(self.catalog.get_by_id(3), self.catalog.get_by_id(3))
        self.assertEqual(len(self.fake.rows("scenarios")), 13)

    def test_unknown_id(self):
        with self.assertRaises(ScenarioNotFound):
            self.catalog.get_by_id(999)

    def test_non_numeric_id(self):
        with self.assertRaises(ScenarioNotFound):
            self.catalog.get_by_id("abc")

    def test_icm_values_are_equity(self):
        icm = self.catalog.list_by_type("icm")

        self.assertEqual(len(icm), 3)
        self.assertTrue(all(s.cost == ICM_COST for s in icm))
        self.assertTrue(all(s.value_unit == "equity" for s in icm))

    def test_list_by_type_filters_and_orders(self):
        """Difficulty tier first, then title."""
        gto = self.catalog.list_by_type("gto")

        self.assertEqual(len(gto), 10)
        self.assertTrue(all(s.type == "gto" for s in gto))
        keys = [(DIFFICULTY_TIERS[s.difficulty], s.title) for s in gto]
        self.assertEqual(keys, sorted(keys))
        self.assertEqual(gto[0].difficulty, "beginner")
        self.assertEqual(gto[-1].difficulty, "advanced")

    def test_list_by_unknown_type(self):
        with self.assertRaises(ValueError):
            self.catalog.list_by_type("omaha")

    def test_malformed_row_is_skipped_in_lists(self):
        """An optimal action missing from the menu never reaches the trainer."""
        bad = dict(all_seed_scenarios()[0], title="Broken", optimal_action="Limp")
        row = self.fake.put("scenarios", bad)

        self.assertEqual(len(self.catalog.list_by_type("gto")), 10)
        with self.assertRaises(ScenarioNotFound):
            self.catalog.get_by_id(row["id"])

    def test_empty_actions_rejected(self):
        row = self.fake.put("scenarios", dict(all_seed_scenarios()[0], title="Empty", actions=[]))
        with self.assertRaises(ScenarioNotFound):
            self.catalog.get_by_id(row["id"])

    def test_zero_cost_row_is_unavailable(self):
        """A free or negative-cost spot is skipped in lists and declined by id."""
        zero = self.fake.put("scenarios", dict(all_seed_scenarios()[0], title="Free", credits=0))
        negative = self.fake.put("scenarios", dict(all_seed_scenarios()[1], title="Paid out", credits=-50))

        titles = [s.title for s in self.catalog.list_by_type("gto")]
        self.assertEqual(len(titles), 10)
        self.assertNotIn("Free", titles)
        self.assertNotIn("Paid out", titles)
        for row in (zero, negative):
            with self.assertRaises(ScenarioNotFound):
                self.catalog.get_by_id(row["id"])

    def test_from_row_rejects_non_positive_cost(self):
        with self.assertRaises(ValueError):
            Scenario.from_row(dict(all_seed_scenarios()[0], id=7, credits=0))

    def test_json_string_actions_are_decoded(self):
        """jsonb may come back as a string."""
        src = dict(all_seed_scenarios()[1], title="Stringly")
        src["actions"] = json.dumps(src["actions"])
        row = self.fake.put("scenarios", src)

        s = self.catalog.get_by_id(row["id"])
        self.assertEqual(s.value_of("Bet $8"), 1.20)


class TestScenarioValues(unittest.TestCase):

    def test_value_lookup_is_exact(self):
        s = Scenario.from_row(dict(all_seed_scenarios()[0], id=7))

        self.assertEqual(s.value_of("Call"), 1.25)
        self.assertIsNone(s.value_of("call"))
        self.assertIsNone(s.value_of("Raise"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
