#!/usr/bin/env python3
"""
Trainer operation tests (decision pipeline, bot sessions, credits, progress).

Run with: python -m unittest tests.test_trainer
"""

import unittest
from datetime import timedelta
from decimal import Decimal

import db
from bot_table import BOT_SESSION_COST, BotTableState
from credit_ledger import MAX_CREDITS
from errors import (
    AccountNotFound,
    BotSessionClosed,
    BotSessionNotFound,
    InsufficientCredits,
    InvalidAction,
    ScenarioNotFound,
)
from scenario_seed import seed_scenarios
from tests.fake_supabase import FakeAPIError, FakeClock, FakeSupabase
from trainer import Trainer

USER = "user-1"
BTN_3BET = 1          # "Button vs BB 3-bet", GTO, 50 credits
FINAL_TABLE = 11      # "Final Table Bubble", ICM, 100 credits


class TrainerTestCase(unittest.TestCase):

    def setUp(self):
        self.fake = FakeSupabase()
        self.clock = FakeClock()
        seed_scenarios(sb=self.fake)
        self.trainer = Trainer(sb=self.fake, clock=self.clock)
        self.trainer.open_account(USER, "player@example.com")

    def set_credits(self, credits: int) -> None:
        self.fake.patch("accounts", {"user_id": USER}, {"credits": credits})

    def credits(self) -> int:
        return self.fake.rows("accounts")[0]["credits"]


class TestSubmitScenarioDecision(TrainerTestCase):

    def test_correct_decision(self):
        r = self.trainer.submit_scenario_decision(USER, BTN_3BET, "4-bet to $55", time_spent=12)

        self.assertTrue(r.is_correct)
        self.assertEqual(r.credits_spent, 50)
        self.assertEqual(r.value_difference, 0.0)
        self.assertEqual(r.scenario_type, "gto")
        self.assertEqual(self.credits(), MAX_CREDITS - 50)
        self.assertEqual(r.progress.gto_accuracy, 100.0)
        self.assertEqual(r.progress.total_sessions, 1)

        rows = self.fake.rows("training_sessions")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["id"], r.session_id)
        self.assertEqual(rows[0]["user_action"], "4-bet to $55")
        self.assertEqual(rows[0]["time_spent"], 12)
        self.assertTrue(rows[0]["is_correct"])

    def test_incorrect_decision_records_rounded_gap(self):
        r = self.trainer.submit_scenario_decision(USER, BTN_3BET, "Fold")

        self.assertFalse(r.is_correct)
        self.assertAlmostEqual(r.value_difference, -9.47)
        self.assertEqual(r.optimal_action, "4-bet to $55")
        self.assertEqual(self.fake.rows("training_sessions")[0]["ev_difference"], -9.47)
        self.assertNotIn("time_spent", self.fake.rows("training_sessions")[0])
        self.assertEqual(r.progress.gto_accuracy, 0.0)

    def test_icm_costs_catalog_price(self):
        r = self.trainer.submit_scenario_decision(USER, FINAL_TABLE, "All-in")

        self.assertEqual(r.credits_spent, 100)
        self.assertEqual(self.credits(), MAX_CREDITS - 100)
        self.assertEqual(r.progress.icm_score, 100.0)
        self.assertEqual(r.progress.gto_samples, 0)

    def test_insufficient_credits_writes_nothing(self):
        """10 credits, 50-credit scenario: declined, no session, balance 10."""
        self.set_credits(10)

        with self.assertRaises(InsufficientCredits) as ctx:
            self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")

        self.assertEqual(ctx.exception.needed, 50)
        self.assertEqual(ctx.exception.available, 10)
        self.assertEqual(self.credits(), 10)
        self.assertEqual(self.fake.rows("training_sessions"), [])
        self.assertEqual(self.fake.rows("user_progress"), [])

    def test_unknown_scenario(self):
        with self.assertRaises(ScenarioNotFound):
            self.trainer.submit_scenario_decision(USER, 999, "Call")
        self.assertEqual(self.credits(), MAX_CREDITS)

    def test_zero_cost_scenario_is_declined(self):
        """A stored spot with no price is declined before any credits move."""
        self.fake.patch("scenarios", {"id": BTN_3BET}, {"credits": 0})

        with self.assertRaises(ScenarioNotFound):
            self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")

        self.assertEqual(self.credits(), MAX_CREDITS)
        self.assertEqual(self.fake.rows("training_sessions"), [])
        self.assertEqual(self.fake.rows("user_progress"), [])

    def test_invalid_action_is_free(self):
        with self.assertRaises(InvalidAction):
            self.trainer.submit_scenario_decision(USER, BTN_3BET, "Shove")
        self.assertEqual(self.credits(), MAX_CREDITS)
        self.assertEqual(self.fake.rows("training_sessions"), [])

    def test_unknown_account(self):
        with self.assertRaises(AccountNotFound):
            self.trainer.submit_scenario_decision("nobody", BTN_3BET, "Call")
        self.assertEqual(self.fake.rows("training_sessions"), [])

    def test_session_insert_failure_refunds(self):
        self.fake.fail_next("training_sessions", "insert")

        with self.assertRaises(FakeAPIError):
            self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")

        self.assertEqual(self.credits(), MAX_CREDITS)
        self.assertEqual(self.fake.rows("training_sessions"), [])
        self.assertEqual(self.fake.rows("user_progress"), [])

    def test_progress_failure_keeps_attempt(self):
        """Session stands and is paid for; progress comes back None."""
        self.trainer.get_progress(USER)
        self.fake.fail_next("user_progress", "update")

        r = self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")

        self.assertIsNone(r.progress)
        self.assertEqual(self.credits(), MAX_CREDITS - 50)
        self.assertEqual(len(self.fake.rows("training_sessions")), 1)

    def test_balance_runs_down_to_refusal(self):
        self.set_credits(120)
        self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")
        self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")

        with self.assertRaises(InsufficientCredits):
            self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")
        self.assertEqual(self.credits(), 20)
        self.assertEqual(len(self.fake.rows("training_sessions")), 2)

    def test_recent_sessions_newest_first(self):
        self.trainer.submit_scenario_decision(USER, BTN_3BET, "Fold")
        self.fake.patch("training_sessions", {"id": 1}, {"created_at": "2025-01-01T10:00:00+00:00"})
        self.trainer.submit_scenario_decision(USER, BTN_3BET, "Call")
        self.fake.patch("training_sessions", {"id": 2}, {"created_at": "2025-01-01T11:00:00+00:00"})

        rows = self.trainer.recent_training_sessions(USER)
        self.assertEqual([r["user_action"] for r in rows], ["Call", "Fold"])
        self.assertEqual(len(self.trainer.recent_training_sessions(USER, limit=1)), 1)


class TestCredits(TrainerTestCase):

    def test_current_credits_applies_regeneration(self):
        self.set_credits(500)
        self.clock.advance(hours=24)

        self.assertEqual(self.trainer.get_current_credits(USER), 600)
        self.assertEqual(self.trainer.get_current_credits(USER), 600)

    def test_current_credits_inside_window(self):
        self.set_credits(500)
        self.clock.advance(hours=23)
        self.assertEqual(self.trainer.get_current_credits(USER), 500)

    def test_refresh_reports_countdown(self):
        self.clock.advance(hours=6)
        acct = self.trainer.refresh_account(USER)
        self.assertEqual(self.trainer.seconds_until_regeneration(acct), 18 * 3600)

    def test_unknown_account(self):
        with self.assertRaises(AccountNotFound):
            self.trainer.get_current_credits("nobody")


class TestBotSessions(TrainerTestCase):

    def test_start_deducts_and_opens(self):
        state = self.trainer.start_bot_session(USER, "lag", "hard")

        self.assertIsInstance(state, BotTableState)
        self.assertEqual(state.bot_type, "lag")
        self.assertEqual(state.difficulty, "hard")
        self.assertFalse(state.ended)
        self.assertEqual(self.credits(), MAX_CREDITS - BOT_SESSION_COST)
        self.assertIsNone(self.fake.rows("bot_sessions")[0]["ended_at"])

    def test_start_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            self.trainer.start_bot_session(USER, "fish", "easy")
        with self.assertRaises(ValueError):
            self.trainer.start_bot_session(USER, "gto", "nightmare")
        self.assertEqual(self.credits(), MAX_CREDITS)

    def test_start_insufficient(self):
        self.set_credits(24)
        with self.assertRaises(InsufficientCredits):
            self.trainer.start_bot_session(USER)
        self.assertEqual(self.fake.rows("bot_sessions"), [])

    def test_start_insert_failure_refunds(self):
        self.fake.fail_next("bot_sessions", "insert")
        with self.assertRaises(FakeAPIError):
            self.trainer.start_bot_session(USER)
        self.assertEqual(self.credits(), MAX_CREDITS)

    def test_end_persists_stats_and_win_rate(self):
        state = self.trainer.start_bot_session(USER)
        for won, profit in ((True, 3.5), (False, -1), (True, 2.25), (False, -0.5)):
            state.record_hand(won, profit)

        self.clock.advance(minutes=30)
        closed = self.trainer.end_bot_session(state)

        self.assertTrue(closed.ended)
        row = self.fake.rows("bot_sessions")[0]
        self.assertEqual(row["hands_played"], 4)
        self.assertEqual(row["hands_won"], 2)
        self.assertEqual(row["total_profit"], "4.25")
        self.assertEqual(row["ended_at"], db.iso_utc(self.clock()))
        self.assertEqual(closed.total_profit, Decimal("4.25"))

        p = self.trainer.get_progress(USER)
        self.assertEqual(p.win_rate, 50.0)
        self.assertEqual(p.total_sessions, 0)

    def test_end_twice(self):
        state = self.trainer.start_bot_session(USER)
        self.trainer.end_bot_session(state)

        with self.assertRaises(BotSessionClosed):
            self.trainer.end_bot_session(state)

    def test_end_unknown(self):
        ghost = BotTableState(session_id=42, user_id=USER, bot_type="gto", difficulty="easy")
        with self.assertRaises(BotSessionNotFound):
            self.trainer.end_bot_session(ghost)

    def test_end_other_users_session(self):
        state = self.trainer.start_bot_session(USER)
        stolen = BotTableState.from_dict(dict(state.to_dict(), user_id="user-2"))
        with self.assertRaises(BotSessionNotFound):
            self.trainer.end_bot_session(stolen)

    def test_end_with_no_hands_skips_win_rate(self):
        state = self.trainer.start_bot_session(USER)
        self.trainer.end_bot_session(state)

        self.assertEqual(self.trainer.get_progress(USER).win_rate_samples, 0)

    def test_end_rejects_impossible_stats(self):
        state = self.trainer.start_bot_session(USER)
        with self.assertRaises(ValueError):
            self.trainer.end_bot_session(state, {"hands_played": 3, "hands_won": 5, "total_profit": 0})
        self.assertIsNone(self.fake.rows("bot_sessions")[0]["ended_at"])

    def test_recent_bot_sessions(self):
        self.trainer.start_bot_session(USER, "gto")
        self.fake.patch("bot_sessions", {"id": 1}, {"started_at": "2025-01-01T10:00:00+00:00"})
        self.trainer.start_bot_session(USER, "tag")
        self.fake.patch("bot_sessions", {"id": 2}, {"started_at": "2025-01-01T11:00:00+00:00"})

        self.assertEqual([r["bot_type"] for r in self.trainer.recent_bot_sessions(USER)], ["tag", "gto"])


class TestBotTableState(unittest.TestCase):

    def test_record_after_end(self):
        s = BotTableState(session_id=1, user_id=USER, bot_type="gto", difficulty="easy", ended=True)
        with self.assertRaises(RuntimeError):
            s.record_hand(True, 1)

    def test_dict_round_trip_keeps_money(self):
        s = BotTableState(session_id=1, user_id=USER, bot_type="tag", difficulty="medium")
        s.record_hand(True, "1.005")
        again = BotTableState.from_dict(s.to_dict())

        self.assertEqual(again.total_profit, Decimal("1.01"))
        self.assertEqual(again.win_rate, 100.0)

    def test_win_rate_before_first_hand(self):
        s = BotTableState(session_id=1, user_id=USER, bot_type="gto", difficulty="easy")
        self.assertIsNone(s.win_rate)


class TestProgress(TrainerTestCase):

    def test_fresh_account_progress_is_zero(self):
        p = self.trainer.get_progress(USER)
        self.assertEqual((p.total_sessions, p.gto_accuracy, p.icm_score), (0, 0.0, 0.0))

    def test_pipeline_progress_sequence(self):
        seen = [
            self.trainer.submit_scenario_decision(USER, BTN_3BET, a).progress.gto_accuracy
            for a in ("4-bet to $55", "Fold", "4-bet to $55")
        ]
        self.assertEqual(seen, [100.0, 50.0, 66.67])


if __name__ == "__main__":
    unittest.main(verbosity=2)
