# trainer.py — the operations pages call: submit a decision, run a bot session, read credits/progress
#
# Flow for a scenario decision:
#   catalog lookup -> action check -> atomic deduct -> evaluate -> append session -> fold progress
#
# Nothing is written before the deduction succeeds. PostgREST gives us no multi-statement
# transaction, so a failure after the deduction is compensated (refund) or logged as
# [reconcile] for a human to square up.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import db
from bot_table import BOT_DIFFICULTIES, BOT_SESSION_COST, BOT_TYPES, BotTableState, to_money
from credit_ledger import Account, CreditLedger
from errors import (
    AccountNotFound,
    BotSessionClosed,
    BotSessionNotFound,
    InsufficientCredits,
    InvalidAction,
    ScenarioNotFound,
    TrainerError,
)
from evaluator import evaluate, validate_action
from progress import ProgressAggregator, ProgressRecord
from scenario_catalog import Scenario, ScenarioCatalog

__all__ = [
    "Trainer",
    "SessionResult",
    "TrainerError",
    "AccountNotFound",
    "BotSessionClosed",
    "BotSessionNotFound",
    "InsufficientCredits",
    "InvalidAction",
    "ScenarioNotFound",
]


@dataclass(frozen=True)
class SessionResult:
    session_id: int
    scenario_id: int
    scenario_type: str
    chosen_action: str
    is_correct: bool
    value_difference: float
    feedback: str
    optimal_action: str
    credits_spent: int
    progress: Optional[ProgressRecord]   # None if the progress fold failed (logged for reconcile)


class Trainer:
    """
    One instance per request/rerun is fine: it holds no per-user state, only the
    storage client and the clock.
    """

    def __init__(self, sb=None, clock: Optional[Callable[[], datetime]] = None):
        self.sb = sb
        self.ledger = CreditLedger(sb=sb, clock=clock)
        self.catalog = ScenarioCatalog(sb=sb)
        self.progress = ProgressAggregator(sb=sb)

    @classmethod
    def for_app(cls) -> "Trainer":
        """Service-role client: balance/progress rows are not writable with the anon key."""
        from supabase_client import get_supabase_admin
        return cls(sb=get_supabase_admin())

    # ============================================================
    # ACCOUNT / CREDITS
    # ============================================================
    def open_account(self, account_id: str, email: str = "") -> Account:
        return self.ledger.open_account(account_id, email)

    def refresh_account(self, account_id: str) -> Account:
        """Regeneration check, then read. Call on every authenticated 'current user' fetch."""
        self.ledger.regenerate(account_id)
        return self.ledger.get_account(account_id)

    def get_current_credits(self, account_id: str) -> int:
        return self.refresh_account(account_id).credits

    def seconds_until_regeneration(self, account: Account) -> float:
        return self.ledger.seconds_until_regeneration(account)

    def _spend(self, account_id: str, amount: int) -> None:
        if not self.ledger.try_deduct(account_id, amount):
            available = self.ledger.get_account(account_id).credits
            raise InsufficientCredits(needed=amount, available=available)

    def _refund_after_failure(self, account_id: str, amount: int, what: str, err: Exception) -> None:
        print(f"[reconcile] {what} failed after deducting {amount} credits user_id={account_id}: {err!r}")
        try:
            self.ledger.refund(account_id, amount)
            print(f"[reconcile] refunded {amount} credits user_id={account_id}")
        except Exception as refund_err:
            print(
                f"[reconcile] REFUND FAILED user_id={account_id} amount={amount} "
                f"(credits spent with no record): {refund_err!r}"
            )

    # ============================================================
    # SCENARIOS
    # ============================================================
    def list_scenarios(self, scenario_type: str) -> List[Scenario]:
        return self.catalog.list_by_type(scenario_type)

    def get_scenario(self, scenario_id: int) -> Scenario:
        return self.catalog.get_by_id(scenario_id)

    def submit_scenario_decision(
        self,
        account_id: str,
        scenario_id: int,
        chosen_action: str,
        *,
        time_spent: Optional[int] = None,
    ) -> SessionResult:
        """
        Raises ScenarioNotFound / InvalidAction / AccountNotFound / InsufficientCredits
        before anything is written.
        """
        scenario = self.catalog.get_by_id(scenario_id)
        validate_action(scenario, chosen_action)

        self._spend(account_id, scenario.cost)

        result = evaluate(scenario, chosen_action)

        payload: Dict[str, Any] = {
            "user_id": str(account_id),
            "scenario_id": scenario.id,
            "scenario_type": scenario.type,
            "user_action": chosen_action,
            "is_correct": result.is_correct,
            "ev_difference": round(result.value_difference, 2),
            "credits_spent": scenario.cost,
        }
        if time_spent is not None:
            payload["time_spent"] = int(time_spent)

        try:
            row = db.insert_training_session(payload, sb=self.sb)
        except Exception as e:
            self._refund_after_failure(account_id, scenario.cost, "training session insert", e)
            raise

        try:
            progress = self.progress.record_outcome(account_id, scenario.type, result.is_correct)
        except Exception as e:
            # the attempt is recorded and paid for; only the running stats are behind
            print(
                f"[reconcile] progress update failed user_id={account_id} "
                f"session_id={row.get('id')} type={scenario.type} correct={result.is_correct}: {e!r}"
            )
            progress = None

        return SessionResult(
            session_id=int(row.get("id") or 0),
            scenario_id=scenario.id,
            scenario_type=scenario.type,
            chosen_action=chosen_action,
            is_correct=result.is_correct,
            value_difference=result.value_difference,
            feedback=result.feedback,
            optimal_action=result.optimal_action,
            credits_spent=scenario.cost,
            progress=progress,
        )

    def recent_training_sessions(self, account_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        return db.list_training_sessions(account_id, limit, sb=self.sb)

    # ============================================================
    # BOT PRACTICE
    # ============================================================
    def start_bot_session(self, account_id: str, bot_type: str = "gto", difficulty: str = "medium") -> BotTableState:
        if bot_type not in BOT_TYPES:
            raise ValueError(f"Invalid bot type: {bot_type!r}")
        if difficulty not in BOT_DIFFICULTIES:
            raise ValueError(f"Invalid bot difficulty: {difficulty!r}")

        self._spend(account_id, BOT_SESSION_COST)

        payload = {
            "user_id": str(account_id),
            "bot_type": bot_type,
            "difficulty": difficulty,
            "hands_played": 0,
            "hands_won": 0,
            "total_profit": "0.00",
            "credits_spent": BOT_SESSION_COST,
        }
        try:
            row = db.insert_bot_session(payload, sb=self.sb)
        except Exception as e:
            self._refund_after_failure(account_id, BOT_SESSION_COST, "bot session insert", e)
            raise

        return BotTableState.from_row(row)

    def end_bot_session(self, state: BotTableState, final_stats: Optional[Dict[str, Any]] = None) -> BotTableState:
        """
        Persist final stats exactly once and fold the hand win rate into progress.win_rate.
        """
        stats = dict(final_stats or state.final_stats())
        hands_played = int(stats.get("hands_played") or 0)
        hands_won = int(stats.get("hands_won") or 0)
        if hands_played < 0 or not (0 <= hands_won <= hands_played):
            raise ValueError(f"Invalid bot session stats: won={hands_won} played={hands_played}")

        updates = {
            "hands_played": hands_played,
            "hands_won": hands_won,
            "total_profit": str(to_money(stats.get("total_profit"))),
            "ended_at": db.iso_utc(self.ledger.clock()),
        }

        row = db.close_bot_session_row(state.session_id, state.user_id, updates, sb=self.sb)
        if not row:
            if db.get_bot_session_row(state.session_id, state.user_id, sb=self.sb) is None:
                raise BotSessionNotFound("Bot session not found.")
            raise BotSessionClosed("This bot session has already ended.")

        if hands_played > 0:
            try:
                self.progress.record_sample(state.user_id, "win_rate", 100.0 * hands_won / hands_played)
            except Exception as e:
                print(f"[reconcile] win_rate update failed user_id={state.user_id} bot_session={state.session_id}: {e!r}")

        return BotTableState.from_row(row)

    def recent_bot_sessions(self, account_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        return db.list_bot_sessions(account_id, limit, sb=self.sb)

    # ============================================================
    # PROGRESS
    # ============================================================
    def get_progress(self, account_id: str) -> ProgressRecord:
        return self.progress.get_progress(account_id)
