# bot_table.py — explicit, serializable bot-practice session state
#
# This object is *pure logic*: no Streamlit, no Supabase. Pages keep it in
# st.session_state via to_dict()/from_dict(); trainer.py persists the final stats.
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

# ----------------------------- Tunables -----------------------------

BOT_SESSION_COST = 25   # credits per session ("per 50 hands" in the UI copy)

BOT_TYPES = {
    "gto": "GTO Bot",   # balanced baseline
    "lag": "LAG Bot",   # loose aggressive
    "tag": "TAG Bot",   # tight aggressive
}

BOT_DIFFICULTIES = ("easy", "medium", "hard")

_CENTS = Decimal("0.01")


def to_money(x: Any) -> Decimal:
    """Profit fields are decimal with 2 fraction digits."""
    return Decimal(str(x if x is not None else 0)).quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass
class BotTableState:
    session_id: int
    user_id: str
    bot_type: str
    difficulty: str
    hands_played: int = 0
    hands_won: int = 0
    total_profit: Decimal = Decimal("0.00")
    credits_spent: int = BOT_SESSION_COST
    started_at: Optional[str] = None
    ended: bool = False

    def record_hand(self, won: bool, profit: Any = 0) -> None:
        """One finished hand. profit is in big blinds, signed."""
        if self.ended:
            raise RuntimeError("Bot session already ended.")
        self.hands_played += 1
        if won:
            self.hands_won += 1
        self.total_profit = to_money(self.total_profit + to_money(profit))

    @property
    def win_rate(self) -> Optional[float]:
        """Hands won as a 0-100 percentage; None before the first hand."""
        if self.hands_played <= 0:
            return None
        return 100.0 * self.hands_won / self.hands_played

    def final_stats(self) -> Dict[str, Any]:
        return {
            "hands_played": int(self.hands_played),
            "hands_won": int(self.hands_won),
            "total_profit": self.total_profit,
        }

    # ============================================================
    #  Persistence helpers (st.session_state round trip)
    # ============================================================
    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "bot_type": self.bot_type,
            "difficulty": self.difficulty,
            "hands_played": self.hands_played,
            "hands_won": self.hands_won,
            "total_profit": str(self.total_profit),
            "credits_spent": self.credits_spent,
            "started_at": self.started_at,
            "ended": self.ended,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BotTableState":
        return cls(
            session_id=int(data["session_id"]),
            user_id=str(data.get("user_id") or ""),
            bot_type=str(data.get("bot_type") or "gto"),
            difficulty=str(data.get("difficulty") or "medium"),
            hands_played=int(data.get("hands_played") or 0),
            hands_won=int(data.get("hands_won") or 0),
            total_profit=to_money(data.get("total_profit")),
            credits_spent=int(data.get("credits_spent") or BOT_SESSION_COST),
            started_at=data.get("started_at"),
            ended=bool(data.get("ended", False)),
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "BotTableState":
        return cls(
            session_id=int(row["id"]),
            user_id=str(row.get("user_id") or ""),
            bot_type=str(row.get("bot_type") or "gto"),
            difficulty=str(row.get("difficulty") or "medium"),
            hands_played=int(row.get("hands_played") or 0),
            hands_won=int(row.get("hands_won") or 0),
            total_profit=to_money(row.get("total_profit")),
            credits_spent=int(row.get("credits_spent") or 0),
            started_at=row.get("started_at"),
            ended=row.get("ended_at") is not None,
        )
