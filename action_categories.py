# action_categories.py — coarse action classification only (NO state mutation)
from __future__ import annotations

import re
from typing import Optional

__all__ = ["normalize_label", "categorize"]

# Coarse buckets the feedback table is keyed on
FOLD = "fold"
CHECK = "check"
CALL = "call"
RAISE = "raise"     # bet / raise / 3-bet / 4-bet / squeeze
ALL_IN = "all_in"   # shove / jam / push
OTHER = "other"

# Leading verb of an authored label -> category
VERB_CATEGORIES = {
    "fold": FOLD,
    "muck": FOLD,
    "check": CHECK,
    "call": CALL,
    "limp": CALL,
    "bet": RAISE,
    "raise": RAISE,
    "open": RAISE,
    "squeeze": RAISE,
    "iso": RAISE,
    "all-in": ALL_IN,
    "allin": ALL_IN,
    "shove": ALL_IN,
    "jam": ALL_IN,
    "push": ALL_IN,
}

# "3-bet to $24", "4-bet", "5bet"
_N_BET_RE = re.compile(r"^\d+-?bet\b")
_ALL_IN_RE = re.compile(r"^all[\s_-]?in\b")


def normalize_label(label: Optional[str]) -> str:
    """Lowercase + collapse whitespace. Never used for correctness checks (those are exact)."""
    return " ".join(str(label or "").strip().lower().split())


def categorize(label: Optional[str]) -> str:
    """Map an authored action label ("4-bet to $55", "Bet $8", "All-in") to its coarse category."""
    s = normalize_label(label)
    if not s:
        return OTHER
    if _ALL_IN_RE.match(s):
        return ALL_IN
    if _N_BET_RE.match(s):
        return RAISE
    verb = s.split(" ", 1)[0]
    return VERB_CATEGORIES.get(verb, OTHER)
