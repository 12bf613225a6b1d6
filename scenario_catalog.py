# scenario_catalog.py — read-only scenario lookup (cost + action/value table + optimal action)
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import db
from errors import ScenarioNotFound

SCENARIO_TYPES = ("gto", "icm")

# Display order for list_by_type(); unknown tiers sort last
DIFFICULTY_TIERS = {
    "beginner": 0,
    "intermediate": 1,
    "advanced": 2,
}

# Value key per authored action entry: GTO spots carry EV, ICM spots tournament equity
_VALUE_KEYS = ("ev", "equity", "value")


def _parse_actions(raw: Any) -> Tuple[Tuple[str, float], ...]:
    """[{"action": "Call", "ev": 1.25}, ...] -> (("Call", 1.25), ...), authored order kept."""
    out: List[Tuple[str, float]] = []
    for item in raw or []:
        if isinstance(item, dict):
            label = item.get("action")
            value = next((item[k] for k in _VALUE_KEYS if item.get(k) is not None), None)
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            label, value = item
        else:
            continue
        if label is None or value is None:
            continue
        out.append((str(label), float(value)))
    return tuple(out)


@dataclass(frozen=True)
class Scenario:
    """
    One authored decision point. Immutable; the numbers are labels, not computed here.

    Invariant (checked in from_row): actions non-empty, optimal_action is one of the labels.
    """
    id: int
    type: str
    title: str
    cost: int
    actions: Tuple[Tuple[str, float], ...]
    optimal_action: str
    difficulty: str = "beginner"
    description: str = ""
    situation: str = ""
    game_type: str = ""
    position: str = ""
    hero_cards: Tuple[str, ...] = field(default_factory=tuple)
    board_cards: Tuple[str, ...] = field(default_factory=tuple)
    pot_size: Optional[int] = None
    bet_size: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Scenario":
        actions = _parse_actions(row.get("actions"))
        optimal = str(row.get("optimal_action") or "")
        if not actions:
            raise ValueError(f"scenario {row.get('id')!r} has no actions")
        if optimal not in {label for label, _ in actions}:
            raise ValueError(f"scenario {row.get('id')!r} optimal action {optimal!r} not in its action list")
        cost = int(row.get("credits") or 0)
        if cost <= 0:
            raise ValueError(f"scenario {row.get('id')!r} cost must be positive, got {cost}")

        return cls(
            id=int(row["id"]),
            type=str(row.get("type") or ""),
            title=str(row.get("title") or ""),
            cost=cost,
            actions=actions,
            optimal_action=optimal,
            difficulty=str(row.get("difficulty") or "beginner"),
            description=str(row.get("description") or ""),
            situation=str(row.get("situation") or ""),
            game_type=str(row.get("game_type") or ""),
            position=str(row.get("position") or ""),
            hero_cards=tuple(str(c) for c in (row.get("hero_cards") or [])),
            board_cards=tuple(str(c) for c in (row.get("board_cards") or [])),
            pot_size=row.get("pot_size"),
            bet_size=row.get("bet_size"),
        )

    @property
    def action_labels(self) -> List[str]:
        return [label for label, _ in self.actions]

    def value_of(self, label: str) -> Optional[float]:
        """Exact (case-sensitive) label lookup; None if the label isn't on the menu."""
        for action_label, value in self.actions:
            if action_label == label:
                return value
        return None

    @property
    def value_unit(self) -> str:
        return "equity" if self.type == "icm" else "EV"


def _sort_key(s: Scenario):
    return (DIFFICULTY_TIERS.get(s.difficulty, len(DIFFICULTY_TIERS)), s.title, s.id)


class ScenarioCatalog:
    """No side effects, no caching beyond what the caller (cache.py) chooses to do."""

    def __init__(self, sb=None):
        self.sb = sb

    def get_by_id(self, scenario_id: int) -> Scenario:
        row = db.get_scenario_row(scenario_id, sb=self.sb)
        if not row:
            raise ScenarioNotFound("Scenario not found.")
        try:
            return Scenario.from_row(row)
        except (KeyError, ValueError) as e:
            print(f"[scenario_catalog.get_by_id] malformed scenario row id={scenario_id}: {e}")
            raise ScenarioNotFound("Scenario is unavailable.") from e

    def list_by_type(self, scenario_type: str) -> List[Scenario]:
        """Difficulty tier, then title, then id."""
        if scenario_type not in SCENARIO_TYPES:
            raise ValueError(f"Invalid scenario type: {scenario_type!r}")

        out: List[Scenario] = []
        for row in db.list_scenario_rows(scenario_type, sb=self.sb):
            try:
                out.append(Scenario.from_row(row))
            except (KeyError, ValueError) as e:
                # one bad authored row shouldn't blank the whole list
                print(f"[scenario_catalog.list_by_type] skipping malformed row id={row.get('id')!r}: {e}")
        return sorted(out, key=_sort_key)
