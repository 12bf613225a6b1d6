# evaluator.py — score a chosen action against a scenario's authored action/value table
#
# Pure: no DB, no Streamlit. The trainer validates the label first (validate_action),
# then calls evaluate().

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from action_categories import categorize, FOLD, CHECK, CALL, RAISE, ALL_IN
from errors import InvalidAction
from scenario_catalog import Scenario


@dataclass(frozen=True)
class Evaluation:
    is_correct: bool
    value_difference: float   # chosen - optimal (<= 0 for self-consistent authored data)
    feedback: str
    optimal_action: str
    chosen_value: float
    optimal_value: float


# Canned commentary keyed by (chosen category, optimal category).
# Static coaching copy, not analysis.
COMMENTARY: Dict[Tuple[str, str], str] = {
    (FOLD, CALL): "You're folding a profitable spot. Consider the pot odds and your equity.",
    (FOLD, RAISE): "You're folding a profitable spot. Your hand is strong enough to play aggressively here.",
    (FOLD, ALL_IN): "Folding gives up too much equity. Short stacks need to take the aggressive line here.",
    (FOLD, CHECK): "There was no bet to face. Checking keeps your hand for free.",
    (CALL, RAISE): "Raising would be more profitable here to build the pot with your strong hand.",
    (CALL, ALL_IN): "Flatting leaves you awkward stack-to-pot ratios. Shoving maximises fold equity.",
    (CALL, FOLD): "Calling here bleeds chips. This hand doesn't realise enough equity to continue.",
    (RAISE, CALL): "Your hand is strong enough to call but raising folds out worse hands and gets called by better.",
    (RAISE, FOLD): "Putting more money in with this hand is -EV. Let it go.",
    (RAISE, CHECK): "Checking protects your range here. Betting only gets called by better.",
    (CHECK, RAISE): "Betting here denies equity and gets value from worse hands.",
    (ALL_IN, FOLD): "The tournament payout structure punishes this risk. Folding preserves your equity.",
    (ALL_IN, CALL): "Shoving over-commits. Calling keeps weaker hands in and controls your risk.",
}


def commentary_for(chosen_label: str, optimal_label: str) -> str:
    return COMMENTARY.get((categorize(chosen_label), categorize(optimal_label)), "")


def validate_action(scenario: Scenario, chosen_action: str) -> None:
    """Raise InvalidAction if the label isn't on the scenario's menu (exact match)."""
    if scenario.value_of(chosen_action) is None:
        raise InvalidAction(
            f"{chosen_action!r} is not an available action. Choose one of: {', '.join(scenario.action_labels)}."
        )


def _feedback(scenario: Scenario, chosen: str, is_correct: bool, diff: float, optimal_value: float) -> str:
    unit = scenario.value_unit
    optimal = scenario.optimal_action

    if is_correct:
        return f"Excellent! {chosen} is the optimal play with {unit} of {optimal_value:+.2f}."

    if diff < 0:
        text = f"{chosen} loses {abs(diff):.2f} {unit} compared to the optimal {optimal}."
    elif diff == 0:
        text = f"{chosen} matches the {unit} of {optimal}, but {optimal} is the recommended play."
    else:
        text = f"{chosen} scores {diff:.2f} {unit} above the recommended {optimal}."

    extra = commentary_for(chosen, optimal)
    return f"{text} {extra}" if extra else text


def evaluate(scenario: Scenario, chosen_action: str) -> Evaluation:
    """
    Exact, case-sensitive comparison with the designated optimal action.
    value_difference is reported as authored (zero on ties, positive on malformed data).
    """
    chosen_value = scenario.value_of(chosen_action)
    if chosen_value is None:
        raise InvalidAction(f"{chosen_action!r} is not an available action.")

    optimal_value = scenario.value_of(scenario.optimal_action)
    if optimal_value is None:
        # Scenario.from_row guarantees this; only hand-built Scenario objects get here
        raise ValueError(f"scenario {scenario.id} optimal action missing from its action list")

    is_correct = chosen_action == scenario.optimal_action
    diff = chosen_value - optimal_value

    return Evaluation(
        is_correct=is_correct,
        value_difference=diff,
        feedback=_feedback(scenario, chosen_action, is_correct, diff, optimal_value),
        optimal_action=scenario.optimal_action,
        chosen_value=chosen_value,
        optimal_value=optimal_value,
    )
