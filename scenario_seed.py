# scenario_seed.py — authored training spots + idempotent catalog seeding
#
# EV / equity numbers below are authored labels, not solver output.
# GTO spots cost 50 credits, ICM spots 100.

from __future__ import annotations

from typing import Any, Dict, List

import db

GTO_COST = 50
ICM_COST = 100


def _gto(title, description, situation, position, hero, board, pot, bet, actions, optimal, difficulty) -> Dict[str, Any]:
    return {
        "type": "gto",
        "title": title,
        "description": description,
        "situation": situation,
        "game_type": "6-max",
        "position": position,
        "hero_cards": hero,
        "board_cards": board,
        "pot_size": pot,
        "bet_size": bet,
        "actions": [{"action": a, "ev": ev} for a, ev in actions],
        "optimal_action": optimal,
        "difficulty": difficulty,
        "credits": GTO_COST,
    }


def _icm(title, description, situation, game_type, stacks, payouts, hero, actions, optimal, difficulty) -> Dict[str, Any]:
    return {
        "type": "icm",
        "title": title,
        "description": description,
        "situation": situation,
        "game_type": game_type,
        "stack_sizes": stacks,
        "payouts": payouts,
        "hero_cards": hero,
        "board_cards": [],
        "actions": [{"action": a, "equity": eq} for a, eq in actions],
        "optimal_action": optimal,
        "difficulty": difficulty,
        "credits": ICM_COST,
    }


GTO_SCENARIOS: List[Dict[str, Any]] = [
    _gto(
        "Button vs BB 3-bet",
        "Defending against a big blind 3-bet from the button with a strong hand",
        "6-max cash game, $1/$2 blinds. You open raise to $6 from the button with A♠K♠. "
        "Big blind 3-bets to $20. Action is on you.",
        "BTN", ["A♠", "K♠"], [], 27, 14,
        [("Fold", -6.00), ("Call", 1.25), ("4-bet to $55", 3.47)],
        "4-bet to $55", "intermediate",
    ),
    _gto(
        "SB vs BB Postflop",
        "Small blind continuation betting on a coordinated flop",
        "Heads-up from the blinds. You raised to $6 from SB, BB called. Flop: A♦7♥5♣. Pot: $12. BB checks to you.",
        "SB", ["K♣", "Q♣"], ["A♦", "7♥", "5♣"], 12, 0,
        [("Check", -0.85), ("Bet $8", 1.20), ("Bet $12", 0.95)],
        "Bet $8", "beginner",
    ),
    _gto(
        "4-bet Pot OOP",
        "Playing out of position in a 4-bet pot with a premium hand",
        "You 4-bet to $55 from UTG with A♠A♣, button calls. Flop: K♠9♦2♣. Pot: $112. Action is on you.",
        "UTG", ["A♠", "A♣"], ["K♠", "9♦", "2♣"], 112, 0,
        [("Check", 2.15), ("Bet $35", 4.80), ("Bet $70", 3.95)],
        "Bet $35", "advanced",
    ),
    _gto(
        "Cutoff Open vs UTG 3-bet",
        "Responding to a 3-bet when opening from the cutoff",
        "You open to $6 from cutoff with T♠T♣. UTG 3-bets to $20. Folded back to you.",
        "CO", ["T♠", "T♣"], [], 27, 14,
        [("Fold", -6.00), ("Call", 0.85), ("4-bet to $50", -1.20)],
        "Call", "intermediate",
    ),
    _gto(
        "BB Squeeze Spot",
        "3-betting from the big blind when facing a raise and call",
        "UTG raises to $6, cutoff calls. You're in BB with A♥Q♦. Action is on you.",
        "BB", ["A♥", "Q♦"], [], 15, 4,
        [("Fold", -2.00), ("Call", -0.45), ("3-bet to $24", 1.65)],
        "3-bet to $24", "advanced",
    ),
    _gto(
        "MP vs BTN Single Raised Pot",
        "Middle position facing a button raise with a marginal hand",
        "Button raises to $6. You're in MP with 9♠8♠. Action is on you.",
        "MP", ["9♠", "8♠"], [], 9, 6,
        [("Fold", 0.00), ("Call", -0.85), ("3-bet to $20", -2.10)],
        "Fold", "beginner",
    ),
    _gto(
        "Hijack vs CO 3-bet with AK",
        "Playing AK against a 3-bet from in position",
        "You raise to $6 from HJ with A♣K♦. CO 3-bets to $20. Folded back to you.",
        "HJ", ["A♣", "K♦"], [], 27, 14,
        [("Fold", -6.00), ("Call", 0.95), ("4-bet to $55", 2.80)],
        "4-bet to $55", "intermediate",
    ),
    _gto(
        "Paired Board C-bet",
        "Continuation betting on a paired flop as the preflop aggressor",
        "You raised BTN, BB called. Flop: 8♠8♥3♦. BB checks. Pot: $13. You have A♦Q♠.",
        "BTN", ["A♦", "Q♠"], ["8♠", "8♥", "3♦"], 13, 0,
        [("Check", 0.25), ("Bet $6", 1.15), ("Bet $10", 0.85)],
        "Bet $6", "intermediate",
    ),
    _gto(
        "Turn Barrel Decision",
        "Deciding whether to continue betting on the turn",
        "You c-bet flop Q♣7♦2♠ with A♠K♣, got called. Turn: 5♥. Pot: $25. BB checks.",
        "BTN", ["A♠", "K♣"], ["Q♣", "7♦", "2♠", "5♥"], 25, 0,
        [("Check", 1.20), ("Bet $15", 0.85), ("Bet $25", -0.45)],
        "Check", "advanced",
    ),
    _gto(
        "River Bluff Spot",
        "Deciding whether to bluff on a river that completes draws",
        "Turn checked through with K♣Q♣ on Q♦7♠4♣8♠. River: 6♥. Pot: $20. BB checks.",
        "BTN", ["K♣", "Q♣"], ["Q♦", "7♠", "4♣", "8♠", "6♥"], 20, 0,
        [("Check", 2.85), ("Bet $12", 3.25), ("Bet $20", 2.95)],
        "Bet $12", "advanced",
    ),
]

ICM_SCENARIOS: List[Dict[str, Any]] = [
    _icm(
        "Final Table Bubble",
        "Critical decision at the final table bubble with short stack pressure",
        "Final table of a $109 tournament. 10 players left, 9 get paid. You're 8th in chips with 12bb. "
        "UTG folds, you're in UTG+1 with A♠J♦. Action on you.",
        "MTT Final Table",
        [450000, 380000, 320000, 280000, 250000, 220000, 180000, 120000, 95000, 85000],
        [25000, 18500, 13500, 10000, 7500, 5500, 4000, 2800, 2000],
        ["A♠", "J♦"],
        [("Fold", 1850), ("Call", 1820), ("All-in", 2100)],
        "All-in", "intermediate",
    ),
    _icm(
        "Short Stack Push/Fold",
        "Push/fold decision with 8bb in late stage tournament",
        "200-player tournament, 25 players left. Blinds 8000/16000. You have 8bb in the cutoff with K♣T♠. Folded to you.",
        "MTT Late Stage",
        [520000, 480000, 420000, 380000, 340000, 320000, 280000, 260000, 240000, 220000,
         200000, 180000, 160000, 140000, 128000],
        [8500, 6200, 4800, 3600, 2800, 2200, 1800, 1500, 1300, 1100, 950, 850, 750, 680, 620],
        ["K♣", "T♠"],
        [("Fold", 620), ("All-in", 720)],
        "All-in", "beginner",
    ),
    _icm(
        "PKO Bounty Decision",
        "Progressive knockout tournament with bounty considerations",
        "PKO tournament, final 15 players. You cover villain who has a $500 bounty. "
        "Medium stack with 25bb facing a shove from villain with 12bb.",
        "PKO Tournament",
        [680000, 620000, 580000, 520000, 480000, 450000, 420000, 380000, 350000, 320000,
         300000, 250000, 220000, 200000, 180000],
        [15000, 11000, 8500, 6500, 5000, 3800, 2900, 2200, 1700, 1300, 1000, 800, 650, 550, 450],
        ["Q♥", "J♥"],
        [("Fold", 3200), ("Call", 3450)],
        "Call", "advanced",
    ),
]


def all_seed_scenarios() -> List[Dict[str, Any]]:
    return [dict(s) for s in GTO_SCENARIOS + ICM_SCENARIOS]


def seed_scenarios(sb=None) -> int:
    """
    Insert any authored scenario whose title isn't in the table yet.
    Safe to run on every deploy; returns how many rows were inserted.
    """
    existing = set(db.scenario_titles(sb=sb))
    missing = [s for s in all_seed_scenarios() if s["title"] not in existing]
    if not missing:
        return 0

    inserted = db.insert_scenario_rows(missing, sb=sb)
    print(f"[scenario_seed] inserted {len(inserted)} scenario(s)")
    return len(inserted)
