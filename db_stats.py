# db_stats.py — read-side aggregates over training_sessions / bot_sessions (Progress page)
#
# The running averages in user_progress are the source of truth for accuracy;
# these totals are the "how much have I drilled" view and never feed back into them.

from typing import Dict, Any, List, Optional

import pandas as pd
from supabase import Client
from supabase_client import get_supabase


def _safe_float(x, default: float = 0.0) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def _empty_bucket() -> Dict[str, Any]:
    return {
        "attempts": 0,
        "correct": 0,
        "accuracy": 0.0,
        "avg_ev_difference": 0.0,
        "credits_spent": 0,
    }


# ---------- Training sessions (per scenario type) ----------

def summarize_training_sessions(rows: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Per scenario type ("gto" / "icm"):
      attempts, correct, accuracy (0-100), avg_ev_difference, credits_spent

    Rows without a known scenario_type are ignored.
    """
    out = {"gto": _empty_bucket(), "icm": _empty_bucket()}
    ev_sums = {"gto": 0.0, "icm": 0.0}

    for r in rows or []:
        kind = str(r.get("scenario_type") or "").lower()
        if kind not in out:
            continue
        b = out[kind]
        b["attempts"] += 1
        if bool(r.get("is_correct")):
            b["correct"] += 1
        ev_sums[kind] += _safe_float(r.get("ev_difference"), 0.0)
        b["credits_spent"] += int(_safe_float(r.get("credits_spent"), 0.0))

    for kind, b in out.items():
        if b["attempts"]:
            b["accuracy"] = round(100.0 * b["correct"] / b["attempts"], 2)
            b["avg_ev_difference"] = round(ev_sums[kind] / b["attempts"], 2)

    return out


def get_training_summary(user_id: str, sb: Optional[Client] = None) -> Dict[str, Dict[str, Any]]:
    """Whole-history summary for one player (all training_sessions rows)."""
    if not user_id:
        return summarize_training_sessions([])

    sb = sb or get_supabase()
    try:
        res = (
            sb.table("training_sessions")
            .select("scenario_type, is_correct, ev_difference, credits_spent")
            .eq("user_id", user_id)
            .execute()
        )
        rows = res.data or []
    except Exception as e:
        print(f"[db_stats.get_training_summary] query error: {e!r}")
        rows = []

    return summarize_training_sessions(rows)


# ---------- Bot sessions ----------

def summarize_bot_sessions(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Closed sessions only (ended_at set); open ones have no final stats yet."""
    totals = {
        "sessions": 0,
        "hands_played": 0,
        "hands_won": 0,
        "total_profit": 0.0,
        "credits_spent": 0,
    }
    for r in rows or []:
        totals["credits_spent"] += int(_safe_float(r.get("credits_spent"), 0.0))
        if not r.get("ended_at"):
            continue
        totals["sessions"] += 1
        totals["hands_played"] += int(_safe_float(r.get("hands_played"), 0.0))
        totals["hands_won"] += int(_safe_float(r.get("hands_won"), 0.0))
        totals["total_profit"] += _safe_float(r.get("total_profit"), 0.0)

    totals["total_profit"] = round(totals["total_profit"], 2)
    return totals


# ---------- History frames (Progress page table + chart) ----------

TYPE_DISPLAY = {"gto": "GTO", "icm": "ICM"}


def training_sessions_to_dataframe(rows: List[Dict[str, Any]], titles: Optional[Dict[int, str]] = None) -> pd.DataFrame:
    """Convert training_sessions rows to a display DataFrame (row order kept)."""
    titles = titles or {}
    data = []
    for r in rows or []:
        sid = r.get("scenario_id")
        data.append({
            "Date": str(r.get("created_at") or "")[:16].replace("T", " "),
            "Type": TYPE_DISPLAY.get(str(r.get("scenario_type") or ""), str(r.get("scenario_type") or "")),
            "Scenario": titles.get(sid, f"#{sid}"),
            "Action": r.get("user_action", ""),
            "Correct": bool(r.get("is_correct")),
            "Value Gap": round(_safe_float(r.get("ev_difference"), 0.0), 2),
            "Credits": int(_safe_float(r.get("credits_spent"), 0.0)),
        })
    return pd.DataFrame(data, columns=["Date", "Type", "Scenario", "Action", "Correct", "Value Gap", "Credits"])


def accuracy_curve(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Cumulative accuracy per scenario type, oldest attempt first:
      Type, Attempt (1..n within the type), Accuracy (%)
    """
    cols = ["Type", "Attempt", "Accuracy (%)"]
    df = pd.DataFrame(
        [
            {
                "type": str(r.get("scenario_type") or ""),
                "correct": 1 if r.get("is_correct") else 0,
                "created_at": pd.to_datetime(r.get("created_at"), utc=True, errors="coerce"),
            }
            for r in rows or []
            if str(r.get("scenario_type") or "") in TYPE_DISPLAY
        ],
        columns=["type", "correct", "created_at"],
    )
    if df.empty:
        return pd.DataFrame(columns=cols)

    df = df.sort_values("created_at", kind="stable")
    grouped = df.groupby("type", sort=False)["correct"]
    df["Attempt"] = grouped.cumcount() + 1
    df["Accuracy (%)"] = (grouped.cumsum() / df["Attempt"] * 100.0).round(2)
    df["Type"] = df["type"].map(TYPE_DISPLAY)
    return df[cols].reset_index(drop=True)
