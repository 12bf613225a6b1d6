# db.py — persistence helpers for accounts + scenarios + training/bot sessions + user_progress
#
# Every balance / progress write is a conditional UPDATE (compare-and-swap on the
# value read). PostgREST can't express "credits = credits - n", so the caller reads,
# computes, and the WHERE clause rejects the write if anyone got there first.
# An empty result means "lost the race" (or the gate predicate didn't hold).

from __future__ import annotations

from typing import Any, Dict, Optional, List
import datetime as dt
import json  # needed to decode jsonb coming back as strings

import time
import httpx

from supabase import Client
from supabase_client import get_supabase

# =========================
# Helpers
# =========================

def _client(sb: Optional[Client]) -> Client:
    """Explicit client wins; otherwise the per-session anon client (RLS enforced)."""
    return sb or get_supabase()

def _sid(x: Any) -> str:
    """Safe id normalize (uuid.UUID -> str, None -> '')."""
    if x is None:
        return ""
    try:
        return str(x)
    except Exception:
        return ""

def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()

def iso_utc(ts: dt.datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt.timezone.utc)
    return ts.astimezone(dt.timezone.utc).isoformat()

def _rows(res) -> List[Dict[str, Any]]:
    return list(getattr(res, "data", None) or [])

def _first(res) -> Optional[Dict[str, Any]]:
    rows = _rows(res)
    return rows[0] if rows else None

def _execute_with_retry(q, *, tries: int = 3, base_sleep: float = 0.2):
    """
    Retry wrapper for transient PostgREST/httpx read/connect hiccups (common on Streamlit Cloud).
    q must be a PostgREST query object that supports .execute().

    Reads only. A CAS write whose response was lost may already have committed,
    so replaying it would look like a lost race and the caller would apply it twice.
    """
    last_err = None
    for attempt in range(tries):
        try:
            return q.execute()
        except (httpx.ReadError, httpx.ConnectError, httpx.TimeoutException) as e:
            last_err = e
            time.sleep(base_sleep * (2 ** attempt))  # 0.2, 0.4, 0.8
    raise last_err  # bubble after retries

def _is_duplicate(e: Exception) -> bool:
    msg = repr(e).lower()
    return ("23505" in msg) or ("duplicate key" in msg) or ("unique" in msg)

def _decode_json(value: Any, default: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except Exception:
            return default
    return value if value is not None else default

# ---------- ACCOUNTS (credits + regeneration clock) ----------

def get_account(user_id: str, *, sb: Optional[Client] = None) -> Optional[Dict[str, Any]]:
    user_id = _sid(user_id)
    if not user_id:
        return None
    q = (
        _client(sb).table("accounts")
        .select("user_id, email, credits, last_credit_regeneration, created_at, updated_at")
        .eq("user_id", user_id)
        .limit(1)
    )
    return _first(_execute_with_retry(q))

def create_account(
    user_id: str,
    email: str,
    credits: int,
    *,
    now: Optional[dt.datetime] = None,
    sb: Optional[Client] = None,
) -> Dict[str, Any]:
    """
    Insert the account row (full balance, regeneration clock starts now).
    A concurrent first login may beat us to it; in that case the existing row wins.
    """
    user_id = _sid(user_id)
    if not user_id:
        raise ValueError("user_id required.")

    ts = iso_utc(now) if now else _now_iso()
    payload = {
        "user_id": user_id,
        "email": (email or "").strip().lower(),
        "credits": int(credits),
        "last_credit_regeneration": ts,
        "created_at": ts,
        "updated_at": ts,
    }

    try:
        res = _client(sb).table("accounts").insert(payload).execute()
        row = _first(res)
        if row:
            return row
    except Exception as e:
        if not _is_duplicate(e):
            print(f"[db.create_account] insert failed user_id={user_id}: {e!r}")
            raise

    row = get_account(user_id, sb=sb)
    if not row:
        raise RuntimeError("Failed to insert account row in 'accounts' table.")
    return row

def cas_account_credits(
    user_id: str,
    expected_credits: int,
    new_credits: int,
    *,
    min_credits: Optional[int] = None,
    regenerated_at: Optional[dt.datetime] = None,
    regenerated_before: Optional[dt.datetime] = None,
    never_regenerated: bool = False,
    now: Optional[dt.datetime] = None,
    sb: Optional[Client] = None,
) -> Optional[Dict[str, Any]]:
    """
    UPDATE accounts SET credits = new_credits
     WHERE user_id = ? AND credits = expected_credits
       [AND credits >= min_credits]
       [AND last_credit_regeneration <= regenerated_before]
       [AND last_credit_regeneration IS NULL]          (never_regenerated)

    If regenerated_at is given the regeneration clock moves to it in the same write.
    Returns the updated row, or None when the predicate did not match.
    """
    user_id = _sid(user_id)
    if not user_id:
        return None

    updates: Dict[str, Any] = {
        "credits": int(new_credits),
        "updated_at": iso_utc(now) if now else _now_iso(),
    }
    if regenerated_at is not None:
        updates["last_credit_regeneration"] = iso_utc(regenerated_at)

    q = (
        _client(sb).table("accounts")
        .update(updates)
        .eq("user_id", user_id)
        .eq("credits", int(expected_credits))
    )
    if min_credits is not None:
        q = q.gte("credits", int(min_credits))
    if regenerated_before is not None:
        q = q.lte("last_credit_regeneration", iso_utc(regenerated_before))
    if never_regenerated:
        q = q.is_("last_credit_regeneration", "null")

    return _first(q.execute())

# ---------- SCENARIOS (read-only catalog + seeding) ----------

def get_scenario_row(scenario_id: int, *, sb: Optional[Client] = None) -> Optional[Dict[str, Any]]:
    try:
        scenario_id = int(scenario_id)
    except (TypeError, ValueError):
        return None
    q = _client(sb).table("scenarios").select("*").eq("id", scenario_id).limit(1)
    row = _first(_execute_with_retry(q))
    if row:
        for key in ("actions", "hero_cards", "board_cards", "stack_sizes", "payouts"):
            row[key] = _decode_json(row.get(key), [])
    return row

def list_scenario_rows(scenario_type: str, *, sb: Optional[Client] = None) -> List[Dict[str, Any]]:
    q = (
        _client(sb).table("scenarios")
        .select("*")
        .eq("type", str(scenario_type))
        .order("id", desc=False)
    )
    rows = _rows(_execute_with_retry(q))
    for row in rows:
        for key in ("actions", "hero_cards", "board_cards", "stack_sizes", "payouts"):
            row[key] = _decode_json(row.get(key), [])
    return rows

def scenario_titles(*, sb: Optional[Client] = None) -> List[str]:
    q = _client(sb).table("scenarios").select("title")
    return [str(r.get("title") or "") for r in _rows(_execute_with_retry(q))]

def insert_scenario_rows(rows: List[Dict[str, Any]], *, sb: Optional[Client] = None) -> List[Dict[str, Any]]:
    if not rows:
        return []
    res = _client(sb).table("scenarios").insert(rows).execute()
    return _rows(res)

# ---------- TRAINING SESSIONS (append-only) ----------

def insert_training_session(payload: Dict[str, Any], *, sb: Optional[Client] = None) -> Dict[str, Any]:
    """
    training_sessions:
      - id             (serial, PK)
      - user_id        (uuid)
      - scenario_id    (int4)
      - scenario_type  (text)       'gto' | 'icm'
      - user_action    (text)
      - is_correct     (bool)
      - ev_difference  (numeric(10,2))
      - credits_spent  (int4)
      - time_spent     (int4, optional)
      - created_at     (timestamptz)
    """
    payload = dict(payload)
    payload.setdefault("created_at", _now_iso())

    res = _client(sb).table("training_sessions").insert(payload).execute()
    row = _first(res)
    if not row:
        raise RuntimeError("Failed to insert row in 'training_sessions' table.")
    return row

def list_training_sessions(
    user_id: str,
    limit: int = 10,
    *,
    sb: Optional[Client] = None,
) -> List[Dict[str, Any]]:
    user_id = _sid(user_id)
    if not user_id:
        return []
    q = (
        _client(sb).table("training_sessions")
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
    )
    if limit:
        q = q.limit(int(limit))
    return _rows(_execute_with_retry(q))

# ---------- BOT SESSIONS ----------

def insert_bot_session(payload: Dict[str, Any], *, sb: Optional[Client] = None) -> Dict[str, Any]:
    payload = dict(payload)
    payload.setdefault("started_at", _now_iso())

    res = _client(sb).table("bot_sessions").insert(payload).execute()
    row = _first(res)
    if not row:
        raise RuntimeError("Failed to insert row in 'bot_sessions' table.")
    return row

def get_bot_session_row(session_id: int, user_id: str, *, sb: Optional[Client] = None) -> Optional[Dict[str, Any]]:
    user_id = _sid(user_id)
    if not user_id or session_id is None:
        return None
    q = (
        _client(sb).table("bot_sessions")
        .select("*")
        .eq("id", int(session_id))
        .eq("user_id", user_id)
        .limit(1)
    )
    return _first(_execute_with_retry(q))

def close_bot_session_row(
    session_id: int,
    user_id: str,
    updates: Dict[str, Any],
    *,
    sb: Optional[Client] = None,
) -> Optional[Dict[str, Any]]:
    """Write final stats once: WHERE id = ? AND user_id = ? AND ended_at IS NULL."""
    user_id = _sid(user_id)
    if not user_id:
        return None
    q = (
        _client(sb).table("bot_sessions")
        .update(dict(updates))
        .eq("id", int(session_id))
        .eq("user_id", user_id)
        .is_("ended_at", "null")
    )
    return _first(q.execute())

def list_bot_sessions(user_id: str, limit: int = 10, *, sb: Optional[Client] = None) -> List[Dict[str, Any]]:
    user_id = _sid(user_id)
    if not user_id:
        return []
    q = (
        _client(sb).table("bot_sessions")
        .select("*")
        .eq("user_id", user_id)
        .order("started_at", desc=True)
    )
    if limit:
        q = q.limit(int(limit))
    return _rows(_execute_with_retry(q))

# ---------- USER PROGRESS (one row per account, versioned) ----------

def get_progress_row(user_id: str, *, sb: Optional[Client] = None) -> Optional[Dict[str, Any]]:
    user_id = _sid(user_id)
    if not user_id:
        return None
    q = _client(sb).table("user_progress").select("*").eq("user_id", user_id).limit(1)
    return _first(_execute_with_retry(q))

def ensure_progress_row(user_id: str, seed: Dict[str, Any], *, sb: Optional[Client] = None) -> Dict[str, Any]:
    """
    Lazily create the zeroed progress row. Concurrent first accesses race on the
    unique user_id; ignore_duplicates makes the loser a no-op and both re-read the same row.
    """
    user_id = _sid(user_id)
    if not user_id:
        raise ValueError("user_id required.")

    row = get_progress_row(user_id, sb=sb)
    if row:
        return row

    payload = dict(seed)
    payload["user_id"] = user_id
    payload.setdefault("updated_at", _now_iso())

    try:
        _client(sb).table("user_progress").upsert(
            payload,
            on_conflict="user_id",
            ignore_duplicates=True,
        ).execute()
    except Exception as e:
        if not _is_duplicate(e):
            print(f"[db.ensure_progress_row] upsert failed user_id={user_id}: {e!r}")
            raise

    row = get_progress_row(user_id, sb=sb)
    if not row:
        raise RuntimeError("Failed to create row in 'user_progress' table.")
    return row

def cas_progress_row(
    user_id: str,
    expected_version: int,
    updates: Dict[str, Any],
    *,
    sb: Optional[Client] = None,
) -> Optional[Dict[str, Any]]:
    """UPDATE user_progress SET ..., version = expected + 1 WHERE user_id = ? AND version = expected."""
    user_id = _sid(user_id)
    if not user_id:
        return None

    payload = dict(updates)
    payload["version"] = int(expected_version) + 1
    payload.setdefault("updated_at", _now_iso())

    q = (
        _client(sb).table("user_progress")
        .update(payload)
        .eq("user_id", user_id)
        .eq("version", int(expected_version))
    )
    return _first(q.execute())
