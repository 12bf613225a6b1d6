# cache.py — Session-scoped caching for Supabase reads
#
# Scenario lists are static authored data, so they're cached until logout.
# Progress / history change on every decision and are invalidated explicitly
# by the page that wrote them. Credits are NEVER cached: the balance is read
# fresh (with its regeneration check) on every rerun.

import streamlit as st
from typing import Any, Callable, Dict, List


# ============================================================
#  SCENARIO LIST CACHE (per type)
# ============================================================

def get_cached_scenarios(scenario_type: str, loader_fn: Callable[[str], List[Any]]) -> List[Any]:
    """
    Usage:
        from cache import get_cached_scenarios
        scenarios = get_cached_scenarios("gto", trainer.list_scenarios)
    """
    cache_key = f"_cache_scenarios_{scenario_type}"

    if cache_key not in st.session_state:
        try:
            st.session_state[cache_key] = list(loader_fn(scenario_type) or [])
        except Exception as e:
            print(f"[cache] get_cached_scenarios loader error: {e!r}")
            return []

    return st.session_state[cache_key]


# ============================================================
#  PROGRESS CACHE (per user)
# ============================================================

def get_cached_progress(user_id: str, loader_fn: Callable[[str], Any]) -> Any:
    """Invalidate (or overwrite via set_cached_progress) after a decision / bot session."""
    if not user_id:
        return None

    cache_key = f"_cache_progress_{user_id}"

    if cache_key not in st.session_state:
        st.session_state[cache_key] = loader_fn(user_id)

    return st.session_state[cache_key]


def set_cached_progress(user_id: str, progress: Any) -> None:
    """The write path already returns the new record; avoids a re-fetch."""
    if not user_id or progress is None:
        return
    st.session_state[f"_cache_progress_{user_id}"] = progress


def invalidate_progress_cache(user_id: str) -> None:
    if not user_id:
        return
    st.session_state.pop(f"_cache_progress_{user_id}", None)


# ============================================================
#  TRAINING SUMMARY CACHE (Progress page)
# ============================================================

def get_cached_training_summary(
    user_id: str,
    loader_fn: Callable[[str], Dict[str, Any]],
) -> Dict[str, Any]:
    if not user_id:
        return {}

    cache_key = f"_cache_training_summary_{user_id}"

    if cache_key not in st.session_state:
        try:
            st.session_state[cache_key] = loader_fn(user_id) or {}
        except Exception as e:
            print(f"[cache] get_cached_training_summary loader error: {e!r}")
            return {}

    return st.session_state[cache_key]


def invalidate_training_summary_cache(user_id: str) -> None:
    if not user_id:
        return
    st.session_state.pop(f"_cache_training_summary_{user_id}", None)


# ============================================================
#  CONVENIENCE
# ============================================================

def invalidate_after_write(user_id: str) -> None:
    """Call after any decision or bot session close."""
    invalidate_progress_cache(user_id)
    invalidate_training_summary_cache(user_id)


def clear_all_user_caches() -> None:
    """
    Clear ALL user-specific caches regardless of user_id.
    Call on logout/login to ensure no data bleeds between users.
    """
    prefixes = (
        "_cache_scenarios_",
        "_cache_progress_",
        "_cache_training_summary_",
    )
    keys_to_delete = [k for k in list(st.session_state.keys()) if any(k.startswith(p) for p in prefixes)]
    for k in keys_to_delete:
        del st.session_state[k]
