# supabase_client.py — settings (env / st.secrets) + per-session anon client + cached service-role client
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

import streamlit as st

from supabase import create_client, Client, ClientOptions


class SupabaseConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class SupabaseSettings:
    env: str
    url: str
    anon_key: str
    service_key: Optional[str] = None


def get_secret(name: str, default: Any = None) -> Any:
    """Env var first (local dev / CI), then Streamlit secrets (Cloud)."""
    v = os.getenv(name)
    if v:
        return v
    try:
        if name in st.secrets:
            v2 = st.secrets[name]
            if v2:
                return v2
    except Exception:
        # no secrets.toml at all -> st.secrets raises on access
        pass
    return default


def app_env() -> str:
    return str(get_secret("APP_ENV", "prod") or "prod").lower().strip()


def load_settings() -> SupabaseSettings:
    env = app_env()
    suffix = "DEV" if env == "dev" else "PROD"

    url = get_secret(f"SUPABASE_URL_{suffix}")
    anon = get_secret(f"SUPABASE_ANON_KEY_{suffix}")
    svc = get_secret(f"SUPABASE_SERVICE_ROLE_KEY_{suffix}") or get_secret("SUPABASE_SERVICE_ROLE_KEY")

    if not url or not anon:
        raise SupabaseConfigError(
            f"Missing Supabase credentials. Need SUPABASE_URL_{suffix} and SUPABASE_ANON_KEY_{suffix} "
            f"for APP_ENV={env}."
        )

    return SupabaseSettings(env=env, url=str(url), anon_key=str(anon), service_key=str(svc) if svc else None)


def _make_client(url: str, key: str) -> Client:
    """
    No SDK-side session persistence/refresh: the GoTrue tokens live in
    st.session_state (see auth.py) and are bound explicitly.
    """
    opts = ClientOptions(
        persist_session=False,
        auto_refresh_token=False,
    )
    return create_client(url, key, options=opts)


def get_supabase() -> Client:
    """Per-Streamlit-session ANON client (RLS enforced). Reads the player's own rows."""
    client = st.session_state.get("supabase_client_anon")
    if client is not None:
        return client

    cfg = load_settings()
    st.session_state.supabase_client_anon = _make_client(cfg.url, cfg.anon_key)
    return st.session_state.supabase_client_anon


def get_supabase_admin() -> Client:
    """
    SERVICE ROLE client (bypasses RLS). The credit ledger and progress writes use it:
    players can read their balance but the row is never writable with the anon key.
    """
    client = st.session_state.get("supabase_client_admin")
    if client is not None:
        return client

    cfg = load_settings()
    if not cfg.service_key:
        raise SupabaseConfigError(
            "Missing service role key. Provide SUPABASE_SERVICE_ROLE_KEY_DEV/PROD (or SUPABASE_SERVICE_ROLE_KEY)."
        )

    st.session_state.supabase_client_admin = _make_client(cfg.url, cfg.service_key)
    return st.session_state.supabase_client_admin


def reset_supabase_client() -> None:
    """
    Force creation of a new anon client on next get_supabase() call.
    Call this after login/logout so no auth state bleeds between users.
    """
    st.session_state.pop("supabase_client_anon", None)
