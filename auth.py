# auth.py — Session-state only auth (no cookies, no refresh persistence)
# Streamlit Cloud compatible. Hard refresh = re-login.
#
# The resolved user id is trusted by the trainer core as-is; this module is the
# only place identity is checked.
from __future__ import annotations

from typing import Any, Dict

import streamlit as st
import httpx

from supabase_client import app_env, get_secret, get_supabase, reset_supabase_client


APP_ENV = app_env()


# ---------------- GoTrue REST login ----------------
def _gotrue_password_login(email: str, password: str) -> dict:
    """Direct REST call to Supabase GoTrue for password auth."""
    suffix = "DEV" if APP_ENV == "dev" else "PROD"
    url = str(get_secret(f"SUPABASE_URL_{suffix}") or "").rstrip("/")
    key = str(get_secret(f"SUPABASE_ANON_KEY_{suffix}") or "").strip()

    if not url or not key:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_ANON_KEY in secrets.")

    endpoint = f"{url}/auth/v1/token?grant_type=password"
    headers = {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Content-Type": "application/json",
    }

    r = httpx.post(endpoint, headers=headers, json={"email": email, "password": password}, timeout=20.0)

    if r.status_code >= 400:
        error_detail = r.text
        try:
            error_json = r.json()
            error_detail = error_json.get("error_description") or error_json.get("msg") or r.text
        except ValueError:
            pass
        raise RuntimeError(f"Login failed: {error_detail}")

    return r.json()


# ---------------- Session state helpers ----------------
_AUTH_DEFAULTS: Dict[str, Any] = {
    "authenticated": False,
    "access_token": None,
    "refresh_token": None,
    "user": None,
    "email": None,
    "user_db_id": None,
}


def _init_session_state():
    for key, value in _AUTH_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _clear_auth_state():
    """Clear auth + every per-user cache so nothing bleeds into the next login."""
    for key, value in _AUTH_DEFAULTS.items():
        st.session_state[key] = value

    # explicit bot-table state belongs to the user who started it
    st.session_state.pop("bot_table", None)

    reset_supabase_client()

    from cache import clear_all_user_caches
    clear_all_user_caches()


# ---------------- Logout ----------------
def sign_out():
    """Clear session and force re-render to login screen."""
    _clear_auth_state()
    st.rerun()


# ---------------- Login UI ----------------
def _login_ui():
    st.title("Poker Trainer — Login")

    if APP_ENV == "dev":
        st.caption("🔧 Development Environment")

    email_input = st.text_input("Email", key="login_email_input")
    password_input = st.text_input("Password", type="password", key="login_password_input")

    if st.button("Sign In", type="primary", use_container_width=True):
        if not email_input or not password_input:
            st.error("Please enter both email and password.")
            st.stop()

        email = email_input.strip().lower()
        try:
            data = _gotrue_password_login(email, password_input)
        except (RuntimeError, httpx.HTTPError) as e:
            st.error(str(e))
            st.stop()

        access_token = data.get("access_token")
        if not access_token:
            st.error("Login failed: No access token received.")
            st.stop()

        _clear_auth_state()

        user_obj = data.get("user") or {}
        st.session_state["authenticated"] = True
        st.session_state["access_token"] = access_token
        st.session_state["refresh_token"] = data.get("refresh_token")
        st.session_state["user"] = user_obj
        st.session_state["email"] = (user_obj.get("email") or email).strip().lower()
        st.rerun()

    st.stop()


# ---------------- Main auth gate ----------------
def require_auth() -> Dict[str, str]:
    """
    Main authentication gate. Call at the top of every page.

    Returns {"user_id", "email"} once the account row exists (created full on first login).
    Shows login UI and stops execution if not authenticated.
    """
    _init_session_state()

    if not st.session_state.get("authenticated"):
        _login_ui()

    access_token = st.session_state.get("access_token")
    user = st.session_state.get("user")

    if not access_token or not isinstance(user, dict) or not user.get("id"):
        _clear_auth_state()
        _login_ui()

    # Bind the anon client to this user's JWT so RLS reads see only their rows
    try:
        get_supabase().auth.set_session(access_token, st.session_state.get("refresh_token") or "")
    except Exception as e:
        print(f"[auth.require_auth] session bind failed: {e!r}")
        _clear_auth_state()
        _login_ui()

    user_id = str(user["id"])
    email = str(st.session_state.get("email") or "")

    # Account provisioning (first login only)
    if st.session_state.get("user_db_id") != user_id:
        from trainer import Trainer
        try:
            Trainer.for_app().open_account(user_id, email)
        except Exception as e:
            print(f"[auth.require_auth] open_account failed user_id={user_id}: {e!r}")
            st.error("Could not load or create your account. Please try again later.")
            if st.button("Sign Out"):
                sign_out()
            st.stop()
        st.session_state["user_db_id"] = user_id

    return {"user_id": user_id, "email": email}
