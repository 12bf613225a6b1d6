# sidebar.py — Navigation Sidebar for Poker Trainer

import streamlit as st
from auth import sign_out
from errors import TrainerError


def _fmt_countdown(seconds: float) -> str:
    seconds = int(max(0, seconds))
    hours, rem = divmod(seconds, 3600)
    minutes = rem // 60
    return f"{hours}h {minutes}m"


def credits_caption(credits: int, regen_seconds: float) -> str:
    from credit_ledger import MAX_CREDITS, REGEN_AMOUNT

    countdown = _fmt_countdown(regen_seconds)
    if credits >= MAX_CREDITS:
        return f"Balance full. Next top-up check in {countdown} (capped at {MAX_CREDITS:,})."
    return f"+{REGEN_AMOUNT} credits in {countdown}"


def refresh_credits(user_id: str) -> None:
    """
    Re-read the balance (regeneration applied first) into session state.
    Pages call this after any spend so the sidebar never shows a stale number.
    """
    from trainer import Trainer

    trainer = Trainer.for_app()
    try:
        account = trainer.refresh_account(user_id)
    except TrainerError as e:
        print(f"[sidebar.refresh_credits] user_id={user_id}: {e.message}")
        return
    st.session_state["credits"] = account.credits
    st.session_state["regen_seconds"] = trainer.seconds_until_regeneration(account)


def render_sidebar():
    """
    Render the sidebar with navigation, credit balance, and user info.

    Call this at the top of every page after require_auth().
    """
    user_id = st.session_state.get("user_db_id")
    if user_id:
        refresh_credits(user_id)

    with st.sidebar:
        # ---------- Branding ----------
        st.markdown("## 🃏 Poker Trainer")

        # ---------- User Info ----------
        email = st.session_state.get("email", "")
        st.caption(f"👤 {email}")

        st.markdown("---")

        # ---------- Credits ----------
        from credit_ledger import MAX_CREDITS

        credits = int(st.session_state.get("credits", 0) or 0)
        st.markdown("### 💳 Credits")
        st.metric("Balance", f"{credits:,} / {MAX_CREDITS:,}")
        st.progress(min(1.0, credits / MAX_CREDITS))

        regen_seconds = float(st.session_state.get("regen_seconds", 0.0) or 0.0)
        st.caption(credits_caption(credits, regen_seconds))

        st.markdown("---")

        # ---------- Active Bot Session ----------
        bot_table = st.session_state.get("bot_table")
        if bot_table and not bot_table.get("ended"):
            st.markdown("### 🤖 Bot Table Open")
            st.markdown(
                f"**{bot_table.get('bot_type', '').upper()}** · {bot_table.get('difficulty', '')} · "
                f"{bot_table.get('hands_played', 0)} hands"
            )
            if st.button("← Back to Table", use_container_width=True):
                st.switch_page("pages/03_Bot_Practice.py")
            st.markdown("---")

        # ---------- Navigation ----------
        st.markdown("### Navigation")

        if st.button("🎯 GTO Trainer", use_container_width=True):
            st.switch_page("pages/01_GTO_Trainer.py")

        if st.button("🏆 ICM Trainer", use_container_width=True):
            st.switch_page("pages/02_ICM_Trainer.py")

        if st.button("🤖 Bot Practice", use_container_width=True):
            st.switch_page("pages/03_Bot_Practice.py")

        if st.button("📈 Progress", use_container_width=True):
            st.switch_page("pages/04_Progress.py")

        # ---------- Sign Out ----------
        st.markdown("---")
        if st.button("🚪 Sign Out", use_container_width=True):
            sign_out()
