# app.py — gated home: credit balance, progress snapshot, quick start into the trainers

import streamlit as st

from supabase_client import app_env, get_secret

# ---- Environment flag ----
APP_ENV = app_env()

# ---- Page meta (run first) ----
env_suffix = " (DEV)" if APP_ENV == "dev" else ""
st.set_page_config(
    page_title=f"Poker Trainer{env_suffix}",
    page_icon="🃏",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ---- Auth gate (hide everything until logged in) ----
from auth import require_auth
user = require_auth()

# ---- Shared sidebar (only after auth) ----
from sidebar import render_sidebar
render_sidebar()

from bot_table import BOT_SESSION_COST
from cache import get_cached_progress
from credit_ledger import MAX_CREDITS, REGEN_AMOUNT
from errors import TrainerError
from scenario_seed import GTO_COST, ICM_COST
from trainer import Trainer

USER_ID = user["user_id"]
trainer = Trainer.for_app()

# ---- Catalog seeding (opt-in, once per session) ----
if str(get_secret("AUTO_SEED_SCENARIOS", "") or "").lower() in ("1", "true", "yes"):
    if not st.session_state.get("_scenarios_seeded"):
        from scenario_seed import seed_scenarios
        try:
            seed_scenarios(sb=trainer.sb)
        except Exception as e:
            print(f"[app] seed_scenarios error: {e!r}")
        st.session_state["_scenarios_seeded"] = True

# ------------------ Main Page ------------------
st.title("🃏 Poker Trainer")
st.write("Drill GTO and ICM decisions, practise against bots, and watch your accuracy move.")

credits = int(st.session_state.get("credits", 0) or 0)

try:
    progress = get_cached_progress(USER_ID, trainer.get_progress)
except TrainerError as e:
    st.error(e.message)
    progress = None

# ---------- Status tiles ----------
c1, c2, c3, c4 = st.columns(4)
with c1:
    st.metric("Credits", f"{credits:,}")
with c2:
    st.metric("Decisions", progress.total_sessions if progress else 0)
with c3:
    st.metric("GTO Accuracy", f"{progress.gto_accuracy:.1f}%" if progress else "—")
with c4:
    st.metric("ICM Score", f"{progress.icm_score:.1f}%" if progress else "—")

st.markdown("---")

# ---------- Quick Start ----------
st.subheader("Quick Start")

q1, q2, q3 = st.columns(3)
with q1:
    st.markdown("#### 🎯 GTO Trainer")
    st.caption(f"Cash-game spots with solver-style EV labels. {GTO_COST} credits per decision.")
    if st.button("Open GTO Trainer", use_container_width=True, disabled=credits < GTO_COST):
        st.switch_page("pages/01_GTO_Trainer.py")
with q2:
    st.markdown("#### 🏆 ICM Trainer")
    st.caption(f"Bubble, push/fold and bounty spots scored in tournament equity. {ICM_COST} credits per decision.")
    if st.button("Open ICM Trainer", use_container_width=True, disabled=credits < ICM_COST):
        st.switch_page("pages/02_ICM_Trainer.py")
with q3:
    st.markdown("#### 🤖 Bot Practice")
    st.caption(f"Play a table against GTO, LAG or TAG bots. {BOT_SESSION_COST} credits per session.")
    if st.button("Open Bot Practice", use_container_width=True, disabled=credits < BOT_SESSION_COST):
        st.switch_page("pages/03_Bot_Practice.py")

if credits < min(GTO_COST, ICM_COST, BOT_SESSION_COST):
    st.info(f"You're out of credits for now. +{REGEN_AMOUNT} arrive every 24 hours, up to {MAX_CREDITS:,}.")

st.markdown("---")

# ---------- How credits work ----------
with st.expander("How credits work", expanded=False):
    st.markdown(
        f"""
- New accounts start with **{MAX_CREDITS:,}** credits, which is also the cap.
- Every 24 hours your next visit adds **{REGEN_AMOUNT}** credits (never above the cap).
- A decision is charged once, when you submit it. If we can't record it, the credits are returned.
- Bot sessions are charged when the table opens.
"""
    )
