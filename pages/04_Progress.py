# pages/04_Progress.py — running accuracy per series + whole-history drill totals

import streamlit as st
st.set_page_config(page_title="Progress", page_icon="📈", layout="wide")  # set FIRST

from auth import require_auth
user = require_auth()  # gate before anything renders

from sidebar import render_sidebar
render_sidebar()  # only show after auth

import altair as alt

from cache import get_cached_progress, get_cached_scenarios, get_cached_training_summary
from db_stats import accuracy_curve, get_training_summary, training_sessions_to_dataframe
from errors import TrainerError
from trainer import Trainer

USER_ID = user["user_id"]
trainer = Trainer.for_app()

st.title("📈 Progress")

try:
    progress = get_cached_progress(USER_ID, trainer.get_progress)
except TrainerError as e:
    st.error(e.message)
    st.stop()

# ---------- Running averages ----------
st.subheader("Accuracy")

c1, c2, c3, c4 = st.columns(4)
with c1:
    st.metric("Decisions", progress.total_sessions)
with c2:
    st.metric("GTO accuracy", f"{progress.gto_accuracy:.2f}%")
    st.caption(f"{progress.gto_samples} spots")
with c3:
    st.metric("ICM score", f"{progress.icm_score:.2f}%")
    st.caption(f"{progress.icm_samples} spots")
with c4:
    st.metric("Bot win rate", f"{progress.win_rate:.2f}%")
    st.caption(f"{progress.win_rate_samples} sessions")

if progress.preflop_samples or progress.postflop_samples or progress.betting_size_samples:
    s1, s2, s3 = st.columns(3)
    with s1:
        st.metric("Preflop", f"{progress.preflop_accuracy:.2f}%")
    with s2:
        st.metric("Postflop", f"{progress.postflop_accuracy:.2f}%")
    with s3:
        st.metric("Bet sizing", f"{progress.betting_size_accuracy:.2f}%")

st.markdown("---")

# ---------- Drill totals (from the session log) ----------
st.subheader("Training log")

summary = get_cached_training_summary(USER_ID, lambda uid: get_training_summary(uid, sb=trainer.sb))

for kind, label in (("gto", "🎯 GTO"), ("icm", "🏆 ICM")):
    b = summary.get(kind) or {}
    st.markdown(f"#### {label}")
    t1, t2, t3, t4 = st.columns(4)
    with t1:
        st.metric("Attempts", b.get("attempts", 0))
    with t2:
        st.metric("Correct", f"{b.get('correct', 0)} ({b.get('accuracy', 0.0):.1f}%)")
    with t3:
        st.metric("Avg value gap", f"{b.get('avg_ev_difference', 0.0):+.2f}")
    with t4:
        st.metric("Credits spent", b.get("credits_spent", 0))

st.markdown("---")

# ---------- Accuracy over time ----------
history = trainer.recent_training_sessions(USER_ID, limit=0)
curve = accuracy_curve(history)

st.subheader("Accuracy over time")
if curve.empty:
    st.caption("Submit a decision to start your curve.")
else:
    chart = alt.Chart(curve).mark_line(point=True).encode(
        x=alt.X("Attempt:Q", axis=alt.Axis(title="Attempt", tickMinStep=1)),
        y=alt.Y("Accuracy (%):Q", scale=alt.Scale(domain=[0, 100])),
        color=alt.Color("Type:N", legend=alt.Legend(title=None)),
        tooltip=["Type:N", "Attempt:Q", alt.Tooltip("Accuracy (%):Q", format=".2f")],
    )
    st.altair_chart(chart, use_container_width=True)

with st.expander("Last 10 decisions", expanded=False):
    titles = {
        s.id: s.title
        for kind in ("gto", "icm")
        for s in get_cached_scenarios(kind, trainer.list_scenarios)
    }
    df = training_sessions_to_dataframe(history[:10], titles)
    if df.empty:
        st.caption("No decisions yet.")
    else:
        st.dataframe(df, hide_index=True, use_container_width=True)
