# scenario_page.py — shared body of the GTO / ICM trainer pages
#
# The page file does set_page_config + require_auth + render_sidebar, then calls
# render_scenario_page(). Everything here is presentation; trainer.py does the work.

import time
from typing import Dict, List

import streamlit as st

from cache import get_cached_scenarios, invalidate_after_write, set_cached_progress
from errors import ContentionError, TrainerError
from scenario_catalog import Scenario
from sidebar import refresh_credits
from trainer import SessionResult, Trainer

_CARD_CSS = """
<style>
.card{border:1px solid #2b2b2b;border-radius:14px;padding:16px 18px;
      background:linear-gradient(135deg,#0f0f0f,#171717);color:#eaeaea;margin:8px 0 18px 0;}
.h{font-weight:900;font-size:1.05rem;margin-bottom:6px}
.help{color:#a0a0a0;font-size:.92rem}
.cards{font-size:1.6rem;letter-spacing:.15rem}
</style>
"""

_DIFFICULTY_BADGE = {
    "beginner": "🟢 Beginner",
    "intermediate": "🟡 Intermediate",
    "advanced": "🔴 Advanced",
}


def _result_key(scenario_type: str) -> str:
    return f"_last_result_{scenario_type}"


def _render_scenario(s: Scenario) -> None:
    st.markdown('<div class="card">', unsafe_allow_html=True)
    st.markdown(f'<div class="h">{s.title}</div>', unsafe_allow_html=True)
    st.caption(f"{_DIFFICULTY_BADGE.get(s.difficulty, s.difficulty)} · {s.game_type} · {s.cost} credits")
    if s.description:
        st.markdown(f'<div class="help">{s.description}</div>', unsafe_allow_html=True)
    st.markdown("</div>", unsafe_allow_html=True)

    st.write(s.situation)

    cols = st.columns(4)
    with cols[0]:
        if s.hero_cards:
            st.markdown("**Your hand**")
            st.markdown(f'<div class="cards">{" ".join(s.hero_cards)}</div>', unsafe_allow_html=True)
    with cols[1]:
        if s.board_cards:
            st.markdown("**Board**")
            st.markdown(f'<div class="cards">{" ".join(s.board_cards)}</div>', unsafe_allow_html=True)
    with cols[2]:
        if s.pot_size is not None:
            st.metric("Pot", f"${s.pot_size}")
    with cols[3]:
        if s.bet_size:
            st.metric("To call", f"${s.bet_size}")


def _render_result(result: SessionResult) -> None:
    if result.is_correct:
        st.success(result.feedback, icon="✅")
    else:
        st.error(result.feedback, icon="❌")
        st.caption(f"Optimal: **{result.optimal_action}** · difference {result.value_difference:+.2f}")

    if result.progress is None:
        st.warning("Your answer was saved, but your stats didn't update. They'll catch up shortly.")
    else:
        p = result.progress
        value = p.gto_accuracy if result.scenario_type == "gto" else p.icm_score
        label = "GTO accuracy" if result.scenario_type == "gto" else "ICM score"
        st.caption(f"{label}: {value:.2f}% · decisions so far: {p.total_sessions}")


def render_scenario_page(scenario_type: str, title: str, icon: str) -> None:
    st.markdown(_CARD_CSS, unsafe_allow_html=True)
    st.title(f"{icon} {title}")

    user_id = st.session_state.get("user_db_id")
    trainer = Trainer.for_app()

    scenarios: List[Scenario] = get_cached_scenarios(scenario_type, trainer.list_scenarios)
    if not scenarios:
        st.info("No scenarios are available yet.")
        st.stop()

    by_id: Dict[int, Scenario] = {s.id: s for s in scenarios}
    picked_id = st.selectbox(
        "Scenario",
        options=list(by_id.keys()),
        format_func=lambda sid: f"{by_id[sid].title} ({by_id[sid].difficulty})",
        key=f"_pick_{scenario_type}",
    )
    scenario = by_id[picked_id]

    # decision timer restarts whenever the selected scenario changes
    timer_key = f"_started_{scenario_type}"
    if st.session_state.get(f"{timer_key}_id") != scenario.id:
        st.session_state[f"{timer_key}_id"] = scenario.id
        st.session_state[timer_key] = time.time()
        st.session_state.pop(_result_key(scenario_type), None)

    _render_scenario(scenario)

    credits = int(st.session_state.get("credits", 0) or 0)
    choice = st.radio("Your action", scenario.action_labels, key=f"_choice_{scenario_type}_{scenario.id}")

    can_afford = credits >= scenario.cost
    if not can_afford:
        st.warning(f"This spot costs {scenario.cost} credits. You have {credits}.")

    if st.button(f"Submit ({scenario.cost} credits)", type="primary", disabled=not can_afford):
        elapsed = int(time.time() - float(st.session_state.get(timer_key) or time.time()))
        try:
            result = trainer.submit_scenario_decision(user_id, scenario.id, choice, time_spent=elapsed)
        except TrainerError as e:
            st.error(e.message)
        except ContentionError:
            st.warning("Your balance was busy updating. Please submit again.")
        else:
            st.session_state[_result_key(scenario_type)] = result
            invalidate_after_write(user_id)
            set_cached_progress(user_id, result.progress)
            refresh_credits(user_id)
            st.rerun()

    last = st.session_state.get(_result_key(scenario_type))
    if last is not None and last.scenario_id == scenario.id:
        _render_result(last)

    # ---------- Recent attempts ----------
    with st.expander("Recent attempts", expanded=False):
        rows = [r for r in trainer.recent_training_sessions(user_id, limit=20) if r.get("scenario_type") == scenario_type]
        if not rows:
            st.caption("No attempts yet.")
        for r in rows[:10]:
            mark = "✅" if r.get("is_correct") else "❌"
            title_ = by_id[r["scenario_id"]].title if r.get("scenario_id") in by_id else f"#{r.get('scenario_id')}"
            st.markdown(f"{mark} **{title_}** · {r.get('user_action')} · {float(r.get('ev_difference') or 0):+.2f}")
