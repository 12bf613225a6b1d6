# pages/03_Bot_Practice.py — pay once, log hands against a bot, close with final stats

import streamlit as st
st.set_page_config(page_title="Bot Practice", page_icon="🤖", layout="wide")  # set FIRST

from auth import require_auth
user = require_auth()  # gate before anything renders

from sidebar import render_sidebar, refresh_credits
render_sidebar()  # only show after auth

from bot_table import BOT_DIFFICULTIES, BOT_SESSION_COST, BOT_TYPES, BotTableState
from cache import invalidate_after_write
from db_stats import summarize_bot_sessions
from errors import BotSessionClosed, BotSessionNotFound, ContentionError, TrainerError
from trainer import Trainer

USER_ID = user["user_id"]
trainer = Trainer.for_app()

st.title("🤖 Bot Practice")
st.caption(f"{BOT_SESSION_COST} credits per session. Log each hand, then end the session to save your stats.")

# ---------- Table state (explicit, serializable) ----------
raw = st.session_state.get("bot_table")
table = BotTableState.from_dict(raw) if raw else None
if table is not None and table.user_id != USER_ID:
    st.session_state.pop("bot_table", None)
    table = None


def _save(t: BotTableState) -> None:
    st.session_state["bot_table"] = t.to_dict()


# ---------- No open table: start one ----------
if table is None or table.ended:
    if table is not None and table.ended:
        wr = table.win_rate
        st.success(
            f"Last session: {table.hands_won}/{table.hands_played} hands won"
            + (f" ({wr:.1f}%)" if wr is not None else "")
            + f" · profit {table.total_profit:+} bb"
        )

    c1, c2 = st.columns(2)
    with c1:
        bot_type = st.selectbox("Opponent", list(BOT_TYPES.keys()), format_func=lambda k: BOT_TYPES[k])
    with c2:
        difficulty = st.selectbox("Difficulty", list(BOT_DIFFICULTIES), index=1)

    credits = int(st.session_state.get("credits", 0) or 0)
    if st.button(
        f"Start session ({BOT_SESSION_COST} credits)",
        type="primary",
        disabled=credits < BOT_SESSION_COST,
    ):
        try:
            table = trainer.start_bot_session(USER_ID, bot_type, difficulty)
        except TrainerError as e:
            st.error(e.message)
        except ContentionError:
            st.warning("Your balance was busy updating. Please try again.")
        else:
            _save(table)
            refresh_credits(USER_ID)
            st.rerun()

    if credits < BOT_SESSION_COST:
        st.warning(f"You need {BOT_SESSION_COST} credits to open a table. You have {credits}.")

# ---------- Open table ----------
else:
    st.subheader(f"{BOT_TYPES.get(table.bot_type, table.bot_type)} · {table.difficulty}")

    m1, m2, m3 = st.columns(3)
    with m1:
        st.metric("Hands", table.hands_played)
    with m2:
        st.metric("Won", table.hands_won, f"{table.win_rate:.1f}%" if table.win_rate is not None else None)
    with m3:
        st.metric("Profit (bb)", f"{table.total_profit:+}")

    profit = st.number_input("Result of this hand (bb)", value=0.0, step=0.5, format="%.2f")

    b1, b2 = st.columns(2)
    with b1:
        if st.button("✅ Won hand", use_container_width=True):
            table.record_hand(True, abs(profit))
            _save(table)
            st.rerun()
    with b2:
        if st.button("❌ Lost hand", use_container_width=True):
            table.record_hand(False, -abs(profit))
            _save(table)
            st.rerun()

    st.markdown("---")
    if st.button("🏁 End session", type="primary"):
        try:
            table = trainer.end_bot_session(table)
        except (BotSessionClosed, BotSessionNotFound) as e:
            st.warning(e.message)
            st.session_state.pop("bot_table", None)
        except TrainerError as e:
            st.error(e.message)
        else:
            _save(table)
            invalidate_after_write(USER_ID)
            st.rerun()

# ---------- History ----------
st.markdown("---")
st.subheader("Recent sessions")

rows = trainer.recent_bot_sessions(USER_ID, limit=20)
totals = summarize_bot_sessions(rows)

h1, h2, h3, h4 = st.columns(4)
with h1:
    st.metric("Sessions", totals["sessions"])
with h2:
    st.metric("Hands", totals["hands_played"])
with h3:
    st.metric("Profit (bb)", f"{totals['total_profit']:+.2f}")
with h4:
    st.metric("Credits spent", totals["credits_spent"])

for r in rows[:10]:
    status = "open" if not r.get("ended_at") else f"{r.get('hands_won', 0)}/{r.get('hands_played', 0)} won"
    st.markdown(
        f"- **{BOT_TYPES.get(r.get('bot_type'), r.get('bot_type'))}** · {r.get('difficulty')} · {status} · "
        f"{str(r.get('started_at') or '')[:16].replace('T', ' ')}"
    )
