# pages/01_GTO_Trainer.py — cash-game spots scored in EV

import streamlit as st
st.set_page_config(page_title="GTO Trainer", page_icon="🎯", layout="wide")  # set FIRST

from auth import require_auth
user = require_auth()  # gate before anything renders

from sidebar import render_sidebar
render_sidebar()  # only show after auth

from scenario_page import render_scenario_page

render_scenario_page("gto", "GTO Trainer", "🎯")
