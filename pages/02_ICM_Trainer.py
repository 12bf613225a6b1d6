# pages/02_ICM_Trainer.py — tournament spots scored in $ equity

import streamlit as st
st.set_page_config(page_title="ICM Trainer", page_icon="🏆", layout="wide")  # set FIRST

from auth import require_auth
user = require_auth()  # gate before anything renders

from sidebar import render_sidebar
render_sidebar()  # only show after auth

from scenario_page import render_scenario_page

render_scenario_page("icm", "ICM Trainer", "🏆")
