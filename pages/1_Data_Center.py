# pages/1_Data_Center.py
import streamlit as st

from datacenter.data import api_controls, configure_logging, get_navigator, load_settings
from datacenter.hierarchy import GEO_HIERARCHY
from datacenter.ui import (
    flush_notices,
    render_breadcrumbs,
    render_confirmation,
    render_drilldown,
    render_form,
)

# ---------------- Page Config ----------------
st.set_page_config(page_title="Data Center · Party Data Center", page_icon="🗂️", layout="wide")
st.title("🗂️ Political Party Data Center")

# ---------------- Sidebar: API controls ----------------
api_controls()
settings = load_settings()
configure_logging(settings.log_level)

nav = get_navigator(GEO_HIERARCHY, settings)
nav.sync()

# ---------------- Breadcrumbs ----------------
render_breadcrumbs(nav, key="geo")
st.markdown("---")

# ---------------- Form & confirmation (above the list so they stay in view) ----------------
render_form(nav, key="geo")
render_confirmation(nav, key="geo")

# ---------------- Current level ----------------
render_drilldown(nav, key="geo")

flush_notices(nav.notifier)
