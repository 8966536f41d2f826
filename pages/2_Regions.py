# pages/2_Regions.py
import streamlit as st

from datacenter.data import api_controls, configure_logging, get_navigator, load_settings
from datacenter.hierarchy import REGION_HIERARCHY
from datacenter.ui import entities_frame, flush_notices, render_styled_table, style_rows_by_status

# ---------------- Page Config ----------------
st.set_page_config(page_title="Regions · Party Data Center", page_icon="🗺️", layout="wide")
st.title("🗺️ Counties by Region")

# ---------------- Sidebar: API controls ----------------
api_controls()
settings = load_settings()
configure_logging(settings.log_level)

nav = get_navigator(REGION_HIERARCHY, settings)
if not nav.loader.is_loaded("region", None) and not nav.loader.state("region").error:
    nav.loader.load("region")

regions = nav.loader.rows("region")
region_state = nav.loader.state("region")

if region_state.error:
    st.error(f"Could not load regions: {region_state.error}")
    st.button("Try again", key="regions:retry", on_click=nav.loader.reload, args=("region",))

if not regions:
    if not region_state.error:
        st.info("No regions yet.")
    flush_notices(nav.notifier)
    st.stop()

# ---------------- Filters (on page) ----------------
st.markdown("### Filters")

# Region (remembered in the URL so a reload or shared link lands on the same one)
remembered = st.query_params.get("region")
ids = [r.id for r in regions]
default_ix = ids.index(remembered) if remembered in ids else 0
sel = st.selectbox("Region", regions, index=default_ix, format_func=lambda r: r.name, key="regions:region")

if nav.scope.get("region") != sel.id:
    nav.open("region", sel)
    st.query_params["region"] = sel.id

# ---------------- Counties in region ----------------
query = st.text_input("Search counties", value="", key="regions:q").strip()
model = nav.view(query=query, limit=len(nav.loader.rows("county")))
st.subheader(model.title)

if model.error:
    st.error(f"Failed to load counties: {model.error}")
    st.button("Try again", key="regions:county-retry", on_click=nav.refresh)
elif model.empty:
    st.info(model.empty_message)
elif not model.rows:
    st.warning("No matches for your search.")
else:
    st.caption(f"{model.total:,} counties in {sel.name}")
    df = entities_frame(model.rows)
    render_styled_table(style_rows_by_status(df))
    st.download_button(
        "Download CSV",
        data=df.to_csv(index=False).encode("utf-8"),
        file_name=f"counties_region_{sel.id}.csv",
        mime="text/csv",
    )

flush_notices(nav.notifier)
