import streamlit as st

st.set_page_config(page_title="Party Data Center", page_icon="🗳️", layout="wide")

# optional: tiny CSS polish for sidebar links
st.markdown(
    """
    <style>
      section[data-testid="stSidebar"] .stMarkdown a { display:block; padding:6px 2px; }
    </style>
    """,
    unsafe_allow_html=True,
)

st.title("Political Party Data Center")
st.caption("Use the sidebar to open any page.")

# Landing page: nothing is fetched here.
st.markdown(
    """
    Manage the party's electoral geography: counties, constituencies, wards and
    polling stations. Drill down from a county to its polling stations, add or
    rename entries in place, and remove them behind a confirmation step. Data
    is only requested from the party API when you open a page from the sidebar.
    """
)

st.markdown("---")
st.subheader("Pages")
st.markdown(
    """
    - **Data Center**: Browse and edit counties → constituencies → wards → polling stations.
    - **Regions**: Pick a region to list its counties; the last region is remembered in the link.
    """
)
