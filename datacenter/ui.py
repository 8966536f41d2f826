import streamlit as st
import pandas as pd
from pandas.io.formats.style import Styler

from datacenter.colors import STATUS_BG_COLORS, DEFAULT_BG_COLOR
from datacenter.navigator import HierarchyNavigator
from datacenter.notify import Notifier

TOAST_ICONS = {"success": "✅", "info": "ℹ️", "warning": "⚠️", "error": "🚫"}


def hide_index(styler: Styler) -> Styler:
    return styler.hide(axis="index")


def render_styled_table(obj, fmt: dict | None = None):
    """
    Render a DataFrame or Styler with optional format mapping and responsive CSS.
    - obj: DataFrame or Styler
    - fmt: dict of {column: format_string}
    """
    styler = obj if isinstance(obj, Styler) else obj.style
    if fmt:
        styler = styler.format(fmt)
    styler = hide_index(styler)

    html = styler.to_html()
    st.markdown(
        """
        <style>
          .tbl-wrap { width: 100%; overflow-x: auto; }
          .tbl-wrap table { width: 100%; border-collapse: collapse; table-layout: auto; }
          .tbl-wrap th, .tbl-wrap td { padding: 6px 8px; }
          @media (max-width: 1200px) {
            .tbl-wrap th, .tbl-wrap td { font-size: 0.9rem; }
          }
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.markdown(f"<div class='tbl-wrap'>{html}</div>", unsafe_allow_html=True)


def entities_frame(rows) -> pd.DataFrame:
    """Flatten entities into a display frame; API order is kept."""
    df = pd.DataFrame([r.as_row() for r in rows])
    if df.empty:
        return df
    lead = [c for c in ["name", "code", "status"] if c in df.columns]
    rest = [c for c in df.columns if c not in lead and c != "id"]
    return df[lead + rest + ["id"]]


def style_rows_by_status(df_display: pd.DataFrame, palette: dict = STATUS_BG_COLORS,
                         default_color: str = DEFAULT_BG_COLOR) -> Styler:
    def _row_style(row: pd.Series):
        status = str(row.get("status", "") or "").strip().title()
        color = palette.get(status, default_color) if status else ""
        return [f"background-color: {color}"] * len(row) if color else [""] * len(row)
    num_cols = df_display.select_dtypes(include=["number"]).columns.tolist()
    return df_display.style.apply(_row_style, axis=1).format({c: "{:,.0f}" for c in num_cols})


def flush_notices(notifier: Notifier):
    for n in notifier.drain():
        st.toast(n.message, icon=TOAST_ICONS.get(n.severity))

# ---------------- Breadcrumbs ----------------
def render_breadcrumbs(nav: HierarchyNavigator, key: str):
    crumbs = nav.breadcrumbs()
    cols = st.columns(len(crumbs) + 1, gap="small")
    for i, crumb in enumerate(crumbs):
        with cols[i]:
            st.button(crumb.label, key=f"{key}:crumb:{i}", on_click=nav.back_to, args=(crumb.level,),
                      use_container_width=True)

# ---------------- Drill-down list ----------------
def render_drilldown(nav: HierarchyNavigator, key: str, allow_edit: bool = True):
    level = nav.current_level()
    parent_ids = nav.scope.parent_ids(level.key)
    scope_key = f"{key}:{level.key}:{'/'.join(parent_ids.values()) or 'root'}"
    limit_key = f"{scope_key}:limit"
    if limit_key not in st.session_state:
        st.session_state[limit_key] = nav.page_size

    c1, c2 = st.columns([3, 1], gap="large")
    with c2:
        if allow_edit:
            st.button(f"Add New {level.label}", key=f"{scope_key}:add", type="primary",
                      on_click=nav.start_create, use_container_width=True)
    query = st.text_input(f"Search {level.plural.lower()}", value="", key=f"{scope_key}:q",
                          placeholder="Type a name or code…").strip()

    model = nav.view(query=query, limit=st.session_state[limit_key])
    with c1:
        st.subheader(model.title)

    if model.loading:
        st.info(f"Loading {level.plural.lower()}…")

    if model.error:
        st.error(f"Failed to load {level.plural.lower()}: {model.error}")
        st.button("Try again", key=f"{scope_key}:retry", on_click=nav.refresh)

    if model.empty:
        if not model.error:
            st.info(model.empty_message)
        return model

    st.caption(f"Showing {model.shown:,} of {model.total:,}")
    if not model.rows:
        st.warning("No matches for your search.")
        return model

    for row in model.rows:
        cols = st.columns([4, 2, 1, 1, 1], gap="small")
        with cols[0]:
            st.markdown(f"**{row.name}**")
        with cols[1]:
            st.caption(row.code or row.attrs.get("status", ""))
        with cols[2]:
            if model.can_open:
                st.button("Open", key=f"{scope_key}:open:{row.id}", on_click=nav.open, args=(level.key, row))
        if allow_edit:
            with cols[3]:
                st.button("Edit", key=f"{scope_key}:edit:{row.id}", on_click=nav.start_edit, args=(level.key, row))
            with cols[4]:
                st.button("Delete", key=f"{scope_key}:del:{row.id}", on_click=nav.request_delete,
                          args=(level.key, row))

    if model.can_load_more:
        def _more():
            st.session_state[limit_key] += nav.page_size
        st.button("Load more", key=f"{scope_key}:more", on_click=_more)

    with st.expander("Table view / export"):
        df = entities_frame(nav.loader.rows(level.key))
        render_styled_table(style_rows_by_status(df))
        st.download_button(
            "Download CSV",
            data=df.to_csv(index=False).encode("utf-8"),
            file_name=f"{level.key}_{'_'.join(parent_ids.values()) or 'all'}.csv",
            mime="text/csv",
            key=f"{scope_key}:csv",
        )
    return model

# ---------------- Add / Edit form ----------------
def render_form(nav: HierarchyNavigator, key: str):
    form = nav.form
    if not form.is_open:
        return
    session = form.session
    spec = nav.hierarchy.spec(session.entity_type)
    form_key = f"{key}:form:{session.entity_type}:{session.operation.value}:{session.data.id if session.data else 'new'}"
    initial = form.initial_values()

    def _typed_values() -> dict:
        # read at click time: text typed in the same interaction lands in session_state first
        return {f.name: str(st.session_state.get(f"{form_key}:{f.name}", "") or "") for f in spec.fields}

    def _submit():
        form.submit(_typed_values())

    with st.container(border=True):
        verb = "Create" if session.operation.value == "create" else "Edit"
        st.markdown(f"#### {verb} {spec.label}")
        for f in spec.fields:
            label = f"{f.label} *" if f.required else f.label
            st.text_input(label, value=initial.get(f.name, ""), key=f"{form_key}:{f.name}")
        values = _typed_values()

        errors = form.validate(values)
        for name, msg in errors.items():
            # a blank required field only disables submit; everything else is worth saying
            if values.get(name, "").strip():
                st.caption(f":red[{msg}]")
        if session.error:
            st.error(session.error)

        c1, c2 = st.columns(2)
        with c1:
            st.button("Cancel", key=f"{form_key}:cancel", on_click=form.cancel, use_container_width=True)
        with c2:
            st.button(
                "Create" if session.operation.value == "create" else "Save",
                key=f"{form_key}:submit",
                type="primary",
                disabled=not form.can_submit(values),
                on_click=_submit,
                use_container_width=True,
            )

# ---------------- Confirmation ----------------
def render_confirmation(nav: HierarchyNavigator, key: str):
    gate = nav.confirmation
    if not gate.is_open:
        return
    with st.container(border=True):
        st.warning(gate.message)
        c1, c2 = st.columns(2)
        with c1:
            st.button("Cancel", key=f"{key}:confirm:cancel", on_click=gate.cancel, use_container_width=True)
        with c2:
            st.button("Confirm", key=f"{key}:confirm:ok", type="primary", on_click=gate.confirm,
                      use_container_width=True)
