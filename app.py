from __future__ import annotations

import logging
from functools import partial
from typing import List, Optional

import pandas as pd
import streamlit as st

from salesboard.charts import CHART_DEFINITIONS, ChartId, Tab
from salesboard.commands import clear_filters, command_from_selection, select_filter, switch_tab
from salesboard.filters import FilterKey
from salesboard.formatting import format_large_number, format_number, format_percentage, growth_color
from salesboard.session import DashboardSession

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

SESSION_KEY = "dashboard_session"
TAB_KEY = "active_tab"
ALL_OPTION = "All"
FILTER_LABELS = {
    FilterKey.BRAND: "Brand",
    FilterKey.CATEGORY: "Category",
    FilterKey.MOLECULE: "Molecule",
    FilterKey.SKU: "SKU",
}
TAB_LABELS = {Tab.OVERVIEW: "Overview", Tab.PERFORMANCE: "Performance", Tab.ANALYSIS: "Analysis"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .kpi-growth {font-size: 1.6rem;font-weight: 700;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def _widget_key(key: FilterKey) -> str:
    return f"filter_{key.value}"


def sync_filter_widgets(session: DashboardSession):
    for key in FilterKey:
        st.session_state[_widget_key(key)] = session.filters.get(key) or ALL_OPTION


def get_session() -> DashboardSession:
    if SESSION_KEY not in st.session_state:
        session = DashboardSession.from_source()
        st.session_state[SESSION_KEY] = session
        st.session_state[TAB_KEY] = session.active_tab.value
        sync_filter_widgets(session)
        logger.info("dashboard session started with %d records (%s)", len(session.records), session.source)
    return st.session_state[SESSION_KEY]


# ---------- callbacks ----------
def on_filter_change(session: DashboardSession, key: FilterKey):
    value = st.session_state.get(_widget_key(key))
    session.dispatch(select_filter(key, None if value == ALL_OPTION else value))


def on_clear_filters(session: DashboardSession):
    session.dispatch(clear_filters())
    sync_filter_widgets(session)


def on_tab_change(session: DashboardSession):
    session.dispatch(switch_tab(st.session_state[TAB_KEY]))


def on_chart_select(session: DashboardSession, chart_id: ChartId, widget_key: str):
    event = st.session_state.get(widget_key) or {}
    command = command_from_selection(chart_id, event.get("selection", {}))
    if command is None:
        return
    if session.dispatch(command):
        sync_filter_widgets(session)


def format_filter_summary(session: DashboardSession) -> str:
    chips: List[str] = []
    for key, label in FILTER_LABELS.items():
        value = session.filters.get(key)
        chips.append(f"{label}: {value if value is not None else 'All'}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def render_kpi_tiles(session: DashboardSession):
    summary = session.summary()
    cols = st.columns(4)
    cols[0].metric("Total Value", format_large_number(summary.total_value, currency=True))
    cols[1].metric("Total Units", format_large_number(summary.total_units))
    for col, label, value in [
        (cols[2], "Avg Value Growth", summary.avg_value_growth),
        (cols[3], "Avg Unit Growth", summary.avg_unit_growth),
    ]:
        col.caption(label)
        col.markdown(
            f"<div class='kpi-growth' style='color:{growth_color(value)}'>{format_percentage(value)}</div>",
            unsafe_allow_html=True,
        )
    stats = session.stats()
    st.caption(f"Showing {format_number(stats['filtered_records'])} of {format_number(stats['total_records'])} records")


def render_charts(session: DashboardSession):
    charts = session.charts()
    chart_ids = list(charts.keys())
    for start in range(0, len(chart_ids), 2):
        cols = st.columns(2)
        for col, chart_id in zip(cols, chart_ids[start : start + 2]):
            spec = charts[chart_id]
            with col:
                if CHART_DEFINITIONS[chart_id].clickable:
                    # One widget per filter revision; a new revision starts with no selection.
                    widget_key = f"chart_{chart_id.value}_{session.revision}"
                    st.vega_lite_chart(
                        spec=spec,
                        use_container_width=True,
                        key=widget_key,
                        on_select=partial(on_chart_select, session, chart_id, widget_key),
                        selection_mode="pick",
                    )
                else:
                    st.vega_lite_chart(spec=spec, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Brand Sales Dashboard", layout="wide")
inject_base_styles()

session = get_session()

with st.sidebar:
    st.markdown("### Filters")
    for key, label in FILTER_LABELS.items():
        st.selectbox(
            label,
            options=[ALL_OPTION] + session.options[key],
            key=_widget_key(key),
            on_change=on_filter_change,
            args=(session, key),
        )
    st.button("Clear filters", on_click=on_clear_filters, args=(session,), use_container_width=True)

render_page_header(
    "Brand Sales Dashboard",
    f"Sales / {TAB_LABELS[session.active_tab]}",
    format_filter_summary(session),
    export_df=session.filtered,
    export_name="filtered_records.csv",
)
render_kpi_tiles(session)

st.radio(
    "View",
    options=[tab.value for tab in Tab],
    format_func=lambda v: TAB_LABELS[Tab(v)],
    key=TAB_KEY,
    horizontal=True,
    on_change=on_tab_change,
    args=(session,),
    label_visibility="collapsed",
)
render_charts(session)

st.markdown("### Records")
st.dataframe(session.styled_table(), use_container_width=True, hide_index=True)
