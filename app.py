import time

import altair as alt
import streamlit as st
from contextlib import contextmanager
from typing import Optional

from opsdash import data as dd
from opsdash.access import AccessContext
from opsdash.charts import duration_chart, error_rate_chart, error_type_chart, TEAM_RATE_COLOR
from opsdash.config import get_settings
from opsdash.filters import EVERYONE, normalize_filters
from opsdash.loader import Provenance
from opsdash.weeks import format_week_label, month_name

alt.data_transformers.disable_max_rows()

LOADING_POLL_SECONDS = 1.0


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
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(associate: str, year: Optional[int], month: Optional[int], window) -> str:
    period = "All Time" if year is None else (f"{month_name(month)} {year}" if month else str(year))
    span = f"Weeks {format_week_label(window[0])} – {format_week_label(window[-1])}" if window else "No weeks"
    return "".join(f"<span class='chip'>{txt}</span>" for txt in [f"Associate: {associate}", f"Period: {period}", span])


def get_access() -> AccessContext:
    if "access" not in st.session_state:
        st.session_state["access"] = AccessContext(password=get_settings().password)
    return st.session_state["access"]


def render_login(access: AccessContext):
    st.title("Performance Dashboard")
    with st.form("login"):
        attempt = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Unlock")
    if submitted:
        if access.authenticate(attempt):
            st.rerun()
        else:
            st.error("Incorrect password, please try again.")


def render_provenance(state):
    message = state.describe()
    if state.provenance is Provenance.NONE:
        message = f"{message}. Use Refresh to try the feed again."
    getattr(st, state.severity)(message)


# ---------- UI setup ----------
st.set_page_config(page_title="Performance Dashboard", layout="wide")
inject_base_styles()

access = get_access()
if not access.is_authenticated:
    render_login(access)
    st.stop()

datasets = dd.list_datasets()
labels = {d.label: d.key for d in datasets}

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", list(labels), index=0)
    dataset_key = labels[nav_choice]
    refresh = st.button("Refresh data")
    if access.required and st.button("Log out"):
        access.end_session()
        st.rerun()

with st.spinner("Loading feed…"):
    state = dd.load_dataset(dataset_key, force_refresh=refresh)

config = dd.get_dataset_config(dataset_key)
st.markdown(
    f"<div class='app-top-bar'><div class='breadcrumb'>Home / {config.label}</div><div class='page-title'>{config.label}</div></div>",
    unsafe_allow_html=True,
)
st.caption(config.description)
render_provenance(state)

if not state.records:
    if state.is_loading:
        # Another session holds the refresh; poll until it lands.
        with st.spinner("Waiting for the feed…"):
            time.sleep(LOADING_POLL_SECONDS)
        st.rerun()
    st.info("No records to show.")
    st.stop()

# ----- Sidebar filters -----
with st.sidebar:
    st.markdown("---")
    st.markdown("### Filters")
    associate = st.selectbox("Select Associate", [EVERYONE] + dd.get_associate_list(state), index=0)
    years = dd.get_available_years(state)
    year_choice = st.selectbox("Year", ["All Time"] + years, index=0)
    month_choice = "All"
    if year_choice != "All Time":
        months = dd.get_available_months(state, int(year_choice))
        month_choice = st.selectbox("Month", ["All"] + months, format_func=lambda m: m if m == "All" else month_name(m))

filters = normalize_filters(
    {"associate": associate, "year": year_choice, "month": month_choice},
    available_years=years,
)
ctx = dd.prepare_context(filters, state)
window = ctx["week_window"]
st.markdown(
    f"<div class='chip-row'>{format_filter_summary(filters.associate_label, filters.year, filters.month, window)}</div>",
    unsafe_allow_html=True,
)

rates = dd.get_weekly_error_rates(state, filters)
with card("Weekly Error Rate (%)"):
    st.altair_chart(error_rate_chart(rates["associate"], title=""), use_container_width=True)

with card("Weekly Team Error Rate (%)"):
    if any(p["error_count"] for p in rates["team"]):
        st.altair_chart(
            error_rate_chart(rates["team"], title="", color=TEAM_RATE_COLOR),
            use_container_width=True,
        )
    else:
        st.caption("No team errors recorded for this selection.")

if filters.associate:
    types = dd.get_weekly_error_type_series(state, filters)
    with card("Weekly Error Types"):
        if types["types"]:
            st.altair_chart(error_type_chart(types, title=""), use_container_width=True)
        else:
            st.caption("No associate errors recorded for this selection.")

durations = dd.get_weekly_duration_series(state, filters)
if durations["updates"]:
    with card("Completion Time"):
        st.altair_chart(duration_chart(durations, title=""), use_container_width=True)

export_df = dd.export_frame(state, filters)
with st.expander("Records", expanded=False):
    st.dataframe(export_df, hide_index=True, use_container_width=True)
    if not export_df.empty:
        st.download_button(
            "Export CSV",
            data=export_df.to_csv(index=False).encode("utf-8"),
            file_name=f"{dataset_key}_records.csv",
            mime="text/csv",
        )
