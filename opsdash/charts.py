from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from opsdash.metrics import DEFAULT_TYPE_COLOR

alt.data_transformers.disable_max_rows()

TEAM_RATE_COLOR = "#F59E0B"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _week_axis(points: List[Dict[str, Any]]) -> alt.X:
    order = [p["week"] for p in points]
    return alt.X("week:N", title="Week of", sort=order, axis=alt.Axis(labelAngle=-40, grid=False))


def error_rate_chart(points: List[Dict[str, Any]], *, title: str = "Weekly Error Rate (%)", color: str = DEFAULT_TYPE_COLOR) -> alt.Chart:
    df = pd.DataFrame(points, columns=["week_start", "week", "total", "error_count", "error_rate"])
    return (
        alt.Chart(df, title=title)
        .mark_bar(color=color)
        .encode(
            x=_week_axis(points),
            y=alt.Y("error_rate:Q", title="Error Rate (%)", scale=alt.Scale(domain=[0, 100])),
            tooltip=[
                alt.Tooltip("week:N", title="Week"),
                alt.Tooltip("error_rate:Q", title="Error Rate (%)", format=".1f"),
                alt.Tooltip("error_count:Q", title="Errors"),
                alt.Tooltip("total:Q", title="Rows"),
            ],
        )
    )


def error_type_chart(series: Dict[str, Any], *, title: str = "Weekly Error Types") -> alt.Chart:
    points = series.get("points", [])
    types = series.get("types", [])
    long_rows = [
        {"week": p["week"], "error_type": t, "count": n}
        for p in points
        for t, n in p["counts"].items()
    ]
    df = pd.DataFrame(long_rows, columns=["week", "error_type", "count"])
    colors = series.get("colors", {})
    return (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=_week_axis(points),
            y=alt.Y("sum(count):Q", title="Errors", stack="zero"),
            color=alt.Color(
                "error_type:N",
                title="Error Type",
                scale=alt.Scale(domain=types, range=[colors.get(t, DEFAULT_TYPE_COLOR) for t in types]),
            ),
            tooltip=[
                alt.Tooltip("week:N", title="Week"),
                alt.Tooltip("error_type:N", title="Error Type"),
                alt.Tooltip("count:Q", title="Count"),
            ],
        )
    )


def duration_chart(series: Dict[str, Any], *, title: str = "Average Completion Time (minutes)") -> alt.LayerChart:
    weekly = series.get("weekly", [])
    weekly_df = pd.DataFrame(weekly, columns=["week_start", "week", "average_minutes", "count"])
    updates_df = pd.DataFrame(
        series.get("updates", []),
        columns=["occurred_on", "date", "week_start", "week", "minutes", "associate", "item_label"],
    )
    x = _week_axis(weekly)
    avg = (
        alt.Chart(weekly_df)
        .mark_line(point={"filled": True}, color=DEFAULT_TYPE_COLOR)
        .encode(
            x=x,
            y=alt.Y("average_minutes:Q", title="Minutes"),
            tooltip=[
                alt.Tooltip("week:N", title="Week"),
                alt.Tooltip("average_minutes:Q", title="Average (min)", format=".2f"),
                alt.Tooltip("count:Q", title="Updates"),
            ],
        )
    )
    dots = (
        alt.Chart(updates_df)
        .mark_circle(size=40, opacity=0.35, color="#6b7280")
        .encode(
            x=x,
            y=alt.Y("minutes:Q"),
            tooltip=[
                alt.Tooltip("date:N", title="Date"),
                alt.Tooltip("associate:N", title="Associate"),
                alt.Tooltip("item_label:N", title="Item"),
                alt.Tooltip("minutes:Q", title="Minutes", format=".2f"),
            ],
        )
    )
    return alt.layer(dots, avg, title=title)


def build_charts(
    rates: Dict[str, List[Dict[str, Any]]],
    types: Dict[str, Any] | None = None,
    durations: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    charts: Dict[str, Any] = {}
    if "associate" in rates:
        charts["associate_error_rate"] = to_vega_spec(error_rate_chart(rates["associate"]))
    if "team" in rates:
        charts["team_error_rate"] = to_vega_spec(
            error_rate_chart(rates["team"], title="Weekly Team Error Rate (%)", color=TEAM_RATE_COLOR)
        )
    if types is not None and types.get("types"):
        charts["error_types"] = to_vega_spec(error_type_chart(types))
    if durations is not None and durations.get("updates"):
        charts["durations"] = to_vega_spec(duration_chart(durations))
    return charts
