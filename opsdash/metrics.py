from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from opsdash.weeks import format_week_label, week_start


ERROR_FLAGS = {
    "associate": "has_associate_error",
    "team": "has_team_error",
}

DA_COLOR = "#4CAF50"
DEFAULT_TYPE_COLOR = "#2196F3"


@dataclass(frozen=True)
class WeeklyStat:
    week_start: date
    total: int = 0
    error_count: int = 0
    error_types: Dict[str, int] = field(default_factory=dict)

    @property
    def week(self) -> str:
        return format_week_label(self.week_start)


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def error_type_color(error_type: str) -> str:
    return DA_COLOR if "DA" in str(error_type).upper() else DEFAULT_TYPE_COLOR


def _as_window(weeks: Iterable[date]) -> List[date]:
    return [week_start(w) for w in weeks]


def _flag_column(kind: str) -> str:
    try:
        return ERROR_FLAGS[kind]
    except KeyError:
        raise ValueError(f"Unknown error kind {kind!r}; expected one of {sorted(ERROR_FLAGS)}") from None


def filter_by_associate(df: pd.DataFrame, associate: Optional[str]) -> pd.DataFrame:
    if not associate or df.empty:
        return df
    return df[df["associate"] == associate]


def filter_records(df: pd.DataFrame, weeks: Iterable[date], associate: Optional[str] = None) -> pd.DataFrame:
    """Records for one associate (or everyone) whose week falls in the window."""
    window = _as_window(weeks)
    out = filter_by_associate(df, associate)
    if out.empty:
        return out
    return out[out["week_start"].isin(window)]


def _one_per_source_row(df: pd.DataFrame) -> pd.DataFrame:
    # Fan-out siblings share every field but error_type.
    return df.drop_duplicates(subset=["source_row"])


def compute_weekly_stats(
    df: pd.DataFrame,
    weeks: Iterable[date],
    *,
    associate: Optional[str] = None,
    kind: str = "associate",
) -> List[WeeklyStat]:
    """Per-week totals for the window, in window order.

    ``total`` and ``error_count`` count source rows. ``error_types`` counts
    every tag of an erroneous row, so a row listing two types contributes 2
    there but only 1 to ``total``.
    """
    flag = _flag_column(kind)
    window = _as_window(weeks)
    scoped = filter_records(df, window, associate)

    totals: Dict[date, tuple] = {}
    type_counts: Dict[date, Dict[str, int]] = {}
    if not scoped.empty:
        rows = _one_per_source_row(scoped)
        summary = rows.groupby("week_start").agg(total=(flag, "size"), error_count=(flag, "sum"))
        totals = {wk: (int(r["total"]), int(r["error_count"])) for wk, r in summary.iterrows()}

        errored = scoped[scoped[flag]]
        if not errored.empty:
            by_type = errored.groupby(["week_start", "error_type"]).size()
            for (wk, error_type), n in by_type.items():
                type_counts.setdefault(wk, {})[str(error_type)] = int(n)

    out: List[WeeklyStat] = []
    for wk in window:
        total, errors = totals.get(wk, (0, 0))
        counts = type_counts.get(wk, {})
        out.append(WeeklyStat(week_start=wk, total=total, error_count=errors, error_types=dict(sorted(counts.items()))))
    return out


def compute_error_rate_series(
    df: pd.DataFrame,
    weeks: Iterable[date],
    *,
    associate: Optional[str] = None,
    kind: str = "associate",
) -> List[Dict[str, Any]]:
    points: List[Dict[str, Any]] = []
    for stat in compute_weekly_stats(df, weeks, associate=associate, kind=kind):
        rate = round_half_up(stat.error_count / stat.total * 100, 1) if stat.total else 0.0
        points.append(
            {
                "week_start": stat.week_start.isoformat(),
                "week": stat.week,
                "total": stat.total,
                "error_count": stat.error_count,
                "error_rate": rate,
            }
        )
    return points


def compute_error_rates(
    df: pd.DataFrame,
    weeks: Iterable[date],
    *,
    associate: Optional[str] = None,
    kinds: Iterable[str] = ("associate", "team"),
) -> Dict[str, List[Dict[str, Any]]]:
    window = _as_window(weeks)
    return {kind: compute_error_rate_series(df, window, associate=associate, kind=kind) for kind in kinds}


def compute_error_type_series(
    df: pd.DataFrame,
    weeks: Iterable[date],
    *,
    associate: Optional[str] = None,
) -> Dict[str, Any]:
    """Stacked error-type counts per week, restricted to associate errors."""
    stats = compute_weekly_stats(df, weeks, associate=associate, kind="associate")
    types = sorted({t for s in stats for t in s.error_types})
    points = [
        {
            "week_start": s.week_start.isoformat(),
            "week": s.week,
            "counts": dict(s.error_types),
            "total": int(sum(s.error_types.values())),
        }
        for s in stats
    ]
    return {
        "types": types,
        "colors": {t: error_type_color(t) for t in types},
        "points": points,
    }


def compute_duration_series(
    df: pd.DataFrame,
    weeks: Iterable[date],
    *,
    associate: Optional[str] = None,
) -> Dict[str, Any]:
    """Average completion minutes per week plus every individual update."""
    window = _as_window(weeks)
    scoped = filter_records(df, window, associate)
    timed = pd.DataFrame()
    if not scoped.empty:
        timed = _one_per_source_row(scoped)
        timed = timed[timed["completion_minutes"].notna()]

    summary: Dict[date, tuple] = {}
    if not timed.empty:
        grouped = timed.groupby("week_start")["completion_minutes"].agg(["mean", "count"])
        summary = {wk: (float(r["mean"]), int(r["count"])) for wk, r in grouped.iterrows()}

    weekly: List[Dict[str, Any]] = []
    for wk in window:
        mean, count = summary.get(wk, (None, 0))
        weekly.append(
            {
                "week_start": wk.isoformat(),
                "week": format_week_label(wk),
                "average_minutes": round_half_up(mean, 2),
                "count": count,
            }
        )

    updates: List[Dict[str, Any]] = []
    if not timed.empty:
        for r in timed.sort_values(["occurred_on", "source_row"]).itertuples(index=False):
            updates.append(
                {
                    "occurred_on": r.occurred_on.isoformat(),
                    "date": format_week_label(r.occurred_on),
                    "week_start": r.week_start.isoformat(),
                    "week": format_week_label(r.week_start),
                    "minutes": round_half_up(r.completion_minutes, 2),
                    "associate": r.associate,
                    "item_label": r.item_label,
                }
            )
    return {"weekly": weekly, "updates": updates}
