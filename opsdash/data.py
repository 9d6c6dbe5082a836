from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Tuple

import pandas as pd

from opsdash.config import DatasetConfig, get_datasets, get_settings
from opsdash.filters import DashboardFilters, normalize_filters
from opsdash.loader import DatasetLoader, DatasetState
from opsdash.metrics import (
    compute_duration_series,
    compute_error_rate_series,
    compute_error_rates,
    compute_error_type_series,
    filter_records,
)
from opsdash.normalize import ActivityRecord, records_to_frame
from opsdash.snapshots import SnapshotStore
from opsdash.weeks import available_months, available_years, sorted_weeks, week_window


# ---------------- Loading ----------------
@lru_cache(maxsize=1)
def get_snapshot_store() -> SnapshotStore:
    return SnapshotStore(get_settings().cache_dir)


def list_datasets() -> List[DatasetConfig]:
    return list(get_datasets().values())


def get_dataset_config(key: str) -> DatasetConfig:
    datasets = get_datasets()
    if key not in datasets:
        raise KeyError(f"Unknown dataset {key!r}; expected one of {sorted(datasets)}")
    return datasets[key]


@lru_cache(maxsize=None)
def get_loader(key: str) -> DatasetLoader:
    return DatasetLoader(get_dataset_config(key), get_snapshot_store())


def load_dataset(key: str, *, force_refresh: bool = False) -> DatasetState:
    """Current state of a dataset, fetching it on first use or when forced."""
    loader = get_loader(key)
    if force_refresh:
        return loader.refresh()
    return loader.load()


# ---------------- Dataset views ----------------
@lru_cache(maxsize=8)
def _records_frame_cached(records: Tuple[ActivityRecord, ...]) -> pd.DataFrame:
    return records_to_frame(records)


def records_frame(state: DatasetState) -> pd.DataFrame:
    # Shared across callers; treat as read-only.
    return _records_frame_cached(state.records)


def dataset_weeks(state: DatasetState) -> List[date]:
    return sorted_weeks(r.week_start for r in state.records)


def get_associate_list(state: DatasetState) -> List[str]:
    return sorted({r.associate for r in state.records}, key=lambda s: (s.casefold(), s))


def get_available_years(state: DatasetState) -> List[int]:
    return available_years(dataset_weeks(state))


def get_available_months(state: DatasetState, year: int) -> List[int]:
    return available_months(dataset_weeks(state), year)


def resolve_filters(filters: dict | DashboardFilters | None, state: DatasetState) -> DashboardFilters:
    if isinstance(filters, DashboardFilters):
        return filters
    return normalize_filters(filters or {}, available_years=get_available_years(state))


def get_week_window(state: DatasetState, filters: DashboardFilters) -> List[date]:
    return week_window(dataset_weeks(state), filters.year, filters.month)


# ---------------- Public queries (Streamlit + FastAPI) ----------------
def prepare_context(filters: dict | DashboardFilters | None, state: DatasetState) -> Dict[str, Any]:
    filt = resolve_filters(filters, state)
    records = records_frame(state)
    window = get_week_window(state, filt)
    return {
        "filters": filt,
        "records": records,
        "week_window": window,
        "filtered_records": filter_records(records, window, filt.associate),
        "provenance": state.provenance.value,
        "fetched_at": state.fetched_at,
    }


def get_weekly_error_rate_series(
    state: DatasetState,
    filters: dict | DashboardFilters | None = None,
    *,
    kind: str = "associate",
) -> List[Dict[str, Any]]:
    ctx = prepare_context(filters, state)
    return compute_error_rate_series(ctx["records"], ctx["week_window"], associate=ctx["filters"].associate, kind=kind)


def get_weekly_error_rates(state: DatasetState, filters: dict | DashboardFilters | None = None) -> Dict[str, List[Dict[str, Any]]]:
    ctx = prepare_context(filters, state)
    return compute_error_rates(ctx["records"], ctx["week_window"], associate=ctx["filters"].associate)


def get_weekly_error_type_series(state: DatasetState, filters: dict | DashboardFilters | None = None) -> Dict[str, Any]:
    ctx = prepare_context(filters, state)
    return compute_error_type_series(ctx["records"], ctx["week_window"], associate=ctx["filters"].associate)


def get_weekly_duration_series(state: DatasetState, filters: dict | DashboardFilters | None = None) -> Dict[str, Any]:
    ctx = prepare_context(filters, state)
    return compute_duration_series(ctx["records"], ctx["week_window"], associate=ctx["filters"].associate)


def export_frame(state: DatasetState, filters: dict | DashboardFilters | None = None) -> pd.DataFrame:
    """Filtered records as a flat table for CSV download."""
    ctx = prepare_context(filters, state)
    out = ctx["filtered_records"].copy()
    if out.empty:
        return out
    out["occurred_on"] = out["occurred_on"].map(date.isoformat)
    out["week_start"] = out["week_start"].map(date.isoformat)
    return out.sort_values(["occurred_on", "source_row", "error_type"]).reset_index(drop=True)
