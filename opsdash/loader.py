from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Mapping, Optional, Tuple

import pandas as pd
import requests

from opsdash.columns import REQUIRED_FIELDS, resolve_columns
from opsdash.config import DatasetConfig, get_settings
from opsdash.normalize import ActivityRecord, normalize_frame
from opsdash.snapshots import SnapshotStore


logger = logging.getLogger(__name__)


class FeedError(Exception):
    """The feed could not be fetched or did not parse as a CSV table."""


class Provenance(str, Enum):
    LOADING = "loading"
    LIVE = "live"
    CACHED = "cached"
    NONE = "none"


@dataclass(frozen=True)
class DatasetState:
    dataset: str
    provenance: Provenance = Provenance.NONE
    records: Tuple[ActivityRecord, ...] = ()
    fetched_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.provenance is Provenance.LOADING

    @property
    def severity(self) -> str:
        """Streamlit banner level for the provenance message."""
        return {
            Provenance.LIVE: "caption",
            Provenance.LOADING: "info",
            Provenance.CACHED: "warning",
        }.get(self.provenance, "error")

    def describe(self) -> str:
        stamp = self.fetched_at.strftime("%Y-%m-%d %H:%M") if self.fetched_at else None
        if self.provenance is Provenance.LIVE:
            return f"Live data fetched {stamp}"
        if self.provenance is Provenance.CACHED:
            return f"Showing cached data from {stamp} (live fetch failed)"
        if self.provenance is Provenance.LOADING:
            return "Loading data, another refresh is in progress"
        return "No data available"


def fetch_csv(url: str, *, session: Optional[requests.Session] = None, timeout: Optional[float] = None) -> str:
    http = session or requests
    timeout = timeout if timeout is not None else get_settings().http_timeout
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FeedError(f"GET {url} failed: {exc}") from exc
    return resp.text


def parse_csv_text(text: str) -> pd.DataFrame:
    """Read a CSV body with a header row; every cell stays a string."""
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise FeedError(f"Malformed CSV body: {exc}") from exc
    if df.empty:
        return df
    blank = df.apply(lambda col: col.astype(str).str.strip() == "").all(axis=1)
    return df[~blank].reset_index(drop=True)


def require_columns(frame: pd.DataFrame, aliases: Optional[Mapping[str, str]] = None) -> None:
    """Reject a body whose header is not an activity log, e.g. an HTML error page."""
    columns = resolve_columns(frame.columns, aliases)
    missing = [f for f in REQUIRED_FIELDS if f not in columns]
    if missing:
        raise FeedError(f"Feed header has no {'/'.join(missing)} column: {list(frame.columns)[:5]}")


def local_now() -> datetime:
    return datetime.now().astimezone()


class DatasetLoader:
    """Fetch one dataset, falling back to its last snapshot when the fetch fails.

    Only one refresh runs at a time; a trigger arriving while another is in
    flight is ignored and gets the current (loading) state back. During a
    refresh the previous records stay visible.
    """

    def __init__(
        self,
        config: DatasetConfig,
        store: SnapshotStore,
        *,
        fetcher: Optional[Callable[[str], str]] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self.config = config
        self.store = store
        self._fetcher = fetcher or fetch_csv
        self._clock = clock
        self._lock = threading.Lock()
        self._state = DatasetState(dataset=config.key)
        self._loaded = False

    @property
    def state(self) -> DatasetState:
        return self._state

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> DatasetState:
        if self._loaded:
            return self._state
        return self.refresh()

    def refresh(self) -> DatasetState:
        if not self._lock.acquire(blocking=False):
            logger.info("Refresh of %s already in flight; ignoring trigger", self.config.key)
            return self._state
        try:
            self._state = replace(self._state, provenance=Provenance.LOADING, error=None)
            self._state = self._resolve()
            self._loaded = True
            return self._state
        finally:
            self._lock.release()

    def _resolve(self) -> DatasetState:
        key = self.config.key
        try:
            frame = parse_csv_text(self._fetcher(self.config.url))
            require_columns(frame, self.config.column_aliases)
        except (FeedError, requests.RequestException) as exc:
            logger.warning("Live fetch for %s failed: %s", key, exc)
            return self._fallback(str(exc))

        records = normalize_frame(frame, self.config.column_aliases)
        fetched_at = self._clock()
        try:
            self.store.save(key, records, fetched_at)
        except OSError:
            logger.exception("Could not persist snapshot for %s", key)
        logger.info("Loaded %d records for %s from %d feed rows", len(records), key, len(frame))
        return DatasetState(dataset=key, provenance=Provenance.LIVE, records=tuple(records), fetched_at=fetched_at)

    def _fallback(self, error: str) -> DatasetState:
        key = self.config.key
        snapshot = self.store.load(key)
        if snapshot is None:
            return DatasetState(dataset=key, provenance=Provenance.NONE, error=error)
        logger.info("Using %s snapshot from %s", key, snapshot.fetched_at.isoformat())
        return DatasetState(
            dataset=key,
            provenance=Provenance.CACHED,
            records=tuple(snapshot.records),
            fetched_at=snapshot.fetched_at,
            error=error,
        )
