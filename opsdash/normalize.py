from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from opsdash.columns import resolve_columns
from opsdash.parsing import clean_text, is_truthy, parse_calendar_date, parse_duration
from opsdash.weeks import week_start


logger = logging.getLogger(__name__)

NO_ERROR_TYPE = "None"

RECORD_COLUMNS = [
    "source_row",
    "associate",
    "occurred_on",
    "week_start",
    "has_associate_error",
    "has_team_error",
    "error_type",
    "completion_minutes",
    "item_label",
]


@dataclass(frozen=True)
class ActivityRecord:
    associate: str
    occurred_on: date
    week_start: date
    has_associate_error: bool = False
    has_team_error: bool = False
    error_type: str = NO_ERROR_TYPE
    completion_minutes: Optional[float] = None
    item_label: Optional[str] = None
    source_row: int = 0

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["occurred_on"] = self.occurred_on.isoformat()
        out["week_start"] = self.week_start.isoformat()
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ActivityRecord":
        occurred_on = date.fromisoformat(str(raw["occurred_on"]))
        minutes = raw.get("completion_minutes")
        return cls(
            associate=str(raw["associate"]),
            occurred_on=occurred_on,
            week_start=week_start(occurred_on),
            has_associate_error=bool(raw.get("has_associate_error", False)),
            has_team_error=bool(raw.get("has_team_error", False)),
            error_type=str(raw.get("error_type") or NO_ERROR_TYPE),
            completion_minutes=float(minutes) if minutes is not None else None,
            item_label=raw.get("item_label"),
            source_row=int(raw.get("source_row", 0)),
        )


def _cell(row: Mapping[str, object], columns: Mapping[str, str], field: str) -> str:
    header = columns.get(field)
    if header is None:
        return ""
    return clean_text(row.get(header))


def split_error_types(value: str) -> List[str]:
    """Error tags listed in one cell; a blank or ``none`` cell yields the single ``None`` tag."""
    text = clean_text(value)
    if not text or text.lower() == "none":
        return [NO_ERROR_TYPE]
    out: List[str] = []
    for tag in text.split(","):
        tag = tag.strip()
        out.append(tag if tag and tag.lower() != "none" else NO_ERROR_TYPE)
    return out


def normalize_row(row: Mapping[str, object], columns: Mapping[str, str], source_row: int = 0) -> List[ActivityRecord]:
    """Turn one raw feed row into zero or more activity records.

    ``columns`` maps logical field names to the feed's header names (see
    ``resolve_columns``). Rows without an associate or a usable date produce
    nothing. A row listing several error types produces one record per type,
    all other fields shared.
    """
    associate = _cell(row, columns, "associate")
    occurred_on = parse_calendar_date(_cell(row, columns, "date"))
    if not associate or occurred_on is None:
        return []

    duration_text = _cell(row, columns, "duration")
    item_label = _cell(row, columns, "item") or None
    base = dict(
        associate=associate,
        occurred_on=occurred_on,
        week_start=week_start(occurred_on),
        has_associate_error=is_truthy(_cell(row, columns, "associate_error")),
        has_team_error=is_truthy(_cell(row, columns, "team_error")),
        completion_minutes=parse_duration(duration_text) if duration_text else None,
        item_label=item_label,
        source_row=source_row,
    )
    return [ActivityRecord(error_type=tag, **base) for tag in split_error_types(_cell(row, columns, "error_type"))]


def normalize_rows(rows: Iterable[Mapping[str, object]], columns: Mapping[str, str]) -> List[ActivityRecord]:
    records: List[ActivityRecord] = []
    for idx, row in enumerate(rows):
        records.extend(normalize_row(row, columns, source_row=idx))
    return records


def normalize_frame(df: pd.DataFrame, aliases: Optional[Mapping[str, str]] = None) -> List[ActivityRecord]:
    if df.empty:
        return []
    columns = resolve_columns(df.columns, aliases)
    rows = df.to_dict(orient="records")
    records = normalize_rows(rows, columns)
    kept = len({r.source_row for r in records})
    if kept < len(rows):
        logger.debug("Dropped %d of %d rows without associate or date", len(rows) - kept, len(rows))
    return records


def records_to_frame(records: Iterable[ActivityRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    if not rows:
        df = pd.DataFrame(columns=RECORD_COLUMNS)
    else:
        df = pd.DataFrame(rows)[RECORD_COLUMNS]
    df["has_associate_error"] = df["has_associate_error"].astype(bool)
    df["has_team_error"] = df["has_team_error"].astype(bool)
    df["completion_minutes"] = pd.to_numeric(df["completion_minutes"], errors="coerce")
    return df
