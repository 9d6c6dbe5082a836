"""
tests/test_normalize.py

Row normalization: discarding unusable rows, error-type fan-out and
the tabular record view used by the aggregator.
"""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from opsdash.columns import resolve_columns
from opsdash.normalize import (
    NO_ERROR_TYPE,
    RECORD_COLUMNS,
    ActivityRecord,
    normalize_frame,
    normalize_row,
    records_to_frame,
    split_error_types,
)


def _normalize(row: dict, source_row: int = 0):
    return normalize_row(row, resolve_columns(list(row)), source_row=source_row)


class TestDiscardedRows:
    def test_empty_associate_produces_nothing(self) -> None:
        assert _normalize({"Associate": "", "Date": "1/1/2024"}) == []

    def test_whitespace_associate_produces_nothing(self) -> None:
        assert _normalize({"Associate": "   ", "Date": "1/1/2024"}) == []

    def test_invalid_date_produces_nothing(self) -> None:
        assert _normalize({"Associate": "Sam", "Date": "13/40/2024"}) == []

    def test_missing_date_column_produces_nothing(self) -> None:
        assert _normalize({"Associate": "Sam"}) == []


class TestFanOut:
    def test_two_error_types_produce_two_records(self) -> None:
        row = {"Associate": "Sam", "Date": "1/3/2024", "Associate Error T/F": "true", "Error Type": "DocA, TypeB"}
        records = _normalize(row, source_row=7)
        assert [r.error_type for r in records] == ["DocA", "TypeB"]
        first, second = records
        assert first.associate == second.associate == "Sam"
        assert first.occurred_on == second.occurred_on == date(2024, 1, 3)
        assert first.has_associate_error and second.has_associate_error
        assert first.source_row == second.source_row == 7

    @pytest.mark.parametrize("cell", ["", "   ", "none", "NONE", None])
    def test_blank_or_none_cell_is_single_none_record(self, cell) -> None:
        row = {"Associate": "Sam", "Date": "1/3/2024", "Error Type": cell}
        records = _normalize(row)
        assert [r.error_type for r in records] == [NO_ERROR_TYPE]

    def test_empty_tags_become_none(self) -> None:
        assert split_error_types("DocA, ,TypeB") == ["DocA", NO_ERROR_TYPE, "TypeB"]

    def test_tags_are_not_deduplicated(self) -> None:
        assert split_error_types("DocA,DocA") == ["DocA", "DocA"]


class TestFields:
    def test_week_start_is_monday_on_or_before(self) -> None:
        (record,) = _normalize({"Associate": "Sam", "Date": "1/7/2024"})
        assert record.week_start == date(2024, 1, 1)

    def test_flags_default_false_when_columns_missing(self) -> None:
        (record,) = _normalize({"Associate": "Sam", "Date": "1/7/2024"})
        assert record.has_associate_error is False
        assert record.has_team_error is False

    def test_team_error_column(self) -> None:
        (record,) = _normalize({"Associate": "Sam", "Date": "1/7/2024", "Team Error T/F": "Yes"})
        assert record.has_team_error is True

    @pytest.mark.parametrize("cell, expected", [("1:30", 1.5), ("45", 45.0), ("0", 0.0), ("", None), ("soon", None)])
    def test_completion_minutes(self, cell, expected) -> None:
        (record,) = _normalize({"Associate": "Sam", "Date": "1/7/2024", "Completion Time": cell})
        assert record.completion_minutes == expected

    def test_item_label(self) -> None:
        (record,) = _normalize({"Deal Name": " Alpha ", "Associate": "Sam", "Date": "1/7/2024"})
        assert record.item_label == "Alpha"

    def test_record_dict_round_trip(self) -> None:
        (record,) = _normalize(
            {"Deal Name": "Alpha", "Associate": "Sam", "Date": "1/7/2024", "Completion Time": "2:00"},
            source_row=3,
        )
        assert ActivityRecord.from_dict(record.to_dict()) == record


class TestNormalizeFrame:
    def test_source_rows_follow_frame_order(self) -> None:
        df = pd.DataFrame(
            [
                {"Associate": "", "Date": "1/1/2024", "Error Type": ""},
                {"Associate": "Sam", "Date": "1/2/2024", "Error Type": "X, Y"},
                {"Associate": "Kim", "Date": "1/3/2024", "Error Type": ""},
            ]
        )
        records = normalize_frame(df)
        assert [(r.associate, r.source_row, r.error_type) for r in records] == [
            ("Sam", 1, "X"),
            ("Sam", 1, "Y"),
            ("Kim", 2, NO_ERROR_TYPE),
        ]

    def test_empty_frame(self) -> None:
        assert normalize_frame(pd.DataFrame(columns=["Associate", "Date"])) == []


class TestRecordsToFrame:
    def test_columns_and_types(self, make_records) -> None:
        records = make_records([{"Associate": "A", "Date": "1/1/2024", "Associate Error T/F": "yes"}])
        df = records_to_frame(records)
        assert list(df.columns) == RECORD_COLUMNS
        assert df["has_associate_error"].dtype == bool
        assert df.loc[0, "week_start"] == date(2024, 1, 1)

    def test_empty_records_keep_schema(self) -> None:
        df = records_to_frame([])
        assert df.empty
        assert list(df.columns) == RECORD_COLUMNS
