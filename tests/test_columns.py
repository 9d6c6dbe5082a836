from __future__ import annotations

from opsdash.columns import normalize_header, resolve_columns


class TestResolveColumns:
    def test_exact_aliases_ignore_case_and_whitespace(self) -> None:
        headers = [" associate ", "DATE", "Associate  Error T/F", "Error Types"]
        resolved = resolve_columns(headers)
        assert resolved["associate"] == " associate "
        assert resolved["date"] == "DATE"
        assert resolved["associate_error"] == "Associate  Error T/F"
        assert resolved["error_type"] == "Error Types"

    def test_fuzzy_match_for_varying_headers(self) -> None:
        headers = ["Deal Name", "Associate", "Date", "Type of error made", "Completion (mm:ss)"]
        resolved = resolve_columns(headers)
        assert resolved["item"] == "Deal Name"
        assert resolved["error_type"] == "Type of error made"
        assert resolved["duration"] == "Completion (mm:ss)"
        assert "team_error" not in resolved

    def test_item_falls_back_to_first_column(self) -> None:
        resolved = resolve_columns(["Ticket", "Associate", "Date"])
        assert resolved["item"] == "Ticket"

    def test_no_fallback_when_first_column_is_claimed(self) -> None:
        resolved = resolve_columns(["Associate", "Date"])
        assert "item" not in resolved

    def test_custom_aliases(self) -> None:
        resolved = resolve_columns(["Analyst", "When"], {"Analyst": "associate", "When": "date"})
        assert resolved["associate"] == "Analyst"
        assert resolved["date"] == "When"

    def test_first_matching_header_wins(self) -> None:
        resolved = resolve_columns(["Associate", "Date", "Associate Name"])
        assert resolved["associate"] == "Associate"


def test_normalize_header_collapses_spaces() -> None:
    assert normalize_header("  Team Error   T/F ") == "team error t/f"
