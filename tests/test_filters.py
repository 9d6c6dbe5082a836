from __future__ import annotations

import pytest

from opsdash.filters import EVERYONE, DashboardFilters, normalize_filters


class TestNormalizeFilters:
    def test_defaults_are_unrestricted(self) -> None:
        assert normalize_filters({}) == DashboardFilters()

    @pytest.mark.parametrize("associate", ["Everyone", "everyone", "", "  ", None])
    def test_everyone_means_no_associate(self, associate) -> None:
        assert normalize_filters({"associate": associate}).associate is None

    def test_values_are_coerced(self) -> None:
        f = normalize_filters({"associate": " Avery ", "year": "2024", "month": "3"})
        assert f == DashboardFilters(associate="Avery", year=2024, month=3)

    def test_all_year_clears_month(self) -> None:
        f = normalize_filters({"year": "all", "month": 3})
        assert f.year is None
        assert f.month is None

    @pytest.mark.parametrize("month", [0, 13, "all", "March"])
    def test_out_of_range_month_dropped(self, month) -> None:
        assert normalize_filters({"year": 2024, "month": month}).month is None

    def test_year_outside_available_years_dropped(self) -> None:
        f = normalize_filters({"year": 2019, "month": 2}, available_years=[2024, 2023])
        assert f.year is None
        assert f.month is None

    def test_garbled_year_dropped(self) -> None:
        assert normalize_filters({"year": "twenty"}).year is None


def test_associate_label() -> None:
    assert DashboardFilters().associate_label == EVERYONE
    assert DashboardFilters(associate="Kim").associate_label == "Kim"
