from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


EVERYONE = "Everyone"
ALL_TOKENS = frozenset({"", "all", "all time", "everyone"})


@dataclass(frozen=True)
class DashboardFilters:
    associate: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None

    @property
    def associate_label(self) -> str:
        return self.associate or EVERYONE


def _as_optional_int(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if str(value).strip().lower() in ALL_TOKENS:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_associate(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    if s.lower() in ALL_TOKENS:
        return None
    return s


def normalize_filters(raw: dict, *, available_years: Optional[Iterable[int]] = None) -> DashboardFilters:
    """Coerce loosely typed filter input into ``DashboardFilters``.

    ``"Everyone"``/``"all"`` mean no restriction. A month is kept only when a
    year is selected and it lies in 1..12. When ``available_years`` is given, a
    year outside it falls back to no year restriction.
    """
    associate = _as_associate(raw.get("associate"))

    year = _as_optional_int(raw.get("year"))
    if year is not None and available_years is not None and year not in set(available_years):
        year = None

    month = _as_optional_int(raw.get("month")) if year is not None else None
    if month is not None and not 1 <= month <= 12:
        month = None

    return DashboardFilters(associate=associate, year=year, month=month)
