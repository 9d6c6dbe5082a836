from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


LOGICAL_FIELDS = (
    "associate",
    "date",
    "associate_error",
    "team_error",
    "error_type",
    "duration",
    "item",
)

REQUIRED_FIELDS = ("associate", "date")

ACTIVITY_COLUMNS: Dict[str, str] = {
    "Associate": "associate",
    "Associate Name": "associate",
    "Date": "date",
    "Date Completed": "date",
    "Associate Error T/F": "associate_error",
    "Associate Error": "associate_error",
    "Team Error T/F": "team_error",
    "Team Error": "team_error",
    "Error Type": "error_type",
    "Error Types": "error_type",
    "Type of Error": "error_type",
    "Completion Time": "duration",
    "Time to Complete": "duration",
    "Duration": "duration",
    "Deal Name": "item",
    "Deal": "item",
    "CLO Name": "item",
    "CLO": "item",
}

# Keyword sets tried in order once exact aliases are exhausted; every keyword must appear.
FUZZY_KEYWORDS: Dict[str, Tuple[Tuple[str, ...], ...]] = {
    "associate_error": (("associate", "error"),),
    "team_error": (("team", "error"),),
    "error_type": (("error", "type"), ("error", "category")),
    "duration": (("duration",), ("completion",), ("time", "complete")),
    "item": (("deal", "name"), ("clo", "name"), ("name",)),
}


def normalize_header(value: object) -> str:
    return re.sub(r"\s+", " ", str(value).replace("\u00a0", " ").strip().lower())


def _fuzzy_match(field: str, headers: Sequence[str], taken: Iterable[str]) -> Optional[str]:
    taken = set(taken)
    for keywords in FUZZY_KEYWORDS.get(field, ()):
        for header in headers:
            if header in taken:
                continue
            norm = normalize_header(header)
            if all(k in norm for k in keywords):
                return header
    return None


def resolve_columns(headers: Iterable[object], aliases: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Map logical field names to the header names a particular feed uses.

    Matching is case-insensitive and ignores surrounding/duplicate whitespace.
    Fields with no matching header are left out of the result.
    """
    aliases = aliases if aliases is not None else ACTIVITY_COLUMNS
    header_list: List[str] = [str(h) for h in headers]
    alias_norm = {normalize_header(k): v for k, v in aliases.items()}

    resolved: Dict[str, str] = {}
    for header in header_list:
        field = alias_norm.get(normalize_header(header))
        if field and field not in resolved:
            resolved[field] = header

    for field in LOGICAL_FIELDS:
        if field in resolved or field in REQUIRED_FIELDS:
            continue
        match = _fuzzy_match(field, header_list, resolved.values())
        if match is not None:
            resolved[field] = match

    if "item" not in resolved and header_list and header_list[0] not in resolved.values():
        resolved["item"] = header_list[0]
    return resolved
