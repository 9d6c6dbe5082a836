"""
tests/conftest.py

Shared fixtures: raw feed rows, normalized records and a scripted fetcher
standing in for the published-sheet endpoint. No test touches the network.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Union

import pytest

from opsdash.columns import resolve_columns
from opsdash.config import DatasetConfig
from opsdash.normalize import ActivityRecord, normalize_rows, records_to_frame
from opsdash.snapshots import SnapshotStore


DEAL_CSV = (
    "Deal Name,Associate,Date,Associate Error T/F,Team Error T/F,Error Type,Completion Time\n"
    "Alpha CLO,Avery,1/1/2024,yes,no,\"DocA, TypeB\",1:30\n"
    "Beta CLO,Avery,1/2/2024,no,yes,,45\n"
    "Gamma CLO,Blake,1/3/2024,TRUE,no,DA Missing,\n"
    ",,,,,,\n"
    "Delta CLO,,1/4/2024,yes,no,DocA,10\n"
    "Omega CLO,Blake,1/9/2024,no,no,none,1:02:30\n"
)


def build_records(rows: List[dict]) -> List[ActivityRecord]:
    headers: List[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)
    return normalize_rows(rows, resolve_columns(headers))


class ScriptedFetcher:
    """Returns (or raises) the queued responses in order."""

    def __init__(self, *responses: Union[str, Exception, Callable[[], str]]):
        self.responses = list(responses)
        self.calls: List[str] = []

    def __call__(self, url: str) -> str:
        self.calls.append(url)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item()
        return item


class SteppingClock:
    def __init__(self, *stamps: datetime):
        self.stamps = list(stamps)

    def __call__(self) -> datetime:
        return self.stamps.pop(0)


@pytest.fixture()
def simple_rows() -> List[dict]:
    return [
        {"Associate": "A", "Date": "1/1/2024", "Associate Error T/F": "yes"},
        {"Associate": "A", "Date": "1/2/2024", "Associate Error T/F": "no"},
    ]


@pytest.fixture()
def deal_config() -> DatasetConfig:
    return DatasetConfig(key="deal", label="Deal Analysis", url="https://example.test/deal.csv")


@pytest.fixture()
def store(tmp_path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "snapshots")


@pytest.fixture()
def first_stamp() -> datetime:
    return datetime(2024, 1, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def second_stamp() -> datetime:
    return datetime(2024, 1, 11, 16, 0, tzinfo=timezone.utc)


@pytest.fixture()
def records_df(simple_rows):
    return records_to_frame(build_records(simple_rows))


@pytest.fixture()
def make_records() -> Callable[[List[dict]], List[ActivityRecord]]:
    return build_records
