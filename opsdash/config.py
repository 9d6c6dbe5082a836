"""
opsdash/config.py

Settings and the dataset registry. Defaults live here as module constants;
each can be overridden through an ``OPSDASH_*`` environment variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping

from opsdash.columns import ACTIVITY_COLUMNS


BASE_DIR = Path(__file__).resolve().parents[1]

DEAL_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vQdVsFJIGHGZkadZ90NQEB-9AMplEDUd9HqizLq12EYdzOmVovHpQpXTS74UxnJmqRry03Nf6g5MZXP/pub?output=csv"
)
CLO_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vRUqd0ID1RjjzM8kHhwgLVrDehem_5SH2pMbosokY11qekM0FR_EnodiB1cxF10dDBX50P5HkaK_rTE/pub?output=csv"
)
CACHE_DIR = BASE_DIR / ".cache"
HTTP_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class Settings:
    deal_csv_url: str = DEAL_CSV_URL
    clo_csv_url: str = CLO_CSV_URL
    cache_dir: Path = CACHE_DIR
    http_timeout: float = HTTP_TIMEOUT_SECONDS
    password: str = ""


@dataclass(frozen=True)
class DatasetConfig:
    key: str
    label: str
    url: str
    column_aliases: Mapping[str, str] = field(default_factory=lambda: dict(ACTIVITY_COLUMNS))
    description: str = ""


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.") from None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        deal_csv_url=os.getenv("OPSDASH_DEAL_CSV_URL", DEAL_CSV_URL),
        clo_csv_url=os.getenv("OPSDASH_CLO_CSV_URL", CLO_CSV_URL),
        cache_dir=Path(os.getenv("OPSDASH_CACHE_DIR", str(CACHE_DIR))),
        http_timeout=_env_float("OPSDASH_HTTP_TIMEOUT", HTTP_TIMEOUT_SECONDS),
        password=os.getenv("OPSDASH_PASSWORD", ""),
    )


def build_datasets(settings: Settings) -> Dict[str, DatasetConfig]:
    return {
        "deal": DatasetConfig(
            key="deal",
            label="Deal Analysis",
            url=settings.deal_csv_url,
            description="Track individual and team error rates in deal processing.",
        ),
        "clo": DatasetConfig(
            key="clo",
            label="CLO Analysis",
            url=settings.clo_csv_url,
            description="View trends and performance metrics for CLO deals.",
        ),
    }


def get_datasets() -> Dict[str, DatasetConfig]:
    return build_datasets(get_settings())
