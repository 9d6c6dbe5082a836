from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel


class DashboardFiltersModel(BaseModel):
    associate: Optional[str] = None
    year: Optional[Union[int, str]] = None
    month: Optional[Union[int, str]] = None


class DatasetInfo(BaseModel):
    key: str
    label: str
    description: str = ""


class DatasetStateResponse(BaseModel):
    dataset: str
    provenance: str
    fetched_at: Optional[str] = None
    record_count: int
    error: Optional[str] = None
    message: str


class MetaListResponse(BaseModel):
    values: List[str]


class MetaIntListResponse(BaseModel):
    values: List[int]
