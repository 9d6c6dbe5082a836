from __future__ import annotations

from dataclasses import asdict
import logging
from typing import Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import (
    DashboardFiltersModel,
    DatasetInfo,
    DatasetStateResponse,
    MetaIntListResponse,
    MetaListResponse,
)
from opsdash.access import AccessContext
from opsdash.charts import build_charts
from opsdash.config import get_settings
from opsdash.data import (
    export_frame,
    get_associate_list,
    get_available_months,
    get_available_years,
    get_dataset_config,
    get_weekly_duration_series,
    get_weekly_error_rates,
    get_weekly_error_type_series,
    list_datasets,
    load_dataset,
    resolve_filters,
)
from opsdash.loader import DatasetState


app = FastAPI(title="Ops Error Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def require_access(x_dashboard_password: Optional[str] = Header(default=None)) -> None:
    ctx = AccessContext(password=get_settings().password)
    if not ctx.authenticate(x_dashboard_password or ""):
        raise HTTPException(status_code=401, detail="Invalid dashboard password")


def _json(data: object) -> JSONResponse:
    return JSONResponse(content=jsonable_encoder(data))


def _dataset_state(key: str, *, force_refresh: bool = False) -> DatasetState:
    try:
        get_dataset_config(key)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc
    return load_dataset(key, force_refresh=force_refresh)


def _state_payload(state: DatasetState) -> DatasetStateResponse:
    return DatasetStateResponse(
        dataset=state.dataset,
        provenance=state.provenance.value,
        fetched_at=state.fetched_at.isoformat() if state.fetched_at else None,
        record_count=len(state.records),
        error=state.error,
        message=state.describe(),
    )


def _error(name: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/datasets", dependencies=[Depends(require_access)])
def datasets():
    return [DatasetInfo(key=d.key, label=d.label, description=d.description) for d in list_datasets()]


@app.get("/datasets/{key}/state", dependencies=[Depends(require_access)])
def dataset_state(key: str) -> DatasetStateResponse:
    return _state_payload(_dataset_state(key))


@app.post("/datasets/{key}/refresh", dependencies=[Depends(require_access)])
def refresh_dataset(key: str) -> DatasetStateResponse:
    return _state_payload(_dataset_state(key, force_refresh=True))


@app.get("/datasets/{key}/associates", dependencies=[Depends(require_access)])
def meta_associates(key: str) -> MetaListResponse:
    return MetaListResponse(values=get_associate_list(_dataset_state(key)))


@app.get("/datasets/{key}/years", dependencies=[Depends(require_access)])
def meta_years(key: str) -> MetaIntListResponse:
    return MetaIntListResponse(values=get_available_years(_dataset_state(key)))


@app.get("/datasets/{key}/months", dependencies=[Depends(require_access)])
def meta_months(key: str, year: int = Query(...)) -> MetaIntListResponse:
    return MetaIntListResponse(values=get_available_months(_dataset_state(key), year))


@app.post("/datasets/{key}/error-rate", dependencies=[Depends(require_access)])
def error_rate(key: str, filters: DashboardFiltersModel, include_charts: bool = Query(default=False)):
    state = _dataset_state(key)
    try:
        f = resolve_filters(filters.model_dump(), state)
        rates = get_weekly_error_rates(state, f)
        payload = {"filters": asdict(f), "provenance": state.provenance.value, "series": rates}
        if include_charts:
            payload["charts"] = build_charts(rates)
        return _json(payload)
    except Exception as exc:
        return _error("error_rate", exc)


@app.post("/datasets/{key}/error-types", dependencies=[Depends(require_access)])
def error_types(key: str, filters: DashboardFiltersModel, include_charts: bool = Query(default=False)):
    state = _dataset_state(key)
    try:
        f = resolve_filters(filters.model_dump(), state)
        series = get_weekly_error_type_series(state, f)
        payload = {"filters": asdict(f), "provenance": state.provenance.value, "series": series}
        if include_charts:
            payload["charts"] = build_charts({}, types=series)
        return _json(payload)
    except Exception as exc:
        return _error("error_types", exc)


@app.post("/datasets/{key}/durations", dependencies=[Depends(require_access)])
def durations(key: str, filters: DashboardFiltersModel, include_charts: bool = Query(default=False)):
    state = _dataset_state(key)
    try:
        f = resolve_filters(filters.model_dump(), state)
        series = get_weekly_duration_series(state, f)
        payload = {"filters": asdict(f), "provenance": state.provenance.value, "series": series}
        if include_charts:
            payload["charts"] = build_charts({}, durations=series)
        return _json(payload)
    except Exception as exc:
        return _error("durations", exc)


@app.post("/datasets/{key}/export", dependencies=[Depends(require_access)])
def export_records(key: str, filters: DashboardFiltersModel, fmt: Literal["csv"] = Query(default="csv")):
    state = _dataset_state(key)
    f = resolve_filters(filters.model_dump(), state)
    csv_bytes = export_frame(state, f).to_csv(index=False).encode("utf-8")
    filename = f"{key}_records.{fmt}"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
