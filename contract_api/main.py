from __future__ import annotations

from dataclasses import asdict
import logging
import math
import os
from typing import Any, Dict, List, Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from contract_api.schemas import ContractFiltersModel, DateParseRequest, MetaListResponse
from contract_core.data import load_dashboard_data, prepare_context
from contract_core.dates import fiscal_year, format_date, parse_date, validate_date
from contract_core.filters import ContractFilters, FilterError, normalize_filters
from contract_core.metrics_overview import compute_overview
from contract_core.metrics_quality import compute_data_quality
from contract_core.metrics_timeline import compute_timeline
from contract_core.tables import paginate


app = FastAPI(title="Contract Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CONTRACTS_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: ContractFiltersModel) -> ContractFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                type(pd.NaT): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _distinct(column_names: List[str]) -> List[str]:
    data_ctx = load_dashboard_data()
    contracts: pd.DataFrame = data_ctx.get("contracts", pd.DataFrame())
    values: set = set()
    for col in column_names:
        if col in contracts.columns:
            values.update(str(v) for v in contracts[col].dropna().unique().tolist() if str(v).strip())
    return sorted(values)


@app.get("/meta/statuses", response_model=MetaListResponse)
def meta_statuses():
    try:
        return _json({"values": _distinct(["status"])})
    except Exception as exc:
        logger.exception("meta_statuses failed")
        return _error(exc, 500)


@app.get("/meta/organizations", response_model=MetaListResponse)
def meta_organizations():
    try:
        return _json({"values": _distinct(["client_bureau", "client_organization"])})
    except Exception as exc:
        logger.exception("meta_organizations failed")
        return _error(exc, 500)


@app.get("/meta/contract-types", response_model=MetaListResponse)
def meta_contract_types():
    try:
        return _json({"values": _distinct(["contract_type"])})
    except Exception as exc:
        logger.exception("meta_contract_types failed")
        return _error(exc, 500)


@app.post("/contracts")
def contracts(filters: ContractFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        page = paginate(ctx["sorted_contracts"], f.page, f.page_size)
        return _json({"filters": asdict(f), "files": ctx["files"], **page})
    except FilterError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("contracts failed")
        return _error(exc, 500)


@app.post("/overview")
def overview(
    filters: ContractFiltersModel,
    year_basis: Literal["calendar", "fiscal"] = Query(default="calendar"),
):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_overview(f, ctx, year_basis=year_basis))
    except FilterError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc, 500)


@app.post("/deadlines")
def deadlines(filters: ContractFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_timeline(f, ctx))
    except FilterError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("deadlines failed")
        return _error(exc, 500)


@app.post("/data-quality")
def data_quality(filters: ContractFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_data_quality(f, ctx))
    except FilterError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("data_quality failed")
        return _error(exc, 500)


@app.post("/dates/parse")
def dates_parse(request: DateParseRequest):
    results: List[Dict[str, Any]] = []
    for value in request.values:
        parsed = parse_date(value)
        results.append(
            {
                "input": value,
                "date": format_date(parsed, "iso") or None,
                "display": format_date(parsed, "short"),
                "fiscal_year": fiscal_year(parsed),
                "validation": validate_date(value, request.field_name).to_dict(),
            }
        )
    return _json({"results": results})


@app.post("/export/contracts")
def export_contracts(filters: ContractFiltersModel):
    try:
        f = _filters_from_model(filters)
    except FilterError as exc:
        return _error(exc, 400)
    ctx = prepare_context(f, load_dashboard_data())
    export_df = ctx.get("sorted_contracts")
    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=contracts.csv"},
    )
