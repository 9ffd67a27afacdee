from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Literal, Optional

import pandas as pd

from contract_core.charts import bar_chart, line_chart
from contract_core.currency import format_compact_currency, parse_currency
from contract_core.dates import fiscal_year, parse_date
from contract_core.filters import ContractFilters

YearBasis = Literal["calendar", "fiscal"]

COMPLETED_STATUSES = {"completed", "closed"}


def _status_text(df: pd.DataFrame) -> pd.Series:
    if "status" not in df.columns:
        return pd.Series("", index=df.index, dtype="string")
    return df["status"].astype("string").fillna("")


def _ceiling(df: pd.DataFrame) -> pd.Series:
    if "ceiling" not in df.columns:
        return pd.Series(0.0, index=df.index)
    return df["ceiling"].map(parse_currency).astype(float)


def _year_of(value: Any, basis: YearBasis) -> Optional[int]:
    d = parse_date(value)
    if d is None:
        return None
    return fiscal_year(d) if basis == "fiscal" else d.year


def compute_summary_totals(df: pd.DataFrame) -> Dict[str, Any]:
    status = _status_text(df).str.lower()
    total_ceiling = float(_ceiling(df).sum()) if not df.empty else 0.0
    return {
        "total": int(len(df)),
        "active": int((status == "active").sum()),
        "completed": int(status.isin(COMPLETED_STATUSES).sum()),
        "total_ceiling": total_ceiling,
        "total_ceiling_label": format_compact_currency(total_ceiling),
    }


def aggregate_status_counts(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    counts = _status_text(df).groupby(_status_text(df), sort=False).size()
    return [{"status": str(s), "count": int(n)} for s, n in counts.items()]


def aggregate_org_ceiling(df: pd.DataFrame, top_n: int = 10) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    org = df["client_bureau"].astype("string").fillna("") if "client_bureau" in df.columns else pd.Series("", index=df.index)
    sums = (
        pd.DataFrame({"organization": org, "total_ceiling": _ceiling(df)})
        .groupby("organization", sort=False)["total_ceiling"]
        .sum()
        .reset_index()
        .sort_values("total_ceiling", ascending=False, kind="mergesort")
        .head(top_n)
    )
    return [{"organization": str(r.organization), "total_ceiling": float(r.total_ceiling)} for r in sums.itertuples()]


def _by_year(df: pd.DataFrame, column: str, basis: YearBasis) -> pd.DataFrame:
    if df.empty or column not in df.columns:
        return pd.DataFrame(columns=["year", "ceiling"])
    years = df[column].map(lambda v: _year_of(v, basis))
    out = pd.DataFrame({"year": years, "ceiling": _ceiling(df)})
    out = out.dropna(subset=["year"])
    out["year"] = out["year"].astype(int)
    return out


def aggregate_timeline_counts(
    df: pd.DataFrame, column: str = "project_start", basis: YearBasis = "calendar"
) -> List[Dict[str, Any]]:
    years = _by_year(df, column, basis)
    if years.empty:
        return []
    counts = years.groupby("year").size().sort_index()
    return [{"year": int(y), "count": int(n)} for y, n in counts.items()]


def aggregate_trends_ceiling(
    df: pd.DataFrame, column: str = "project_start", basis: YearBasis = "calendar"
) -> List[Dict[str, Any]]:
    years = _by_year(df, column, basis)
    if years.empty:
        return []
    sums = years.groupby("year")["ceiling"].sum().sort_index()
    return [{"year": int(y), "total_ceiling": float(v)} for y, v in sums.items()]


def compute_overview(filters: ContractFilters, ctx: Dict[str, Any], *, year_basis: YearBasis = "calendar") -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_contracts", pd.DataFrame())

    status_counts = aggregate_status_counts(df)
    org_ceiling = aggregate_org_ceiling(df)
    timeline = aggregate_timeline_counts(df, basis=year_basis)
    trends = aggregate_trends_ceiling(df, basis=year_basis)
    year_title = "Fiscal Year" if year_basis == "fiscal" else "Year"

    return {
        "filters": asdict(filters),
        "year_basis": year_basis,
        "summary": compute_summary_totals(df),
        "status_counts": status_counts,
        "org_ceiling": org_ceiling,
        "timeline": timeline,
        "trends": trends,
        "charts": {
            "status": bar_chart(status_counts, "status", "count", category_title="Status", value_title="Contracts"),
            "org_ceiling": bar_chart(
                org_ceiling,
                "organization",
                "total_ceiling",
                category_title="Organization",
                value_title="Ceiling",
                value_format="$,.0f",
                horizontal=True,
            ),
            "timeline": bar_chart(
                timeline, "year", "count", category_title=year_title, value_title="Contracts Started", category_type="O"
            ),
            "trends": line_chart(trends, "year", "total_ceiling", x_title=year_title, y_title="Ceiling", y_format="$~s"),
        },
    }
