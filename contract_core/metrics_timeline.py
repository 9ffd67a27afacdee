from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from contract_core.charts import bar_chart
from contract_core.dates import days_remaining, fiscal_year, format_date, is_approaching, is_overdue, parse_date
from contract_core.filters import ContractFilters

CRITICAL_DAYS = 7
WARNING_DAYS = 30
UPCOMING_DAYS = 90

PRIORITY_ORDER = ["overdue", "critical", "warning", "upcoming", "normal"]

TIMELINE_COLUMNS = ["award", "project", "project_title", "status", "client_bureau"]


def calculate_priority(remaining: Optional[int], overdue: bool) -> str:
    if remaining is None:
        return "normal"
    if overdue or remaining < 0:
        return "overdue"
    if remaining <= CRITICAL_DAYS:
        return "critical"
    if remaining <= WARNING_DAYS:
        return "warning"
    if remaining <= UPCOMING_DAYS:
        return "upcoming"
    return "normal"


def _deadline(row: pd.Series) -> Optional[date]:
    for col in ["project_end", "completion_date"]:
        if col in row.index:
            d = parse_date(row[col])
            if d is not None:
                return d
    return None


def compute_deadlines(
    df: pd.DataFrame, *, today: Optional[date] = None, approaching_days: int = WARNING_DAYS
) -> pd.DataFrame:
    """One row per contract with deadline arithmetic relative to ``today``."""
    records: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        rec = {c: row[c] for c in TIMELINE_COLUMNS if c in row.index}
        deadline = _deadline(row)
        remaining = days_remaining(deadline, today=today) if deadline is not None else None
        overdue = is_overdue(deadline, today=today)
        rec.update(
            {
                "deadline": deadline,
                "deadline_display": format_date(deadline, "short"),
                "fiscal_year": fiscal_year(deadline),
                "days_remaining": remaining,
                "is_overdue": overdue,
                "is_approaching": not overdue and is_approaching(deadline, approaching_days, today=today),
                "priority": calculate_priority(remaining, overdue),
            }
        )
        records.append(rec)
    out = pd.DataFrame(records)
    if not out.empty:
        out["days_remaining"] = pd.to_numeric(out["days_remaining"], errors="coerce").astype("Int64")
    return out


def compute_timeline(filters: ContractFilters, ctx: Dict[str, Any], *, today: Optional[date] = None) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_contracts", pd.DataFrame())
    deadlines = compute_deadlines(df, today=today, approaching_days=filters.approaching_days)

    overdue: List[Dict[str, Any]] = []
    approaching: List[Dict[str, Any]] = []
    priority_counts: List[Dict[str, Any]] = []
    if not deadlines.empty:
        overdue_df = deadlines[deadlines["is_overdue"]].sort_values("days_remaining", kind="mergesort")
        approaching_df = deadlines[deadlines["is_approaching"]].sort_values("days_remaining", kind="mergesort")
        overdue = overdue_df.to_dict(orient="records")
        approaching = approaching_df.to_dict(orient="records")
        counts = deadlines["priority"].value_counts()
        priority_counts = [{"priority": p, "count": int(counts.get(p, 0))} for p in PRIORITY_ORDER]

    return {
        "filters": asdict(filters),
        "as_of": (today or date.today()).isoformat(),
        "kpis": {
            "tracked": int(deadlines["deadline"].notna().sum()) if not deadlines.empty else 0,
            "overdue": len(overdue),
            "approaching": len(approaching),
        },
        "overdue": overdue,
        "approaching": approaching,
        "priority_counts": priority_counts,
        "chart": bar_chart(priority_counts, "priority", "count", category_title="Priority", value_title="Contracts"),
    }
