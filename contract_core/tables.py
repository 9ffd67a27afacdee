from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from contract_core.currency import parse_currency
from contract_core.dates import date_sort_key, is_missing

# Logical table column -> frame columns tried in order.
SORT_COLUMNS: Dict[str, List[str]] = {
    "award": ["award"],
    "project": ["project_title", "project"],
    "ceiling": ["ceiling"],
    "status": ["status"],
    "award_date": ["award_date"],
    "project_start": ["project_start"],
    "project_end": ["project_end"],
    "client_bureau": ["client_bureau", "client_organization"],
}
NUMERIC_COLUMNS = {"ceiling"}
DATE_COLUMNS = {"award_date", "project_start", "project_end"}


def column_value(row: pd.Series, column: str) -> Any:
    for c in SORT_COLUMNS.get(column, []):
        if c in row.index and not is_missing(row[c]):
            return row[c]
    return ""


def sort_key_for(column: str) -> Callable[[Any], Any]:
    if column in NUMERIC_COLUMNS:
        return parse_currency
    if column in DATE_COLUMNS:
        return date_sort_key
    return lambda v: str(v).casefold()


def sort_contracts(df: pd.DataFrame, column: Optional[str], direction: str = "asc") -> pd.DataFrame:
    """Stable sort on a logical table column; ties keep their input order."""
    if df.empty or not column or column not in SORT_COLUMNS:
        return df.reset_index(drop=True)
    key = sort_key_for(column)
    keys = [key(column_value(row, column)) for _, row in df.iterrows()]
    order = sorted(range(len(keys)), key=keys.__getitem__, reverse=(direction == "desc"))
    return df.iloc[order].reset_index(drop=True)


def paginate(df: pd.DataFrame, page: int = 0, page_size: int = 500) -> Dict[str, Any]:
    page_size = max(1, int(page_size))
    page = max(0, int(page))
    total_rows = int(len(df))
    total_pages = math.ceil(total_rows / page_size)
    rows: List[Dict[str, Any]] = []
    if page < total_pages:
        start = page * page_size
        rows = df.iloc[start : start + page_size].to_dict(orient="records")
    return {
        "rows": rows,
        "page": page,
        "page_size": page_size,
        "total_rows": total_rows,
        "total_pages": total_pages,
    }
