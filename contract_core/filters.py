from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from contract_core.currency import parse_currency
from contract_core.dates import is_date_in_range, is_missing, parse_date

DATE_FILTER_FIELDS = ("award_date", "project_start", "project_end")
FINANCIAL_FILTER_FIELDS = ("ceiling", "award_value")

FIELD_ALIASES = {
    "awardDate": "award_date",
    "projectStart": "project_start",
    "projectEnd": "project_end",
    "awardValue": "award_value",
    "clientBureau": "client_bureau",
    "contractType": "contract_type",
}

SEARCH_COLUMNS = ["award", "project", "solicitation", "acquisition", "award_title", "project_title"]
ORGANIZATION_COLUMNS = ["client_bureau", "client_organization"]
PERSONNEL_COLUMNS = ["pm", "co", "cs", "ppm"]

SORT_DIRECTIONS = ("asc", "desc")


class FilterError(ValueError):
    """Raised when caller-supplied filter criteria cannot be applied."""


@dataclass(frozen=True)
class DateRange:
    field: str = "award_date"
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass(frozen=True)
class FinancialRange:
    field: str = "ceiling"
    min_value: Optional[float] = None
    max_value: Optional[float] = None


@dataclass(frozen=True)
class ContractFilters:
    search_text: str = ""
    date_range: Optional[DateRange] = None
    statuses: List[str] = field(default_factory=list)
    organizations: List[str] = field(default_factory=list)
    contract_types: List[str] = field(default_factory=list)
    personnel: List[str] = field(default_factory=list)
    financial_range: Optional[FinancialRange] = None
    sort_column: Optional[str] = None
    sort_direction: str = "asc"
    page: int = 0
    page_size: int = 500
    approaching_days: int = 30


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    return [str(v).strip() for v in values if not is_missing(v)]


def _as_int(value: object, default: int, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(lo, min(hi, out))


def _as_float(value: object) -> Optional[float]:
    if is_missing(value):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise FilterError(f"Invalid financial bound: {value!r}")


def _normalize_date_range(raw: Optional[dict]) -> Optional[DateRange]:
    if not raw:
        return None
    field_name = FIELD_ALIASES.get(raw.get("field") or "award_date", raw.get("field") or "award_date")
    if field_name not in DATE_FILTER_FIELDS:
        raise FilterError(f"Unknown date field: {field_name}")

    raw_start = raw.get("start_date", raw.get("start"))
    raw_end = raw.get("end_date", raw.get("end"))
    if is_missing(raw_start) and is_missing(raw_end):
        return None

    start = parse_date(raw_start)
    end = parse_date(raw_end)
    if (start is None and not is_missing(raw_start)) or (end is None and not is_missing(raw_end)):
        raise FilterError("Invalid date format provided")
    if start is not None and end is not None and start > end:
        raise FilterError("Start date must be before end date")
    return DateRange(field=field_name, start=start, end=end)


def _normalize_financial_range(raw: Optional[dict]) -> Optional[FinancialRange]:
    if not raw:
        return None
    field_name = FIELD_ALIASES.get(raw.get("field") or "ceiling", raw.get("field") or "ceiling")
    if field_name not in FINANCIAL_FILTER_FIELDS:
        raise FilterError(f"Unknown financial field: {field_name}")
    min_value = _as_float(raw.get("min_value", raw.get("min")))
    max_value = _as_float(raw.get("max_value", raw.get("max")))
    if min_value is None and max_value is None:
        return None
    return FinancialRange(field=field_name, min_value=min_value, max_value=max_value)


def normalize_filters(raw: dict) -> ContractFilters:
    raw = raw or {}
    sort_column = raw.get("sort_column") or None
    if sort_column:
        sort_column = FIELD_ALIASES.get(sort_column, sort_column)
    sort_direction = str(raw.get("sort_direction") or "asc").lower()
    if sort_direction not in SORT_DIRECTIONS:
        sort_direction = "asc"

    return ContractFilters(
        search_text=(raw.get("search_text") or "").strip(),
        date_range=_normalize_date_range(raw.get("date_range")),
        statuses=_as_str_list(raw.get("statuses")),
        organizations=_as_str_list(raw.get("organizations")),
        contract_types=_as_str_list(raw.get("contract_types")),
        personnel=_as_str_list(raw.get("personnel")),
        financial_range=_normalize_financial_range(raw.get("financial_range")),
        sort_column=sort_column,
        sort_direction=sort_direction,
        page=_as_int(raw.get("page", 0), 0, 0, 100_000),
        page_size=_as_int(raw.get("page_size", 500), 500, 1, 5000),
        approaching_days=_as_int(raw.get("approaching_days", 30), 30, 0, 3650),
    )


def _text(df: pd.DataFrame, col: str) -> pd.Series:
    return df[col].astype("string").fillna("").str.lower()


def filter_by_text(df: pd.DataFrame, query: str) -> pd.DataFrame:
    q = (query or "").strip().lower()
    cols = [c for c in SEARCH_COLUMNS if c in df.columns]
    if df.empty or not q or not cols:
        return df
    mask = pd.Series(False, index=df.index)
    for c in cols:
        mask |= _text(df, c).str.contains(q, regex=False)
    return df[mask]


def filter_by_date_range(df: pd.DataFrame, column: str, start: object = None, end: object = None) -> pd.DataFrame:
    """Keep rows whose ``column`` parses to a date within [start, end].

    Either bound may be open. Rows with unparseable dates are dropped.
    """
    if df.empty or column not in df.columns or (is_missing(start) and is_missing(end)):
        return df
    lo = parse_date(start)
    hi = parse_date(end)

    def _keep(value: object) -> bool:
        d = parse_date(value)
        if d is None:
            return False
        if lo is not None and hi is not None:
            return is_date_in_range(d, lo, hi)
        if lo is not None and d < lo:
            return False
        if hi is not None and d > hi:
            return False
        return True

    return df[df[column].map(_keep).astype(bool)]


def filter_by_values(df: pd.DataFrame, column: str, values: List[str]) -> pd.DataFrame:
    if df.empty or not values or column not in df.columns:
        return df
    return df[df[column].astype("string").fillna("").isin(set(values))]


def filter_by_organizations(df: pd.DataFrame, organizations: List[str]) -> pd.DataFrame:
    cols = [c for c in ORGANIZATION_COLUMNS if c in df.columns]
    if df.empty or not organizations or not cols:
        return df
    wanted = set(organizations)
    mask = pd.Series(False, index=df.index)
    for c in cols:
        mask |= df[c].astype("string").fillna("").isin(wanted)
    return df[mask]


def filter_by_personnel(df: pd.DataFrame, names: List[str]) -> pd.DataFrame:
    cols = [c for c in PERSONNEL_COLUMNS if c in df.columns]
    needles = [n.lower() for n in names if n]
    if df.empty or not needles or not cols:
        return df
    mask = pd.Series(False, index=df.index)
    for c in cols:
        col = _text(df, c)
        for n in needles:
            mask |= col.str.contains(n, regex=False)
    return df[mask]


def filter_by_financial_range(
    df: pd.DataFrame,
    column: str,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> pd.DataFrame:
    if df.empty or column not in df.columns or (min_value is None and max_value is None):
        return df
    values = df[column].map(parse_currency).astype(float)
    mask = pd.Series(True, index=df.index)
    if min_value is not None:
        mask &= values >= min_value
    if max_value is not None:
        mask &= values <= max_value
    return df[mask]


def apply_filters(df: pd.DataFrame, filters: ContractFilters) -> pd.DataFrame:
    out = filter_by_text(df, filters.search_text)
    if filters.date_range is not None:
        dr = filters.date_range
        out = filter_by_date_range(out, dr.field, dr.start, dr.end)
    out = filter_by_values(out, "status", filters.statuses)
    out = filter_by_organizations(out, filters.organizations)
    out = filter_by_values(out, "contract_type", filters.contract_types)
    out = filter_by_personnel(out, filters.personnel)
    if filters.financial_range is not None:
        fr = filters.financial_range
        out = filter_by_financial_range(out, fr.field, fr.min_value, fr.max_value)
    return out
