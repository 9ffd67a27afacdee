from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from contract_core.currency import parse_currency
from contract_core.dates import parse_date
from contract_core.filters import ContractFilters, apply_filters, normalize_filters
from contract_core.tables import sort_contracts

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("CONTRACTS_DATA_DIR") or Path(__file__).resolve().parents[1])
FILE_GLOB = os.environ.get("CONTRACTS_FILE_GLOB", "*Contract*.xlsx")
SHEET_NAME = os.environ.get("CONTRACTS_SHEET_NAME", "AL_Extract")
# Row 1 holds column numbers, row 2 the headers.
HEADER_ROW = 1

CONTRACT_COLUMNS = {
    "AWARD": "award",
    "PROJECT": "project",
    "AWARD_TITLE": "award_title",
    "PROJECT_TITLE": "project_title",
    "SOLICITATION": "solicitation",
    "ACQUISITION": "acquisition",
    "AWARD_STATUS": "status",
    "CONTRACT_TYPE": "contract_type",
    "Client_Bureau": "client_bureau",
    "CLIENT_BUREAU": "client_bureau",
    "client_organization": "client_organization",
    "ORGCODE": "org_code",
    "EMP_ORG_SHORT_NAME": "org_short_name",
    "APEXNAME": "apex_name",
    "lfedsim_sector_friendly": "sector",
    "PM": "pm",
    "CO": "co",
    "CS": "cs",
    "PPM": "ppm",
    "CEILING": "ceiling",
    "AWARD_VALUE": "award_value",
    "REMAINING_BUDGET": "remaining_budget",
    "IGE": "ige",
    "Day of AWARD_DATE_CO": "award_date",
    "AWARD_DATE_CO": "award_date",
    "PROJECT_START": "project_start",
    "CHANGED_POP_START": "project_start",
    "PROJECT_END": "project_end",
    "POP_COMPLETION": "project_end",
    "COMPLETION_DATE": "completion_date",
    "FLAGS": "flags",
    "Mod_Status": "modification_status",
}

DATE_COLUMNS = ["award_date", "project_start", "project_end", "completion_date"]
CURRENCY_COLUMNS = ["ceiling", "award_value", "remaining_budget", "ige"]
TEXT_COLUMNS = [
    c for c in dict.fromkeys(CONTRACT_COLUMNS.values()) if c not in DATE_COLUMNS and c not in CURRENCY_COLUMNS
]


def get_source_files() -> List[Path]:
    return sorted(DATA_DIR.glob(FILE_GLOB))


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
            df[col] = series
    return df


def drop_blank_rows(df: pd.DataFrame) -> pd.DataFrame:
    keys = [c for c in ["award", "project"] if c in df.columns]
    if df.empty or not keys:
        return df
    return df.dropna(subset=keys, how="all")


def normalize_date_columns(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].map(parse_date).astype(object)
    return df


def normalize_currency_columns(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].map(parse_currency).astype(float)
    return df


def clean_contract_frame(sheet: pd.DataFrame) -> pd.DataFrame:
    """Map sheet headers to contract fields; raw date and money cells are kept as-is."""
    df = sheet.copy()
    df.columns = [str(c).strip() for c in df.columns]
    df = df.rename(columns=CONTRACT_COLUMNS)
    df = drop_duplicate_columns(df)
    df = df[[c for c in dict.fromkeys(CONTRACT_COLUMNS.values()) if c in df.columns]]
    df = coerce_str_safe(df, TEXT_COLUMNS)
    df = drop_blank_rows(df)
    return df.reset_index(drop=True)


def normalize_contract_frame(clean: pd.DataFrame) -> pd.DataFrame:
    df = clean.copy()
    df = normalize_currency_columns(df, CURRENCY_COLUMNS)
    df = normalize_date_columns(df, DATE_COLUMNS)
    return df


# ---------------- Loaders ----------------
def load_contracts(files_sig: Tuple[Tuple[str, float], ...]) -> pd.DataFrame:
    frames: List[pd.DataFrame] = []
    for name, _ in files_sig:
        path = Path(name)
        try:
            sheet = pd.read_excel(path, sheet_name=SHEET_NAME, header=HEADER_ROW)
        except ValueError:
            logger.warning("Sheet %s not found in %s", SHEET_NAME, path.name)
            continue
        df = clean_contract_frame(sheet)
        df["source_file"] = path.name
        logger.info("Loaded %d contract rows from %s", len(df), path.name)
        frames.append(df)
    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    raw = load_contracts(files_sig)
    return {
        "files": [Path(name).name for name, _ in files_sig],
        "raw_contracts": raw,
        "contracts": normalize_contract_frame(raw) if not raw.empty else pd.DataFrame(),
    }


def load_dashboard_data() -> Dict[str, object]:
    files = get_source_files()
    if not files:
        logger.warning("No contract workbooks matching %s in %s", FILE_GLOB, DATA_DIR)
        return {"files": [], "raw_contracts": pd.DataFrame(), "contracts": pd.DataFrame()}
    return _load_dashboard_data_cached(file_signature(files))


def prepare_context(filters: dict | ContractFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    contracts: pd.DataFrame = data_ctx.get("contracts", pd.DataFrame()).copy()
    raw_contracts: pd.DataFrame = data_ctx.get("raw_contracts", pd.DataFrame()).copy()
    filt = filters if isinstance(filters, ContractFilters) else normalize_filters(filters)

    filtered = apply_filters(contracts, filt) if not contracts.empty else contracts
    sorted_contracts = sort_contracts(filtered, filt.sort_column, filt.sort_direction)

    return {
        "filters": filt,
        "files": data_ctx.get("files", []),
        "contracts": contracts,
        "raw_contracts": raw_contracts,
        "filtered_contracts": filtered,
        "sorted_contracts": sorted_contracts,
    }
