"""Pytest configuration and shared fixtures for the contract dashboard tests."""

import sys
from datetime import date, datetime
from pathlib import Path

import pandas as pd
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from contract_core.data import clean_contract_frame, normalize_contract_frame


TODAY = date(2024, 6, 1)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def sheet_frame() -> pd.DataFrame:
    """Rows as they come out of the AL_Extract sheet: mixed date encodings and money strings."""
    return pd.DataFrame(
        [
            {
                "AWARD": "W91-001",
                "PROJECT": "P-100",
                "PROJECT_TITLE": "Radar Upgrade",
                "AWARD_STATUS": "Active",
                "CONTRACT_TYPE": "Fixed Price",
                "Client_Bureau": "Army",
                "PM": "Jane Smith",
                "CO": "Bob Jones",
                "CEILING": "$1,500,000.00",
                "AWARD_DATE_CO": "01/15/2023",
                "PROJECT_START": "2023-02-01",
                "PROJECT_END": "06/20/2024",
            },
            {
                "AWARD": "N00-002",
                "PROJECT": "P-200",
                "PROJECT_TITLE": "ship maintenance",
                "AWARD_STATUS": "Completed",
                "CONTRACT_TYPE": "Cost Plus",
                "Client_Bureau": "Navy",
                "PM": "Alice Wong",
                "CO": "Bob Jones",
                "CEILING": 250000,
                "AWARD_DATE_CO": 44562,
                "PROJECT_START": datetime(2022, 1, 10),
                "PROJECT_END": "12/31/23",
            },
            {
                "AWARD": "F33-003",
                "PROJECT": "P-300",
                "PROJECT_TITLE": "Avionics Suite",
                "AWARD_STATUS": "Active",
                "CONTRACT_TYPE": "Fixed Price",
                "Client_Bureau": "Air Force",
                "PM": "Carlos Diaz",
                "CO": "Dana Lee",
                "CEILING": "($5,000)",
                "AWARD_DATE_CO": "N/A",
                "PROJECT_START": "10/05/2023",
                "PROJECT_END": "02/30/2024",
            },
            {
                "AWARD": "W91-004",
                "PROJECT": "P-400",
                "PROJECT_TITLE": "Training Support",
                "AWARD_STATUS": "Closed",
                "CONTRACT_TYPE": "Time and Materials",
                "Client_Bureau": "Army",
                "PM": "Jane Smith",
                "CO": "Evan Park",
                "CEILING": "3,000,000",
                "AWARD_DATE_CO": "2019-07-01",
                "PROJECT_START": "",
                "PROJECT_END": "2024-07-15",
            },
            {
                "AWARD": None,
                "PROJECT": None,
                "PROJECT_TITLE": None,
                "AWARD_STATUS": None,
                "CONTRACT_TYPE": None,
                "Client_Bureau": None,
                "PM": None,
                "CO": None,
                "CEILING": None,
                "AWARD_DATE_CO": None,
                "PROJECT_START": None,
                "PROJECT_END": None,
            },
        ]
    )


@pytest.fixture
def raw_contracts(sheet_frame: pd.DataFrame) -> pd.DataFrame:
    return clean_contract_frame(sheet_frame)


@pytest.fixture
def contracts(raw_contracts: pd.DataFrame) -> pd.DataFrame:
    return normalize_contract_frame(raw_contracts)


@pytest.fixture
def data_ctx(raw_contracts: pd.DataFrame, contracts: pd.DataFrame) -> dict:
    return {"files": ["Contracts.xlsx"], "raw_contracts": raw_contracts, "contracts": contracts}
