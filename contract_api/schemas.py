from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class DateRangeModel(BaseModel):
    field: str = "award_date"
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class FinancialRangeModel(BaseModel):
    field: str = "ceiling"
    min_value: Optional[float] = None
    max_value: Optional[float] = None


class ContractFiltersModel(BaseModel):
    search_text: str = ""
    date_range: Optional[DateRangeModel] = None
    statuses: List[str] = Field(default_factory=list)
    organizations: List[str] = Field(default_factory=list)
    contract_types: List[str] = Field(default_factory=list)
    personnel: List[str] = Field(default_factory=list)
    financial_range: Optional[FinancialRangeModel] = None
    sort_column: Optional[str] = None
    sort_direction: str = "asc"
    page: int = 0
    page_size: int = 500
    approaching_days: int = 30


class DateParseRequest(BaseModel):
    values: List[Union[str, float, int, None]] = Field(default_factory=list)
    field_name: str = "date"


class MetaListResponse(BaseModel):
    values: List[str]
