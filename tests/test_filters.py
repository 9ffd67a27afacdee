from datetime import date

import pytest

from contract_core.filters import (
    ContractFilters,
    DateRange,
    FilterError,
    FinancialRange,
    apply_filters,
    filter_by_date_range,
    filter_by_financial_range,
    filter_by_organizations,
    filter_by_personnel,
    filter_by_text,
    filter_by_values,
    normalize_filters,
)


def _awards(df):
    return df["award"].tolist()


class TestNormalizeFilters:
    def test_defaults(self):
        f = normalize_filters({})
        assert f == ContractFilters()

    def test_date_range_and_aliases(self):
        f = normalize_filters(
            {
                "date_range": {"field": "projectStart", "start_date": "01/01/2023", "end_date": "2023-12-31"},
                "sort_column": "projectEnd",
                "sort_direction": "DESC",
            }
        )
        assert f.date_range == DateRange("project_start", date(2023, 1, 1), date(2023, 12, 31))
        assert f.sort_column == "project_end"
        assert f.sort_direction == "desc"

    def test_empty_date_range_is_dropped(self):
        assert normalize_filters({"date_range": {"field": "award_date"}}).date_range is None

    def test_start_after_end_rejected(self):
        with pytest.raises(FilterError, match="Start date must be before end date"):
            normalize_filters({"date_range": {"start_date": "2024-02-01", "end_date": "2024-01-01"}})

    def test_unparseable_bound_rejected(self):
        with pytest.raises(FilterError, match="Invalid date format provided"):
            normalize_filters({"date_range": {"start_date": "someday"}})

    def test_unknown_fields_rejected(self):
        with pytest.raises(FilterError):
            normalize_filters({"date_range": {"field": "birthday", "start_date": "2024-01-01"}})
        with pytest.raises(FilterError):
            normalize_filters({"financial_range": {"field": "salary", "min_value": 1}})

    def test_financial_range(self):
        f = normalize_filters({"financial_range": {"field": "awardValue", "min": "10", "max": None}})
        assert f.financial_range == FinancialRange("award_value", 10.0, None)

    def test_paging_is_clamped(self):
        f = normalize_filters({"page": -3, "page_size": 0, "sort_direction": "sideways"})
        assert f.page == 0
        assert f.page_size == 1
        assert f.sort_direction == "asc"


class TestTransforms:
    def test_text_search_is_case_insensitive(self, contracts):
        assert _awards(filter_by_text(contracts, "w91")) == ["W91-001", "W91-004"]
        assert _awards(filter_by_text(contracts, "SHIP")) == ["N00-002"]
        assert len(filter_by_text(contracts, "")) == 4

    def test_date_range(self, contracts):
        out = filter_by_date_range(contracts, "project_start", date(2023, 1, 1), date(2023, 12, 31))
        assert _awards(out) == ["W91-001", "F33-003"]

    def test_date_range_bounds_are_inclusive(self, contracts):
        out = filter_by_date_range(contracts, "project_start", "02/01/2023", "2023-02-01")
        assert _awards(out) == ["W91-001"]

    def test_open_ended_date_range(self, contracts):
        out = filter_by_date_range(contracts, "project_end", start=date(2024, 1, 1))
        assert _awards(out) == ["W91-001", "W91-004"]
        out = filter_by_date_range(contracts, "award_date", end="12/31/2022")
        assert _awards(out) == ["N00-002", "W91-004"]

    def test_date_range_on_raw_cells(self, raw_contracts):
        out = filter_by_date_range(raw_contracts, "award_date", date(2022, 1, 1), date(2023, 12, 31))
        assert _awards(out) == ["W91-001", "N00-002"]

    def test_values(self, contracts):
        assert _awards(filter_by_values(contracts, "status", ["Active"])) == ["W91-001", "F33-003"]
        assert len(filter_by_values(contracts, "status", [])) == 4

    def test_organizations(self, contracts):
        assert _awards(filter_by_organizations(contracts, ["Army"])) == ["W91-001", "W91-004"]

    def test_personnel_substring(self, contracts):
        assert _awards(filter_by_personnel(contracts, ["bob"])) == ["W91-001", "N00-002"]

    def test_financial_range(self, contracts):
        out = filter_by_financial_range(contracts, "ceiling", min_value=1_000_000)
        assert _awards(out) == ["W91-001", "W91-004"]
        out = filter_by_financial_range(contracts, "ceiling", max_value=0)
        assert _awards(out) == ["F33-003"]

    def test_filters_combine_with_and(self, contracts):
        f = normalize_filters({"statuses": ["Active"], "organizations": ["Army"]})
        assert _awards(apply_filters(contracts, f)) == ["W91-001"]

    def test_apply_filters_keeps_index(self, contracts):
        f = normalize_filters({"search_text": "training"})
        out = apply_filters(contracts, f)
        assert out.index.tolist() == [3]
