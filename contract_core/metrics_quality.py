"""Row-level data quality report over the raw contract cells."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from contract_core.currency import validate_financial_data
from contract_core.dates import NA_TOKENS, is_missing, validate_date
from contract_core.filters import ContractFilters

DATE_FIELD_LABELS = {
    "award_date": "award date",
    "project_start": "project start",
    "project_end": "project end",
    "completion_date": "completion date",
}


def _is_blank(value: Any) -> bool:
    return is_missing(value) or (isinstance(value, str) and value.strip().lower() in NA_TOKENS)


def _issue(field: str, row: int, message: str, severity: str) -> Dict[str, Any]:
    return {"field": field, "row": row, "error": message, "severity": severity}


def validate_contract_row(row: pd.Series, row_number: int, *, today: Optional[date] = None) -> Dict[str, Any]:
    errors: List[str] = []
    warnings: List[str] = []
    issues: List[Dict[str, Any]] = []
    parsed: Dict[str, date] = {}
    checked = 0

    for field, label in DATE_FIELD_LABELS.items():
        if field not in row.index or _is_blank(row[field]):
            continue
        checked += 1
        result = validate_date(row[field], label, today=today)
        if not result.is_valid:
            errors.append(result.error)
            issues.append(_issue(field, row_number, result.error, "error"))
            continue
        parsed[field] = result.date
        if result.warning:
            warnings.append(result.warning)
            issues.append(_issue(field, row_number, result.warning, "warning"))

    award, start, end, completion = (parsed.get(k) for k in DATE_FIELD_LABELS)
    if award and start and award > start:
        msg = "Award date is after project start date"
        warnings.append(msg)
        issues.append(_issue("award_start_relationship", row_number, msg, "warning"))
    if start and end and start >= end:
        msg = "Project start date must be before project end date"
        errors.append(msg)
        issues.append(_issue("start_end_relationship", row_number, msg, "error"))
    if end and completion and completion < end:
        msg = "Completion date is before project end date"
        warnings.append(msg)
        issues.append(_issue("end_completion_relationship", row_number, msg, "warning"))

    if "ceiling" in row.index or "award_value" in row.index:
        checked += 1
        financial = validate_financial_data(
            row.get("ceiling"), row.get("award_value"), row.get("remaining_budget")
        )
        for msg in financial["errors"]:
            errors.append(msg)
            issues.append(_issue("financial", row_number, msg, "error"))
        for msg in financial["warnings"]:
            warnings.append(msg)
            issues.append(_issue("financial", row_number, msg, "warning"))

    error_fields = sum(1 for i in issues if i["severity"] == "error")
    return {
        "is_valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "field_errors": issues,
        "checked_fields": checked,
        "error_fields": error_fields,
        "warning_fields": len(issues) - error_fields,
    }


def compute_data_quality(
    filters: ContractFilters,
    ctx: Dict[str, Any],
    *,
    today: Optional[date] = None,
    max_messages: int = 200,
) -> Dict[str, Any]:
    raw: pd.DataFrame = ctx.get("raw_contracts", pd.DataFrame())
    filtered: Optional[pd.DataFrame] = ctx.get("filtered_contracts")
    if filtered is not None and not raw.empty:
        # Raw and normalized frames share one row index.
        raw = raw[raw.index.isin(filtered.index)]

    errors: List[str] = []
    warnings: List[str] = []
    field_errors: List[Dict[str, Any]] = []
    valid_rows = 0
    total_fields = error_fields = warning_fields = 0

    for idx, row in raw.iterrows():
        result = validate_contract_row(row, int(idx) + 1, today=today)
        errors.extend(result["errors"])
        warnings.extend(result["warnings"])
        field_errors.extend(result["field_errors"])
        valid_rows += int(result["is_valid"])
        total_fields += result["checked_fields"]
        error_fields += result["error_fields"]
        warning_fields += result["warning_fields"]

    return {
        "filters": asdict(filters),
        "is_valid": not errors,
        "errors": errors[:max_messages],
        "warnings": warnings[:max_messages],
        "processed_rows": int(len(raw)),
        "valid_rows": valid_rows,
        "field_errors": field_errors[:max_messages],
        "summary": {
            "total_fields": total_fields,
            "valid_fields": max(0, total_fields - error_fields),
            "error_fields": error_fields,
            "warning_fields": warning_fields,
            "error_count": len(errors),
            "warning_count": len(warnings),
        },
        "validated_at": datetime.now().isoformat(timespec="seconds"),
    }
