from __future__ import annotations

import logging
import math
import numbers
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from contract_core.dates import is_missing

logger = logging.getLogger(__name__)

MAX_REASONABLE_VALUE = 1_000_000_000.0

_SYMBOLS_RE = re.compile(r"[$€£¥₹₽¢]")
_PARENS_RE = re.compile(r"^\s*\((.*)\)\s*$")


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if is_missing(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    out = float(value)
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def parse_currency(value: Any) -> float:
    """Parse a currency cell such as ``"$3,714,230.41"`` or ``"($1,000)"``.

    Blank, ``N/A`` and unparseable cells count as 0.
    """
    if is_missing(value):
        return 0.0
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return _as_number(value) or 0.0

    s = str(value).strip()
    if s.lower() in {"", "n/a"}:
        return 0.0

    negative = False
    parens = _PARENS_RE.match(s)
    if parens:
        negative = True
        s = parens.group(1)

    cleaned = _SYMBOLS_RE.sub("", s)
    cleaned = re.sub(r"[,\s]", "", cleaned)
    cleaned = re.sub(r"[^\d.-]", "", cleaned)
    parts = cleaned.split(".")
    if len(parts) > 2:
        cleaned = "".join(parts[:-1]) + "." + parts[-1]

    try:
        parsed = float(cleaned)
    except ValueError:
        logger.warning('Unable to parse currency value: "%s"', value)
        return 0.0
    if math.isnan(parsed) or math.isinf(parsed):
        return 0.0
    return -abs(parsed) if negative else parsed


def format_currency(amount: Any, decimals: int = 2) -> str:
    value = _as_number(amount)
    if value is None:
        return f"${0:.{decimals}f}"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f}"


def format_large_number(amount: Any, decimals: int = 1) -> str:
    value = _as_number(amount)
    if value is None:
        return "0"
    sign = "-" if value < 0 else ""
    v = abs(value)
    if v >= 1e9:
        return f"{sign}{v / 1e9:.{decimals}f}B"
    if v >= 1e6:
        return f"{sign}{v / 1e6:.{decimals}f}M"
    if v >= 1e3:
        return f"{sign}{v / 1e3:.{decimals}f}K"
    return f"{sign}{v:.{decimals}f}"


def format_compact_currency(amount: Any) -> str:
    """Card-style money label: ``$1.2B``, ``$3.4M``, ``$5.6K`` or ``$12``."""
    value = _as_number(amount) or 0.0
    if value >= 1e9:
        return f"${value / 1e9:.1f}B"
    if value >= 1e6:
        return f"${value / 1e6:.1f}M"
    if value >= 1e3:
        return f"${value / 1e3:.1f}K"
    return f"${value:.0f}"


def calculate_percentage(part: Any, total: Any) -> float:
    p = _as_number(part)
    t = _as_number(total)
    if p is None or not t:
        return 0.0
    return round_half_up(p / t * 100, 2) or 0.0


def is_approaching_ceiling(spent: Any, ceiling: Any, threshold: float = 90) -> bool:
    ceiling_num = parse_currency(ceiling)
    if ceiling_num <= 0:
        return False
    return calculate_percentage(parse_currency(spent), ceiling_num) >= threshold


def validate_financial_data(ceiling: Any, award_value: Any, remaining_budget: Any = None) -> Dict[str, Any]:
    errors: List[str] = []
    warnings: List[str] = []

    ceiling_num = parse_currency(ceiling)
    award_num = parse_currency(award_value)
    remaining_num = parse_currency(remaining_budget)

    if ceiling_num < 0:
        errors.append("Ceiling value cannot be negative")
    if award_num < 0:
        errors.append("Award value cannot be negative")
    if ceiling_num > 0 and award_num > 0 and award_num > ceiling_num:
        warnings.append("Award value exceeds ceiling value")

    if not is_missing(remaining_budget):
        if remaining_num < 0:
            warnings.append("Remaining budget is negative (overrun detected)")
        if ceiling_num > 0 and remaining_num > ceiling_num:
            warnings.append("Remaining budget exceeds ceiling value")

    if ceiling_num > MAX_REASONABLE_VALUE:
        warnings.append("Ceiling value is unusually large")
    if award_num > MAX_REASONABLE_VALUE:
        warnings.append("Award value is unusually large")

    return {"is_valid": not errors, "errors": errors, "warnings": warnings}
