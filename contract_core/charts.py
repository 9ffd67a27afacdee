from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def bar_chart(
    rows: List[Dict[str, Any]],
    category: str,
    value: str,
    *,
    category_title: str,
    value_title: str,
    value_format: str = ",.0f",
    horizontal: bool = False,
    category_type: str = "N",
) -> Optional[Dict[str, Any]]:
    if not rows:
        return None
    df = pd.DataFrame(rows)
    cat = alt.X(f"{category}:{category_type}", title=category_title, sort=None)
    val = alt.Y(f"{value}:Q", title=value_title, axis=alt.Axis(format=value_format))
    if horizontal:
        cat = alt.Y(f"{category}:{category_type}", title=category_title, sort=None)
        val = alt.X(f"{value}:Q", title=value_title, axis=alt.Axis(format=value_format))
    chart = (
        alt.Chart(df)
        .mark_bar()
        .encode(cat, val, tooltip=[category, alt.Tooltip(f"{value}:Q", format=value_format)])
    )
    return to_vega_spec(chart)


def line_chart(
    rows: List[Dict[str, Any]],
    x: str,
    y: str,
    *,
    x_title: str,
    y_title: str,
    y_format: str = ",.0f",
) -> Optional[Dict[str, Any]]:
    if not rows:
        return None
    chart = (
        alt.Chart(pd.DataFrame(rows))
        .mark_line(point=True, color="#2563eb")
        .encode(
            x=alt.X(f"{x}:O", title=x_title, axis=alt.Axis(format="d")),
            y=alt.Y(f"{y}:Q", title=y_title, axis=alt.Axis(format=y_format)),
            tooltip=[x, alt.Tooltip(f"{y}:Q", format=y_format)],
        )
    )
    return to_vega_spec(chart)
