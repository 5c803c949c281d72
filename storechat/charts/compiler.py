"""
Chart spec compiler.

Turns a model-chosen ChartSpec plus result rows into a Chart.js
configuration (bar, line, pie, doughnut) or a TableResult. Pure and
deterministic: same spec and rows, same artifact.
"""

import logging
import math
from decimal import Decimal
from typing import Any

from storechat.models import ChartArtifact, ChartSpec, TableResult
from storechat.models.chart import (
    AxisOption,
    ChartConfiguration,
    ChartData,
    ChartOptions,
    Dataset,
    LegendOption,
    PluginOptions,
    ScaleOptions,
    TitleOption,
)

COLOR_PALETTE: tuple[str, ...] = (
    "rgba(54, 162, 235, 0.7)",  # blue
    "rgba(255, 99, 132, 0.7)",  # red
    "rgba(75, 192, 192, 0.7)",  # teal
    "rgba(255, 159, 64, 0.7)",  # orange
    "rgba(153, 102, 255, 0.7)",  # purple
    "rgba(255, 205, 86, 0.7)",  # yellow
    "rgba(201, 203, 207, 0.7)",  # grey
    "rgba(46, 204, 113, 0.7)",  # green
    "rgba(231, 76, 60, 0.7)",  # dark red
    "rgba(52, 73, 94, 0.7)",  # dark blue-grey
    "rgba(26, 188, 156, 0.7)",  # turquoise
    "rgba(241, 196, 15, 0.7)",  # gold
)
BORDER_PALETTE: tuple[str, ...] = tuple(c.replace("0.7)", "1)") for c in COLOR_PALETTE)

Row = dict[str, Any]


def generate_colors(count: int) -> list[str]:
    """Fill colors for ``count`` points, cycling the palette."""
    return [COLOR_PALETTE[i % len(COLOR_PALETTE)] for i in range(count)]


def generate_border_colors(count: int) -> list[str]:
    """Opaque border colors matching generate_colors."""
    return [BORDER_PALETTE[i % len(BORDER_PALETTE)] for i in range(count)]


def to_number(value: Any) -> float:
    """Coerce a cell to a number; None, non-numeric and non-finite become 0."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else 0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    return number if math.isfinite(number) else 0


def to_label(value: Any) -> str:
    """Coerce a cell to a display label."""
    if value is None:
        return ""
    return str(value)


def build_table(rows: list[Row], title: str) -> TableResult:
    """Table artifact with first-row keys as headers."""
    if not rows:
        return TableResult(title=title, headers=[], rows=[])
    headers = list(rows[0].keys())
    return TableResult(
        title=title,
        headers=headers,
        rows=[[row.get(header) for header in headers] for row in rows],
    )


def _dataset(title: str, data: list[float]) -> Dataset:
    count = len(data)
    return Dataset(
        label=title,
        data=data,
        background_color=generate_colors(count),
        border_color=generate_border_colors(count),
        border_width=1,
    )


def build_pie_config(
    chart_type: str, labels: list[str], data: list[float], title: str
) -> ChartConfiguration:
    return ChartConfiguration(
        type=chart_type,
        data=ChartData(labels=labels, datasets=[_dataset(title, data)]),
        options=ChartOptions(
            plugins=PluginOptions(title=TitleOption(text=title), legend=LegendOption()),
        ),
    )


def build_axis_config(
    chart_type: str,
    labels: list[str],
    data: list[float],
    title: str,
    x_title: str,
    y_title: str,
) -> ChartConfiguration:
    return ChartConfiguration(
        type=chart_type,
        data=ChartData(labels=labels, datasets=[_dataset(title, data)]),
        options=ChartOptions(
            plugins=PluginOptions(title=TitleOption(text=title)),
            scales=ScaleOptions(
                x=AxisOption(title=TitleOption(text=x_title)),
                y=AxisOption(title=TitleOption(text=y_title)),
            ),
        ),
    )


def build_chart(
    chart_type: str,
    rows: list[Row],
    title: str,
    data_key: str,
    label_key: str,
    x_label: str | None = None,
    y_label: str | None = None,
) -> ChartConfiguration:
    """Build a graph artifact from rows using the given keys."""
    labels = [to_label(row.get(label_key)) for row in rows]
    data = [to_number(row.get(data_key)) for row in rows]

    if chart_type in ("pie", "doughnut"):
        return build_pie_config(chart_type, labels, data, title)
    x_title = x_label if x_label is not None else label_key
    y_title = y_label if y_label is not None else data_key
    return build_axis_config(chart_type, labels, data, title, x_title, y_title)


def to_chart_config(
    spec: ChartSpec | None,
    rows: list[Row],
    logger: logging.Logger | None = None,
) -> ChartArtifact | None:
    """
    Compile a chart spec and result rows into a renderable artifact.

    Returns None when:
    - spec is None (simple aggregates with no chart)
    - rows is empty (nothing to visualise)
    - data_key or label_key do not exist in the first row
    """
    if spec is None:
        return None

    logger = logger or logging.getLogger(__name__)

    if not rows:
        logger.warning("Chart spec: no rows to chart", extra={"chart_type": spec.type})
        return None

    available_keys = list(rows[0].keys())
    for key_name, key in (("data_key", spec.data_key), ("label_key", spec.label_key)):
        if key not in rows[0]:
            logger.warning(
                f"Chart spec: {key_name} not found in result rows",
                extra={key_name: key, "available_keys": available_keys},
            )
            return None

    if spec.type == "table":
        return build_table(rows, spec.title)

    return build_chart(
        spec.type,
        rows,
        title=spec.title,
        data_key=spec.data_key,
        label_key=spec.label_key,
        x_label=spec.x_label,
        y_label=spec.y_label,
    )
