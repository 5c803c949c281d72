"""
Chart type converter.

Switches an existing artifact to another chart type for the same data,
so a caller can re-render without re-running the query.
"""

from typing import Any

from storechat.charts.compiler import build_axis_config, build_chart, build_pie_config, build_table
from storechat.models import ChartArtifact, ChartMeta, ChartType, TableResult


def convert_chart_type(
    artifact: ChartArtifact,
    rows: list[dict[str, Any]],
    target: ChartType,
    meta: ChartMeta,
) -> ChartArtifact:
    """
    Convert ``artifact`` to ``target``.

    Args:
        artifact: Current chart or table
        rows: Original query rows (needed when a table is involved)
        target: Chart type to convert to
        meta: Data keys and title of the original chart spec

    Returns:
        The same object when ``target`` matches, otherwise a new artifact
    """
    if artifact.type == target:
        return artifact

    if target == "table":
        return build_table(rows, meta.title)

    if isinstance(artifact, TableResult):
        return build_chart(
            target,
            rows,
            title=meta.title,
            data_key=meta.data_key,
            label_key=meta.label_key,
            x_label=meta.x_label,
            y_label=meta.y_label,
        )

    labels = list(artifact.labels)
    data = list(artifact.values)

    if target in ("pie", "doughnut"):
        return build_pie_config(target, labels, data, meta.title)

    scales = artifact.options.scales
    if scales is not None:
        x_title, y_title = scales.x.title.text, scales.y.title.text
    else:
        x_title = meta.x_label if meta.x_label is not None else meta.label_key
        y_title = meta.y_label if meta.y_label is not None else meta.data_key
    return build_axis_config(target, labels, data, meta.title, x_title, y_title)
