"""
Chart Module

Compiles chart specs and result rows into Chart.js configurations or
tables, and converts between chart types.
"""

from storechat.charts.compiler import (
    BORDER_PALETTE,
    COLOR_PALETTE,
    generate_border_colors,
    generate_colors,
    to_chart_config,
    to_label,
    to_number,
)
from storechat.charts.converter import convert_chart_type

__all__ = [
    "BORDER_PALETTE",
    "COLOR_PALETTE",
    "generate_border_colors",
    "generate_colors",
    "to_chart_config",
    "to_label",
    "to_number",
    "convert_chart_type",
]
