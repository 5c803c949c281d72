"""
Unit tests for the chart spec compiler.
"""

import math
from decimal import Decimal

import pytest

from storechat.charts import (
    BORDER_PALETTE,
    COLOR_PALETTE,
    generate_colors,
    to_chart_config,
    to_label,
    to_number,
)
from storechat.models import ChartConfiguration, ChartSpec, TableResult

MONTHLY_ROWS = [
    {"month": "2024-01", "revenue": Decimal("12450.50")},
    {"month": "2024-02", "revenue": Decimal("15320.00")},
]


def _spec(chart_type="bar", **overrides):
    fields = {
        "type": chart_type,
        "title": "Monthly revenue",
        "dataKey": "revenue",
        "labelKey": "month",
    }
    fields.update(overrides)
    return ChartSpec.model_validate(fields)


class TestToChartConfig:
    """Test compilation of chart specs."""

    def test_bar_chart(self):
        config = to_chart_config(_spec("bar", xLabel="Month"), MONTHLY_ROWS)

        assert isinstance(config, ChartConfiguration)
        assert config.type == "bar"
        assert config.labels == ["2024-01", "2024-02"]
        assert config.values == [12450.5, 15320]
        assert config.options.scales.x.title.text == "Month"
        assert config.options.scales.y.title.text == "revenue"
        assert config.options.plugins.title.text == "Monthly revenue"
        assert config.options.plugins.legend is None

    @pytest.mark.parametrize(
        "overrides,x_title,y_title",
        [
            ({}, "month", "revenue"),
            ({"xLabel": "", "yLabel": ""}, "", ""),
            ({"xLabel": "Month", "yLabel": ""}, "Month", ""),
        ],
    )
    def test_axis_titles_fall_back_only_when_missing(self, overrides, x_title, y_title):
        config = to_chart_config(_spec("line", **overrides), MONTHLY_ROWS)

        assert config.options.scales.x.title.text == x_title
        assert config.options.scales.y.title.text == y_title

    def test_chartjs_shape(self):
        config = to_chart_config(_spec("line"), MONTHLY_ROWS)

        dumped = config.model_dump(by_alias=True, exclude_none=True)

        dataset = dumped["data"]["datasets"][0]
        assert dataset["label"] == "Monthly revenue"
        assert dataset["backgroundColor"] == list(COLOR_PALETTE[:2])
        assert dataset["borderColor"] == list(BORDER_PALETTE[:2])
        assert dataset["borderWidth"] == 1
        assert dumped["options"]["responsive"] is True
        assert dumped["options"]["scales"]["x"]["title"] == {"display": True, "text": "month"}

    @pytest.mark.parametrize("chart_type", ["pie", "doughnut"])
    def test_pie_chart_has_legend_and_no_scales(self, chart_type):
        config = to_chart_config(_spec(chart_type), MONTHLY_ROWS)

        assert config.type == chart_type
        assert config.options.scales is None
        assert config.options.plugins.legend.position == "right"
        assert config.options.plugins.legend.display is True

    def test_table(self):
        rows = [
            {"name": "Hat", "sold": 3, "revenue": 30},
            {"name": "Scarf", "sold": 1, "revenue": 15},
        ]

        table = to_chart_config(_spec("table", dataKey="sold", labelKey="name"), rows)

        assert isinstance(table, TableResult)
        assert table.headers == ["name", "sold", "revenue"]
        assert table.rows == [["Hat", 3, 30], ["Scarf", 1, 15]]
        assert table.title == "Monthly revenue"

    def test_none_spec(self):
        assert to_chart_config(None, MONTHLY_ROWS) is None

    def test_empty_rows(self):
        assert to_chart_config(_spec(), []) is None

    def test_missing_data_key(self, caplog):
        assert to_chart_config(_spec(dataKey="total"), MONTHLY_ROWS) is None
        assert "data_key not found" in caplog.text

    def test_missing_label_key(self):
        assert to_chart_config(_spec(labelKey="day"), MONTHLY_ROWS) is None

    def test_colors_cycle_palette(self):
        rows = [{"label": str(i), "value": i} for i in range(14)]

        config = to_chart_config(_spec("pie", dataKey="value", labelKey="label"), rows)

        colors = config.data.datasets[0].background_color
        assert colors[12] == colors[0]
        assert colors[13] == colors[1]

    def test_null_values(self):
        rows = [{"month": None, "revenue": None}]

        config = to_chart_config(_spec(), rows)

        assert config.labels == [""]
        assert config.values == [0]

    def test_deterministic(self):
        assert to_chart_config(_spec(), MONTHLY_ROWS) == to_chart_config(_spec(), MONTHLY_ROWS)


class TestCoercion:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 0),
            ("12.50", 12.5),
            (" 7 ", 7),
            ("abc", 0),
            ("", 0),
            (Decimal("3.25"), 3.25),
            (True, 1),
            (False, 0),
            (float("nan"), 0),
            (float("inf"), 0),
            ("Infinity", 0),
            (42, 42),
        ],
    )
    def test_to_number(self, value, expected):
        result = to_number(value)

        assert math.isfinite(result)
        assert result == expected

    def test_to_label(self):
        assert to_label(None) == ""
        assert to_label(5) == "5"
        assert to_label("Hat") == "Hat"

    def test_generate_colors(self):
        assert generate_colors(0) == []
        assert len(generate_colors(25)) == 25
