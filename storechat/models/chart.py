"""
Chart Models

Chart specifications chosen by the model and the renderable artifacts
compiled from them. Artifacts serialise to the Chart.js configuration shape
with ``model_dump(by_alias=True, exclude_none=True)``.
"""

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr

ChartType = Literal["bar", "line", "pie", "doughnut", "table"]
GraphType = Literal["bar", "line", "pie", "doughnut"]

CHART_TYPES: tuple[str, ...] = ("bar", "line", "pie", "doughnut", "table")


class ChartSpec(BaseModel):
    """
    Chart descriptor produced by the model.

    Parsed strictly: any type mismatch makes the whole spec invalid, and the
    response parser then drops it instead of guessing.
    """

    type: ChartType = Field(..., description="Chart kind")
    title: StrictStr = Field(..., description="Chart title")
    data_key: StrictStr = Field(..., alias="dataKey", description="Column holding values")
    label_key: StrictStr = Field(..., alias="labelKey", description="Column holding labels")
    x_label: StrictStr | None = Field(None, alias="xLabel", description="X-axis title")
    y_label: StrictStr | None = Field(None, alias="yLabel", description="Y-axis title")

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class ChartMeta(BaseModel):
    """Data keys needed to rebuild a chart from rows (for chart type switching)."""

    title: str = ""
    data_key: str = Field(..., alias="dataKey")
    label_key: str = Field(..., alias="labelKey")
    x_label: str | None = Field(None, alias="xLabel")
    y_label: str | None = Field(None, alias="yLabel")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def from_spec(cls, spec: ChartSpec) -> "ChartMeta":
        return cls(
            title=spec.title,
            data_key=spec.data_key,
            label_key=spec.label_key,
            x_label=spec.x_label,
            y_label=spec.y_label,
        )


# ============================================================================
# Chart.js configuration
# ============================================================================


class Dataset(BaseModel):
    label: str
    data: list[float]
    background_color: list[str] = Field(..., alias="backgroundColor")
    border_color: list[str] | None = Field(None, alias="borderColor")
    border_width: int | None = Field(None, alias="borderWidth")

    model_config = ConfigDict(populate_by_name=True)


class ChartData(BaseModel):
    labels: list[str]
    datasets: list[Dataset]


class TitleOption(BaseModel):
    display: bool = True
    text: str


class LegendOption(BaseModel):
    display: bool = True
    position: str = "right"


class PluginOptions(BaseModel):
    title: TitleOption
    legend: LegendOption | None = None


class AxisOption(BaseModel):
    title: TitleOption


class ScaleOptions(BaseModel):
    x: AxisOption
    y: AxisOption


class ChartOptions(BaseModel):
    responsive: bool = True
    plugins: PluginOptions
    scales: ScaleOptions | None = None


class ChartConfiguration(BaseModel):
    """Axis/series chart (bar, line, pie, doughnut)."""

    type: GraphType
    data: ChartData
    options: ChartOptions

    @property
    def labels(self) -> list[str]:
        return self.data.labels

    @property
    def values(self) -> list[float]:
        return self.data.datasets[0].data if self.data.datasets else []


class TableResult(BaseModel):
    """Tabular artifact: headers plus row arrays in header order."""

    type: Literal["table"] = "table"
    title: str
    headers: list[str]
    rows: list[list[Any]]


ChartArtifact = Union[ChartConfiguration, TableResult]
