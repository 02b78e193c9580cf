from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ChartType = Literal["line", "bar", "scatter", "area", "heatmap"]
TrustSelectionMode = Literal["single", "multiple", "all"]
TimePeriod = Literal["latest", "3months", "6months", "12months"]
AnalysisType = Literal["trend", "correlation", "distribution"]


class ChartFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    icb: str | None = None
    rtt_min: float | None = None
    rtt_max: float | None = None
    exclude_zeros: bool = False
    min_sample_size: int | None = Field(default=None, ge=0)

    @field_validator("icb", "rtt_min", "rtt_max", "min_sample_size", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ChartConfiguration(BaseModel):
    """User-built chart request consumed by ``generate_chart_data``."""

    model_config = ConfigDict(extra="forbid")

    chart_type: ChartType = "line"
    x_axis: str = ""
    y_axis: str = ""
    group_by: str | None = None
    filters: ChartFilters = Field(default_factory=ChartFilters)
    trust_selection: TrustSelectionMode = "single"
    time_period: TimePeriod | None = None
    analysis_type: AnalysisType = "trend"
