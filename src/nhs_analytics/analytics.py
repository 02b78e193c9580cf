from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Literal, Mapping, Sequence

import numpy as np

from nhs_analytics.charts.config import ChartConfiguration
from nhs_analytics.io.schema import humanize_key

INSUFFICIENT_DATA = "Insufficient data"
NOT_AVAILABLE = "N/A"

MetricFormat = Literal["number", "percentage", "currency"]

METRIC_NAMES = {
    "trust_total_percent_within_18_weeks": "RTT 18-week Compliance",
    "trust_total_total_incomplete_pathways": "Total Waiting List",
    "trust_total_total_52_plus_weeks": "52+ Week Waiters",
    "trust_total_total_65_plus_weeks": "65+ Week Waiters",
    "trust_total_total_78_plus_weeks": "78+ Week Waiters",
    "trust_total_median_wait_weeks": "Median Wait Time",
    "ae_4hr_performance_pct": "A&E 4-hour Performance",
    "ae_attendances_total": "Total A&E Attendances",
    "ae_over_4hrs_total": "A&E Over 4 Hours",
    "ae_emergency_admissions_total": "Emergency Admissions",
    "ae_12hr_wait_admissions": "12+ Hour Wait Admissions",
    "rtt_general_surgery_percent_within_18_weeks": "General Surgery RTT",
    "rtt_urology_percent_within_18_weeks": "Urology RTT",
    "rtt_trauma_orthopaedics_percent_within_18_weeks": "Trauma & Orthopaedics RTT",
    "rtt_ent_percent_within_18_weeks": "ENT RTT",
    "rtt_ophthalmology_percent_within_18_weeks": "Ophthalmology RTT",
    "diag_mri_total_waiting": "MRI Total Waiting",
    "diag_mri_6week_breaches": "MRI 6+ Week Breaches",
    "diag_ct_total_waiting": "CT Total Waiting",
    "diag_ct_6week_breaches": "CT 6+ Week Breaches",
    "diag_ultrasound_total_waiting": "Ultrasound Total Waiting",
    "diag_ultrasound_6week_breaches": "Ultrasound 6+ Week Breaches",
    "virtual_ward_capacity": "Virtual Ward Capacity",
    "virtual_ward_occupancy_rate": "Virtual Ward Occupancy",
    "avg_daily_discharges": "Average Daily Discharges",
    "period": "Time Period",
}

TIME_PERIOD_LABELS = {
    "latest": "Latest Month",
    "3months": "Last 3 Months",
    "6months": "Last 6 Months",
    "12months": "All Available Data",
}


@dataclass(frozen=True)
class AvailableMetric:
    key: str
    display_name: str
    category: str
    format: MetricFormat


AVAILABLE_METRICS = (
    AvailableMetric("trust_total_percent_within_18_weeks", "RTT 18-week Compliance (%)", "RTT Performance", "percentage"),
    AvailableMetric("trust_total_total_incomplete_pathways", "Total Waiting List", "RTT Performance", "number"),
    AvailableMetric("trust_total_total_52_plus_weeks", "52+ Week Waiters", "RTT Performance", "number"),
    AvailableMetric("trust_total_total_65_plus_weeks", "65+ Week Waiters", "RTT Performance", "number"),
    AvailableMetric("trust_total_total_78_plus_weeks", "78+ Week Waiters", "RTT Performance", "number"),
    AvailableMetric("trust_total_median_wait_weeks", "Median Wait Time (weeks)", "RTT Performance", "number"),
    AvailableMetric("ae_4hr_performance_pct", "A&E 4-hour Performance (%)", "A&E Performance", "percentage"),
    AvailableMetric("ae_attendances_total", "Total A&E Attendances", "A&E Performance", "number"),
    AvailableMetric("ae_over_4hrs_total", "A&E Over 4 Hours", "A&E Performance", "number"),
    AvailableMetric("ae_emergency_admissions_total", "Emergency Admissions", "A&E Performance", "number"),
    AvailableMetric("ae_12hr_wait_admissions", "12+ Hour Wait Admissions", "A&E Performance", "number"),
    AvailableMetric("rtt_general_surgery_percent_within_18_weeks", "General Surgery RTT 18-week (%)", "Specialty RTT", "percentage"),
    AvailableMetric("rtt_urology_percent_within_18_weeks", "Urology RTT 18-week (%)", "Specialty RTT", "percentage"),
    AvailableMetric("rtt_trauma_orthopaedics_percent_within_18_weeks", "Trauma & Orthopaedics RTT 18-week (%)", "Specialty RTT", "percentage"),
    AvailableMetric("rtt_ent_percent_within_18_weeks", "ENT RTT 18-week (%)", "Specialty RTT", "percentage"),
    AvailableMetric("rtt_ophthalmology_percent_within_18_weeks", "Ophthalmology RTT 18-week (%)", "Specialty RTT", "percentage"),
    AvailableMetric("diag_mri_total_waiting", "MRI Total Waiting", "Diagnostics", "number"),
    AvailableMetric("diag_mri_6week_breaches", "MRI 6+ Week Breaches", "Diagnostics", "number"),
    AvailableMetric("diag_ct_total_waiting", "CT Total Waiting", "Diagnostics", "number"),
    AvailableMetric("diag_ct_6week_breaches", "CT 6+ Week Breaches", "Diagnostics", "number"),
    AvailableMetric("diag_ultrasound_total_waiting", "Ultrasound Total Waiting", "Diagnostics", "number"),
    AvailableMetric("diag_ultrasound_6week_breaches", "Ultrasound 6+ Week Breaches", "Diagnostics", "number"),
    AvailableMetric("virtual_ward_capacity", "Virtual Ward Capacity", "Capacity", "number"),
    AvailableMetric("virtual_ward_occupancy_rate", "Virtual Ward Occupancy Rate (%)", "Capacity", "percentage"),
    AvailableMetric("avg_daily_discharges", "Average Daily Discharges", "Capacity", "number"),
    AvailableMetric("period", "Time Period", "Time", "number"),
)


def available_metrics() -> list[AvailableMetric]:
    return list(AVAILABLE_METRICS)


def display_name(field_key: str) -> str:
    return METRIC_NAMES.get(field_key) or humanize_key(field_key)


def time_period_label(time_period: str | None) -> str:
    return TIME_PERIOD_LABELS.get(time_period or "", "All Available Data")


def chart_title(config: ChartConfiguration) -> str:
    if not config.x_axis and not config.y_axis:
        return "Custom Analysis"
    x_label = display_name(config.x_axis)
    y_label = display_name(config.y_axis)
    if config.analysis_type == "correlation":
        return f"{y_label} vs {x_label}"
    if config.analysis_type == "distribution":
        return f"Distribution of {y_label}"
    if config.trust_selection == "single":
        return f"{y_label} Over Time"
    return f"{y_label} Comparison"


def is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(float(value))


def correlation_strength(abs_correlation: float) -> str:
    if abs_correlation >= 0.8:
        return "Very Strong"
    if abs_correlation >= 0.6:
        return "Strong"
    if abs_correlation >= 0.4:
        return "Moderate"
    if abs_correlation >= 0.2:
        return "Weak"
    return "Very Weak"


@dataclass(frozen=True)
class CorrelationResult:
    coefficient: float | None
    strength: str | None
    status: str = "ok"

    @property
    def label(self) -> str:
        if self.coefficient is None:
            return self.status
        return f"{self.coefficient:.3f} ({self.strength})"

    def __str__(self) -> str:
        return self.label


def pearson_correlation(
    rows: Sequence[Mapping[str, Any]],
    x_field: str,
    y_field: str,
) -> CorrelationResult:
    """Pearson r over rows where both fields hold finite numbers.

    Returns status "N/A" for empty input or zero variance and
    "Insufficient data" for fewer than two usable pairs.
    """
    if not rows or not x_field or not y_field:
        return CorrelationResult(None, None, NOT_AVAILABLE)

    pairs = [
        (float(row[x_field]), float(row[y_field]))
        for row in rows
        if is_number(row.get(x_field)) and is_number(row.get(y_field))
    ]
    if len(pairs) < 2:
        return CorrelationResult(None, None, INSUFFICIENT_DATA)

    values = np.asarray(pairs, dtype=float)
    dx = values[:, 0] - values[:, 0].mean()
    dy = values[:, 1] - values[:, 1].mean()
    denominator = math.sqrt(float((dx * dx).sum()) * float((dy * dy).sum()))
    if denominator == 0:
        return CorrelationResult(None, None, NOT_AVAILABLE)

    coefficient = float(np.clip((dx * dy).sum() / denominator, -1.0, 1.0))
    return CorrelationResult(coefficient, correlation_strength(abs(coefficient)))


@dataclass(frozen=True)
class HistogramBin:
    lower: float
    upper: float
    count: int


def histogram_bins(values: Sequence[float], bin_count: int = 10) -> list[HistogramBin]:
    """Equal-width bins spanning min..max; the maximum lands in the last bin."""
    if bin_count < 1:
        raise ValueError("bin_count must be >= 1")
    data = np.asarray([float(value) for value in values if is_number(value)], dtype=float)
    if data.size == 0:
        return []

    low = float(data.min())
    high = float(data.max())
    width = (high - low) / bin_count
    if width > 0:
        indices = np.floor((data - low) / width).astype(int)
    else:
        indices = np.zeros(data.size, dtype=int)
    indices = np.clip(indices, 0, bin_count - 1)
    counts = np.bincount(indices, minlength=bin_count)
    return [
        HistogramBin(
            lower=low + index * width,
            upper=low + (index + 1) * width,
            count=int(counts[index]),
        )
        for index in range(bin_count)
    ]


def format_metric_value(value: float | None, fmt: MetricFormat = "number") -> str:
    if value is None or not is_number(value):
        return NOT_AVAILABLE
    if fmt == "percentage":
        return f"{value:.1f}%"
    if fmt == "currency":
        sign = "-" if value < 0 else ""
        return f"{sign}£{abs(value):,.2f}"
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def generate_insights(records: Sequence[Mapping[str, Any]], config: ChartConfiguration) -> list[str]:
    if not records:
        return ["No data available for analysis"]

    insights: list[str] = []
    if config.y_axis:
        values = [float(record[config.y_axis]) for record in records if is_number(record.get(config.y_axis))]
        if values:
            average = sum(values) / len(values)
            insights.append(f"Range: {min(values):.1f} to {max(values):.1f} (avg: {average:.1f})")
            if "percent_within_18_weeks" in config.y_axis:
                above_target = sum(1 for value in values if value >= 92)
                critical = sum(1 for value in values if value < 50)
                if above_target:
                    insights.append(f"{above_target} data points meet the 92% RTT target")
                if critical:
                    insights.append(f"{critical} data points show critical performance (<50%)")

    if config.analysis_type == "correlation" and config.x_axis and config.y_axis:
        correlation = pearson_correlation(records, config.x_axis, config.y_axis)
        if correlation.coefficient is not None and abs(correlation.coefficient) >= 0.6:
            direction = "positive" if correlation.coefficient > 0 else "negative"
            insights.append(f"Strong {direction} correlation detected between metrics")
    return insights
