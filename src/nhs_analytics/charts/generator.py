from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Sequence

import pandas as pd

from nhs_analytics.analytics import histogram_bins, is_number
from nhs_analytics.charts.config import ChartConfiguration, ChartFilters
from nhs_analytics.config import DEFAULT_COMPARISON_TRUSTS, DEFAULT_NONZERO_FIELDS
from nhs_analytics.io.schema import IDENTIFIER_COLUMNS, CanonicalColumns, field_name
from nhs_analytics.models import TrustDirectoryEntry, TrustObservation

LOGGER = logging.getLogger(__name__)

SeriesLookup = Callable[[str], Sequence[TrustObservation]]
DirectoryLookup = Callable[[], Sequence[TrustDirectoryEntry]]

COMPARISON_KEY = "trust_comparison_key"
RTT_COMPLIANCE_FIELD = field_name("rtt", "trust_total", "percent_within_18_weeks")
MAX_COMPARISON_TRUSTS = 5
WINDOW_MONTHS = {"3months": 3, "6months": 6}
DEFAULT_HISTOGRAM_BINS = 10


def observations_to_frame(
    observations: Sequence[TrustObservation],
    extra: Sequence[dict[str, Any]] | None = None,
) -> pd.DataFrame:
    if not observations:
        return pd.DataFrame(columns=list(IDENTIFIER_COLUMNS))
    records = [observation.as_record() for observation in observations]
    if extra is not None:
        for record, additions in zip(records, extra):
            record.update(additions)
    frame = pd.DataFrame.from_records(records)
    frame[CanonicalColumns.period] = pd.to_datetime(frame[CanonicalColumns.period])
    return frame


def select_base_rows(
    config: ChartConfiguration,
    series_lookup: SeriesLookup,
    directory_lookup: DirectoryLookup,
    current_trust: str,
    comparison_trusts: Sequence[str] = DEFAULT_COMPARISON_TRUSTS,
) -> pd.DataFrame:
    if config.trust_selection == "single":
        return observations_to_frame(list(series_lookup(current_trust)))

    if config.trust_selection == "multiple":
        observations: list[TrustObservation] = []
        for code in list(comparison_trusts)[:MAX_COMPARISON_TRUSTS]:
            observations.extend(series_lookup(code))
        labels = [
            {COMPARISON_KEY: f"{observation.trust_name} ({observation.trust_code})"}
            for observation in observations
        ]
        return observations_to_frame(observations, extra=labels)

    latest: list[TrustObservation] = []
    for entry in directory_lookup():
        series = series_lookup(entry.code)
        if series:
            latest.append(series[-1])
    return observations_to_frame(latest)


def window_start(months: int, today: date | None = None) -> pd.Timestamp:
    """First day of the month ``months`` before ``today``."""
    anchor = pd.Timestamp(today or date.today()) - pd.DateOffset(months=months)
    return anchor.to_period("M").start_time


def apply_time_period_filter(
    frame: pd.DataFrame,
    time_period: str | None,
    today: date | None = None,
) -> pd.DataFrame:
    if frame.empty or not time_period or time_period == "12months":
        return frame

    if time_period == "latest":
        latest = frame.sort_values(
            CanonicalColumns.period, ascending=False, kind="mergesort"
        ).drop_duplicates(subset=[CanonicalColumns.trust_code], keep="first")
        return latest.sort_index()

    months = WINDOW_MONTHS.get(time_period)
    if months is None:
        return frame
    return frame[frame[CanonicalColumns.period] >= window_start(months, today)]


def apply_user_filters(
    frame: pd.DataFrame,
    filters: ChartFilters,
    nonzero_fields: Sequence[str] = DEFAULT_NONZERO_FIELDS,
) -> pd.DataFrame:
    """ICB, RTT range, exclude-zeros, then minimum sample size, AND-combined.

    The sample-size filter counts rows per trust in the already-filtered table.
    """
    working = frame
    if working.empty:
        return working

    if filters.icb:
        working = working[working[CanonicalColumns.icb_name] == filters.icb]

    if filters.rtt_min is not None or filters.rtt_max is not None:
        compliance = (
            pd.to_numeric(working[RTT_COMPLIANCE_FIELD], errors="coerce")
            if RTT_COMPLIANCE_FIELD in working.columns
            else pd.Series(float("nan"), index=working.index)
        )
        if filters.rtt_min is not None:
            working = working[compliance.loc[working.index] >= filters.rtt_min]
        if filters.rtt_max is not None:
            working = working[compliance.loc[working.index] <= filters.rtt_max]

    if filters.exclude_zeros:
        present = [column for column in nonzero_fields if column in working.columns]
        if present:
            values = working[present].apply(pd.to_numeric, errors="coerce")
            working = working[(values.notna() & (values != 0)).any(axis=1)]
        else:
            working = working.iloc[0:0]

    if filters.min_sample_size and not working.empty:
        counts = working.groupby(CanonicalColumns.trust_code)[CanonicalColumns.trust_code].transform("size")
        working = working[counts >= filters.min_sample_size]

    LOGGER.debug("User filters kept %d of %d rows", len(working), len(frame))
    return working


def format_period(value: Any) -> str:
    return pd.Timestamp(value).strftime("%b %Y")


def field_value(row: dict[str, Any], field: str) -> float | str | None:
    if not field:
        return None
    if field == CanonicalColumns.period:
        return format_period(row[CanonicalColumns.period])
    value = row.get(field)
    return float(value) if is_number(value) else None


def _rows(frame: pd.DataFrame) -> list[dict[str, Any]]:
    return frame.to_dict("records")


def _axis_values(row: dict[str, Any], config: ChartConfiguration) -> dict[str, Any]:
    return {axis: field_value(row, axis) for axis in (config.x_axis, config.y_axis) if axis}


def reshape_trend(frame: pd.DataFrame, config: ChartConfiguration) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for row in _rows(frame):
        if config.trust_selection == "single":
            record = {
                "period": format_period(row[CanonicalColumns.period]),
                **_axis_values(row, config),
                "trust_name": row[CanonicalColumns.trust_name],
                "trust_code": row[CanonicalColumns.trust_code],
            }
        else:
            record = {
                "trust_name": f"{row[CanonicalColumns.trust_name]} ({row[CanonicalColumns.trust_code]})",
                **_axis_values(row, config),
                "period": format_period(row[CanonicalColumns.period]),
                "icb_name": row.get(CanonicalColumns.icb_name, ""),
            }
        records.append(record)
    return records


def reshape_correlation(frame: pd.DataFrame, config: ChartConfiguration) -> list[dict[str, Any]]:
    """Paired x/y records; rows with a missing or zero value on either axis are dropped."""
    records: list[dict[str, Any]] = []
    for row in _rows(frame):
        x_value = field_value(row, config.x_axis)
        y_value = field_value(row, config.y_axis)
        if x_value is None or y_value is None or x_value == 0 or y_value == 0:
            continue
        records.append(
            {
                config.x_axis: x_value,
                config.y_axis: y_value,
                "trust_name": row[CanonicalColumns.trust_name],
                "trust_code": row[CanonicalColumns.trust_code],
                "period": format_period(row[CanonicalColumns.period]),
            }
        )
    return records


def reshape_distribution(
    frame: pd.DataFrame,
    config: ChartConfiguration,
    bin_count: int = DEFAULT_HISTOGRAM_BINS,
) -> list[dict[str, Any]]:
    values = [
        value
        for value in (field_value(row, config.y_axis) for row in _rows(frame))
        if isinstance(value, float)
    ]
    if not values:
        return []
    total = len(values)
    return [
        {
            "bin": f"{bin_.lower:.1f} - {bin_.upper:.1f}",
            "count": bin_.count,
            "percentage": round(bin_.count / total * 100.0, 1),
        }
        for bin_ in histogram_bins(values, bin_count)
    ]


def generate_chart_data(
    config: ChartConfiguration,
    series_lookup: SeriesLookup,
    directory_lookup: DirectoryLookup,
    current_trust: str,
    *,
    comparison_trusts: Sequence[str] = DEFAULT_COMPARISON_TRUSTS,
    nonzero_fields: Sequence[str] = DEFAULT_NONZERO_FIELDS,
    histogram_bin_count: int = DEFAULT_HISTOGRAM_BINS,
    today: date | None = None,
) -> list[dict[str, Any]]:
    """Select, window, filter and reshape observations into chart records."""
    if not config.x_axis and not config.y_axis:
        return []

    frame = select_base_rows(
        config,
        series_lookup,
        directory_lookup,
        current_trust,
        comparison_trusts=comparison_trusts,
    )
    frame = apply_time_period_filter(frame, config.time_period, today=today)
    frame = apply_user_filters(frame, config.filters, nonzero_fields=nonzero_fields)
    if frame.empty:
        return []

    if config.analysis_type == "correlation":
        return reshape_correlation(frame, config)
    if config.analysis_type == "distribution":
        return reshape_distribution(frame, config, bin_count=histogram_bin_count)
    return reshape_trend(frame, config)
