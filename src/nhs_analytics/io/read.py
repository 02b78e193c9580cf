from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import numpy as np
import pandas as pd

from nhs_analytics.errors import DataLoadError, MalformedRowWarning
from nhs_analytics.io.schema import IDENTIFIER_COLUMNS, CanonicalColumns, Storage, percent_storage

LOGGER = logging.getLogger(__name__)

REQUIRED_COLUMNS = [CanonicalColumns.trust_code, CanonicalColumns.trust_name, CanonicalColumns.period]

PercentScale = Literal["auto", "fraction", "percent"]


@dataclass
class LoadReport:
    source: str
    rows_read: int = 0
    rows_loaded: int = 0
    dropped_missing_identity: int = 0
    dropped_bad_period: int = 0
    duplicate_rows: int = 0
    coerced_cells: dict[str, int] = field(default_factory=dict)
    text_columns: list[str] = field(default_factory=list)
    scaled_percent_columns: list[str] = field(default_factory=list)

    @property
    def n_coerced_cells(self) -> int:
        return int(sum(self.coerced_cells.values()))


def _read_raw(source: str | Path) -> pd.DataFrame:
    try:
        # utf-8-sig strips a BOM from the header row.
        return pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except (OSError, ValueError) as exc:
        raise DataLoadError(f"Unable to read dataset from {source}: {exc}") from exc


def _validate_required_columns(df: pd.DataFrame) -> pd.DataFrame:
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise DataLoadError(f"Dataset missing required columns: {', '.join(missing)}")
    return df


def _coerce_numeric_columns(df: pd.DataFrame, report: LoadReport) -> pd.DataFrame:
    working = df.copy()
    for column in working.columns:
        if column in IDENTIFIER_COLUMNS:
            continue
        raw = working[column].astype(str).str.strip()
        numeric = pd.to_numeric(raw, errors="coerce")
        present = raw != ""
        bad = present & numeric.isna()
        if present.any() and bad.all():
            # A fully non-numeric column is a descriptive label, not a metric.
            working[column] = raw.where(present, None)
            report.text_columns.append(column)
            continue
        n_bad = int(bad.sum())
        if n_bad:
            report.coerced_cells[column] = n_bad
            LOGGER.warning("Column %s: %d non-numeric cell(s) treated as missing", column, n_bad)
        working[column] = numeric.astype(float)
    return working


def _stored_as_fraction(values: pd.Series, storage: Storage, percent_scale: PercentScale) -> bool:
    if percent_scale == "fraction":
        return True
    if storage is Storage.FRACTION:
        return True
    if storage is Storage.PERCENT:
        return False
    # Detect columns follow their median, not their extremes.
    return float(values.abs().median()) <= 1.0


def _normalize_percent_columns(
    df: pd.DataFrame,
    percent_scale: PercentScale,
    report: LoadReport,
) -> pd.DataFrame:
    """Bring every percent column onto the 0-100 scale.

    In ``auto`` mode the schema's storage tag decides; columns tagged
    ``detect`` are judged by their median. ``fraction`` and ``percent``
    override the tags for every percent column.
    """
    if percent_scale == "percent":
        return df
    working = df.copy()
    for column, storage in percent_storage().items():
        if column not in working.columns or column in report.text_columns:
            continue
        values = working[column].dropna()
        if values.empty:
            continue
        if _stored_as_fraction(values, storage, percent_scale):
            working[column] = working[column] * 100.0
            report.scaled_percent_columns.append(column)
    return working


def read_snapshot(
    source: str | Path,
    *,
    percent_scale: PercentScale = "auto",
) -> tuple[pd.DataFrame, LoadReport]:
    """Parse the wide trust snapshot CSV into a typed, de-duplicated table.

    Returns the table sorted by trust code then period, with identifier columns
    as stripped strings, ``period`` as a normalized timestamp, and every metric
    column as float (NaN marks a missing value). Raises ``DataLoadError`` when
    the source cannot be read or lacks the identifying columns.
    """
    report = LoadReport(source=str(source))
    df = _read_raw(source)
    df.columns = [str(column).strip() for column in df.columns]
    df = _validate_required_columns(df)
    report.rows_read = int(len(df))

    for column in IDENTIFIER_COLUMNS:
        if column in df.columns:
            df[column] = df[column].astype(str).str.strip()
        else:
            df[column] = ""

    has_identity = (df[CanonicalColumns.trust_code] != "") & (df[CanonicalColumns.trust_name] != "")
    report.dropped_missing_identity = int((~has_identity).sum())
    if report.dropped_missing_identity:
        LOGGER.debug("Dropped %d row(s) without trust code/name", report.dropped_missing_identity)
    df = df.loc[has_identity]

    periods = pd.to_datetime(df[CanonicalColumns.period], errors="coerce", format="ISO8601")
    valid_period = periods.notna()
    report.dropped_bad_period = int((~valid_period).sum())
    if report.dropped_bad_period:
        LOGGER.warning("Dropped %d row(s) with unparseable period", report.dropped_bad_period)
    df = df.loc[valid_period].copy()
    df[CanonicalColumns.period] = periods.loc[valid_period].dt.normalize()

    df = _coerce_numeric_columns(df, report)
    df = _normalize_percent_columns(df, percent_scale, report)

    duplicated = df.duplicated(
        subset=[CanonicalColumns.trust_code, CanonicalColumns.period], keep="first"
    )
    report.duplicate_rows = int(duplicated.sum())
    if report.duplicate_rows:
        LOGGER.warning("Dropped %d duplicate trust/period row(s)", report.duplicate_rows)
    df = df.loc[~duplicated]

    df = df.sort_values(
        [CanonicalColumns.trust_code, CanonicalColumns.period], kind="mergesort"
    ).reset_index(drop=True)
    df = df.replace({np.inf: np.nan, -np.inf: np.nan})
    report.rows_loaded = int(len(df))

    if report.dropped_bad_period or report.duplicate_rows or report.n_coerced_cells:
        warnings.warn(
            (
                f"{report.source}: dropped {report.dropped_bad_period} row(s) with bad periods, "
                f"{report.duplicate_rows} duplicate row(s); "
                f"{report.n_coerced_cells} non-numeric cell(s) treated as missing"
            ),
            MalformedRowWarning,
            stacklevel=2,
        )
    return df, report
