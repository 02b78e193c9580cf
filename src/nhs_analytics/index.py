from __future__ import annotations

import asyncio
import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from nhs_analytics.errors import DataLoadError
from nhs_analytics.io.read import LoadReport, PercentScale, read_snapshot
from nhs_analytics.io.schema import IDENTIFIER_COLUMNS, CanonicalColumns
from nhs_analytics.models import TrustDirectoryEntry, TrustObservation

LOGGER = logging.getLogger(__name__)

UNKNOWN_ICB = "Unknown ICB"

Reader = Callable[..., tuple[pd.DataFrame, LoadReport]]


def _to_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(stamp):
        return None
    return stamp.date()


def _row_to_observation(row: dict[str, Any]) -> TrustObservation:
    metrics = {key: value for key, value in row.items() if key not in IDENTIFIER_COLUMNS}
    return TrustObservation(
        trust_code=str(row[CanonicalColumns.trust_code]),
        trust_name=str(row[CanonicalColumns.trust_name]),
        period=pd.Timestamp(row[CanonicalColumns.period]).date(),
        icb_code=str(row.get(CanonicalColumns.icb_code) or ""),
        icb_name=str(row.get(CanonicalColumns.icb_name) or ""),
        metrics=metrics,
    )


def build_directory(frame: pd.DataFrame) -> list[TrustDirectoryEntry]:
    if frame.empty:
        return []
    grouped = (
        frame.groupby(CanonicalColumns.trust_code, sort=False)
        .agg(
            name=(CanonicalColumns.trust_name, "first"),
            icb=(CanonicalColumns.icb_name, "first"),
            latest_period=(CanonicalColumns.period, "max"),
            record_count=(CanonicalColumns.period, "size"),
        )
        .reset_index()
    )
    entries = [
        TrustDirectoryEntry(
            code=str(row[CanonicalColumns.trust_code]),
            name=str(row["name"]),
            icb=str(row["icb"] or "") or UNKNOWN_ICB,
            latest_period=pd.Timestamp(row["latest_period"]).date(),
            record_count=int(row["record_count"]),
        )
        for row in grouped.to_dict("records")
    ]
    return sorted(entries, key=lambda entry: (entry.name.casefold(), entry.code))


class DatasetIndex:
    """Process-wide, load-once index of trust observations.

    Until a load succeeds every query returns an empty result. Loading is
    first-call-wins: later calls return immediately, and concurrent callers
    (threads via ``load`` or coroutines via ``ensure_loaded``) share a single
    underlying read.
    """

    def __init__(
        self,
        source: str | Path | None = None,
        *,
        percent_scale: PercentScale = "auto",
        reader: Reader = read_snapshot,
    ) -> None:
        self.source = source
        self.percent_scale = percent_scale
        self.report: LoadReport | None = None
        self.fetch_count = 0
        self._reader = reader
        self._lock = threading.Lock()
        self._inflight: asyncio.Future[None] | None = None
        self._frame: pd.DataFrame | None = None
        self._series: dict[str, tuple[TrustObservation, ...]] = {}
        self._by_period: dict[tuple[str, date], TrustObservation] = {}
        self._directory: list[TrustDirectoryEntry] = []

    @property
    def is_loaded(self) -> bool:
        return self._frame is not None

    def load(self, source: str | Path | None = None) -> None:
        if self._frame is not None:
            return
        with self._lock:
            if self._frame is not None:
                return
            resolved = source if source is not None else self.source
            if resolved is None:
                raise DataLoadError("No dataset source configured")
            self.fetch_count += 1
            try:
                frame, report = self._reader(resolved, percent_scale=self.percent_scale)
            except DataLoadError:
                LOGGER.exception("Failed to load dataset from %s", resolved)
                raise
            self._populate(frame)
            self.report = report
            LOGGER.info(
                "Loaded %d trust observations for %d trusts from %s",
                len(frame),
                len(self._series),
                resolved,
            )

    async def ensure_loaded(self, source: str | Path | None = None) -> None:
        if self._frame is not None:
            return
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(asyncio.to_thread(self.load, source))
        inflight = self._inflight
        try:
            await asyncio.shield(inflight)
        finally:
            if inflight.done() and self._inflight is inflight:
                self._inflight = None

    def _populate(self, frame: pd.DataFrame) -> None:
        series: dict[str, tuple[TrustObservation, ...]] = {}
        for code, group in frame.groupby(CanonicalColumns.trust_code, sort=False):
            ordered = group.sort_values(CanonicalColumns.period, kind="mergesort")
            series[str(code)] = tuple(
                _row_to_observation(row) for row in ordered.to_dict("records")
            )
        self._series = series
        self._by_period = {
            (observation.trust_code, observation.period): observation
            for observations in series.values()
            for observation in observations
        }
        self._directory = build_directory(frame)
        self._frame = frame

    def trust_series(self, trust_code: str) -> list[TrustObservation]:
        return list(self._series.get(trust_code, ()))

    def latest_observation(self, trust_code: str) -> TrustObservation | None:
        series = self._series.get(trust_code, ())
        return series[-1] if series else None

    def directory(self) -> list[TrustDirectoryEntry]:
        return list(self._directory)

    def observation(self, trust_code: str, period: str | date) -> TrustObservation | None:
        resolved = _to_date(period)
        if resolved is None:
            return None
        return self._by_period.get((trust_code, resolved))

    def observations(self) -> list[TrustObservation]:
        return [observation for series in self._series.values() for observation in series]

    def frame(self) -> pd.DataFrame:
        if self._frame is None:
            return pd.DataFrame(columns=list(IDENTIFIER_COLUMNS))
        return self._frame.copy()
