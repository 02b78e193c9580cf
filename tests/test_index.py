from __future__ import annotations

import asyncio
import threading
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from nhs_analytics.errors import DataLoadError
from nhs_analytics.index import DatasetIndex, build_directory
from nhs_analytics.io.read import LoadReport, read_snapshot

HEADER = "trust_code,trust_name,period,icb_code,icb_name,trust_total_percent_within_18_weeks"


def _write_snapshot(tmp_path: Path) -> Path:
    csv_path = tmp_path / "snapshot.csv"
    csv_path.write_text(
        "\n".join(
            [
                HEADER,
                "RQW,Princess Alexandra,2024-02-01,QHM,Hertfordshire ICB,61",
                "RGT,Cambridge University Hospitals,2024-03-01,QUE,Cambridgeshire ICB,82",
                "RGT,Cambridge University Hospitals,2024-01-01,QUE,Cambridgeshire ICB,80",
                "RGT,Cambridge University Hospitals,2024-02-01,QUE,Cambridgeshire ICB,81",
                "RGN,North West Anglia,2024-01-01,,,55",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return csv_path


class _CountingReader:
    def __init__(self) -> None:
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, source: object, *, percent_scale: str = "auto") -> tuple[pd.DataFrame, LoadReport]:
        with self._lock:
            self.calls += 1
        return read_snapshot(source, percent_scale=percent_scale)  # type: ignore[arg-type]


def test_queries_are_empty_before_load() -> None:
    index = DatasetIndex()

    assert not index.is_loaded
    assert index.trust_series("RGT") == []
    assert index.directory() == []
    assert index.latest_observation("RGT") is None
    assert index.observation("RGT", "2024-01-01") is None
    assert index.frame().empty


def test_load_is_idempotent(tmp_path: Path) -> None:
    reader = _CountingReader()
    index = DatasetIndex(_write_snapshot(tmp_path), reader=reader)

    index.load()
    first = index.trust_series("RGT")
    index.load()

    assert reader.calls == 1
    assert index.fetch_count == 1
    assert index.trust_series("RGT") == first


def test_trust_series_is_sorted_without_duplicate_periods(tmp_path: Path) -> None:
    index = DatasetIndex(_write_snapshot(tmp_path))
    index.load()

    for entry in index.directory():
        periods = [observation.period for observation in index.trust_series(entry.code)]
        assert periods == sorted(periods)
        assert len(periods) == len(set(periods))

    series = index.trust_series("RGT")
    assert [observation.get("trust_total_percent_within_18_weeks") for observation in series] == [80.0, 81.0, 82.0]
    assert index.latest_observation("RGT") == series[-1]
    assert index.trust_series("ZZZ") == []


def test_directory_is_sorted_by_name_with_latest_period(tmp_path: Path) -> None:
    index = DatasetIndex(_write_snapshot(tmp_path))
    index.load()

    directory = index.directory()

    assert [entry.name for entry in directory] == [
        "Cambridge University Hospitals",
        "North West Anglia",
        "Princess Alexandra",
    ]
    assert directory[0].latest_period == date(2024, 3, 1)
    assert directory[0].record_count == 3
    assert directory[1].icb == "Unknown ICB"


def test_observation_lookup_accepts_strings_and_dates(tmp_path: Path) -> None:
    index = DatasetIndex(_write_snapshot(tmp_path))
    index.load()

    by_string = index.observation("RGT", "2024-02-01")
    by_date = index.observation("RGT", date(2024, 2, 1))

    assert by_string is not None
    assert by_string == by_date
    assert by_string.get("trust_total_percent_within_18_weeks") == 81.0
    assert index.observation("RGT", "2023-12-01") is None
    assert index.observation("RGT", "garbage") is None
    assert len(index.observations()) == 5


def test_failed_load_leaves_index_empty_and_can_retry(tmp_path: Path) -> None:
    index = DatasetIndex(tmp_path / "missing.csv")

    with pytest.raises(DataLoadError):
        index.load()

    assert not index.is_loaded
    assert index.directory() == []

    index.load(_write_snapshot(tmp_path))
    assert index.is_loaded
    assert index.fetch_count == 2


def test_load_without_source_raises() -> None:
    with pytest.raises(DataLoadError, match="No dataset source"):
        DatasetIndex().load()


def test_concurrent_ensure_loaded_shares_one_fetch(tmp_path: Path) -> None:
    reader = _CountingReader()
    index = DatasetIndex(_write_snapshot(tmp_path), reader=reader)

    async def _load_many() -> None:
        await asyncio.gather(*(index.ensure_loaded() for _ in range(5)))

    asyncio.run(_load_many())

    assert reader.calls == 1
    assert index.is_loaded
    assert len(index.trust_series("RGT")) == 3


def test_concurrent_threads_share_one_fetch(tmp_path: Path) -> None:
    reader = _CountingReader()
    index = DatasetIndex(_write_snapshot(tmp_path), reader=reader)

    threads = [threading.Thread(target=index.load) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert reader.calls == 1


def test_build_directory_of_empty_frame() -> None:
    assert build_directory(pd.DataFrame()) == []


def test_concurrent_ensure_loaded_shares_failure_and_allows_retry(tmp_path: Path) -> None:
    reader = _CountingReader()
    index = DatasetIndex(tmp_path / "missing.csv", reader=reader)

    async def _load_many() -> list[object]:
        return list(await asyncio.gather(*(index.ensure_loaded() for _ in range(3)), return_exceptions=True))

    outcomes = asyncio.run(_load_many())

    assert len(outcomes) == 3
    assert all(isinstance(outcome, DataLoadError) for outcome in outcomes)
    assert reader.calls == 1
    assert index._inflight is None
    assert not index.is_loaded

    asyncio.run(index.ensure_loaded(_write_snapshot(tmp_path)))

    assert reader.calls == 2
    assert index.is_loaded
    assert len(index.trust_series("RGT")) == 3
