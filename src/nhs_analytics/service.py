from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any

from nhs_analytics.charts.config import ChartConfiguration
from nhs_analytics.charts.generator import generate_chart_data
from nhs_analytics.config import AppConfig
from nhs_analytics.diagnostics import (
    DiagnosticServiceRecord,
    extract_diagnostic_services,
    rank_by_opportunity,
)
from nhs_analytics.errors import DataLoadError
from nhs_analytics.index import DatasetIndex
from nhs_analytics.issues.base import CriticalIssue, IssueRule
from nhs_analytics.issues.detector import identify_critical_issues
from nhs_analytics.issues.registry import default_rules
from nhs_analytics.models import TrustDirectoryEntry, TrustObservation
from nhs_analytics.selection import TrustSelection
from nhs_analytics.specialties import SpecialtyPerformanceRecord, rank_worst_first, specialties_data

LOGGER = logging.getLogger(__name__)


class DashboardService:
    """Query interface consumed by the presentation layer.

    A failed load is logged once and kept in ``load_error``; queries then
    return empty results instead of raising.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        index: DatasetIndex | None = None,
        selection: TrustSelection | None = None,
        rules: list[IssueRule] | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.index = index or DatasetIndex(
            self.config.data.source,
            percent_scale=self.config.data.percent_scale,
        )
        self.selection = selection or TrustSelection(self.config.selection.default_trust)
        self.rules = rules if rules is not None else default_rules(self.config.issues)
        self.load_error: DataLoadError | None = None

    def load_dataset(self, source: str | Path | None = None) -> bool:
        try:
            self.index.load(source)
        except DataLoadError as exc:
            self.load_error = exc
            LOGGER.error("Dataset unavailable: %s", exc)
            return False
        self.load_error = None
        return True

    async def ensure_loaded(self, source: str | Path | None = None) -> bool:
        try:
            await self.index.ensure_loaded(source)
        except DataLoadError as exc:
            self.load_error = exc
            LOGGER.error("Dataset unavailable: %s", exc)
            return False
        self.load_error = None
        return True

    def trust_series(self, trust_code: str) -> list[TrustObservation]:
        return self.index.trust_series(trust_code)

    def directory(self) -> list[TrustDirectoryEntry]:
        return self.index.directory()

    def latest_observation(self, trust_code: str | None = None) -> TrustObservation | None:
        return self.index.latest_observation(trust_code or self.selection.current)

    def diagnostic_services(self, observation: TrustObservation | None) -> list[DiagnosticServiceRecord]:
        if observation is None:
            return []
        return rank_by_opportunity(extract_diagnostic_services(observation))

    def critical_issues(self, observation: TrustObservation | None) -> list[CriticalIssue]:
        if observation is None:
            return []
        return identify_critical_issues(observation, rules=self.rules)

    def specialty_ranking(self, observation: TrustObservation | None) -> list[SpecialtyPerformanceRecord]:
        if observation is None:
            return []
        return rank_worst_first(specialties_data(observation))

    def chart_data(
        self,
        config: ChartConfiguration,
        current_trust: str | None = None,
        *,
        today: date | None = None,
    ) -> list[dict[str, Any]]:
        return generate_chart_data(
            config,
            self.index.trust_series,
            self.index.directory,
            current_trust or self.selection.current,
            comparison_trusts=self.config.selection.comparison_trusts,
            nonzero_fields=self.config.charts.nonzero_fields,
            histogram_bin_count=self.config.charts.histogram_bins,
            today=today,
        )
