from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

from nhs_analytics.io.schema import DIAGNOSTIC_MODALITIES, field_name
from nhs_analytics.models import TrustObservation

VOLUME_SCORE_CAP = 50.0
CRITICAL_BREACH_RATE = 15.0

BreachTier = Literal["critical", "high", "moderate", "good"]


@dataclass(frozen=True)
class DiagnosticFields:
    total_waiting: str
    six_week_breaches: str
    thirteen_week_breaches: str
    planned_procedures: str
    procedures_performed: str
    median_wait_weeks: str

    @classmethod
    def for_modality(cls, key: str) -> DiagnosticFields:
        return cls(
            total_waiting=field_name("diag", key, "total_waiting"),
            six_week_breaches=field_name("diag", key, "6week_breaches"),
            thirteen_week_breaches=field_name("diag", key, "13week_breaches"),
            planned_procedures=field_name("diag", key, "planned_procedures"),
            procedures_performed=field_name("diag", key, "procedures_performed"),
            median_wait_weeks=field_name("diag", key, "median_wait_weeks"),
        )


MODALITY_FIELDS = {
    modality.key: DiagnosticFields.for_modality(modality.key) for modality in DIAGNOSTIC_MODALITIES
}


@dataclass(frozen=True)
class DiagnosticServiceRecord:
    type: str
    name: str
    total_waiting: float
    six_week_breaches: float
    thirteen_week_breaches: float
    breach_rate: float
    planned_procedures: float
    procedures_performed: float
    median_wait_weeks: float | None = None

    @property
    def opportunity_score(self) -> float:
        return opportunity_score(self.total_waiting, self.breach_rate)


@dataclass(frozen=True)
class BreachLevel:
    label: str
    tier: BreachTier


def breach_rate(six_week_breaches: float | None, total_waiting: float | None) -> float:
    """Percentage of the waiting list beyond six weeks; 0 when nobody is waiting."""
    if not total_waiting or total_waiting <= 0:
        return 0.0
    rate = (six_week_breaches or 0.0) / total_waiting * 100.0
    return max(rate, 0.0)


def extract_diagnostic_services(observation: TrustObservation) -> list[DiagnosticServiceRecord]:
    """Build one record per modality with a non-zero waiting list.

    A missing waiting-list total excludes the modality; missing breach and
    procedure counts are shown as zero.
    """
    services: list[DiagnosticServiceRecord] = []
    for modality in DIAGNOSTIC_MODALITIES:
        fields = MODALITY_FIELDS[modality.key]
        total_waiting = observation.get(fields.total_waiting)
        if total_waiting is None or total_waiting <= 0:
            continue
        six_week = observation.value(fields.six_week_breaches)
        services.append(
            DiagnosticServiceRecord(
                type=modality.key,
                name=modality.name,
                total_waiting=total_waiting,
                six_week_breaches=six_week,
                thirteen_week_breaches=observation.value(fields.thirteen_week_breaches),
                breach_rate=breach_rate(six_week, total_waiting),
                planned_procedures=observation.value(fields.planned_procedures),
                procedures_performed=observation.value(fields.procedures_performed),
                median_wait_weeks=observation.get(fields.median_wait_weeks),
            )
        )
    return services


def opportunity_score(total_waiting: float, breach_rate: float) -> float:
    volume_score = min(total_waiting / 100.0, VOLUME_SCORE_CAP)
    return volume_score + breach_rate


def rank_by_opportunity(services: Iterable[DiagnosticServiceRecord]) -> list[DiagnosticServiceRecord]:
    # sorted() is stable, so equal scores keep their input order.
    return sorted(services, key=lambda service: service.opportunity_score, reverse=True)


def breach_level(rate: float) -> BreachLevel:
    if rate >= 15:
        return BreachLevel("CRITICAL", "critical")
    if rate >= 10:
        return BreachLevel("HIGH CONCERN", "high")
    if rate >= 5:
        return BreachLevel("MODERATE", "moderate")
    return BreachLevel("GOOD", "good")


@dataclass(frozen=True)
class CriticalDiagnostics:
    count: int
    services: list[DiagnosticServiceRecord]


def critical_diagnostic_services(
    observation: TrustObservation,
    threshold: float = CRITICAL_BREACH_RATE,
) -> CriticalDiagnostics:
    critical = [
        service
        for service in extract_diagnostic_services(observation)
        if service.breach_rate >= threshold
    ]
    critical.sort(key=lambda service: service.breach_rate, reverse=True)
    return CriticalDiagnostics(count=len(critical), services=critical)
