from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal

from nhs_analytics.io.schema import SPECIALTIES, TRUST_TOTAL, field_name, humanize_key
from nhs_analytics.models import TrustObservation

LOGGER = logging.getLogger(__name__)

SPECIALTY_NAMES = {specialty.key: specialty.name for specialty in SPECIALTIES}

PerformanceLabel = Literal["Excellent", "Good", "Concern", "Critical"]


@dataclass(frozen=True)
class RttFields:
    percent_within_18_weeks: str
    total_within_18_weeks: str
    total_incomplete_pathways: str
    total_52_plus_weeks: str
    total_65_plus_weeks: str
    total_78_plus_weeks: str
    median_wait_weeks: str

    @classmethod
    def for_subkey(cls, subkey: str) -> RttFields:
        return cls(
            percent_within_18_weeks=field_name("rtt", subkey, "percent_within_18_weeks"),
            total_within_18_weeks=field_name("rtt", subkey, "total_within_18_weeks"),
            total_incomplete_pathways=field_name("rtt", subkey, "total_incomplete_pathways"),
            total_52_plus_weeks=field_name("rtt", subkey, "total_52_plus_weeks"),
            total_65_plus_weeks=field_name("rtt", subkey, "total_65_plus_weeks"),
            total_78_plus_weeks=field_name("rtt", subkey, "total_78_plus_weeks"),
            median_wait_weeks=field_name("rtt", subkey, "median_wait_weeks"),
        )


TRUST_TOTAL_FIELDS = RttFields.for_subkey(TRUST_TOTAL)
SPECIALTY_FIELDS = {specialty.key: RttFields.for_subkey(specialty.key) for specialty in SPECIALTIES}


@dataclass(frozen=True)
class SpecialtyPerformanceRecord:
    key: str
    name: str
    code: str
    percentage: float
    within_18_weeks: float
    total: float


@dataclass(frozen=True)
class BreachData:
    week_52_plus: float
    week_65_plus: float
    week_78_plus: float


def specialties_data(observation: TrustObservation) -> list[SpecialtyPerformanceRecord]:
    """Per-specialty RTT performance for specialties with a non-zero waiting list.

    Percentages are already on the 0-100 scale (normalised when the dataset is
    parsed); missing percentage and count fields are shown as zero.
    """
    records: list[SpecialtyPerformanceRecord] = []
    for specialty in SPECIALTIES:
        fields = SPECIALTY_FIELDS[specialty.key]
        total = observation.value(fields.total_incomplete_pathways)
        if total <= 0:
            continue
        records.append(
            SpecialtyPerformanceRecord(
                key=specialty.key,
                name=specialty.name,
                code=specialty.code,
                percentage=observation.value(fields.percent_within_18_weeks),
                within_18_weeks=observation.value(fields.total_within_18_weeks),
                total=total,
            )
        )
    return records


def rank_worst_first(records: Iterable[SpecialtyPerformanceRecord]) -> list[SpecialtyPerformanceRecord]:
    return sorted(records, key=lambda record: record.percentage)


def breach_data(observation: TrustObservation, specialty_key: str) -> BreachData:
    """52+/65+/78+ week waiters for ``trust_total`` or a specialty key; zeros for an unknown key."""
    if specialty_key == TRUST_TOTAL:
        fields = TRUST_TOTAL_FIELDS
    else:
        fields = SPECIALTY_FIELDS.get(specialty_key)
        if fields is None:
            LOGGER.debug("No RTT fields for specialty %r", specialty_key)
            return BreachData(week_52_plus=0.0, week_65_plus=0.0, week_78_plus=0.0)
    return BreachData(
        week_52_plus=observation.value(fields.total_52_plus_weeks),
        week_65_plus=observation.value(fields.total_65_plus_weeks),
        week_78_plus=observation.value(fields.total_78_plus_weeks),
    )


def specialty_display_name(specialty_key: str) -> str:
    if specialty_key == TRUST_TOTAL:
        return "All Specialties"
    return SPECIALTY_NAMES.get(specialty_key) or humanize_key(specialty_key)


def performance_level(percentage: float) -> PerformanceLabel:
    if percentage >= 92:
        return "Excellent"
    if percentage >= 75:
        return "Good"
    if percentage >= 50:
        return "Concern"
    return "Critical"
