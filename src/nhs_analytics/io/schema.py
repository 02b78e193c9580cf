from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from nhs_analytics.errors import UnknownFieldError


class Unit(str, Enum):
    COUNT = "count"
    PERCENT = "percent"
    WEEKS = "weeks"
    RATIO = "ratio"


class Storage(str, Enum):
    """How a percent column is stored in the source snapshot."""

    FRACTION = "fraction"
    PERCENT = "percent"
    DETECT = "detect"


@dataclass(frozen=True)
class CanonicalColumns:
    trust_code: str = "trust_code"
    trust_name: str = "trust_name"
    period: str = "period"
    icb_code: str = "icb_code"
    icb_name: str = "icb_name"


IDENTIFIER_COLUMNS = (
    CanonicalColumns.trust_code,
    CanonicalColumns.trust_name,
    CanonicalColumns.period,
    CanonicalColumns.icb_code,
    CanonicalColumns.icb_name,
)


@dataclass(frozen=True)
class Specialty:
    key: str
    name: str
    code: str


@dataclass(frozen=True)
class DiagnosticModality:
    key: str
    name: str


SPECIALTIES = (
    Specialty("general_surgery", "General Surgery", "100"),
    Specialty("urology", "Urology", "101"),
    Specialty("trauma_orthopaedics", "Trauma & Orthopaedics", "110"),
    Specialty("ent", "ENT", "120"),
    Specialty("ophthalmology", "Ophthalmology", "130"),
    Specialty("oral_surgery", "Oral Surgery", "140"),
    Specialty("restorative_dentistry", "Restorative Dentistry", "141"),
    Specialty("pediatric_surgery", "Paediatric Surgery", "170"),
    Specialty("cardiothoracic_surgery", "Cardiothoracic Surgery", "180"),
    Specialty("general_medicine", "General Internal Medicine", "300"),
    Specialty("gastroenterology", "Gastroenterology", "301"),
    Specialty("cardiology", "Cardiology", "320"),
    Specialty("dermatology", "Dermatology", "330"),
    Specialty("respiratory_medicine", "Respiratory Medicine", "340"),
    Specialty("neurology", "Neurology", "400"),
    Specialty("rheumatology", "Rheumatology", "410"),
    Specialty("geriatric_medicine", "Geriatric Medicine", "430"),
    Specialty("gynecology", "Gynaecology", "500"),
    Specialty("other_surgery", "Other Surgery", "800"),
    Specialty("medical_oncology", "Medical Oncology", "370"),
)

DIAGNOSTIC_MODALITIES = (
    DiagnosticModality("mri", "MRI Scans"),
    DiagnosticModality("ct", "CT Scans"),
    DiagnosticModality("ultrasound", "Ultrasound"),
    DiagnosticModality("nuclear_medicine", "Nuclear Medicine"),
    DiagnosticModality("dexa", "DEXA Scans"),
    DiagnosticModality("echocardiography", "Echocardiography"),
    DiagnosticModality("electrophysiology", "Electrophysiology"),
    DiagnosticModality("neurophysiology", "Neurophysiology"),
    DiagnosticModality("audiology", "Audiology"),
    DiagnosticModality("gastroscopy", "Gastroscopy"),
    DiagnosticModality("colonoscopy", "Colonoscopy"),
    DiagnosticModality("sigmoidoscopy", "Sigmoidoscopy"),
    DiagnosticModality("cystoscopy", "Cystoscopy"),
    DiagnosticModality("urodynamics", "Urodynamics"),
    DiagnosticModality("sleep_studies", "Sleep Studies"),
)

TRUST_TOTAL = "trust_total"

RTT_METRICS = {
    "percent_within_18_weeks": Unit.PERCENT,
    "total_within_18_weeks": Unit.COUNT,
    "total_incomplete_pathways": Unit.COUNT,
    "total_52_plus_weeks": Unit.COUNT,
    "total_65_plus_weeks": Unit.COUNT,
    "total_78_plus_weeks": Unit.COUNT,
    "median_wait_weeks": Unit.WEEKS,
    "total_active_pathways": Unit.COUNT,
}

AE_METRICS = {
    "4hr_performance_pct": Unit.PERCENT,
    "attendances_total": Unit.COUNT,
    "over_4hrs_total": Unit.COUNT,
    "emergency_admissions_total": Unit.COUNT,
    "12hr_wait_admissions": Unit.COUNT,
}

DIAGNOSTIC_METRICS = {
    "total_waiting": Unit.COUNT,
    "6week_breaches": Unit.COUNT,
    "13week_breaches": Unit.COUNT,
    "planned_procedures": Unit.COUNT,
    "procedures_performed": Unit.COUNT,
    "median_wait_weeks": Unit.WEEKS,
}

CAPACITY_METRICS = {
    "virtual_ward_capacity": Unit.COUNT,
    "virtual_ward_occupancy_rate": Unit.PERCENT,
    "avg_daily_discharges": Unit.RATIO,
}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    domain: str
    subkey: str | None
    metric: str
    unit: Unit
    storage: Storage | None = None


# Specialty RTT percentages and ward occupancy are published as 0-1 fractions;
# the trust-total RTT and A&E percentages appear in both forms across extracts.
SPECIALTY_PERCENT_STORAGE = Storage.FRACTION
TRUST_TOTAL_PERCENT_STORAGE = Storage.DETECT
AE_PERCENT_STORAGE = Storage.DETECT
CAPACITY_PERCENT_STORAGE = Storage.FRACTION


def _build_field_specs() -> dict[tuple[str, str | None, str], FieldSpec]:
    specs: dict[tuple[str, str | None, str], FieldSpec] = {}

    def add(
        name: str,
        domain: str,
        subkey: str | None,
        metric: str,
        unit: Unit,
        storage: Storage,
    ) -> None:
        specs[(domain, subkey, metric)] = FieldSpec(
            name,
            domain,
            subkey,
            metric,
            unit,
            storage if unit is Unit.PERCENT else None,
        )

    for metric, unit in RTT_METRICS.items():
        add(f"{TRUST_TOTAL}_{metric}", "rtt", TRUST_TOTAL, metric, unit, TRUST_TOTAL_PERCENT_STORAGE)
        for specialty in SPECIALTIES:
            add(
                f"rtt_{specialty.key}_{metric}",
                "rtt",
                specialty.key,
                metric,
                unit,
                SPECIALTY_PERCENT_STORAGE,
            )
    for metric, unit in AE_METRICS.items():
        add(f"ae_{metric}", "ae", None, metric, unit, AE_PERCENT_STORAGE)
    for modality in DIAGNOSTIC_MODALITIES:
        for metric, unit in DIAGNOSTIC_METRICS.items():
            add(f"diag_{modality.key}_{metric}", "diag", modality.key, metric, unit, Storage.PERCENT)
    for metric, unit in CAPACITY_METRICS.items():
        add(metric, "capacity", None, metric, unit, CAPACITY_PERCENT_STORAGE)
    return specs


FIELD_SPECS = _build_field_specs()
FIELDS_BY_NAME = {spec.name: spec for spec in FIELD_SPECS.values()}


def field_name(domain: str, subkey: str | None, metric: str) -> str:
    """Resolve a (domain, sub-key, metric) triple to its source column name."""
    spec = FIELD_SPECS.get((domain, subkey, metric))
    if spec is None:
        raise UnknownFieldError(f"Unknown field: domain={domain!r} subkey={subkey!r} metric={metric!r}")
    return spec.name


def field_unit(name: str) -> Unit:
    spec = FIELDS_BY_NAME.get(name)
    return spec.unit if spec is not None else Unit.COUNT


def percent_fields() -> list[str]:
    return [spec.name for spec in FIELD_SPECS.values() if spec.unit is Unit.PERCENT]


def percent_storage() -> dict[str, Storage]:
    return {
        spec.name: spec.storage or Storage.DETECT
        for spec in FIELD_SPECS.values()
        if spec.unit is Unit.PERCENT
    }


def humanize_key(key: str) -> str:
    """``rtt_ent_median_wait`` -> ``Rtt Ent Median Wait``; leading digits stay as-is."""
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), key.replace("_", " "))
