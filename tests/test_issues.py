from __future__ import annotations

from datetime import date

import pytest

from nhs_analytics.config import IssuesConfig
from nhs_analytics.issues.base import CriticalIssue, Severity
from nhs_analytics.issues.detector import identify_critical_issues, sort_by_severity
from nhs_analytics.issues.registry import default_rules
from nhs_analytics.models import TrustObservation


def _observation(metrics: dict[str, float | None]) -> TrustObservation:
    return TrustObservation(
        trust_code="RGT",
        trust_name="Cambridge University Hospitals",
        period=date(2024, 3, 1),
        metrics=metrics,
    )


def _titles(issues: list[CriticalIssue]) -> list[str]:
    return [issue.title for issue in issues]


def test_low_compliance_and_long_waiters_produce_critical_issues() -> None:
    issues = identify_critical_issues(
        _observation(
            {
                "trust_total_percent_within_18_weeks": 35,
                "trust_total_total_52_plus_weeks": 600,
            }
        )
    )

    critical = [issue for issue in issues if issue.severity is Severity.CRITICAL]
    assert len(critical) >= 2
    assert _titles(critical)[:2] == ["RTT Compliance Below 40%", "Excessive Long Wait Patients"]
    assert critical[0].target == 92
    assert critical[1].target == 0


def test_issues_are_sorted_by_severity_keeping_rule_order() -> None:
    issues = identify_critical_issues(
        _observation(
            {
                "trust_total_percent_within_18_weeks": 55,
                "ae_4hr_performance_pct": 45,
                "ae_12hr_wait_admissions": 60,
                "virtual_ward_occupancy_rate": 97,
                "diag_mri_total_waiting": 100,
                "diag_mri_6week_breaches": 30,
            }
        )
    )

    assert [issue.severity for issue in issues] == [
        Severity.CRITICAL,
        Severity.CRITICAL,
        Severity.HIGH,
        Severity.HIGH,
        Severity.HIGH,
    ]
    assert _titles(issues) == [
        "MRI Scans High Breach Rate",
        "A&E 4-Hour Performance Critical",
        "RTT Compliance Below Target",
        "12-Hour Emergency Waits",
        "Virtual Ward Over-Capacity",
    ]
    severities = [issue.severity.rank for issue in issues]
    assert severities == sorted(severities)


def test_specialty_rules_respect_pathway_minimums() -> None:
    issues = identify_critical_issues(
        _observation(
            {
                "rtt_urology_percent_within_18_weeks": 30,
                "rtt_urology_total_incomplete_pathways": 40,
                "rtt_ent_percent_within_18_weeks": 30,
                "rtt_ent_total_incomplete_pathways": 80,
                "rtt_dermatology_percent_within_18_weeks": 55,
                "rtt_dermatology_total_incomplete_pathways": 150,
                "rtt_cardiology_percent_within_18_weeks": 55,
                "rtt_cardiology_total_incomplete_pathways": 90,
            }
        )
    )

    assert _titles(issues) == [
        "ENT RTT Compliance Critical",
        "Dermatology RTT Compliance Below Target",
    ]
    assert issues[0].description == "30.0% of 80 pathways treated within 18 weeks"


def test_specialty_long_waiters_thresholds() -> None:
    issues = identify_critical_issues(
        _observation(
            {
                "rtt_general_surgery_total_52_plus_weeks": 150,
                "rtt_general_surgery_total_incomplete_pathways": 1000,
                "rtt_urology_total_52_plus_weeks": 25,
                "rtt_urology_total_incomplete_pathways": 60,
                "rtt_ent_total_52_plus_weeks": 500,
                "rtt_ent_total_incomplete_pathways": 50,
            }
        )
    )

    assert [(issue.title, issue.severity) for issue in issues] == [
        ("General Surgery Long Waiters", Severity.CRITICAL),
        ("Urology Long Waiters", Severity.HIGH),
    ]


def test_diagnostic_breach_rule_rounds_value() -> None:
    issues = identify_critical_issues(
        _observation({"diag_ct_total_waiting": 300, "diag_ct_6week_breaches": 50})
    )

    assert len(issues) == 1
    assert issues[0].severity is Severity.HIGH
    assert issues[0].value == pytest.approx(16.7)
    assert issues[0].target == 15
    assert issues[0].description == "16.7% of patients waiting over 6 weeks"


def test_missing_metrics_raise_no_issues() -> None:
    assert identify_critical_issues(_observation({})) == []


@pytest.mark.parametrize(
    ("waits", "expected"),
    [(50, []), (51, [Severity.HIGH]), (100, [Severity.HIGH]), (101, [Severity.CRITICAL])],
)
def test_twelve_hour_wait_boundaries(waits: float, expected: list[Severity]) -> None:
    issues = identify_critical_issues(_observation({"ae_12hr_wait_admissions": waits}))

    assert [issue.severity for issue in issues] == expected
    assert all(issue.target is None for issue in issues)


def test_thresholds_come_from_config() -> None:
    rules = default_rules(IssuesConfig(occupancy_high_above=80))

    issues = identify_critical_issues(_observation({"virtual_ward_occupancy_rate": 90}), rules=rules)

    assert _titles(issues) == ["Virtual Ward Over-Capacity"]
    assert issues[0].target == 85


def test_sort_by_severity_puts_moderate_last() -> None:
    moderate = CriticalIssue("Capacity", Severity.MODERATE, "m", "", "x", 1.0)
    high = CriticalIssue("RTT", Severity.HIGH, "h", "", "x", 1.0)
    critical = CriticalIssue("A&E", Severity.CRITICAL, "c", "", "x", 1.0)

    assert sort_by_severity([moderate, high, critical]) == [critical, high, moderate]
