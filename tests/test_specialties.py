from __future__ import annotations

from datetime import date

import pytest

from nhs_analytics.models import TrustObservation
from nhs_analytics.specialties import (
    BreachData,
    breach_data,
    performance_level,
    rank_worst_first,
    specialties_data,
    specialty_display_name,
)


def _observation(metrics: dict[str, float | None]) -> TrustObservation:
    return TrustObservation(
        trust_code="RGT",
        trust_name="Cambridge University Hospitals",
        period=date(2024, 3, 1),
        metrics=metrics,
    )


def test_specialties_data_skips_empty_waiting_lists() -> None:
    records = specialties_data(
        _observation(
            {
                "rtt_urology_percent_within_18_weeks": 70,
                "rtt_urology_total_within_18_weeks": 700,
                "rtt_urology_total_incomplete_pathways": 1000,
                "rtt_ent_percent_within_18_weeks": 90,
                "rtt_ent_total_incomplete_pathways": 0,
                "rtt_cardiology_total_incomplete_pathways": 200,
            }
        )
    )

    assert [record.key for record in records] == ["urology", "cardiology"]
    urology = records[0]
    assert urology.name == "Urology"
    assert urology.code == "101"
    assert urology.percentage == pytest.approx(70.0)
    assert urology.within_18_weeks == pytest.approx(700.0)
    assert records[1].percentage == 0.0


def test_rank_worst_first_is_stable() -> None:
    records = specialties_data(
        _observation(
            {
                "rtt_general_surgery_percent_within_18_weeks": 60,
                "rtt_general_surgery_total_incomplete_pathways": 10,
                "rtt_urology_percent_within_18_weeks": 40,
                "rtt_urology_total_incomplete_pathways": 10,
                "rtt_ent_percent_within_18_weeks": 60,
                "rtt_ent_total_incomplete_pathways": 10,
            }
        )
    )

    assert [record.key for record in rank_worst_first(records)] == ["urology", "general_surgery", "ent"]


def test_breach_data_for_trust_total_and_specialty() -> None:
    observation = _observation(
        {
            "trust_total_total_52_plus_weeks": 300,
            "trust_total_total_65_plus_weeks": 40,
            "rtt_ent_total_52_plus_weeks": 12,
        }
    )

    trust_total = breach_data(observation, "trust_total")
    ent = breach_data(observation, "ent")

    assert (trust_total.week_52_plus, trust_total.week_65_plus, trust_total.week_78_plus) == (300.0, 40.0, 0.0)
    assert ent.week_52_plus == 12.0


def test_breach_data_for_unknown_specialty_is_zero() -> None:
    observation = _observation({"trust_total_total_52_plus_weeks": 300})

    assert breach_data(observation, "astrology") == BreachData(0.0, 0.0, 0.0)


def test_specialty_display_names() -> None:
    assert specialty_display_name("trust_total") == "All Specialties"
    assert specialty_display_name("trauma_orthopaedics") == "Trauma & Orthopaedics"
    assert specialty_display_name("sports_medicine") == "Sports Medicine"


@pytest.mark.parametrize(
    ("percentage", "label"),
    [(92, "Excellent"), (91.9, "Good"), (75, "Good"), (50, "Concern"), (49.9, "Critical")],
)
def test_performance_level(percentage: float, label: str) -> None:
    assert performance_level(percentage) == label
