from __future__ import annotations

from nhs_analytics.config import IssuesConfig
from nhs_analytics.issues.base import IssueRule
from nhs_analytics.issues.capacity import VirtualWardOccupancyRule
from nhs_analytics.issues.diagnostic import DiagnosticBreachRule
from nhs_analytics.issues.emergency import FourHourPerformanceRule, TwelveHourWaitsRule
from nhs_analytics.issues.rtt import (
    SpecialtyComplianceRule,
    SpecialtyLongWaitersRule,
    TrustComplianceRule,
    TrustLongWaitersRule,
)


def default_rules(config: IssuesConfig | None = None) -> list[IssueRule]:
    """Rules in evaluation order; the order breaks ties within a severity tier."""
    cfg = config or IssuesConfig()
    return [
        TrustComplianceRule(
            critical_below=cfg.rtt_critical_below,
            high_below=cfg.rtt_high_below,
            target=cfg.rtt_target,
        ),
        TrustLongWaitersRule(critical_above=cfg.rtt_long_waiters_critical_above),
        SpecialtyComplianceRule(
            critical_below=cfg.rtt_critical_below,
            critical_min_pathways=cfg.specialty_critical_min_pathways,
            high_below=cfg.rtt_high_below,
            high_min_pathways=cfg.specialty_high_min_pathways,
            target=cfg.rtt_target,
        ),
        SpecialtyLongWaitersRule(
            critical_above=cfg.specialty_long_waiters_critical_above,
            high_above=cfg.specialty_long_waiters_high_above,
            min_pathways=cfg.specialty_long_waiters_min_pathways,
        ),
        DiagnosticBreachRule(
            critical_at=cfg.diagnostic_critical_at,
            high_at=cfg.diagnostic_high_at,
            target=cfg.diagnostic_target,
        ),
        FourHourPerformanceRule(
            critical_below=cfg.ae_critical_below,
            high_below=cfg.ae_high_below,
            target=cfg.ae_target,
        ),
        TwelveHourWaitsRule(
            critical_above=cfg.ae_12hr_critical_above,
            high_above=cfg.ae_12hr_high_above,
        ),
        VirtualWardOccupancyRule(
            high_above=cfg.occupancy_high_above,
            target=cfg.occupancy_target,
        ),
    ]
