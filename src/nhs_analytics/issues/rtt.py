from __future__ import annotations

from nhs_analytics.io.schema import SPECIALTIES
from nhs_analytics.issues.base import CriticalIssue, IssueContext, IssueRule, Severity
from nhs_analytics.specialties import SPECIALTY_FIELDS, TRUST_TOTAL_FIELDS


class TrustComplianceRule(IssueRule):
    name = "rtt_trust_compliance"

    def __init__(self, critical_below: float, high_below: float, target: float) -> None:
        self.critical_below = critical_below
        self.high_below = high_below
        self.target = target

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        compliance = context.observation.get(TRUST_TOTAL_FIELDS.percent_within_18_weeks)
        if compliance is None:
            return []
        if compliance < self.critical_below:
            return [
                CriticalIssue(
                    category="RTT",
                    severity=Severity.CRITICAL,
                    title=f"RTT Compliance Below {self.critical_below:g}%",
                    description="Trust-wide RTT performance is critically low",
                    metric="Compliance",
                    value=compliance,
                    target=self.target,
                )
            ]
        if compliance < self.high_below:
            return [
                CriticalIssue(
                    category="RTT",
                    severity=Severity.HIGH,
                    title="RTT Compliance Below Target",
                    description=(
                        f"Trust-wide RTT performance significantly below {self.target:g}% target"
                    ),
                    metric="Compliance",
                    value=compliance,
                    target=self.target,
                )
            ]
        return []


class TrustLongWaitersRule(IssueRule):
    name = "rtt_trust_long_waiters"

    def __init__(self, critical_above: int) -> None:
        self.critical_above = critical_above

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        long_waiters = context.observation.get(TRUST_TOTAL_FIELDS.total_52_plus_weeks)
        if long_waiters is None or long_waiters <= self.critical_above:
            return []
        return [
            CriticalIssue(
                category="RTT",
                severity=Severity.CRITICAL,
                title="Excessive Long Wait Patients",
                description=f"{long_waiters:,.0f} patients waiting over 52 weeks",
                metric="52+ week waiters",
                value=long_waiters,
                target=0,
            )
        ]


class SpecialtyComplianceRule(IssueRule):
    name = "rtt_specialty_compliance"

    def __init__(
        self,
        critical_below: float,
        critical_min_pathways: int,
        high_below: float,
        high_min_pathways: int,
        target: float,
    ) -> None:
        self.critical_below = critical_below
        self.critical_min_pathways = critical_min_pathways
        self.high_below = high_below
        self.high_min_pathways = high_min_pathways
        self.target = target

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        issues: list[CriticalIssue] = []
        for specialty in SPECIALTIES:
            fields = SPECIALTY_FIELDS[specialty.key]
            compliance = context.observation.get(fields.percent_within_18_weeks)
            pathways = context.observation.value(fields.total_incomplete_pathways)
            if compliance is None:
                continue
            description = (
                f"{compliance:.1f}% of {pathways:,.0f} pathways treated within 18 weeks"
            )
            if compliance < self.critical_below and pathways > self.critical_min_pathways:
                issues.append(
                    CriticalIssue(
                        category="RTT",
                        severity=Severity.CRITICAL,
                        title=f"{specialty.name} RTT Compliance Critical",
                        description=description,
                        metric="Compliance",
                        value=compliance,
                        target=self.target,
                    )
                )
            elif compliance < self.high_below and pathways > self.high_min_pathways:
                issues.append(
                    CriticalIssue(
                        category="RTT",
                        severity=Severity.HIGH,
                        title=f"{specialty.name} RTT Compliance Below Target",
                        description=description,
                        metric="Compliance",
                        value=compliance,
                        target=self.target,
                    )
                )
        return issues


class SpecialtyLongWaitersRule(IssueRule):
    name = "rtt_specialty_long_waiters"

    def __init__(self, critical_above: int, high_above: int, min_pathways: int) -> None:
        self.critical_above = critical_above
        self.high_above = high_above
        self.min_pathways = min_pathways

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        issues: list[CriticalIssue] = []
        for specialty in SPECIALTIES:
            fields = SPECIALTY_FIELDS[specialty.key]
            long_waiters = context.observation.get(fields.total_52_plus_weeks)
            pathways = context.observation.value(fields.total_incomplete_pathways)
            if long_waiters is None or pathways <= self.min_pathways:
                continue
            if long_waiters > self.critical_above:
                severity = Severity.CRITICAL
            elif long_waiters > self.high_above:
                severity = Severity.HIGH
            else:
                continue
            issues.append(
                CriticalIssue(
                    category="RTT",
                    severity=severity,
                    title=f"{specialty.name} Long Waiters",
                    description=f"{long_waiters:,.0f} patients waiting over 52 weeks",
                    metric="52+ week waiters",
                    value=long_waiters,
                    target=0,
                )
            )
        return issues
