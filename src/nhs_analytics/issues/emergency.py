from __future__ import annotations

from nhs_analytics.io.schema import field_name
from nhs_analytics.issues.base import CriticalIssue, IssueContext, IssueRule, Severity

AE_PERFORMANCE_FIELD = field_name("ae", None, "4hr_performance_pct")
AE_12HR_FIELD = field_name("ae", None, "12hr_wait_admissions")


class FourHourPerformanceRule(IssueRule):
    name = "ae_4hr_performance"

    def __init__(self, critical_below: float, high_below: float, target: float) -> None:
        self.critical_below = critical_below
        self.high_below = high_below
        self.target = target

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        performance = context.observation.get(AE_PERFORMANCE_FIELD)
        if performance is None or performance >= self.high_below:
            return []
        severity = Severity.CRITICAL if performance < self.critical_below else Severity.HIGH
        return [
            CriticalIssue(
                category="A&E",
                severity=severity,
                title="A&E 4-Hour Performance Critical",
                description="Emergency department performance significantly below target",
                metric="Performance",
                value=performance,
                target=self.target,
            )
        ]


class TwelveHourWaitsRule(IssueRule):
    name = "ae_12hr_waits"

    def __init__(self, critical_above: int, high_above: int) -> None:
        self.critical_above = critical_above
        self.high_above = high_above

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        waits = context.observation.get(AE_12HR_FIELD)
        if waits is None or waits <= self.high_above:
            return []
        severity = Severity.CRITICAL if waits > self.critical_above else Severity.HIGH
        return [
            CriticalIssue(
                category="A&E",
                severity=severity,
                title="12-Hour Emergency Waits",
                description="Excessive 12-hour waits indicate severe capacity issues",
                metric="12-hour waits",
                value=waits,
            )
        ]
