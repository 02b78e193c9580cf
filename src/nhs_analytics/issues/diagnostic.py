from __future__ import annotations

from nhs_analytics.issues.base import CriticalIssue, IssueContext, IssueRule, Severity


class DiagnosticBreachRule(IssueRule):
    name = "diagnostic_breach_rate"

    def __init__(self, critical_at: float, high_at: float, target: float) -> None:
        self.critical_at = critical_at
        self.high_at = high_at
        self.target = target

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        issues: list[CriticalIssue] = []
        for service in context.diagnostic_services:
            if service.breach_rate >= self.critical_at:
                severity = Severity.CRITICAL
            elif service.breach_rate >= self.high_at:
                severity = Severity.HIGH
            else:
                continue
            issues.append(
                CriticalIssue(
                    category="Diagnostic",
                    severity=severity,
                    title=f"{service.name} High Breach Rate",
                    description=f"{service.breach_rate:.1f}% of patients waiting over 6 weeks",
                    metric="Breach Rate",
                    value=round(service.breach_rate, 1),
                    target=self.target,
                )
            )
        return issues
