from __future__ import annotations

from typing import Sequence

from nhs_analytics.diagnostics import DiagnosticServiceRecord, extract_diagnostic_services
from nhs_analytics.issues.base import CriticalIssue, IssueContext, IssueRule
from nhs_analytics.issues.registry import default_rules
from nhs_analytics.models import TrustObservation


def sort_by_severity(issues: Sequence[CriticalIssue]) -> list[CriticalIssue]:
    return sorted(issues, key=lambda issue: issue.severity.rank)


def identify_critical_issues(
    observation: TrustObservation,
    rules: Sequence[IssueRule] | None = None,
    diagnostic_services: list[DiagnosticServiceRecord] | None = None,
) -> list[CriticalIssue]:
    """Evaluate every rule against one snapshot and return issues worst-first.

    All rules always run; issues within a severity tier keep rule-evaluation order.
    """
    context = IssueContext(
        observation=observation,
        diagnostic_services=(
            diagnostic_services
            if diagnostic_services is not None
            else extract_diagnostic_services(observation)
        ),
    )
    issues: list[CriticalIssue] = []
    for rule in rules if rules is not None else default_rules():
        issues.extend(rule.evaluate(context))
    return sort_by_severity(issues)
