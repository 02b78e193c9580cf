from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from nhs_analytics.diagnostics import DiagnosticServiceRecord
from nhs_analytics.models import TrustObservation

Category = Literal["RTT", "Diagnostic", "A&E", "Capacity"]


class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MODERATE = "Moderate"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER[self]


SEVERITY_ORDER = {Severity.CRITICAL: 0, Severity.HIGH: 1, Severity.MODERATE: 2}


@dataclass(frozen=True)
class CriticalIssue:
    category: Category
    severity: Severity
    title: str
    description: str
    metric: str
    value: float
    target: float | None = None


@dataclass(frozen=True)
class IssueContext:
    observation: TrustObservation
    diagnostic_services: list[DiagnosticServiceRecord] = field(default_factory=list)


class IssueRule:
    name: str

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        raise NotImplementedError
