from __future__ import annotations

from nhs_analytics.io.schema import field_name
from nhs_analytics.issues.base import CriticalIssue, IssueContext, IssueRule, Severity

OCCUPANCY_FIELD = field_name("capacity", None, "virtual_ward_occupancy_rate")


class VirtualWardOccupancyRule(IssueRule):
    name = "capacity_virtual_ward_occupancy"

    def __init__(self, high_above: float, target: float) -> None:
        self.high_above = high_above
        self.target = target

    def evaluate(self, context: IssueContext) -> list[CriticalIssue]:
        occupancy = context.observation.get(OCCUPANCY_FIELD)
        if occupancy is None or occupancy <= self.high_above:
            return []
        return [
            CriticalIssue(
                category="Capacity",
                severity=Severity.HIGH,
                title="Virtual Ward Over-Capacity",
                description="Virtual ward utilization exceeding safe operational limits",
                metric="Occupancy",
                value=occupancy,
                target=self.target,
            )
        ]
