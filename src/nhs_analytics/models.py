from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping

MISSING = None


def _clean(value: Any) -> float | str | None:
    if value is None:
        return MISSING
    if isinstance(value, float) and math.isnan(value):
        return MISSING
    if isinstance(value, (int, float)):
        return float(value)
    return value


@dataclass(frozen=True)
class TrustObservation:
    """One trust's metrics for one reporting month.

    ``metrics`` never contains NaN: an absent value is stored as ``MISSING``
    (``None``). ``get`` preserves that distinction; ``value`` is the explicit
    zero-default used by display-oriented records.
    """

    trust_code: str
    trust_name: str
    period: date
    icb_code: str = ""
    icb_name: str = ""
    metrics: Mapping[str, float | str | None] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        cleaned = {key: _clean(value) for key, value in self.metrics.items()}
        object.__setattr__(self, "metrics", MappingProxyType(cleaned))

    @property
    def period_key(self) -> str:
        return self.period.isoformat()

    def get(self, name: str) -> float | None:
        value = self.metrics.get(name, MISSING)
        return value if isinstance(value, float) else MISSING

    def value(self, name: str, default: float = 0.0) -> float:
        found = self.get(name)
        return default if found is None else found

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def as_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "trust_code": self.trust_code,
            "trust_name": self.trust_name,
            "period": self.period,
            "icb_code": self.icb_code,
            "icb_name": self.icb_name,
        }
        record.update(self.metrics)
        return record


@dataclass(frozen=True)
class TrustDirectoryEntry:
    code: str
    name: str
    icb: str
    latest_period: date
    record_count: int
