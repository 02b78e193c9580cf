from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TRUST_CODE = "RGT"
DEFAULT_COMPARISON_TRUSTS = ["RGT", "RGN", "RQW"]
DEFAULT_NONZERO_FIELDS = [
    "trust_total_percent_within_18_weeks",
    "trust_total_total_incomplete_pathways",
    "ae_4hr_performance_pct",
    "ae_attendances_total",
]


class DataConfig(BaseModel):
    source: str | None = None
    percent_scale: Literal["auto", "fraction", "percent"] = "auto"


class SelectionConfig(BaseModel):
    default_trust: str = DEFAULT_TRUST_CODE
    comparison_trusts: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COMPARISON_TRUSTS),
        max_length=5,
    )


class IssuesConfig(BaseModel):
    rtt_target: float = Field(default=92.0, ge=0, le=100)
    rtt_critical_below: float = Field(default=40.0, ge=0, le=100)
    rtt_high_below: float = Field(default=60.0, ge=0, le=100)
    rtt_long_waiters_critical_above: int = Field(default=500, ge=0)

    specialty_critical_min_pathways: int = Field(default=50, ge=0)
    specialty_high_min_pathways: int = Field(default=100, ge=0)
    specialty_long_waiters_critical_above: int = Field(default=100, ge=0)
    specialty_long_waiters_high_above: int = Field(default=20, ge=0)
    specialty_long_waiters_min_pathways: int = Field(default=50, ge=0)

    diagnostic_target: float = Field(default=15.0, ge=0, le=100)
    diagnostic_critical_at: float = Field(default=25.0, ge=0, le=100)
    diagnostic_high_at: float = Field(default=15.0, ge=0, le=100)

    ae_target: float = Field(default=95.0, ge=0, le=100)
    ae_critical_below: float = Field(default=50.0, ge=0, le=100)
    ae_high_below: float = Field(default=70.0, ge=0, le=100)
    ae_12hr_critical_above: int = Field(default=100, ge=0)
    ae_12hr_high_above: int = Field(default=50, ge=0)

    occupancy_target: float = Field(default=85.0, ge=0, le=100)
    occupancy_high_above: float = Field(default=95.0, ge=0, le=100)


class ChartsConfig(BaseModel):
    histogram_bins: int = Field(default=10, ge=1)
    nonzero_fields: list[str] = Field(default_factory=lambda: list(DEFAULT_NONZERO_FIELDS))


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data: DataConfig = Field(default_factory=DataConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    issues: IssuesConfig = Field(default_factory=IssuesConfig)
    charts: ChartsConfig = Field(default_factory=ChartsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _is_url(value: str) -> bool:
    return "://" in value


def _resolve_source(source: str | None, base_dir: Path) -> str | None:
    if not source:
        return None
    if _is_url(source):
        return source
    candidate = Path(source)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    env_source = os.getenv("NHS_ANALYTICS_DATA_SOURCE")
    if env_source:
        config.data.source = env_source if _is_url(env_source) else str(Path(env_source).resolve())
    else:
        config.data.source = _resolve_source(config.data.source, base_dir)
    return config
