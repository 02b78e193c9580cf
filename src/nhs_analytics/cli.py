from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path

import typer
import yaml

from nhs_analytics.charts.config import ChartConfiguration
from nhs_analytics.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from nhs_analytics.io.write import dump_json
from nhs_analytics.logging import configure_logging
from nhs_analytics.models import TrustObservation
from nhs_analytics.service import DashboardService

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path | None) -> AppConfig:
    if config_path is None:
        if DEFAULT_CONFIG_PATH.exists():
            return load_config(DEFAULT_CONFIG_PATH)
        return AppConfig()
    return load_config(config_path)


def _build_service(csv: Path | None, config: Path | None) -> DashboardService:
    cfg = _load_app_config(config)
    if csv is not None:
        cfg.data.source = str(csv)
    if not cfg.data.source:
        raise typer.BadParameter("Missing --csv. Required when data.source is not configured.")
    service = DashboardService(cfg)
    if not service.load_dataset():
        typer.echo(f"Dataset unavailable: {service.load_error}", err=True)
        raise typer.Exit(code=1)
    return service


def _latest_for(service: DashboardService, trust: str | None) -> TrustObservation:
    code = trust or service.selection.current
    observation = service.latest_observation(code)
    if observation is None:
        typer.echo(f"No data for trust {code}", err=True)
        raise typer.Exit(code=1)
    return observation


def _read_chart_config(path: Path) -> ChartConfiguration:
    text = path.read_text(encoding="utf-8")
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    return ChartConfiguration.model_validate(data or {})


@app.command()
def trusts(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
) -> None:
    """List every trust in the dataset, sorted by name."""
    configure_logging("WARNING")
    service = _build_service(csv, config)
    typer.echo(dump_json(service.directory()))


@app.command()
def issues(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    trust: str | None = typer.Option(None, help="Trust code; defaults to selection.default_trust."),
) -> None:
    """Critical issues for a trust's latest snapshot, worst first."""
    configure_logging("WARNING")
    service = _build_service(csv, config)
    typer.echo(dump_json(service.critical_issues(_latest_for(service, trust))))


@app.command()
def diagnostics(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    trust: str | None = typer.Option(None, help="Trust code; defaults to selection.default_trust."),
) -> None:
    """Diagnostic services for a trust's latest snapshot, ranked by opportunity score."""
    configure_logging("WARNING")
    service = _build_service(csv, config)
    typer.echo(dump_json(service.diagnostic_services(_latest_for(service, trust))))


@app.command()
def specialties(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    trust: str | None = typer.Option(None, help="Trust code; defaults to selection.default_trust."),
) -> None:
    """Specialty RTT performance for a trust's latest snapshot, worst first."""
    configure_logging("WARNING")
    service = _build_service(csv, config)
    typer.echo(dump_json(service.specialty_ranking(_latest_for(service, trust))))


@app.command()
def chart(
    chart_config: Path = typer.Argument(..., exists=True, readable=True, resolve_path=True),
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    trust: str | None = typer.Option(None, help="Current trust for single-trust charts."),
    today: datetime | None = typer.Option(None, formats=["%Y-%m-%d"], help="Reference date for 3/6 month windows."),
) -> None:
    """Chart records for a chart configuration file (YAML or JSON)."""
    configure_logging("WARNING")
    service = _build_service(csv, config)
    chart_cfg = _read_chart_config(chart_config)
    reference: date | None = today.date() if today is not None else None
    typer.echo(dump_json(service.chart_data(chart_cfg, trust, today=reference)))


if __name__ == "__main__":  # pragma: no cover
    app()
