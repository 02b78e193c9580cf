from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nhs_analytics.cli import app

HEADER = (
    "trust_code,trust_name,period,icb_code,icb_name,"
    "trust_total_percent_within_18_weeks,trust_total_total_52_plus_weeks,"
    "rtt_urology_percent_within_18_weeks,rtt_urology_total_incomplete_pathways,"
    "diag_mri_total_waiting,diag_mri_6week_breaches"
)


@pytest.fixture(autouse=True)
def _no_env_source(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NHS_ANALYTICS_DATA_SOURCE", raising=False)


def _write_snapshot(tmp_path: Path) -> Path:
    csv_path = tmp_path / "snapshot.csv"
    csv_path.write_text(
        "\n".join(
            [
                HEADER,
                "RGT,Cambridge University Hospitals,2024-01-01,QUE,Cambridgeshire ICB,38,700,0.55,400,200,40",
                "RGT,Cambridge University Hospitals,2024-02-01,QUE,Cambridgeshire ICB,39,650,0.56,410,200,50",
                "RGN,North West Anglia,2024-02-01,QUE,Cambridgeshire ICB,75,10,0.80,100,,",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return csv_path


def _write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("selection:\n  default_trust: RGT\n", encoding="utf-8")
    return config_path


def test_cli_help() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("trusts", "issues", "diagnostics", "specialties", "chart"):
        assert command in result.stdout


def test_trusts_command_prints_directory(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["trusts", "--csv", str(_write_snapshot(tmp_path)), "--config", str(_write_config(tmp_path))],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [entry["code"] for entry in payload] == ["RGT", "RGN"]
    assert payload[0]["latest_period"] == "2024-02-01"
    assert payload[0]["record_count"] == 2


def test_issues_command_for_default_trust(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["issues", "--csv", str(_write_snapshot(tmp_path)), "--config", str(_write_config(tmp_path))],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload[0]["severity"] == "Critical"
    assert payload[0]["title"] == "RTT Compliance Below 40%"
    assert {issue["title"] for issue in payload} >= {"Excessive Long Wait Patients", "MRI Scans High Breach Rate"}


def test_diagnostics_and_specialties_commands(tmp_path: Path) -> None:
    runner = CliRunner()
    csv_path = str(_write_snapshot(tmp_path))
    config_path = str(_write_config(tmp_path))

    diagnostics = runner.invoke(app, ["diagnostics", "--csv", csv_path, "--config", config_path])
    specialties = runner.invoke(
        app, ["specialties", "--csv", csv_path, "--config", config_path, "--trust", "RGN"]
    )

    assert diagnostics.exit_code == 0, diagnostics.output
    assert json.loads(diagnostics.stdout)[0]["breach_rate"] == pytest.approx(25.0)
    assert specialties.exit_code == 0, specialties.output
    assert json.loads(specialties.stdout)[0]["key"] == "urology"
    assert json.loads(specialties.stdout)[0]["percentage"] == pytest.approx(80.0)


def test_chart_command_reads_yaml_configuration(tmp_path: Path) -> None:
    chart_path = tmp_path / "chart.yaml"
    chart_path.write_text(
        "x_axis: period\n"
        "y_axis: trust_total_percent_within_18_weeks\n"
        "trust_selection: all\n"
        "time_period: latest\n",
        encoding="utf-8",
    )
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "chart",
            str(chart_path),
            "--csv",
            str(_write_snapshot(tmp_path)),
            "--config",
            str(_write_config(tmp_path)),
            "--today",
            "2024-03-01",
        ],
    )

    assert result.exit_code == 0, result.output
    assert len(json.loads(result.stdout)) == 2


def test_unknown_trust_exits_with_error(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "issues",
            "--csv",
            str(_write_snapshot(tmp_path)),
            "--config",
            str(_write_config(tmp_path)),
            "--trust",
            "ZZZ",
        ],
    )

    assert result.exit_code == 1
