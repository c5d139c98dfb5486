"""
Tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from slotfinder.cli.app import app

runner = CliRunner()

DATA = """\
businesses:
  - id: 1
    name: Barbearia Central
    phone: "5511999990000"
    working_hours:
      - {day_of_week: 0, open_time: "09:00", close_time: "18:00"}
      - {day_of_week: 3, open_time: "09:00", close_time: "11:00"}
    services:
      - {id: 10, name: Corte, duration: 60}
    professionals:
      - {id: 7, name: Ana, specialties: [corte]}
appointments:
  - {professional_id: 7, start: "2026-10-21T09:00:00", end: "2026-10-21T09:30:00", status: confirmado}
"""


@pytest.fixture
def config_file(tmp_path):
    (tmp_path / "data.yaml").write_text(DATA, encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text("locale: en\ndata_file: data.yaml\n", encoding="utf-8")
    return path


def test_slots_command_lists_free_times(config_file):
    result = runner.invoke(app, [
        "slots", "--business", "1", "--date", "2026-10-21",
        "--config", str(config_file), "--now", "2026-10-19T08:00:00",
    ])

    assert result.exit_code == 0, result.output
    assert "Ana" in result.output
    assert "09:30" in result.output
    assert "10:30" in result.output
    assert "09:00," not in result.output


def test_days_command_skips_sunday(config_file):
    result = runner.invoke(app, [
        "days", "-b", "5511999990000", "--start", "2026-10-18", "--window", "7",
        "--config", str(config_file), "--now", "2026-10-17T08:00:00",
    ])

    assert result.exit_code == 0, result.output
    assert "2026-10-21" in result.output
    assert "2026-10-18" not in result.output
    assert "1 day(s)" in result.output


def test_unknown_service_exits_with_error(config_file):
    result = runner.invoke(app, [
        "slots", "--business", "1", "--service", "99",
        "--config", str(config_file), "--now", "2026-10-19T08:00:00",
    ])

    assert result.exit_code == 1
    assert "Service 99 not found" in result.output


def test_missing_config_exits_with_error(tmp_path):
    result = runner.invoke(app, ["days", "--business", "1", "--config", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "slotfinder" in result.output


def test_single_professional_json_payload(config_file):
    result = runner.invoke(app, [
        "slots", "--business", "1", "--date", "2026-10-21", "--professional", "7", "--json",
        "--config", str(config_file), "--now", "2026-10-19T08:00:00",
    ])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["date"] == "2026-10-21"
    assert payload["slotDurationMinutes"] == 30
    assert payload["professional"]["id"] == 7
    assert payload["professional"]["slots"][0] == {"start": "09:30", "end": "10:00"}
    assert "professionals" not in payload


def test_business_json_payload(config_file):
    result = runner.invoke(app, [
        "slots", "--business", "1", "--date", "2026-10-21", "--json",
        "--config", str(config_file), "--now", "2026-10-19T08:00:00",
    ])

    assert result.exit_code == 0, result.output
    assert [p["name"] for p in json.loads(result.output)["professionals"]] == ["Ana"]


def test_unparsable_now_exits_with_error(config_file):
    result = runner.invoke(app, [
        "slots", "--business", "1", "--config", str(config_file), "--now", "not-a-time",
    ])

    assert result.exit_code == 1
    assert "Could not parse --now" in result.output
