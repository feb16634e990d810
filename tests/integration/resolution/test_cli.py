"""Tests for the exercise resolution CLI."""

from __future__ import annotations

import argparse
import json

import pytest

from src.common.logging import SanitizingFilter
from src.common.telemetry import is_telemetry_enabled
from src.routine_service.resolution import __main__ as cli
from src.routine_service.resolution.factory import create_exercise_service

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _mount_catalog(monkeypatch: pytest.MonkeyPatch, catalog) -> None:
    monkeypatch.setattr(
        cli,
        "create_exercise_service",
        lambda config: create_exercise_service(config, http_transport=catalog.transport),
    )


def _run(capsys, *argv: str) -> tuple[int, dict]:
    code = cli.main(["--url", "http://exercise-service:3002", *argv])
    out = capsys.readouterr().out
    return code, json.loads(out) if out else {}


class TestParseIds:
    def test_flattens_commas(self) -> None:
        assert cli.parse_ids(["3", "5,7", " 9 ,"]) == [3, 5, 7, 9]

    @pytest.mark.parametrize("value", ["abc", "0", "-3"])
    def test_rejects_bad_ids(self, value) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            cli.parse_ids([value])


class TestCommands:
    def test_verify_all_valid(self, capsys) -> None:
        code, payload = _run(capsys, "verify", "3", "5")

        assert code == cli.EXIT_OK
        assert payload == {"allValid": True, "invalid": []}

    def test_verify_reports_invalid(self, capsys) -> None:
        code, payload = _run(capsys, "verify", "3,9")

        assert code == cli.EXIT_MISSING
        assert payload["invalid"] == [9]

    def test_fetch(self, capsys) -> None:
        code, payload = _run(capsys, "fetch", "7", "3", "7", "--keep-duplicates")

        assert code == cli.EXIT_OK
        assert [e["id"] for e in payload["exercises"]] == [7, 3, 7]
        assert payload["exercises"][0]["videoPath"].endswith("deadlift.mp4")

    def test_get_missing(self, capsys) -> None:
        code, payload = _run(capsys, "get", "42")

        assert code == cli.EXIT_MISSING
        assert payload == {"found": False, "id": 42}

    def test_health(self, capsys) -> None:
        code, payload = _run(capsys, "health")

        assert code == cli.EXIT_OK
        assert payload["healthy"] is True

    def test_catalog_failure_exit_code(self, capsys, catalog) -> None:
        catalog.fail_with = 500

        code = cli.main(["--url", "http://exercise-service:3002", "verify", "3"])

        assert code == cli.EXIT_ERROR
        assert "error:" in capsys.readouterr().err

    def test_bad_id_is_usage_error(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["verify", "abc"])

        assert exc_info.value.code == 2

    @pytest.mark.parametrize("value", ["3,4", ",", "abc"])
    def test_get_requires_exactly_one_id(self, capsys, value) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--url", "http://exercise-service:3002", "get", value])

        assert exc_info.value.code == 2
        assert capsys.readouterr().out == ""

    def test_get_found(self, capsys) -> None:
        code, payload = _run(capsys, "get", "3")

        assert code == cli.EXIT_OK
        assert payload["exercise"]["name"] == "Squat"


class TestParseSingleId:
    def test_single(self) -> None:
        assert cli.parse_single_id(" 12 ") == 12

    @pytest.mark.parametrize("value", ["3,4", "", ",", "0"])
    def test_rejects(self, value) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            cli.parse_single_id(value)


class TestTelemetryLifecycle:
    @pytest.fixture
    def calls(self, monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, object]]:
        calls: list[tuple[str, object]] = []
        monkeypatch.setattr(
            cli, "init_telemetry", lambda service_name=None: calls.append(("init", service_name))
        )
        monkeypatch.setattr(cli, "shutdown_telemetry", lambda: calls.append(("shutdown", None)))
        return calls

    def test_initialised_and_shut_down(self, capsys, calls) -> None:
        code, _ = _run(capsys, "verify", "3")

        assert code == cli.EXIT_OK
        assert calls == [("init", "routine-service"), ("shutdown", None)]

    def test_shut_down_after_catalog_failure(self, capsys, catalog, calls) -> None:
        catalog.fail_with = 500

        code, _ = _run(capsys, "verify", "3")

        assert code == cli.EXIT_ERROR
        assert calls[-1] == ("shutdown", None)

    def test_disabled_by_environment(self, capsys) -> None:
        code, _ = _run(capsys, "health")

        assert code == cli.EXIT_OK
        assert is_telemetry_enabled() is False


class TestLogLevel:
    @pytest.fixture
    def levels(self, monkeypatch: pytest.MonkeyPatch) -> list[object]:
        levels: list[object] = []
        monkeypatch.setattr(cli, "configure_sanitized_logging", levels.append)
        return levels

    def test_level_from_environment(self, capsys, levels, monkeypatch) -> None:
        monkeypatch.setenv("EXERCISE_SERVICE_LOG_LEVEL", "DEBUG")

        _run(capsys, "health")

        assert levels == ["DEBUG"]

    def test_flag_overrides_environment(self, capsys, levels, monkeypatch) -> None:
        monkeypatch.setenv("EXERCISE_SERVICE_LOG_LEVEL", "DEBUG")

        _run(capsys, "--log-level", "error", "health")

        assert levels == ["ERROR"]

    def test_cli_logger_is_sanitized(self) -> None:
        assert any(isinstance(f, SanitizingFilter) for f in cli.logger.filters)
