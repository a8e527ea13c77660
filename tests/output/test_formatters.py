"""Tests for the format_result dispatcher and OutputSettings."""

import json

from empower_e2e.output.formatters import OutputSettings, format_result
from empower_e2e.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(ok=False, op=op, error=ServiceError(code="ERR", message=msg))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResult:
    def test_json_mode(self) -> None:
        settings = OutputSettings(json_output=True)
        output = format_result(_ok("list_types", count=3), settings=settings)
        data = json.loads(output)
        assert data["ok"] is True
        assert data["data"]["count"] == 3

    def test_json_mode_error(self) -> None:
        settings = OutputSettings(json_output=True)
        output = format_result(_err("decode_tx", "Bad"), settings=settings)
        data = json.loads(output)
        assert data["ok"] is False
        assert data["error"]["message"] == "Bad"

    def test_json_beats_quiet(self) -> None:
        settings = OutputSettings(json_output=True, quiet=True)
        assert json.loads(format_result(_ok(), settings=settings))["op"] == "test"

    def test_quiet_mode(self) -> None:
        assert format_result(_ok("compose_genesis"), settings=OutputSettings(quiet=True)) == (
            "OK: compose_genesis"
        )

    def test_default_is_rich(self) -> None:
        output = format_result(_ok("custom_op", key="value"))
        assert "OK" in output
        assert "key: value" in output
