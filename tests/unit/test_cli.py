"""Unit tests for the ``python -m zuultail`` entry-point."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from zuultail import __main__ as cli
from zuultail.client.builds import ZuulClient
from zuultail.core.exceptions import BootstrapError
from zuultail.core.models import decode_build
from zuultail.core.settings import Settings

_API = "https://zuul.example.com/api/"


def _payload(uuid: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "uuid": uuid,
        "job_name": "hlint",
        "result": "SUCCESS",
        "start_time": "2021-10-13T12:57:20",
        "end_time": "2021-10-13T12:58:42",
        "duration": 82.0,
        "voting": True,
        "log_url": f"https://logs.example.com/{uuid}/",
        "artifacts": [],
        "project": "org/project",
        "branch": "main",
        "pipeline": "gate",
        "change": 1,
        "patchset": "1",
        "ref": "refs/changes/01/1/1",
        "event_id": "event",
    }
    payload.update(overrides)
    return payload


class TestFormatBuild:
    def test_plain_line(self) -> None:
        build = decode_build(_payload("u1"))
        assert cli.format_build(build, as_json=False) == (
            "https://logs.example.com/u1/ u1 org/project hlint"
        )

    def test_plain_line_without_logs(self) -> None:
        build = decode_build(_payload("u1", log_url=None))
        assert cli.format_build(build, as_json=False).startswith("N/A u1 ")

    def test_json_line_is_wire_form(self) -> None:
        build = decode_build(_payload("u1"))
        data = json.loads(cli.format_build(build, as_json=True))
        assert data["ref"] == "refs/changes/01/1/1"
        assert data["duration"] == 82
        assert data["start_time"] == "2021-10-13T12:57:20"


class TestMain:
    def test_missing_url_exits_with_error(self, clean_env: None) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1

    def test_invalid_url_exits_with_error(self, clean_env: None) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--url", "not a url", "--once"])
        assert exc_info.value.code == 1

    def test_cli_flags_override_environment(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ZUUL_API_URL", "https://env.example.com")
        run = AsyncMock()

        with patch.object(cli, "run", run):
            cli.main(["--url", _API, "--since", "abc", "--poll-interval", "3", "--json"])

        settings: Settings = run.call_args.args[0]
        assert settings.api_url == _API
        assert settings.since == "abc"
        assert settings.poll_interval == pytest.approx(3.0)
        assert run.call_args.kwargs == {"once": False, "as_json": True}

    def test_bootstrap_failure_exits_with_error(self, clean_env: None) -> None:
        with (
            patch.object(cli, "run", AsyncMock(side_effect=BootstrapError("empty"))),
            pytest.raises(SystemExit) as exc_info,
        ):
            cli.main(["--url", _API])
        assert exc_info.value.code == 1


class TestRun:
    async def test_once_prints_latest_page(
        self, clean_env: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        response = MagicMock()
        response.json.return_value = [_payload("u1"), {"uuid": "bad"}, _payload("u2")]
        http = AsyncMock()
        http.get.return_value = response
        settings = Settings(api_url=_API)
        client = ZuulClient(_API, http_client=http)

        with patch.object(ZuulClient, "from_settings", return_value=client):
            await cli.run(settings, once=True, as_json=False)

        lines = capsys.readouterr().out.splitlines()
        assert [line.split()[1] for line in lines] == ["u1", "u2"]
        assert http.get.call_args.kwargs["params"]["limit"] == 20
