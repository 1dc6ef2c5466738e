from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from shuttering import commands
from shuttering.builder import design_system_version


def test_run_command_merges_env_and_uses_shell_for_strings(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def _fake_run(cmd, **kwargs):  # noqa: ANN001
        captured["cmd"] = cmd
        captured.update(kwargs)
        return subprocess.CompletedProcess(cmd, 0, stdout="ok\n", stderr="")

    monkeypatch.setenv("KEEP_ME", "1")
    monkeypatch.setattr(commands.subprocess, "run", _fake_run)

    result = commands.run_command("npx webpack", "Bundle", silent=True, env={"NODE_ENV": "x"})

    assert result == commands.CommandResult(True, "ok\n", "", 0)
    assert captured["shell"] is True
    assert captured["capture_output"] is True
    assert captured["check"] is False
    assert "cwd" not in captured
    env = captured["env"]
    assert isinstance(env, dict) and env["NODE_ENV"] == "x" and env["KEEP_ME"] == "1"


def test_run_command_failure(monkeypatch) -> None:
    monkeypatch.setattr(
        commands.subprocess,
        "run",
        lambda cmd, **_kw: subprocess.CompletedProcess(cmd, 3, stdout="out", stderr="err"),
    )

    with pytest.raises(commands.CommandError) as excinfo:
        commands.run_command(["false"], "Step")
    assert (excinfo.value.returncode, excinfo.value.output, excinfo.value.stderr) == (
        3,
        "out",
        "err",
    )

    result = commands.run_command(["false"], "Step", allow_failure=True)
    assert result.success is False and result.returncode == 3


def test_format_bytes() -> None:
    assert commands.format_bytes(0) == "0 Bytes"
    assert commands.format_bytes(512) == "512 Bytes"
    assert commands.format_bytes(2048) == "2 KB"


def test_project_manifest_only_declares_the_design_system() -> None:
    package_json = Path(__file__).resolve().parents[1] / "package.json"
    manifest = json.loads(package_json.read_text(encoding="utf-8"))

    assert "scripts" not in manifest
    assert design_system_version(package_json) == manifest["dependencies"]["govuk-frontend"]
