from __future__ import annotations

import json
from pathlib import Path

import pytest

DESIGN_SYSTEM_VERSION = "5.10.2"

_ENV_VARS = (
    "NODE_ENV",
    "LOG_LEVEL",
    "SHUTTERING_TENANTS_DIR",
    "SHUTTERING_BUILD_DIR",
    "SHUTTERING_DESIGN_SYSTEM_DIR",
    "SHUTTERING_BUNDLE_COMMAND",
)


def make_project(root: Path, *, version: str = DESIGN_SYSTEM_VERSION) -> Path:
    """Lay out a minimal project root: package.json plus an empty tenants directory."""

    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(
        json.dumps({"name": "fixture", "dependencies": {"govuk-frontend": version}}) + "\n",
        encoding="utf-8",
    )
    (root / "tenants").mkdir(exist_ok=True)
    return root


def use_project(monkeypatch: pytest.MonkeyPatch, root: Path) -> Path:
    """Make ``root`` the working project for settings loaded during the test."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    make_project(root)
    monkeypatch.chdir(root)
    return root


def write_html(path: Path, body: str, *, title: str = "Service Unavailable") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "\n".join(
            [
                "<!DOCTYPE html>",
                '<html lang="en">',
                "<head>",
                '<meta charset="utf-8">',
                f"<title>{title}</title>",
                "</head>",
                "<body>",
                body,
                "</body>",
                "</html>",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return path
