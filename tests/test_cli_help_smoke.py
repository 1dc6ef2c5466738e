from __future__ import annotations

import importlib

import pytest

STAGES = [
    "scaffold",
    "changes",
    "builder",
    "validate",
    "comment",
    "screenshot",
    "workflow",
    "interactive",
]


@pytest.mark.parametrize("stage", STAGES)
def test_stage_help_works(stage: str, capsys) -> None:
    mod = importlib.import_module(f"shuttering.{stage}")

    with pytest.raises(SystemExit) as excinfo:
        mod.main(["--help"])
    assert excinfo.value.code == 0
    assert f"python -m shuttering.{stage}" in capsys.readouterr().out
