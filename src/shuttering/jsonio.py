from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def read_json(path: str | Path) -> Any:
    """Read JSON from disk (UTF-8) and parse."""

    p = Path(path)
    return json.loads(p.read_text(encoding="utf-8"))


def read_json_object(path: str | Path) -> dict[str, Any]:
    data = read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"expected JSON object in {path}")
    return data


def write_json(
    path: str | Path,
    data: Any,
    *,
    make_parents: bool = True,
    indent: int = 2,
) -> Path:
    """Write JSON with stable formatting (UTF-8, LF newlines, trailing newline).

    Keys keep their insertion order: result files list entries in request order and
    readers compare them field by field.
    """

    p = Path(path)
    if make_parents:
        p.parent.mkdir(parents=True, exist_ok=True)

    p.write_text(
        json.dumps(data, indent=indent, ensure_ascii=False) + "\n",
        encoding="utf-8",
        newline="\n",
    )
    return p


def dumps_line(data: Any) -> str:
    """Serialize to a single compact JSON line (no spaces after separators)."""

    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def write_text(path: str | Path, content: str) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if not content.endswith("\n"):
        content += "\n"
    p.write_text(content, encoding="utf-8", newline="\n")
    return p
