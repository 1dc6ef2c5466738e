from __future__ import annotations

import logging
import math
import os
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    def __init__(self, description: str, returncode: int, output: str = "", stderr: str = ""):
        super().__init__(f"{description} failed with exit code {returncode}")
        self.description = description
        self.returncode = returncode
        self.output = output
        self.stderr = stderr


@dataclass(frozen=True, slots=True)
class CommandResult:
    success: bool
    output: str = ""
    stderr: str = ""
    returncode: int = 0


def stage_command(module: str, *args: str) -> list[str]:
    """Command line for running a pipeline stage in a fresh interpreter."""

    return [sys.executable, "-m", f"shuttering.{module}", *args]


def _merged_env(env: Mapping[str, str] | None) -> dict[str, str] | None:
    if env is None:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged


def _display(cmd: Sequence[str] | str) -> str:
    return cmd if isinstance(cmd, str) else " ".join(cmd)


def run_command(
    cmd: Sequence[str] | str,
    description: str,
    *,
    allow_failure: bool = False,
    silent: bool = False,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command; raise ``CommandError`` on failure unless ``allow_failure``.

    A string command runs through the shell. Output streams to the console unless
    ``silent``, in which case it is captured.
    """

    logger.info("%s...", description)
    logger.info("$ %s", _display(cmd))

    completed = subprocess.run(
        cmd,
        shell=isinstance(cmd, str),
        env=_merged_env(env),
        capture_output=silent,
        text=True,
        check=False,
    )
    output = completed.stdout or ""
    stderr = completed.stderr or ""

    if completed.returncode == 0:
        logger.info("%s - completed", description)
        return CommandResult(True, output, stderr, 0)

    if allow_failure:
        logger.warning("%s - failed (continuing)", description)
        return CommandResult(False, output, stderr, completed.returncode)

    logger.error("%s - failed", description)
    raise CommandError(description, completed.returncode, output, stderr)


def run_command_with_output(
    cmd: Sequence[str] | str,
    description: str,
    *,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command capturing stdout and stderr; never raises on a non-zero exit."""

    logger.info("%s...", description)
    logger.info("$ %s", _display(cmd))

    try:
        completed = subprocess.run(
            cmd,
            shell=isinstance(cmd, str),
            env=_merged_env(env),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        return CommandResult(False, "", str(exc), 127)

    result = CommandResult(
        completed.returncode == 0,
        completed.stdout or "",
        completed.stderr or "",
        completed.returncode,
    )
    if result.success:
        logger.info("%s - completed", description)
    return result


def format_bytes(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / (1024**index), 2)
    return f"{value:g} {units[index]}"


def _path_size(path: Path) -> int:
    if path.is_dir():
        return sum(p.stat().st_size for p in path.rglob("*") if p.is_file())
    return path.stat().st_size


def verify_file(path: str | Path, description: str) -> bool:
    """Log whether ``path`` exists (with its size) and return the outcome."""

    absolute = Path(path).resolve()
    if absolute.exists():
        logger.info("✓ %s: %s (%s)", description, absolute, format_bytes(_path_size(absolute)))
        return True
    logger.error("✗ %s: %s NOT FOUND", description, absolute)
    return False


def is_playwright_installed() -> bool:
    try:
        completed = subprocess.run(
            [sys.executable, "-m", "playwright", "--version"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return False
    return completed.returncode == 0


def ensure_correct_directory(project_root: Path) -> bool:
    if not (project_root / "package.json").exists():
        logger.error("Must be run from the shuttering pages project directory (package.json)")
        return False
    return True
