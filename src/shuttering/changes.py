"""Detect tenants whose content template was added or modified against a base ref.

Ran from CI on pull requests. Prints ``{"services": [...], "count": N}`` on stdout when
something changed; logs a warning and exits 0 without JSON when nothing did.
"""

from __future__ import annotations

import argparse
import logging
import os
import re
import subprocess
from pathlib import Path

from shuttering.config import load_settings
from shuttering.contracts import SERVICES_TO_BUILD_PREFIX
from shuttering.jsonio import dumps_line
from shuttering.logs import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_BASE_BRANCH = "origin/main"
CONTENT_TEMPLATE = "content.njk"


def _path_pattern(tenants_dir_name: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?:^|/){re.escape(tenants_dir_name)}/([a-z0-9-]+)/{re.escape(CONTENT_TEMPLATE)}$"
    )


def changed_content_files(base_branch: str, *, cwd: Path, tenants_dir: Path) -> list[str]:
    """Added/modified tenant content templates between ``base_branch`` and HEAD.

    Raises ``subprocess.CalledProcessError`` when git fails.
    """

    pathspec = os.path.relpath(tenants_dir, cwd).replace(os.sep, "/")
    cmd = [
        "git",
        "diff",
        "--name-only",
        "--diff-filter=AM",
        f"{base_branch}...HEAD",
        "--",
        f"{pathspec}/*/{CONTENT_TEMPLATE}",
    ]
    completed = subprocess.run(cmd, cwd=str(cwd), check=True, capture_output=True, text=True)
    return [line.strip() for line in completed.stdout.splitlines() if line.strip()]


def services_from_paths(paths: list[str], *, tenants_dir_name: str = "tenants") -> list[str]:
    """Extract tenant ids from changed paths; paths of any other shape are dropped."""

    pattern = _path_pattern(tenants_dir_name)
    services: list[str] = []
    for path in paths:
        match = pattern.search(path.replace("\\", "/"))
        if match and match.group(1) not in services:
            services.append(match.group(1))
    return services


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m shuttering.changes",
        description="List tenants whose content.njk was added or modified against a base ref.",
    )
    parser.add_argument(
        "--base-branch",
        default=DEFAULT_BASE_BRANCH,
        help=f"Base reference to diff against (default: {DEFAULT_BASE_BRANCH})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    logger.info(
        "Detecting changed/new %s files in %s against %s...",
        CONTENT_TEMPLATE,
        settings.tenants_dir,
        args.base_branch,
    )

    try:
        changed_files = changed_content_files(
            args.base_branch, cwd=settings.project_root, tenants_dir=settings.tenants_dir
        )
    except (subprocess.CalledProcessError, OSError) as exc:
        detail = getattr(exc, "stderr", None) or str(exc)
        logger.error("Error detecting changes: %s", str(detail).strip())
        return 1

    if not changed_files:
        logger.warning("No %s files changed or added", CONTENT_TEMPLATE)
        return 0

    logger.info("Changed/new files:\n%s", "\n".join(changed_files))

    services = services_from_paths(changed_files, tenants_dir_name=settings.tenants_dir.name)
    if not services:
        logger.warning("No valid service names extracted")
        return 0

    logger.info("%s %s", SERVICES_TO_BUILD_PREFIX, ", ".join(services))
    print(dumps_line({"services": services, "count": len(services)}), flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
