"""Compose the pull request comment from ``validation-results.json``.

Writes ``validation-comment.md`` to the build directory for CI to post, and prints a
preview. Exits 1 when the results report any invalid tenant.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from shuttering.config import load_settings
from shuttering.jsonio import read_json_object, write_text
from shuttering.logs import configure_logging

logger = logging.getLogger(__name__)

PASS_ICON = "✅"
FAIL_ICON = "❌"
MAX_LISTED_ERRORS = 10

PREVIEW_START = "=== COMMENT PREVIEW ==="
PREVIEW_END = "=== END PREVIEW ==="


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


def _service_section(result: dict[str, Any]) -> str:
    icon = PASS_ICON if result.get("valid") else FAIL_ICON
    section = f"### {icon} {result.get('service')}\n\n"

    if result.get("valid"):
        return section + "HTML validation passed - no errors found\n\n"

    if result.get("error"):
        return section + f"**Error:** {result['error']}\n\n"

    errors = list(result.get("errors") or [])
    error_count = int(result.get("errorCount", len(errors)))
    section += f"**{error_count} validation error{_plural(error_count)} found:**\n\n"

    for err in errors[:MAX_LISTED_ERRORS]:
        section += (
            f"- Line {err.get('line')}:{err.get('column')} - {err.get('message')} "
            f"(`{err.get('ruleId')}`)\n"
        )

    if len(errors) > MAX_LISTED_ERRORS:
        section += f"\n... +{len(errors) - MAX_LISTED_ERRORS} more errors\n"

    return section + "\n"


def compose_comment(validation_results: dict[str, Any]) -> str:
    all_valid = bool(validation_results.get("allValid"))
    icon = PASS_ICON if all_valid else FAIL_ICON
    status = (
        "All shuttering pages passed validation!"
        if all_valid
        else "Some shuttering pages have validation errors"
    )
    closing = (
        "All pages are ready for preview below."
        if all_valid
        else "Please fix validation errors before merging."
    )

    sections = "".join(_service_section(r) for r in validation_results.get("results") or [])

    return (
        f"## {icon} Shuttering Page Validation\n\n"
        f"**Status:** {status}\n\n"
        f"{sections}\n"
        f"{closing}\n"
    )


def write_comment(results_path: Path, comment_path: Path) -> tuple[str, bool]:
    """Read results, write the Markdown comment; return (markdown, all_valid)."""

    validation_results = read_json_object(results_path)
    markdown = compose_comment(validation_results)
    write_text(comment_path, markdown)
    return markdown, bool(validation_results.get("allValid"))


def _build_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog="python -m shuttering.comment",
        description="Turn validation-results.json into a Markdown pull request comment.",
    )


def main(argv: list[str] | None = None) -> int:
    _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    results_path = settings.validation_results
    if not results_path.exists():
        logger.error("Error: validation-results.json not found at: %s", results_path)
        logger.warning("Run validation first: python -m shuttering.validate --service=<service>")
        return 1

    try:
        markdown, all_valid = write_comment(results_path, settings.validation_comment)
    except (OSError, ValueError) as exc:
        logger.error("Error reading validation results: %s", exc)
        return 1

    logger.info("Comment markdown written to: %s", settings.validation_comment)

    print(PREVIEW_START)
    print(markdown, end="")
    print(PREVIEW_END, flush=True)

    return 0 if all_valid else 1


if __name__ == "__main__":
    raise SystemExit(main())
