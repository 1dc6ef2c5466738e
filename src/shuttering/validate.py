"""Validate built HTML for one or more tenants.

Writes ``validation-results.json`` to the build directory for CI to consume and prints the
same object between the JSON output markers. Exits 1 when any tenant is invalid.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from shuttering.config import load_settings
from shuttering.contracts import emit_json_block
from shuttering.htmllint import SEVERITY_ERROR, HtmlLinter, LintConfig
from shuttering.jsonio import write_json
from shuttering.logs import configure_logging
from shuttering.tenants import InvalidServiceName, require_service_names

logger = logging.getLogger(__name__)

HTML_NOT_GENERATED = "HTML file not generated"

# Rules switched off for compatibility with the design system's own markup.
DESIGN_SYSTEM_LINT_CONFIG = LintConfig(
    extends=("recommended",),
    rules={
        "require-sri": "off",
        "no-inline-style": "off",
        "attribute-boolean-style": "off",
        "no-trailing-whitespace": "off",
    },
)


def validate_service(service: str, *, html_file: Path, linter: HtmlLinter) -> dict[str, Any]:
    logger.info("Validating: %s", service)

    if not html_file.exists():
        logger.error("✗ HTML file not found: %s", html_file)
        return {"service": service, "valid": False, "error": HTML_NOT_GENERATED, "errors": []}

    try:
        report = linter.validate_string(html_file.read_text(encoding="utf-8"))
    except Exception as exc:
        logger.error("✗ Error validating %s: %s", service, exc)
        return {"service": service, "valid": False, "error": str(exc), "errors": []}

    if report.valid:
        logger.info("✓ HTML validation passed for %s", service)
        return {"service": service, "valid": True, "errors": []}

    error_count = report.error_count
    logger.error(
        "✗ HTML validation failed for %s (%d error%s)",
        service,
        error_count,
        "s" if error_count > 1 else "",
    )

    errors = [
        {
            "line": m.line,
            "column": m.column,
            "message": m.message,
            "ruleId": m.rule_id,
            "severity": m.severity,
        }
        for m in report.messages
        if m.severity == SEVERITY_ERROR
    ]
    for err in errors:
        logger.error(
            "  Line %s:%s - %s (%s)", err["line"], err["column"], err["message"], err["ruleId"]
        )

    return {"service": service, "valid": False, "errorCount": error_count, "errors": errors}


def validate_services(
    services: list[str],
    *,
    html_file: Path,
    linter: HtmlLinter | None = None,
) -> dict[str, Any]:
    """Validate each service in order; ``allValid`` is true iff every entry is valid."""

    linter = linter or HtmlLinter(DESIGN_SYSTEM_LINT_CONFIG)
    results = [validate_service(s, html_file=html_file, linter=linter) for s in services]
    return {"allValid": all(r["valid"] for r in results), "results": results}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m shuttering.validate",
        description="Validate the built shuttering page for one or more services.",
    )
    parser.add_argument(
        "--service",
        action="append",
        default=[],
        help="Service name (repeatable)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    if not args.service:
        logger.error("Error: Please provide at least one service name")
        logger.info("Usage: python -m shuttering.validate --service=service1 --service=service2")
        return 1

    try:
        services = require_service_names(args.service)
    except InvalidServiceName as exc:
        logger.error("Error: %s", exc)
        return 1

    logger.info("Validating HTML for %d service(s)...", len(services))

    try:
        summary = validate_services(services, html_file=settings.html_file)
    except Exception as exc:
        logger.error("Fatal error: %s", exc)
        return 1

    results = summary["results"]
    passed = sum(1 for r in results if r["valid"])
    logger.info("=== Validation Summary ===")
    logger.info(
        "Total services: %d, Passed: %d, Failed: %d", len(results), passed, len(results) - passed
    )

    output_file = write_json(settings.validation_results, summary)
    logger.info("Results written to: %s", output_file)

    emit_json_block(summary)

    if not summary["allValid"]:
        return 1

    logger.info("All HTML files are valid!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
