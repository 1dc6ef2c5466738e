"""Run the shuttering page workflow end to end.

Standalone mode creates a throwaway tenant and takes it through every stage, tallying which
steps passed. CI mode finds the tenants changed against a base branch and builds,
validates, comments on and screenshots each of them, stopping at the first invalid page.

Stages run as ``python -m shuttering.<stage>`` subprocesses, exactly as CI runs them.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import time
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shuttering.changes import DEFAULT_BASE_BRANCH
from shuttering.commands import (
    CommandError,
    CommandResult,
    ensure_correct_directory,
    is_playwright_installed,
    run_command,
    run_command_with_output,
    stage_command,
    verify_file,
)
from shuttering.config import Settings, load_settings
from shuttering.contracts import extract_json_block, parse_detected_services, schema_errors
from shuttering.jsonio import read_json, write_json
from shuttering.logs import configure_logging
from shuttering.tenants import service_name_problem

logger = logging.getLogger(__name__)

DEFAULT_TEST_SERVICE = "test-service"
PRODUCTION_ENV = {"NODE_ENV": "production"}


@dataclass
class StepTally:
    steps: list[tuple[str, bool]] = field(default_factory=list)

    def record(self, name: str, success: bool) -> bool:
        self.steps.append((name, success))
        return success

    @property
    def passed(self) -> int:
        return sum(1 for _, ok in self.steps if ok)

    @property
    def failed(self) -> int:
        return sum(1 for _, ok in self.steps if not ok)

    @property
    def failed_names(self) -> list[str]:
        return [name for name, ok in self.steps if not ok]


def _banner(text: str) -> None:
    width = max(len(line) for line in text.splitlines()) + 4
    logger.info("%s", "=" * width)
    for line in text.splitlines():
        logger.info("  %s", line)
    logger.info("%s", "=" * width)


def clean_build_dir(build_dir: Path) -> bool:
    if not build_dir.exists():
        return True
    try:
        shutil.rmtree(build_dir)
    except OSError as exc:
        logger.warning("Clean build directory - failed (continuing): %s", exc)
        return False
    return True


def results_match_schema(path: Path, schema_name: str) -> bool:
    try:
        payload = read_json(path)
    except (OSError, ValueError) as exc:
        logger.error("Could not read %s: %s", path, exc)
        return False
    errors = schema_errors(payload, schema_name)
    for error in errors:
        logger.error("%s does not match %s schema: %s", path.name, schema_name, error)
    return not errors


def _echo(result: CommandResult | CommandError) -> None:
    if result.output:
        print(result.output, end="" if result.output.endswith("\n") else "\n")
    if result.stderr:
        logger.info("%s", result.stderr.rstrip())


def _build(service: str, settings: Settings, description: str, *, silent: bool = False) -> None:
    if settings.bundle_command:
        run_command(settings.bundle_command, "Bundle assets", env=PRODUCTION_ENV, silent=silent)
    run_command(
        stage_command("builder", f"--service={service}"),
        description,
        env=PRODUCTION_ENV,
        silent=silent,
    )


def run_standalone(options: argparse.Namespace, settings: Settings) -> int:
    service: str = options.service
    start = time.monotonic()
    tally = StepTally()

    _banner(f"Testing Shuttering Page Workflow\nService: {service}")

    try:
        logger.info("Checking prerequisites...")
        if not ensure_correct_directory(settings.project_root):
            return 1

        has_playwright = is_playwright_installed() if not options.skip_screenshot else False
        if not has_playwright and not options.skip_screenshot:
            logger.warning("Playwright not found. Run: python -m playwright install chromium")
            logger.warning("Skipping screenshot steps...")
        take_screenshot = has_playwright and not options.skip_screenshot

        logger.info("Step 1: Cleaning previous build...")
        tally.record("Clean build directory", clean_build_dir(settings.build_dir))

        logger.info("Step 2: Creating test service...")
        service_folder = settings.tenant_dir(service)
        if service_folder.exists():
            logger.warning("Service folder already exists: %s", service_folder)
            logger.info("Removing existing folder...")
            shutil.rmtree(service_folder)

        run_command(stage_command("scaffold", f"--service={service}"), "Create service content")
        tally.record(
            "Create service content",
            verify_file(settings.content_template(service), "Content template"),
        )

        logger.info("Step 3: Building shuttering page (production)...")
        _build(service, settings, "Build production HTML")
        build_ok = verify_file(settings.html_file, "Built HTML")
        if settings.bundle_command:
            build_ok = verify_file(settings.assets_dir, "Assets directory") and build_ok
        tally.record("Build production HTML", build_ok)

        logger.info("Step 4: Validating HTML...")
        try:
            run_command(stage_command("validate", f"--service={service}"), "Validate HTML")
            tally.record(
                "Validate HTML",
                verify_file(settings.validation_results, "Validation results")
                and results_match_schema(settings.validation_results, "validation_results"),
            )
        except CommandError:
            logger.warning("HTML validation had issues (see above)")
            tally.record("Validate HTML", False)

        logger.info("Step 5: Generating validation comment...")
        try:
            run_command(stage_command("comment"), "Generate validation comment")
            tally.record(
                "Generate validation comment",
                verify_file(settings.validation_comment, "Validation comment"),
            )
        except CommandError:
            logger.warning("Failed to generate validation comment")
            tally.record("Generate validation comment", False)

        if take_screenshot:
            logger.info("Step 6: Generating screenshot...")
            try:
                run_command(
                    stage_command("screenshot", f"--service={service}"), "Generate screenshot"
                )
                shot_ok = verify_file(settings.screenshots_dir / f"{service}.png", "Screenshot")
                results_ok = verify_file(settings.screenshot_results, "Screenshot results")
                tally.record("Generate screenshot", shot_ok and results_ok)
            except CommandError:
                logger.warning("Screenshot generation failed")
                tally.record("Generate screenshot", False)
        else:
            logger.info(
                "Step 6: Skipping screenshot (Playwright not available or --skip-screenshot)"
            )

        if options.open_browser and settings.html_file.exists():
            logger.info("Opening in browser...")
            webbrowser.open(settings.html_file.resolve().as_uri())
            logger.info("Opened in default browser")

        logger.info("Step 7: Verifying output files...")
        expected = [
            (settings.html_file, "Built shuttering page"),
            (settings.validation_results, "Validation results"),
            (settings.validation_comment, "Validation comment"),
        ]
        if take_screenshot:
            expected += [
                (settings.screenshots_dir / f"{service}.png", "Screenshot"),
                (settings.screenshot_results, "Screenshot results"),
            ]
        for path, description in expected:
            verify_file(path, description)

        if not options.skip_cleanup:
            logger.info("Step 8: Cleaning up test files...")
            if service_folder.exists():
                shutil.rmtree(service_folder)
                logger.info("Removed: %s", service_folder)
            clean_build_dir(settings.build_dir)
            tally.record("Cleanup", True)
        else:
            logger.info("Skipping cleanup (--skip-cleanup)")
            logger.info("Service folder: %s", service_folder)
            logger.info("Build output: %s", settings.build_dir)
    except (CommandError, OSError) as exc:
        logger.error("Workflow test failed: %s", exc)
        return 1

    duration = time.monotonic() - start
    total = len(tally.steps)
    _banner(
        "Workflow Test Complete\n"
        f"Duration: {duration:.2f}s\n"
        f"Passed: {tally.passed}/{total}\n"
        f"Failed: {tally.failed}/{total}"
    )

    if tally.failed:
        logger.warning("Failed steps:")
        for name in tally.failed_names:
            logger.error("  - %s", name)
        return 1

    logger.info("All workflow steps completed successfully!")
    return 0


def detect_services(base_branch: str) -> list[str] | None:
    """Run the change detector; None when the detector itself failed."""

    result = run_command_with_output(
        stage_command("changes", f"--base-branch={base_branch}"), "Detect changes"
    )
    if not result.success:
        logger.error("Detection failed")
        _echo(result)
        return None

    _echo(result)
    return parse_detected_services(result.output + "\n" + result.stderr)


def _merge_blocks(blocks: list[dict[str, Any]], *, with_validity: bool) -> dict[str, Any]:
    results = [entry for block in blocks for entry in block.get("results") or []]
    if with_validity:
        return {"allValid": all(r.get("valid") for r in results), "results": results}
    return {"results": results}


def run_ci(options: argparse.Namespace, settings: Settings) -> int:
    start = time.monotonic()
    _banner("Testing CI Workflow: Validate Shuttering Pages")

    if not ensure_correct_directory(settings.project_root):
        return 1

    try:
        logger.info("Step 1: Detecting changed content files...")
        services = detect_services(options.base_branch)
        if services is None:
            return 1
        if not services:
            logger.info("No content.njk files changed - skipping validation")
            return 0

        logger.info("Services to validate: %s", ", ".join(services))

        validation_blocks: list[dict[str, Any]] = []
        for service in services:
            _banner(f"Building service: {service}")
            _build(service, settings, f"Build {service}")

            _banner(f"Validating HTML for: {service}")
            try:
                result = run_command(
                    stage_command("validate", f"--service={service}"),
                    f"Validate {service}",
                    silent=True,
                )
            except CommandError as exc:
                _echo(exc)
                logger.error("HTML validation failed for %s", service)
                return 1
            _echo(result)
            block = extract_json_block(result.output)
            if isinstance(block, dict):
                validation_blocks.append(block)

        if len(validation_blocks) == len(services):
            merged = _merge_blocks(validation_blocks, with_validity=True)
            write_json(settings.validation_results, merged)

        _banner("Generating validation comment")
        run_command(stage_command("comment"), "Generate validation comment", silent=True)
        if settings.validation_comment.exists():
            logger.info("Comment preview:")
            print(settings.validation_comment.read_text(encoding="utf-8"), end="")

        if not options.skip_screenshot:
            _banner("Generating screenshots")
            screenshot_blocks: list[dict[str, Any]] = []
            for service in services:
                try:
                    if len(services) > 1:
                        _build(service, settings, f"Rebuild {service}", silent=True)
                    result = run_command(
                        stage_command("screenshot", f"--service={service}"),
                        f"Screenshot {service}",
                        silent=True,
                    )
                except CommandError as exc:
                    _echo(exc)
                    logger.warning("Screenshot generation failed for %s", service)
                    block = extract_json_block(exc.output)
                else:
                    _echo(result)
                    block = extract_json_block(result.output)
                if isinstance(block, dict):
                    screenshot_blocks.append(block)
            if screenshot_blocks:
                write_json(
                    settings.screenshot_results,
                    _merge_blocks(screenshot_blocks, with_validity=False),
                )
        else:
            logger.info("Skipping screenshot generation (--skip-screenshot)")
    except (CommandError, OSError) as exc:
        logger.error("CI workflow test failed: %s", exc)
        return 1

    _banner(f"ALL TESTS PASSED!\nDuration: {time.monotonic() - start:.2f}s")

    logger.info("Generated files:")
    files = [settings.validation_results, settings.validation_comment]
    if not options.skip_screenshot:
        files += [settings.screenshot_results, settings.screenshots_dir / "*.png"]
    for path in files:
        logger.info("  - %s", path)

    logger.info("You can now review the generated comments and screenshots.")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m shuttering.workflow",
        description="Test the complete shuttering page workflow locally or simulate CI.",
    )
    parser.add_argument(
        "--service",
        default=DEFAULT_TEST_SERVICE,
        help=f"Service name to test with (default: {DEFAULT_TEST_SERVICE})",
    )
    parser.add_argument(
        "--ci",
        action="store_true",
        help="Run in CI mode - detect changed files from git",
    )
    parser.add_argument(
        "--base-branch",
        default=DEFAULT_BASE_BRANCH,
        help=f"Base branch to compare against, CI mode only (default: {DEFAULT_BASE_BRANCH})",
    )
    parser.add_argument(
        "--skip-cleanup", action="store_true", help="Skip cleanup of test files at the end"
    )
    parser.add_argument(
        "--skip-screenshot",
        action="store_true",
        help="Skip screenshot generation (requires Playwright)",
    )
    parser.add_argument(
        "--open-browser", action="store_true", help="Open the generated HTML in a browser"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    if args.ci:
        return run_ci(args, settings)

    problem = service_name_problem(args.service)
    if problem is not None:
        logger.error("Error: %s", problem)
        return 1
    return run_standalone(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
