"""Capture full-page screenshots of the built shuttering page.

One Chromium instance is launched for the whole run and shared by every service; each
service gets its own page. Per-service failures are recorded and do not stop the others.
The browser is closed once, whatever happened to the individual services.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from playwright.async_api import async_playwright

from shuttering.config import load_settings
from shuttering.contracts import emit_json_block
from shuttering.jsonio import write_json
from shuttering.logs import configure_logging
from shuttering.tenants import InvalidServiceName, require_service_names

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 720}
HTML_NOT_FOUND = "HTML file not found"


@asynccontextmanager
async def launched_browser() -> AsyncIterator[Any]:
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch()
        try:
            yield browser
        finally:
            await browser.close()


async def capture_service(
    browser: Any,
    service: str,
    *,
    html_file: Path,
    output_dir: Path,
) -> dict[str, Any]:
    logger.info("Generating screenshot for: %s", service)

    if not html_file.exists():
        logger.error("✗ HTML file not found: %s", html_file)
        return {"service": service, "success": False, "error": HTML_NOT_FOUND, "path": None}

    screenshot_file = output_dir / f"{service}.png"
    try:
        page = await browser.new_page(viewport=VIEWPORT)
        try:
            await page.goto(html_file.resolve().as_uri(), wait_until="networkidle")
            await page.screenshot(path=str(screenshot_file), full_page=True)
        finally:
            await page.close()
    except Exception as exc:
        logger.error("✗ Error generating screenshot for %s: %s", service, exc)
        return {"service": service, "success": False, "error": str(exc), "path": None}

    logger.info("✓ Screenshot saved: %s", screenshot_file)
    return {"service": service, "success": True, "path": str(screenshot_file)}


async def generate_screenshots(
    services: list[str],
    *,
    html_file: Path,
    output_dir: Path,
) -> list[dict[str, Any]]:
    """Screenshot each service in order; one entry per requested service.

    Raises when the browser itself cannot be launched.
    """

    output_dir.mkdir(parents=True, exist_ok=True)
    results: list[dict[str, Any]] = []
    async with launched_browser() as browser:
        for service in services:
            results.append(
                await capture_service(
                    browser, service, html_file=html_file, output_dir=output_dir
                )
            )
    return results


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m shuttering.screenshot",
        description="Generate full-page screenshots of the built shuttering page.",
    )
    parser.add_argument(
        "--service",
        action="append",
        default=[],
        help="Service name (repeatable)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Screenshot directory (default: <build dir>/screenshots)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    if not args.service:
        logger.error("Error: Please provide at least one service name")
        logger.info(
            "Usage: python -m shuttering.screenshot --service=service1 --service=service2 "
            "[--output=./screenshots]"
        )
        return 1

    try:
        services = require_service_names(args.service)
    except InvalidServiceName as exc:
        logger.error("Error: %s", exc)
        return 1

    output_dir = args.output.resolve() if args.output else settings.screenshots_dir
    logger.info("Generating screenshots for %d service(s)...", len(services))

    try:
        results = asyncio.run(
            generate_screenshots(services, html_file=settings.html_file, output_dir=output_dir)
        )
    except Exception as exc:
        logger.error("Error launching browser: %s", exc)
        return 1

    succeeded = sum(1 for r in results if r["success"])
    logger.info("=== Screenshot Generation Summary ===")
    logger.info(
        "Total services: %d, Success: %d, Failed: %d",
        len(results),
        succeeded,
        len(results) - succeeded,
    )
    logger.info("Screenshots saved to: %s", output_dir)

    payload = {"results": results}
    output_file = write_json(settings.screenshot_results, payload)
    logger.info("Results written to: %s", output_file)

    emit_json_block(payload)

    if succeeded != len(results):
        return 1

    logger.info("All screenshots generated successfully!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
