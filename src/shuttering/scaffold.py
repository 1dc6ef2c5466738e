"""Create a tenant content directory from the common template.

Copies every file under the common template directory into ``<tenants>/<service>/``.
Existing files at the destination are overwritten; extra files are left alone.
"""

from __future__ import annotations

import argparse
import logging
import shutil
from pathlib import Path

from shuttering.config import load_settings
from shuttering.logs import configure_logging
from shuttering.tenants import InvalidServiceName, require_service_name

logger = logging.getLogger(__name__)


def copy_dir(source: Path, destination: Path) -> list[Path]:
    """Recursively copy ``source`` into ``destination``; return the copied file paths."""

    if not source.is_dir():
        raise FileNotFoundError(f"Template directory not found: {source}")

    destination.mkdir(parents=True, exist_ok=True)

    copied: list[Path] = []
    for entry in sorted(source.iterdir(), key=lambda p: p.name):
        target = destination / entry.name
        if entry.is_dir():
            copied.extend(copy_dir(entry, target))
        else:
            shutil.copyfile(entry, target)
            logger.info("Copied: %s -> %s", entry, target)
            copied.append(target)
    return copied


def create_content(service: str, *, source: Path, tenants_dir: Path) -> Path:
    service = require_service_name(service)
    destination = tenants_dir / service
    logger.info("Copying from %s to %s...", source, destination)
    copy_dir(source, destination)
    logger.info("Copy complete!")
    return destination


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m shuttering.scaffold",
        description="Copy the common content template into a new tenant directory.",
    )
    parser.add_argument("--service", default=None, help="Tenant (service) name")
    parser.add_argument(
        "--source",
        type=Path,
        default=None,
        help="Template directory to copy (default: the bundled common template)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    if not args.service:
        logger.error("Error: Please provide a service name")
        logger.info("Usage: python -m shuttering.scaffold --service=<your-service-name>")
        return 1

    source = args.source or settings.common_template_dir
    try:
        create_content(args.service, source=source, tenants_dir=settings.tenants_dir)
    except (InvalidServiceName, OSError) as exc:
        logger.error("Error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
