"""Build the shuttering page for one tenant into the build directory.

Renders every view under ``templates/views/`` with Jinja2. Setting ``NODE_ENV=production``
minifies the HTML output; the bundler (run separately) minifies the assets and writes the
asset manifest this module reads. The design-system version used is exposed to templates
and ends up in the ``govuk-frontend-version`` meta tag.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import minify_html
from jinja2 import Environment, FileSystemLoader, TemplateError, Undefined

from shuttering.config import DESIGN_SYSTEM_PACKAGE, Settings, is_production, load_settings
from shuttering.jsonio import read_json_object, write_text
from shuttering.logs import configure_logging
from shuttering.tenants import InvalidServiceName, require_service_name

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "default-content"
PAGE_TITLE = "Service Unavailable"
VIEWS_PREFIX = "templates/views"


class BuildError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class BuildResult:
    service: str
    minified: bool
    outputs: tuple[Path, ...]


def design_system_version(package_json: Path) -> str:
    """Declared version of the design-system package in ``package.json``."""

    try:
        package = read_json_object(package_json)
    except FileNotFoundError as exc:
        raise BuildError(f"Package manifest not found: {package_json}") from exc

    version = (package.get("dependencies") or {}).get(DESIGN_SYSTEM_PACKAGE)
    if not version:
        raise BuildError(f"{DESIGN_SYSTEM_PACKAGE} is not a dependency in {package_json}")

    logger.info("%s version: %s", DESIGN_SYSTEM_PACKAGE, version)
    return str(version)


def load_assets_manifest(path: Path) -> dict[str, str]:
    """Asset name -> hashed path. A missing or unreadable manifest yields ``{}``."""

    try:
        manifest = read_json_object(path)
    except (OSError, ValueError) as exc:
        logger.error("Could not read assets manifest %s: %s", path, exc)
        return {}
    return {str(k): str(v) for k, v in manifest.items()}


def asset_path_resolver(manifest: dict[str, str]) -> Callable[[str], Any]:
    def get_asset_path(asset: str) -> Any:
        if asset in manifest:
            return manifest[asset]
        return Undefined(hint=f"asset {asset!r} is not in the assets manifest", name=asset)

    return get_asset_path


def create_environment(settings: Settings) -> Environment:
    loader = FileSystemLoader(
        [
            str(settings.design_system_dir),
            str(settings.template_root),
            str(settings.tenants_dir),
        ]
    )
    return Environment(loader=loader, autoescape=True)


def minify(html: str) -> str:
    return minify_html.minify(
        html,
        minify_js=True,
        minify_css=True,
        keep_comments=False,
        keep_closing_tags=True,
        keep_html_and_head_opening_tags=True,
    )


def view_names(settings: Settings) -> list[str]:
    return sorted(p.name for p in settings.views_dir.iterdir() if p.is_file())


def build_html(
    service: str,
    *,
    settings: Settings,
    production: bool | None = None,
) -> BuildResult:
    service = require_service_name(service)
    do_minify = is_production() if production is None else production

    if not settings.content_template(service).exists():
        logger.warning(
            "No content template for %s at %s, using the common template",
            service,
            settings.content_template(service),
        )

    env = create_environment(settings)
    manifest = load_assets_manifest(settings.assets_manifest)
    env.globals.update(
        {
            "page_title": PAGE_TITLE,
            "service_name": PAGE_TITLE,
            "service": service,
            "govuk_frontend_version": design_system_version(settings.package_json),
            "govuk_rebrand": True,
            "get_asset_path": asset_path_resolver(manifest),
        }
    )

    outputs: list[Path] = []
    for name in view_names(settings):
        html = env.get_template(f"{VIEWS_PREFIX}/{name}").render()
        output = minify(html) if do_minify else html
        out_path = settings.build_dir / (Path(name).stem + ".html")
        write_text(out_path, output)
        logger.info("Wrote %s", out_path)
        outputs.append(out_path)

    return BuildResult(service=service, minified=do_minify, outputs=tuple(outputs))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m shuttering.builder",
        description=(
            "Render the shuttering page for a tenant into the build directory. "
            "NODE_ENV=production minifies the output."
        ),
    )
    parser.add_argument(
        "--service",
        default=DEFAULT_SERVICE,
        help=f"Tenant (service) name (default: {DEFAULT_SERVICE})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    logger.info("Building html and assets for service: %s...", args.service)
    try:
        build_html(args.service, settings=settings)
    except (BuildError, InvalidServiceName, TemplateError, OSError, ValueError) as exc:
        logger.error("Build failed: %s", exc)
        return 1

    logger.info("Build complete!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
