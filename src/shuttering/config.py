from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_BUILD_DIR = ".dist"
DEFAULT_TENANTS_DIR = "tenants"
DEFAULT_DESIGN_SYSTEM_DIR = "node_modules/govuk-frontend/dist"
DESIGN_SYSTEM_PACKAGE = "govuk-frontend"


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _resolve(root: Path, configured: str) -> Path:
    configured_path = Path(configured)
    if configured_path.is_absolute():
        return configured_path
    return (root / configured_path).resolve()


def build_mode() -> str:
    """Return the build mode shared with the asset bundler (``NODE_ENV``)."""

    return (_env("NODE_ENV", "development") or "development").strip().lower()


def is_production() -> bool:
    return build_mode() == "production"


@dataclass(frozen=True, slots=True)
class Settings:
    project_root: Path
    tenants_dir: Path
    build_dir: Path
    design_system_dir: Path
    bundle_command: str | None = None

    @property
    def package_json(self) -> Path:
        return self.project_root / "package.json"

    @property
    def template_root(self) -> Path:
        # Templates are addressed as "templates/<kind>/<file>" relative to the package.
        return PACKAGE_DIR

    @property
    def common_template_dir(self) -> Path:
        return PACKAGE_DIR / "templates" / "common"

    @property
    def views_dir(self) -> Path:
        return PACKAGE_DIR / "templates" / "views"

    @property
    def html_file(self) -> Path:
        return self.build_dir / "index.html"

    @property
    def assets_dir(self) -> Path:
        return self.build_dir / "assets"

    @property
    def assets_manifest(self) -> Path:
        return self.build_dir / "assets-manifest.json"

    @property
    def validation_results(self) -> Path:
        return self.build_dir / "validation-results.json"

    @property
    def validation_comment(self) -> Path:
        return self.build_dir / "validation-comment.md"

    @property
    def screenshot_results(self) -> Path:
        return self.build_dir / "screenshot-results.json"

    @property
    def screenshots_dir(self) -> Path:
        return self.build_dir / "screenshots"

    def tenant_dir(self, service: str) -> Path:
        return self.tenants_dir / service

    def content_template(self, service: str) -> Path:
        return self.tenant_dir(service) / "content.njk"


def load_settings(project_root: str | Path | None = None) -> Settings:
    """Read settings from the environment, relative to the project root (default: cwd)."""

    root = Path(project_root).resolve() if project_root is not None else Path.cwd().resolve()

    return Settings(
        project_root=root,
        tenants_dir=_resolve(root, _env("SHUTTERING_TENANTS_DIR", DEFAULT_TENANTS_DIR) or ""),
        build_dir=_resolve(root, _env("SHUTTERING_BUILD_DIR", DEFAULT_BUILD_DIR) or ""),
        design_system_dir=_resolve(
            root, _env("SHUTTERING_DESIGN_SYSTEM_DIR", DEFAULT_DESIGN_SYSTEM_DIR) or ""
        ),
        bundle_command=_env("SHUTTERING_BUNDLE_COMMAND"),
    )
