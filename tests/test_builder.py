from __future__ import annotations

import json

import pytest

from shuttering import builder
from shuttering.config import load_settings
from shuttering.jsonio import write_json
from tests.fixtures import DESIGN_SYSTEM_VERSION, use_project


def _tenant(root, service: str, body: str) -> None:
    folder = root / "tenants" / service
    folder.mkdir(parents=True, exist_ok=True)
    (folder / "content.njk").write_text(body, encoding="utf-8")


def test_build_renders_tenant_content(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    _tenant(tmp_path, "tax-service", '<h1 class="govuk-heading-l">Tax is down</h1>\n')

    settings = load_settings()
    result = builder.build_html("tax-service", settings=settings, production=False)

    assert result.minified is False
    html = (tmp_path / ".dist" / "index.html").read_text(encoding="utf-8")
    assert result.outputs == (settings.html_file,)
    assert html.startswith("<!DOCTYPE html>")
    assert "Tax is down" in html
    assert "Sorry, the service is unavailable" not in html
    assert f'content="{DESIGN_SYSTEM_VERSION}"' in html
    assert "<title>Service Unavailable - GOV.UK</title>" in html


def test_build_falls_back_to_common_content(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)

    builder.build_html("no-such-tenant", settings=load_settings(), production=False)

    html = (tmp_path / ".dist" / "index.html").read_text(encoding="utf-8")
    assert "Sorry, the service is unavailable" in html


def test_tenant_markup_is_not_escaped(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    _tenant(tmp_path, "tax", '<p class="govuk-body">A &amp; B</p>\n')

    builder.build_html("tax", settings=load_settings(), production=False)

    html = (tmp_path / ".dist" / "index.html").read_text(encoding="utf-8")
    assert '<p class="govuk-body">A &amp; B</p>' in html


def test_production_build_is_minified(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    settings = load_settings()

    builder.build_html("tax", settings=settings, production=False)
    pretty = settings.html_file.read_text(encoding="utf-8")

    monkeypatch.setenv("NODE_ENV", "production")
    result = builder.build_html("tax", settings=settings)
    minified = settings.html_file.read_text(encoding="utf-8")

    assert result.minified is True
    assert len(minified) < len(pretty)
    assert minified.lower().startswith("<!doctype html>")
    assert "Sorry, the service is unavailable" in minified


def test_asset_paths_come_from_manifest(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    settings = load_settings()
    write_json(
        settings.assets_manifest,
        {"application.css": "assets/application.abc123.css", "application.js": "assets/a.js"},
    )

    builder.build_html("tax", settings=settings, production=False)

    html = settings.html_file.read_text(encoding="utf-8")
    assert 'href="assets/application.abc123.css"' in html
    assert 'src="assets/a.js"' in html
    # Not in the manifest: renders empty.
    assert 'sizes="48x48" href=""' in html


def test_missing_manifest_yields_empty_mapping(tmp_path) -> None:
    assert builder.load_assets_manifest(tmp_path / "missing.json") == {}


def test_design_system_version_requires_dependency(tmp_path) -> None:
    package_json = tmp_path / "package.json"
    package_json.write_text(json.dumps({"dependencies": {}}), encoding="utf-8")

    with pytest.raises(builder.BuildError):
        builder.design_system_version(package_json)
    with pytest.raises(builder.BuildError):
        builder.design_system_version(tmp_path / "absent.json")


def test_main_defaults_to_default_content(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)

    assert builder.main([]) == 0
    assert (tmp_path / ".dist" / "index.html").exists()


def test_main_invalid_service_exits_1(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    assert builder.main(["--service", "Bad Name"]) == 1


def test_main_without_package_json_exits_1(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    (tmp_path / "package.json").unlink()
    assert builder.main(["--service", "tax"]) == 1


def test_template_error_exits_1(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    _tenant(tmp_path, "broken", "{% if %}\n")
    assert builder.main(["--service", "broken"]) == 1
