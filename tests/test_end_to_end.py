from __future__ import annotations

from shuttering import builder, comment, scaffold, validate
from shuttering.config import load_settings
from shuttering.contracts import schema_errors
from shuttering.jsonio import read_json
from tests.fixtures import use_project


def test_new_tenant_builds_validates_and_comments(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    monkeypatch.setenv("NODE_ENV", "production")

    assert scaffold.main(["--service=tax-service"]) == 0
    assert builder.main(["--service=tax-service"]) == 0
    assert validate.main(["--service=tax-service"]) == 0
    assert comment.main([]) == 0

    settings = load_settings()
    results = read_json(settings.validation_results)
    assert results == {
        "allValid": True,
        "results": [{"service": "tax-service", "valid": True, "errors": []}],
    }
    assert schema_errors(results, "validation_results") == []

    first_line = settings.validation_comment.read_text(encoding="utf-8").splitlines()[0]
    assert "✅" in first_line


def test_development_build_is_valid(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)

    assert builder.main([]) == 0
    assert validate.main(["--service=default-content"]) == 0
