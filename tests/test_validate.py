from __future__ import annotations

import json

from shuttering import validate
from shuttering.config import load_settings
from shuttering.contracts import extract_json_block, schema_errors
from shuttering.jsonio import read_json
from tests.fixtures import use_project, write_html


def test_validate_services_valid_page(tmp_path) -> None:
    html = write_html(tmp_path / "index.html", "<h1>Sorry</h1>")

    summary = validate.validate_services(["a", "b"], html_file=html)

    assert summary == {
        "allValid": True,
        "results": [
            {"service": "a", "valid": True, "errors": []},
            {"service": "b", "valid": True, "errors": []},
        ],
    }
    assert schema_errors(summary, "validation_results") == []


def test_validate_services_missing_html(tmp_path) -> None:
    summary = validate.validate_services(["a"], html_file=tmp_path / "missing.html")

    assert summary["allValid"] is False
    assert summary["results"] == [
        {"service": "a", "valid": False, "error": "HTML file not generated", "errors": []}
    ]


def test_validate_services_reports_errors(tmp_path) -> None:
    html = write_html(tmp_path / "index.html", '<h2 id="x">A</h2>\n<p id="x">B</p>')

    summary = validate.validate_services(["a"], html_file=html)

    (entry,) = summary["results"]
    assert entry["valid"] is False
    assert entry["errorCount"] == len(entry["errors"]) == 2
    assert {e["ruleId"] for e in entry["errors"]} == {"heading-level", "no-dup-id"}
    assert all(e["severity"] == 2 for e in entry["errors"])
    assert set(entry["errors"][0]) == {"line", "column", "message", "ruleId", "severity"}
    assert schema_errors(summary, "validation_results") == []


def test_design_system_config_tolerates_inline_styles(tmp_path) -> None:
    html = write_html(
        tmp_path / "index.html",
        '<h1 style="margin: 0">A</h1>   \n<script type="module" src="a.js"></script>',
    )
    assert validate.validate_services(["a"], html_file=html)["allValid"] is True


def test_main_writes_results_and_prints_block(tmp_path, monkeypatch, capsys) -> None:
    use_project(monkeypatch, tmp_path)
    settings = load_settings()
    write_html(settings.html_file, "<h1>Sorry</h1>")

    assert validate.main(["--service", "tax"]) == 0

    written = read_json(settings.validation_results)
    assert written["allValid"] is True
    printed = extract_json_block(capsys.readouterr().out)
    assert printed == written


def test_main_exits_1_when_invalid(tmp_path, monkeypatch, capsys) -> None:
    use_project(monkeypatch, tmp_path)
    settings = load_settings()
    write_html(settings.html_file, "<h3>Wrong level</h3>")

    assert validate.main(["--service", "tax", "--service", "other"]) == 1

    written = json.loads(settings.validation_results.read_text(encoding="utf-8"))
    assert [r["service"] for r in written["results"]] == ["tax", "other"]
    assert extract_json_block(capsys.readouterr().out)["allValid"] is False


def test_main_without_services_exits_1(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    assert validate.main([]) == 1
    assert not load_settings().validation_results.exists()


def test_main_missing_html_exits_1(tmp_path, monkeypatch) -> None:
    use_project(monkeypatch, tmp_path)
    assert validate.main(["--service", "tax"]) == 1
    written = read_json(load_settings().validation_results)
    assert written["results"][0]["error"] == "HTML file not generated"
