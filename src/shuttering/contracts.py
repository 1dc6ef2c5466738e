"""Machine-readable seams between stages.

Stages that run as separate processes publish their results in two places: a JSON file in
the build directory and a marker-delimited block on stdout. The change detector prints a
single compact JSON line instead. The shapes are described by the JSON Schemas shipped in
``shuttering/schemas``.
"""

from __future__ import annotations

import json
import logging
import re
from functools import cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from shuttering.jsonio import dumps_line, read_json
from shuttering.tenants import service_name_problem

logger = logging.getLogger(__name__)

JSON_OUTPUT_START = "--- JSON OUTPUT START ---"
JSON_OUTPUT_END = "--- JSON OUTPUT END ---"

SERVICES_TO_BUILD_PREFIX = "Services to build:"
_SERVICES_TO_BUILD_RE = re.compile(r"Services to build: ([^\n]+)")

SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"


def emit_json_block(payload: Any) -> None:
    """Print ``payload`` as one JSON line between the start/end markers."""

    print()
    print(JSON_OUTPUT_START)
    print(dumps_line(payload))
    print(JSON_OUTPUT_END, flush=True)


def extract_json_block(text: str) -> Any | None:
    """Return the payload of the last marker block in ``text`` (or None)."""

    lines = text.splitlines()
    payload: Any | None = None
    inside = False
    collected: list[str] = []
    for line in lines:
        stripped = line.strip()
        if stripped == JSON_OUTPUT_START:
            inside = True
            collected = []
            continue
        if stripped == JSON_OUTPUT_END and inside:
            inside = False
            try:
                payload = json.loads("\n".join(collected))
            except json.JSONDecodeError:
                logger.warning("Ignoring malformed JSON output block")
            continue
        if inside:
            collected.append(line)
    return payload


def parse_detected_services(output: str) -> list[str]:
    """Recover the service list from the change detector's output.

    The JSON line (``{"services": [...], "count": N}``) is preferred. When no line parses
    and matches the schema, the human-readable ``Services to build: a, b`` log line is used.
    """

    for line in output.splitlines():
        stripped = line.strip()
        if not (stripped.startswith("{") and '"services"' in stripped):
            continue
        try:
            payload = json.loads(stripped)
        except json.JSONDecodeError:
            logger.warning("Could not parse JSON output, trying alternative parsing")
            continue
        errors = schema_errors(payload, "detected_services")
        if errors:
            logger.warning("Detector output does not match schema: %s", "; ".join(errors))
            continue
        return list(payload["services"])

    match = _SERVICES_TO_BUILD_RE.search(output)
    if match:
        services: list[str] = []
        for name in (s.strip() for s in match.group(1).split(",")):
            if not name:
                continue
            problem = service_name_problem(name)
            if problem is not None:
                logger.warning("Ignoring detected service %r: %s", name, problem)
                continue
            services.append(name)
        return services

    logger.warning("No service list found in change detector output")
    return []


@cache
def _validator(schema_name: str) -> Draft202012Validator:
    schema = read_json(SCHEMAS_DIR / f"{schema_name}.schema.json")
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def schema_errors(payload: Any, schema_name: str) -> list[str]:
    """Validate ``payload`` against a bundled schema; return readable error strings."""

    validator = _validator(schema_name)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path))
    return [
        f"{'/'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}" for e in errors
    ]
