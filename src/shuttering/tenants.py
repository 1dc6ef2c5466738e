from __future__ import annotations

import re
from collections.abc import Iterable

SERVICE_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")


class InvalidServiceName(ValueError):
    pass


def service_name_problem(name: str | None) -> str | None:
    """Return a human-readable reason why ``name`` is not a valid tenant id, or None."""

    if name is None or name.strip() == "":
        return "Service name cannot be empty"
    if not SERVICE_NAME_PATTERN.match(name):
        return "Service name can only contain lowercase letters, numbers, and hyphens"
    return None


def require_service_name(name: str | None) -> str:
    problem = service_name_problem(name)
    if problem is not None:
        raise InvalidServiceName(f"{problem}: {name!r}")
    assert name is not None
    return name


def require_service_names(names: Iterable[str]) -> list[str]:
    return [require_service_name(n) for n in names]
