"""Shuttering pages: build, validate and screenshot per-tenant "service unavailable" pages.

Each pipeline stage is a small module with a ``main(argv) -> int`` entry point that can be
run with ``python -m shuttering.<module>``. Stages hand off through files in the build
directory and through process exit codes.
"""

__version__ = "0.1.0"

__all__: list[str] = [
    "builder",
    "changes",
    "comment",
    "interactive",
    "scaffold",
    "screenshot",
    "validate",
    "workflow",
]
