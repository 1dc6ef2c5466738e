"""Interactive CLI for creating a tenant's shuttering page.

Asks for a service name, copies the common template for it, waits while the operator edits
``content.njk``, then builds and opens the page until the operator is happy with it.
Optionally commits the new tenant directory.
"""

from __future__ import annotations

import argparse
import logging
import subprocess
import webbrowser
from collections.abc import Callable

from shuttering.commands import CommandError, run_command, stage_command
from shuttering.config import Settings, load_settings
from shuttering.logs import configure_logging
from shuttering.scaffold import create_content
from shuttering.tenants import service_name_problem

logger = logging.getLogger(__name__)

DEVELOPMENT_ENV = {"NODE_ENV": "development"}


class Aborted(Exception):
    """The operator chose to stop; not an error."""


def ask_text(message: str, validate: Callable[[str], str | None]) -> str:
    while True:
        answer = input(f"? {message} ").strip()
        problem = validate(answer)
        if problem is None:
            return answer
        print(f">> {problem}")


def confirm(message: str, *, default: bool) -> bool:
    hint = "[Y/n]" if default else "[y/N]"
    while True:
        answer = input(f"? {message} {hint} ").strip().lower()
        if not answer:
            return default
        if answer in {"y", "yes"}:
            return True
        if answer in {"n", "no"}:
            return False
        print(">> Please answer yes or no")


def build_and_preview(service: str, settings: Settings) -> None:
    logger.info("Building HTML...")
    run_command(
        stage_command("builder", f"--service={service}"), "Build HTML", env=DEVELOPMENT_ENV
    )
    logger.info("Build complete!")

    html_path = settings.html_file
    if not html_path.exists():
        raise FileNotFoundError(f"HTML file not found at {html_path}")
    logger.info("Opening %s in browser...", html_path)
    webbrowser.open(html_path.resolve().as_uri())


def commit_tenant(service: str, settings: Settings) -> bool:
    logger.info("Creating git commit...")
    try:
        subprocess.run(["git", "add", str(settings.tenant_dir(service))], check=True)
        subprocess.run(
            ["git", "commit", "-m", f"Committing {service} custom shuttering content"],
            check=True,
        )
    except (subprocess.CalledProcessError, OSError) as exc:
        logger.error("Git commit failed: %s", exc)
        logger.info("You can manually commit the changes later.")
        return False
    logger.info("Git commit created successfully!")
    return True


def run_interactive(settings: Settings) -> int:
    service = ask_text("What is your service name?", service_name_problem)

    logger.info("Creating folder structure for service: %s", service)
    create_content(service, source=settings.common_template_dir, tenants_dir=settings.tenants_dir)
    content_file = settings.content_template(service)

    print(f"\nPlease edit the content.njk file at:\n  {content_file}\n")
    if not confirm("Are you ready to build the HTML?", default=False):
        print("Please edit the content.njk file and run this script again.")
        raise Aborted

    while True:
        build_and_preview(service, settings)

        if confirm("Are you happy with the result?", default=True):
            break

        print(f"\nEdit the content.njk file when ready:\n  {content_file}\n")
        if not confirm("Ready to rebuild?", default=False):
            print("Exiting. You can run this script again when ready.")
            raise Aborted

    if confirm("Would you like to create a git commit with the new content?", default=True):
        commit_tenant(service, settings)

    print("\n✅ All done! Your shuttering page is ready.")
    print(f"Service folder: {settings.tenant_dir(service)}")
    print(f"HTML output: {settings.html_file}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog="python -m shuttering.interactive",
        description="Interactive CLI for creating shuttering pages.",
    )


def main(argv: list[str] | None = None) -> int:
    _build_parser().parse_args(argv)
    configure_logging()
    settings = load_settings()

    try:
        return run_interactive(settings)
    except Aborted:
        return 0
    except (KeyboardInterrupt, EOFError):
        print()
        return 1
    except (CommandError, OSError) as exc:
        logger.error("An error occurred: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
