"""CLI entry point for convbump."""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

import click

from convbump.config import CONFIG_FILENAME
from convbump.errors import ConvbumpError
from convbump.pipeline import (
    run_init,
    run_pre_enter,
    run_pre_exit,
    run_promote,
    run_status,
    run_version,
)


class Context:
    """Global options shared by all commands."""

    def __init__(self, root: Path, config: Path | None, dry: bool) -> None:
        self.root = root.resolve()
        self.config = (config or self.root / CONFIG_FILENAME).resolve()
        self.dry = dry


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Report ConvbumpError as a click error (exit code 1)."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ConvbumpError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group()
@click.version_option(package_name="convbump")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root directory.",
)
@click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file. [default: <root>/{CONFIG_FILENAME}]",
)
@click.option("--dry", is_flag=True, help="Show what would change without writing.")
@click.pass_context
def cli(ctx: click.Context, root: Path, config: Path | None, dry: bool) -> None:
    """Conventional-commit versioning for uv workspaces."""
    ctx.obj = Context(root, config, dry)


@cli.command()
@click.option("--base", default=None, help="Base commit. [default: HEAD~1]")
@click.pass_obj
@handle_errors
def init(obj: Context, base: str | None) -> None:
    """Create the config file."""
    run_init(obj.root, obj.config, base)


@cli.command()
@click.pass_obj
@handle_errors
def status(obj: Context) -> None:
    """Show packages, promotions and the next versioning."""
    run_status(obj.root, obj.config)


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
@handle_errors
def version(obj: Context, yes: bool) -> None:
    """Version packages from the commits since the last versioning."""
    confirm = None if yes else (lambda: click.confirm("\nApply these versions?"))
    run_version(obj.root, obj.config, dry=obj.dry, confirm=confirm)


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.option(
    "--bump",
    type=click.Choice(["patch", "minor", "major"]),
    required=True,
    help="Minimum bump to apply on the next versioning.",
)
@click.option(
    "--override",
    is_flag=True,
    help="Replace existing promotions and the inferred bump.",
)
@click.pass_obj
@handle_errors
def promote(obj: Context, packages: tuple[str, ...], bump: str, override: bool) -> None:
    """Promote PACKAGES to a bump on the next versioning ("*" for all)."""
    run_promote(obj.root, obj.config, packages, bump, override=override, dry=obj.dry)


@cli.group()
def pre() -> None:
    """Enter or exit pre-release."""


@pre.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--id", "identifier", required=True, help="Pre-release identifier.")
@click.pass_obj
@handle_errors
def enter(obj: Context, packages: tuple[str, ...], identifier: str) -> None:
    """Move PACKAGES into pre-release ("*" for all stable packages)."""
    run_pre_enter(obj.root, obj.config, packages, identifier, dry=obj.dry)


@pre.command(name="exit")
@click.argument("packages", nargs=-1, required=True)
@click.pass_obj
@handle_errors
def exit_(obj: Context, packages: tuple[str, ...]) -> None:
    """Move PACKAGES out of pre-release ("*" for all pre-release packages)."""
    run_pre_exit(obj.root, obj.config, packages, dry=obj.dry)
