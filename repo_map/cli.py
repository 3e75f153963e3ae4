"""Click-based CLI for the repo map."""

import json
import sys
from pathlib import Path
from typing import Any

import click

from . import __version__, service
from .config import load_config
from .indexer_logging import setup_logging
from .installer import (
    check_installed,
    get_install_instructions,
    get_minimum_version,
    meets_minimum_version,
)
from .models import UpdateResult


def common_options(f: Any) -> Any:
    """Project and logging options shared by every command."""
    f = click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")(f)
    f = click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")(f)
    f = click.option(
        "--project",
        "-p",
        type=click.Path(exists=True, file_okay=False),
        default=".",
        show_default=True,
        help="Project directory path",
    )(f)
    return f


def _setup(project: str, verbose: bool, quiet: bool) -> Path:
    if quiet and verbose:
        click.echo("Error: --quiet and --verbose are mutually exclusive", err=True)
        sys.exit(1)
    root = Path(project).resolve()
    setup_logging(level=load_config(root).log_level, quiet=quiet, verbose=verbose)
    return root


def _report(result: UpdateResult, action: str, quiet: bool) -> None:
    if not result.success:
        click.echo(f"❌ {action} failed: {result.error}", err=True)
        if result.install_suggestion:
            click.echo(result.install_suggestion, err=True)
        sys.exit(1)

    if quiet or result.map is None:
        return

    stats = result.map.stats
    changes = result.changes
    click.echo(f"✅ {action} complete")
    click.echo(f"   Files: {stats.total_files}  Symbols: {stats.total_symbols}")
    click.echo(
        f"   Changes: {changes.total} total, {changes.updated} updated, "
        f"{changes.added} added, {changes.deleted} deleted, {changes.renamed} renamed"
    )
    if stats.errors:
        click.echo(f"⚠️  {len(stats.errors)} files could not be scanned")
        for failure in stats.errors[:10]:
            click.echo(f"   {failure.file}: {failure.error}")


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Repo map - persistent symbol and import index for a source tree."""


@cli.command()
@common_options
@click.option("--force", is_flag=True, help="Rebuild even if a map already exists")
@click.option(
    "--language",
    "-l",
    "languages",
    multiple=True,
    help="Language to index (repeatable); detected when omitted",
)
def init(
    project: str, verbose: bool, quiet: bool, force: bool, languages: tuple[str, ...]
) -> None:
    """Build the repo map with a full scan."""
    root = _setup(project, verbose, quiet)
    result = service.init(root, force=force, languages=list(languages) or None)
    _report(result, "Init", quiet)


@cli.command()
@common_options
@click.option("--full", is_flag=True, help="Rebuild from scratch")
def update(project: str, verbose: bool, quiet: bool, full: bool) -> None:
    """Bring the repo map up to date."""
    root = _setup(project, verbose, quiet)
    result = service.update(root, full=full)
    _report(result, "Update", quiet)


@cli.command()
@common_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status(project: str, verbose: bool, quiet: bool, as_json: bool) -> None:
    """Show repo map status and staleness."""
    root = _setup(project, verbose, quiet)
    report = service.status(root)

    if as_json:
        click.echo(json.dumps(report, indent=2))
        return

    if not report["exists"]:
        click.echo("No repo map found. Run `repo-map init` first.")
        sys.exit(1)

    info = report["status"]
    staleness = info["staleness"]
    click.echo(f"Commit:    {info['commit'] or '-'} ({info['branch'] or '-'})")
    click.echo(f"Generated: {info['generated']}")
    click.echo(f"Updated:   {info['updated'] or '-'}")
    click.echo(f"Files:     {info['files']}  Symbols: {info['symbols']}")
    click.echo(f"Languages: {', '.join(info['languages']) or '-'}")
    if staleness["isStale"]:
        click.echo(f"⚠️  Stale: {staleness['reason']}")
        if staleness["suggestFullRebuild"]:
            click.echo("   Run `repo-map update --full` to rebuild")
    elif info["markedStale"]:
        click.echo("⚠️  Marked stale; run `repo-map update`")
    else:
        click.echo(f"Commits behind HEAD: {staleness['commitsBehind']}")


@cli.command("mark-stale")
@common_options
def mark_stale(project: str, verbose: bool, quiet: bool) -> None:
    """Flag the repo map for refresh on next update."""
    root = _setup(project, verbose, quiet)
    path = service.mark_stale(root)
    if not quiet:
        click.echo(f"Marked stale: {path}")


@cli.command("check-tool")
def check_tool() -> None:
    """Check that ast-grep is installed and recent enough."""
    status = check_installed()
    if not status.found:
        click.echo("❌ ast-grep not found", err=True)
        click.echo(get_install_instructions(), err=True)
        sys.exit(1)

    if not meets_minimum_version(status.version):
        click.echo(
            f"❌ ast-grep {status.version or 'unknown'} is too old "
            f"(minimum {get_minimum_version()})",
            err=True,
        )
        sys.exit(1)

    click.echo(f"✅ ast-grep {status.version} ({status.command} at {status.path or '?'})")


if __name__ == "__main__":
    cli()
