"""
Teemiao CLI - Command line interface
"""

import click
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__, get_version_info
from .build_info import TRACE, generate_build_info, log_observer, resolve_output_path
from .config import TeemiaoConfig
from .errors import ConfigError, TeemiaoError

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _log_level(verbosity: int) -> int:
    """Map a -v/-q balance to a logging level. INFO is the default."""
    if verbosity >= 2:
        return TRACE
    if verbosity == 1:
        return logging.DEBUG
    if verbosity == 0:
        return logging.INFO
    if verbosity == -1:
        return logging.WARNING
    if verbosity == -2:
        return logging.ERROR
    return logging.CRITICAL + 1


def configure_logging(verbosity: int) -> None:
    """Send teemiao's log records to stderr through rich."""
    logger = logging.getLogger("teemiao")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=err_console,
        show_time=verbosity >= 2,
        show_path=verbosity >= 2,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(_log_level(verbosity))


def _fail(error: TeemiaoError) -> None:
    err_console.print(f"[red]Error:[/red] {escape(str(error))}")
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="teemiao", message=get_version_info())
@click.option("-v", "--verbose", count=True, help="More output (repeat for tracing)")
@click.option("-q", "--quiet", count=True, help="Less output (repeat to silence)")
@click.option("--config-dir", default=None, help="Configuration directory")
@click.pass_context
def main(ctx: click.Context, verbose: int, quiet: int, config_dir: str):
    """
    Teemiao - convenient tools for building other applications.

    \b
    Commands:
        build-info   Write the git revision and build time as JSON
        version      Show detailed version info
    """
    try:
        config = TeemiaoConfig.load(config_dir)
    except ConfigError as e:
        _fail(e)

    configure_logging(config.verbosity + verbose - quiet)
    ctx.obj = config


@main.command("build-info")
@click.argument("file", required=False, type=click.Path(path_type=Path))
@click.option("-o", "--out", default=None, type=click.Path(path_type=Path),
              help="Output file (default: ./build_info.json)")
@click.option("--atomic/--no-atomic", default=None,
              help="Write via a temporary file and rename (default: on)")
@click.pass_obj
def build_info(config: TeemiaoConfig, file: Path, out: Path, atomic: bool):
    """
    Generate structured metadata about the build in JSON format.

    The metadata includes the build time and the current git revision
    of the code base, in its shortest unambiguous form.

    \b
    EXAMPLE:
        teemiao build-info
        teemiao build-info --out dist/build_info.json
    """
    if file is not None and out is not None and file != out:
        raise click.UsageError(f"Conflicting output files: {file} and --out {out}")

    target = out or file or config.output
    if atomic is None:
        atomic = config.atomic_write

    try:
        out_path = resolve_output_path(target)
        info = generate_build_info(out_path, atomic=atomic, observer=log_observer)
    except TeemiaoError as e:
        _fail(e)

    console.print(
        f"[green]✓[/green] Revision [cyan]{escape(info.revision)}[/cyan] "
        f"written to {escape(str(out_path))}"
    )


@main.command()
def version():
    """Show detailed version information."""
    console.print(Panel.fit(
        f"[bold cyan]Teemiao[/bold cyan] v{__version__}",
        border_style="cyan"
    ))

    table = Table(show_header=False, box=None)
    table.add_column("", style="dim")
    table.add_column("")

    table.add_row("Version", __version__)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    main()
