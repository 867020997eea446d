"""Typer-based CLI for perltags."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__, config
from .crawler import Crawler
from .discovery import iter_perl_files
from .errors import PerlTagsError

console = Console()

app = typer.Typer(
    help="🏷️  perltags — ctags for Perl that follows use/require.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration — show and change tagger defaults.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"perltags v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every processed file."),
):
    """perltags: recursive, incremental ctags generation for Perl."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def _fail(exc: Exception) -> None:
    console.print(f"[red]✗[/red] {escape(str(exc))}")
    raise typer.Exit(1)


def _load_settings(
    max_level: Optional[int],
    variables: Optional[bool],
    exts: Optional[bool],
    tagger: Optional[str],
    inc: Optional[List[Path]],
    outfile: Optional[Path] = None,
) -> config.TaggerSettings:
    try:
        settings = config.load_settings()
    except PerlTagsError as exc:
        _fail(exc)
    return settings.merged(
        max_level=max_level,
        do_variables=variables,
        exts=exts,
        tagger=tagger,
        outfile=str(outfile) if outfile else None,
        inc=settings.inc + [str(p) for p in inc] if inc else None,
    )


def _collect_files(paths: List[Path], recurse: bool, prune: Optional[List[str]]) -> List[Path]:
    files: List[Path] = []
    for path in paths:
        if not path.is_dir():
            files.append(path)
            continue
        if not recurse:
            raise typer.BadParameter(f"'{path}' is a directory; pass --recurse to scan it.")
        found = list(iter_perl_files(path, prune or ()))
        if not found:
            raise typer.BadParameter(f"No Perl files found under '{path}'.")
        files.extend(found)
    return files


def _run(settings: config.TaggerSettings, files: List[Path]) -> Crawler:
    try:
        crawler = Crawler.from_settings(settings)
        crawler.process(files)
    except (PerlTagsError, OSError) as exc:
        _fail(exc)
    return crawler


# Options shared by ``index`` and ``show``.
FILES_ARG = typer.Argument(..., exists=True, help="Perl files (or directories with --recurse).")
MAX_LEVEL_OPT = typer.Option(None, "--max-level", "--depth", "-d", min=1, help="Levels of use/require to follow.")
VARS_OPT = typer.Option(None, "--vars/--no-vars", help="Tag my/our/local variables.")
EXTS_OPT = typer.Option(None, "--exts/--no-exts", help="Emit exuberant ctags extension fields.")
TAGGER_OPT = typer.Option(None, "--tagger", "-t", help="Tagger: naive, moose or hybrid.")
INC_OPT = typer.Option(None, "--inc", "-I", help="Extra directory to search for modules.")
RECURSE_OPT = typer.Option(False, "--recurse", "-r", help="Scan directories for .pm/.pl/.t files.")
PRUNE_OPT = typer.Option(None, "--prune", help="Directory name to skip when recursing.")


@app.command("index")
def index(
    files: List[Path] = FILES_ARG,
    outfile: Optional[Path] = typer.Option(None, "--outfile", "-o", help="Tags file to write."),
    max_level: Optional[int] = MAX_LEVEL_OPT,
    variables: Optional[bool] = VARS_OPT,
    exts: Optional[bool] = EXTS_OPT,
    tagger: Optional[str] = TAGGER_OPT,
    inc: Optional[List[Path]] = INC_OPT,
    recurse: bool = RECURSE_OPT,
    prune: Optional[List[str]] = PRUNE_OPT,
):
    """Write a tags file for FILES and the modules they use.

    Example:
      perltags index lib/My/App.pm -o tags
      perltags index -r lib -d 1 --no-vars
    """
    settings = _load_settings(max_level, variables, exts, tagger, inc, outfile)
    crawler = _run(settings, _collect_files(files, recurse, prune))

    try:
        crawler.output(settings.outfile)
    except PerlTagsError as exc:
        _fail(exc)

    console.print(
        f"[green]✓[/green] Wrote {len(crawler)} tags from {len(crawler.order)} files "
        f"to [cyan]{escape(settings.outfile)}[/cyan]"
    )


@app.command("show")
def show(
    files: List[Path] = FILES_ARG,
    max_level: Optional[int] = MAX_LEVEL_OPT,
    variables: Optional[bool] = VARS_OPT,
    exts: Optional[bool] = EXTS_OPT,
    tagger: Optional[str] = TAGGER_OPT,
    inc: Optional[List[Path]] = INC_OPT,
    recurse: bool = RECURSE_OPT,
    prune: Optional[List[str]] = PRUNE_OPT,
):
    """Print the tag table for FILES to stdout."""
    settings = _load_settings(max_level, variables, exts, tagger, inc)
    crawler = _run(settings, _collect_files(files, recurse, prune))
    text = crawler.to_string()
    if text:
        typer.echo(text)


@config_app.command("show")
def config_show():
    """Show the effective tagger settings."""
    try:
        settings = config.load_settings()
    except PerlTagsError as exc:
        _fail(exc)

    table = Table(title=f"perltags settings ({escape(str(config.CONFIG_FILE))})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in vars(settings).items():
        table.add_row(key, escape(str(value)))
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. max_level."),
    value: str = typer.Argument(..., help="New value; lists are separated by the path separator."),
):
    """Persist a tagger setting."""
    try:
        settings = config.save_setting(key, value)
    except PerlTagsError as exc:
        _fail(exc)
    console.print(f"[green]✓[/green] {key} = {escape(str(getattr(settings, key)))}")
