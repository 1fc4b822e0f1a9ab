"""CLI commands using Typer."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from gmsfs.context import AppContext

import typer
from rich.console import Console

from gmsfs import __version__
from gmsfs.config import ConfigError
from gmsfs.console import Output, format_age
from gmsfs.context import create_context
from gmsfs.types import BadPatternError

app = typer.Typer(
    name="gmsfs",
    help="Thin command-line access to local filesystem operations",
    no_args_is_help=True,
)

console = Console()
output = Output(console)

# Options given to the top-level callback, cleared when the invocation ends
_state: dict[str, Path | None] = {"config": None}


def _reset_state() -> None:
    _state["config"] = None


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"gmsfs v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a gmsfs.yaml configuration file"),
    ] = None,
) -> None:
    """Thin command-line access to local filesystem operations."""
    _state["config"] = config
    ctx.call_on_close(_reset_state)


def _get_context(context: AppContext | None) -> AppContext:
    """Return the injected context or build one from configuration."""
    if context is not None:
        return context
    try:
        return create_context(config_path=_state["config"])
    except ConfigError as e:
        output.show_error(str(e))
        raise typer.Exit(1) from e


def _fail(message: str, error: Exception) -> None:
    """Report a failed command and exit with status 1."""
    output.show_error(f"{message}: {error}")
    raise typer.Exit(1) from error


# ============================================================================
# Inspection Commands
# ============================================================================


@app.command("ls")
def list_dir(
    path: Annotated[str, typer.Argument(help="Directory to list")] = ".",
    long: Annotated[bool, typer.Option("--long", "-l", help="Show size, mode and time")] = False,
    _context=None,
) -> None:
    """List a directory, directories marked with '*'."""
    ctx = _get_context(_context)

    if not long:
        output.show_lines(ctx.filesystem.list_names(path))
        return

    try:
        entries = ctx.filesystem.read_dir(path)
    except OSError as e:
        _fail(f"Cannot list '{path}'", e)
    output.show_listing(path, entries)


@app.command("tree")
def tree(
    path: Annotated[str, typer.Argument(help="Root directory")] = ".",
    _context=None,
) -> None:
    """List a directory tree recursively."""
    ctx = _get_context(_context)
    output.show_lines(ctx.filesystem.walk(path))


@app.command("stat")
def stat_path(
    path: Annotated[str, typer.Argument(help="Path to describe")],
    _context=None,
) -> None:
    """Show metadata for a path."""
    ctx = _get_context(_context)
    try:
        info = ctx.filesystem.stat(path)
    except OSError as e:
        _fail(f"Cannot stat '{path}'", e)
    output.show_metadata(info)


@app.command("exists")
def exists(
    path: Annotated[str, typer.Argument(help="Path to check")],
    _context=None,
) -> None:
    """Exit with status 0 if a path exists, 1 otherwise."""
    ctx = _get_context(_context)
    if ctx.filesystem.exists(path):
        output.show_success(f"{path} exists")
        return
    output.show_error(f"{path} does not exist")
    raise typer.Exit(1)


@app.command("age")
def age(
    path: Annotated[str, typer.Argument(help="File to check")],
    _context=None,
) -> None:
    """Show the time since a file was last modified."""
    ctx = _get_context(_context)
    try:
        elapsed = ctx.filesystem.file_age(path)
    except OSError as e:
        _fail(f"Cannot stat '{path}'", e)
    console.print(format_age(elapsed))


@app.command("cat")
def cat(
    path: Annotated[str, typer.Argument(help="File to print")],
    _context=None,
) -> None:
    """Print the content of a file."""
    ctx = _get_context(_context)
    try:
        content = ctx.filesystem.read_file(path)
    except OSError as e:
        _fail(f"Cannot read '{path}'", e)
    console.print(
        content.decode(errors="replace"),
        end="",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


@app.command("glob")
def glob_cmd(
    pattern: Annotated[str, typer.Argument(help="Shell pattern, e.g. 'logs/*.log'")],
    _context=None,
) -> None:
    """Expand a shell pattern."""
    ctx = _get_context(_context)
    try:
        matches = ctx.filesystem.glob(pattern)
    except BadPatternError as e:
        _fail(f"Cannot expand '{pattern}'", e)
    output.show_lines(matches)


@app.command("find")
def find(
    directory: Annotated[str, typer.Argument(help="Directory to search")],
    pattern: Annotated[str, typer.Argument(help="Shell pattern for entry names")],
    _context=None,
) -> None:
    """Find entries of one directory whose name matches a pattern."""
    ctx = _get_context(_context)
    try:
        matches = ctx.filesystem.find_files(directory, pattern)
    except (OSError, BadPatternError) as e:
        _fail(f"Cannot search '{directory}'", e)
    output.show_lines(matches)


# ============================================================================
# Modification Commands
# ============================================================================


@app.command("cp")
def copy(
    src: Annotated[str, typer.Argument(help="Source file")],
    dst: Annotated[str, typer.Argument(help="Destination file")],
    _context=None,
) -> None:
    """Copy a file with its permission bits."""
    ctx = _get_context(_context)
    try:
        ctx.filesystem.copy_file(src, dst)
    except OSError as e:
        _fail(f"Cannot copy '{src}' to '{dst}'", e)
    output.show_success(f"Copied {src} to {dst}")


@app.command("cpdir")
def copy_dir(
    src: Annotated[str, typer.Argument(help="Source directory")],
    dst: Annotated[str, typer.Argument(help="Destination directory")],
    pattern: Annotated[
        str | None,
        typer.Option("--pattern", "-p", help="Copy only top-level entries matching this pattern"),
    ] = None,
    _context=None,
) -> None:
    """Copy a directory tree, or the matching entries of one level."""
    ctx = _get_context(_context)
    try:
        if pattern:
            ctx.filesystem.copy_dir_glob(src, dst, pattern)
        else:
            ctx.filesystem.copy_dir(src, dst)
    except (OSError, BadPatternError) as e:
        _fail(f"Cannot copy '{src}' to '{dst}'", e)
    output.show_success(f"Copied {src} to {dst}")


@app.command("mkdir")
def make_dir(
    path: Annotated[str, typer.Argument(help="Directory to create")],
    parents: Annotated[bool, typer.Option("--parents", "-p", help="Create missing parents")] = False,
    _context=None,
) -> None:
    """Create a directory."""
    ctx = _get_context(_context)
    try:
        if parents:
            ctx.filesystem.mkdir_all(path)
        else:
            ctx.filesystem.mkdir(path)
    except OSError as e:
        _fail(f"Cannot create '{path}'", e)
    output.show_success(f"Created {path}")


@app.command("rm")
def remove(
    path: Annotated[str, typer.Argument(help="Path to remove")],
    recursive: Annotated[
        bool, typer.Option("--recursive", "-r", help="Remove directories and their contents")
    ] = False,
    _context=None,
) -> None:
    """Remove a file or an empty directory."""
    ctx = _get_context(_context)
    try:
        if recursive:
            ctx.filesystem.remove_all(path)
        else:
            ctx.filesystem.remove(path)
    except OSError as e:
        _fail(f"Cannot remove '{path}'", e)
    output.show_success(f"Removed {path}")


@app.command("mv")
def move(
    src: Annotated[str, typer.Argument(help="Current path")],
    dst: Annotated[str, typer.Argument(help="New path")],
    _context=None,
) -> None:
    """Rename or move a path within one filesystem."""
    ctx = _get_context(_context)
    try:
        ctx.filesystem.rename(src, dst)
    except OSError as e:
        _fail(f"Cannot move '{src}' to '{dst}'", e)
    output.show_success(f"Moved {src} to {dst}")


if __name__ == "__main__":
    app()
