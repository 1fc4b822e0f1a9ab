"""Rich console output for the command line."""

from __future__ import annotations

from datetime import timedelta

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gmsfs.types import FileMetadata


def format_mode(mode: int) -> str:
    """Render permission bits as an octal string, e.g. ``0o644``."""
    return oct(mode & 0o7777)


def format_age(age: timedelta) -> str:
    """Render an age as whole seconds."""
    return f"{int(age.total_seconds())}s"


class Output:
    """Console presenter for facade results."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize output.

        Args:
            console: Rich console to write to.
        """
        self.console = console or Console()

    def show_listing(self, path: str, entries: list[FileMetadata]) -> None:
        """Display a directory listing table.

        Args:
            path: Directory that was listed.
            entries: Records from a shallow listing.
        """
        if not entries:
            self.console.print(f"[yellow]{escape(path)} is empty[/yellow]")
            return

        table = Table(title=escape(path))
        table.add_column("Name", style="cyan")
        table.add_column("Size", justify="right")
        table.add_column("Mode")
        table.add_column("Modified")

        for entry in entries:
            name = f"{entry.name}/" if entry.is_dir else entry.name
            table.add_row(
                escape(name),
                str(entry.size),
                format_mode(entry.mode),
                entry.last_modified.isoformat(timespec="seconds"),
            )

        self.console.print(table)

    def show_lines(self, lines: list[str]) -> None:
        """Print plain lines without markup."""
        for line in lines:
            self.console.print(line, markup=False, highlight=False, soft_wrap=True)

    def show_metadata(self, info: FileMetadata) -> None:
        """Display a single metadata record.

        Args:
            info: Record to display.
        """
        kind = "directory" if info.is_dir else "file"
        self.console.print(f"\n[bold]{escape(info.name)}[/bold] ({kind})")
        self.console.print(f"  Size: {info.size}")
        self.console.print(f"  Mode: {format_mode(info.mode)}")
        self.console.print(f"  Modified: {info.last_modified.isoformat(timespec='seconds')}")

    def show_success(self, message: str) -> None:
        """Show success message."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def show_error(self, message: str) -> None:
        """Show error message."""
        self.console.print(f"[red]✗[/red] {escape(message)}")
