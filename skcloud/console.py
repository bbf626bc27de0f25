"""Shared rich consoles and the progress-print helpers every pipeline uses."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()
err_console = Console(stderr=True)


def print_header(title: str):
    """Banner printed when a lifecycle command starts."""
    console.print(Panel(f"[bold]{escape(title)}[/bold]", border_style="blue"))


def print_step(message: str):
    """First half of the "doing X… done" pair."""
    console.print(f"[dim]{escape(message)}...[/dim]")


def print_done(message: str = ""):
    suffix = f" {escape(message)}" if message else ""
    console.print(f"[green]✓[/green] done{suffix}")


def print_command(command: str, address: str | None = None):
    """Echo a command before it runs."""
    where = f"[{address}] " if address else ""
    console.print(f"[cyan]→ {escape(where + command)}[/cyan]")


def print_error(message: str):
    err_console.print(f"[red]❌ {escape(message)}[/red]")


def print_output(output: str):
    """Dimmed stdout of a command that succeeded."""
    if output.strip():
        console.print(f"[dim]{escape(output.rstrip())}[/dim]")
