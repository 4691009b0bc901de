#!/usr/bin/env python3
"""
ImagePrune CLI Main Application

Typer-based command-line interface for listing images by filter expression
and pruning unused images.
"""

import sys
from typing import Optional

import typer
from rich.console import Console

from imageprune.cli import __version__
from imageprune.cli.commands import image

console = Console()

app = typer.Typer(
    name="imageprune",
    help="Filter and prune container images",
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.add_typer(image.app, name="image", help="List and prune images")


def version_callback(value: bool):
    """Show version information."""
    if value:
        console.print(f"[bold cyan]ImagePrune[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit"
    ),
):
    """
    ImagePrune - filter and prune container images

    [bold]Quick Start:[/bold]

    • List dangling images: [cyan]imageprune image ls --snapshot images.yaml -f dangling=true[/cyan]
    • Prune dangling images: [cyan]imageprune image prune --snapshot images.yaml --force[/cyan]
    """


def main():
    """Entry point for the imageprune console script."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
