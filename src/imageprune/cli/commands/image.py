"""
Image Commands

List images matching filter expressions and prune unused images from an
inventory snapshot.
"""

import logging
from typing import Annotated, List, Optional

import typer

from imageprune.cli.error_handling import handle_error
from imageprune.cli.utils import (
    build_cli_args,
    confirm_action,
    console,
    handle_keyboard_interrupt,
    load_config_from_cli,
    merge_filters,
    open_inventory,
    print_images,
)
from imageprune.core.exceptions import ImagePruneError
from imageprune.prune import PruneSelectionCoordinator
from imageprune.utils import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="image",
    help="Manage images",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

FILTER_HELP = (
    "Filter output based on conditions provided "
    "(before, since, until, label, reference, dangling)"
)


@app.command("ls")
def list_images(
    filters: Annotated[Optional[List[str]], typer.Option("--filter", "-f", help=FILTER_HELP)] = None,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only show image names")] = False,
    output_format: Annotated[Optional[str], typer.Option("--format", help="Output format: table, json or quiet")] = None,
    snapshot: Annotated[Optional[str], typer.Option("--snapshot", help="Inventory snapshot file (YAML or JSON)")] = None,
    config: Annotated[Optional[str], typer.Option("--config", "-c", help="Configuration file path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose output")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
):
    """
    List images.

    [bold cyan]Examples:[/bold cyan]

    • Dangling images: [green]imageprune image ls -f dangling=true[/green]
    • Older than a day: [green]imageprune image ls -f until=24h[/green]
    • By label: [green]imageprune image ls -f label=org=example[/green]
    """
    try:
        cli_args = build_cli_args(
            snapshot=snapshot,
            format="quiet" if quiet else output_format,
            verbose=verbose,
            debug=debug,
        )
        app_config = load_config_from_cli(config_file=config, cli_args=cli_args)
        setup_logging(app_config)

        coordinator = PruneSelectionCoordinator(open_inventory(app_config))
        images = coordinator.list_images(merge_filters(app_config, filters))
        print_images(images, app_config.output.format)

    except ImagePruneError as e:
        handle_error(e)
    except KeyboardInterrupt:
        handle_keyboard_interrupt()


@app.command("prune")
def prune_images(
    filters: Annotated[Optional[List[str]], typer.Option("--filter", help=FILTER_HELP)] = None,
    all_images: Annotated[bool, typer.Option("--all", "-a", help="Remove all unused images, not just dangling ones")] = False,
    force: Annotated[bool, typer.Option("--force", "-f", help="Do not prompt for confirmation")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show what would be removed without removing it")] = False,
    snapshot: Annotated[Optional[str], typer.Option("--snapshot", help="Inventory snapshot file (YAML or JSON)")] = None,
    config: Annotated[Optional[str], typer.Option("--config", "-c", help="Configuration file path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose output")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
):
    """
    Remove unused images.

    [bold cyan]Examples:[/bold cyan]

    • Dangling images: [green]imageprune image prune --force[/green]
    • Unused images older than a week: [green]imageprune image prune -a --filter until=168h[/green]
    • Preview: [green]imageprune image prune -a --dry-run[/green]
    """
    try:
        cli_args = build_cli_args(
            snapshot=snapshot,
            all_images=all_images,
            force=force,
            verbose=verbose,
            debug=debug,
        )
        app_config = load_config_from_cli(config_file=config, cli_args=cli_args)
        setup_logging(app_config)

        prune_all = app_config.prune.all_images
        if not dry_run and not app_config.prune.force:
            if prune_all:
                warning = "WARNING! This will remove all images without at least one container associated to them."
            else:
                warning = "WARNING! This will remove all dangling images."
            if not confirm_action(f"{warning}\nAre you sure you want to continue?"):
                console.print("[yellow]Prune cancelled[/yellow]")
                return

        coordinator = PruneSelectionCoordinator(open_inventory(app_config))
        report = coordinator.prune(
            merge_filters(app_config, filters),
            all_images=prune_all,
            dry_run=dry_run
        )

        removed = report.selected if report.dry_run else report.deleted
        if removed:
            typer.echo("Would delete:" if report.dry_run else "Deleted Images:")
            for image in removed:
                typer.echo(f"untagged: {image.name}")
        typer.echo(f"Total: {len(removed)} image(s)")

    except ImagePruneError as e:
        handle_error(e)
    except KeyboardInterrupt:
        handle_keyboard_interrupt()
