"""
CLI Utilities

Shared utilities for CLI commands: configuration loading, inventory access
and image listing output.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from imageprune.core.config import AppConfig, ConfigManager
from imageprune.core.exceptions import ConfigurationError, ErrorCode, RecoverySuggestion
from imageprune.images import ImageRecord
from imageprune.inventory import SnapshotInventory
from imageprune.utils import humanize_age, short_digest

console = Console()


def build_cli_args(**kwargs: Any) -> Dict[str, Any]:
    """Collect the options a command was given, dropping unset ones."""
    return {key: value for key, value in kwargs.items() if value is not None}


def load_config_from_cli(
    config_file: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> AppConfig:
    """
    Load configuration for a command and print any warnings.

    Args:
        config_file: Optional path to configuration file
        cli_args: Dictionary of CLI arguments to override config

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    config_manager = ConfigManager(config_file=config_file)
    app_config = config_manager.load_config(cli_args=cli_args or {})

    if app_config.verbose or app_config.debug:
        for warning in config_manager.validate_config(app_config):
            console.print(f"[yellow]Configuration warning:[/yellow] {warning}")

    return app_config


def open_inventory(config: AppConfig) -> SnapshotInventory:
    """
    Open the inventory snapshot named by the configuration.

    Raises:
        ConfigurationError: If no snapshot is configured
        InventoryError: If the snapshot cannot be read
    """
    snapshot = config.inventory.snapshot_path
    if snapshot is None:
        error = ConfigurationError(
            "No inventory snapshot configured",
            error_code=ErrorCode.CONFIG_INVALID_VALUE,
            config_key="inventory.snapshot_path"
        )
        error.add_suggestion(RecoverySuggestion(
            action="Name a snapshot",
            description="Pass --snapshot, set IMAGEPRUNE_SNAPSHOT, or set inventory.snapshot_path in the config file.",
            command="imageprune image ls --snapshot images.yaml",
            priority=0
        ))
        raise error
    return SnapshotInventory(snapshot)


def merge_filters(config: AppConfig, filters: Optional[List[str]]) -> List[str]:
    """Config default filters first, then the command-line filters."""
    return list(config.filters.default_filters) + list(filters or [])


def print_images_table(images: List[ImageRecord], now: Optional[datetime] = None) -> None:
    """Render images as a rich table."""
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("REPOSITORY")
    table.add_column("TAG")
    table.add_column("IMAGE ID", style="dim")
    table.add_column("CREATED")

    for image in images:
        table.add_row(
            image.repository or "<none>",
            image.tag or "<none>",
            short_digest(image.target_digest or image.config_digest),
            humanize_age(image.created_at, now)
        )

    console.print(table)


def print_images(images: List[ImageRecord], output_format: str = "table") -> None:
    """
    Print images in the requested format.

    Args:
        images: Images to print, in listing order
        output_format: ``table``, ``json`` or ``quiet`` (names only)
    """
    # Machine-readable formats bypass rich so long names are never wrapped
    if output_format == "json":
        typer.echo(json.dumps([image.to_dict() for image in images], indent=2))
    elif output_format == "quiet":
        for image in images:
            typer.echo(image.name)
    else:
        print_images_table(images)


def confirm_action(message: str, default: bool = False) -> bool:
    """Ask for user confirmation with rich formatting."""
    return typer.confirm(message, default=default)


def handle_keyboard_interrupt() -> None:
    """Handle keyboard interrupt gracefully."""
    console.print("\n[yellow]Operation cancelled by user[/yellow]")
    raise typer.Exit(1)
