"""
Configuration Models

Pydantic models for type-safe configuration management with validation,
defaults, and field documentation.
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from imageprune.core.exceptions import InvalidFilterSyntax
from imageprune.filters.parser import parse_clause


class InventoryConfig(BaseModel):
    """Where image inventory snapshots are read from."""

    snapshot_path: Optional[Path] = Field(
        default=None,
        description="YAML or JSON inventory snapshot to list and prune"
    )


class FilterConfig(BaseModel):
    """Filters applied to every list and prune request."""

    default_filters: List[str] = Field(
        default=[],
        description="Filter expressions prepended to command-line filters"
    )

    @field_validator('default_filters')
    @classmethod
    def validate_default_filters(cls, v):
        """Reject filter expressions the parser would refuse."""
        for expression in v:
            try:
                parse_clause(expression)
            except InvalidFilterSyntax as e:
                raise ValueError(e.message)
        return v


class PruneConfig(BaseModel):
    """Defaults for the prune command."""

    all_images: bool = Field(
        default=False,
        description="Prune every image not used by a container, not only dangling ones"
    )
    force: bool = Field(
        default=False,
        description="Skip the confirmation prompt"
    )


class LoggingConfig(BaseModel):
    """Logging setup for the command-line tool."""

    level: str = Field(
        default="WARNING",
        description="Root log level"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="logging format string"
    )
    datefmt: Optional[str] = Field(
        default=None,
        description="logging date format string"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate the level is a known logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unsupported log level: {v}")
        return level


class OutputConfig(BaseModel):
    """How listings are rendered."""

    format: str = Field(
        default="table",
        description="Listing format: table, json or quiet"
    )

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        supported_formats = {'table', 'json', 'quiet'}
        if v.lower() not in supported_formats:
            raise ValueError(f"Unsupported output format: {v}. Supported: {', '.join(sorted(supported_formats))}")
        return v.lower()


class AppConfig(BaseModel):
    """Root application configuration model."""

    version: str = Field(default="0.1.0", description="Configuration version")

    inventory: InventoryConfig = Field(default_factory=InventoryConfig, description="Inventory configuration")
    filters: FilterConfig = Field(default_factory=FilterConfig, description="Filter configuration")
    prune: PruneConfig = Field(default_factory=PruneConfig, description="Prune configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output configuration")

    verbose: bool = Field(
        default=False,
        description="Enable verbose logging output"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed logging"
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    def get_log_level(self) -> str:
        """Effective log level once --verbose and --debug are considered."""
        if self.debug:
            return "DEBUG"
        if self.verbose:
            return "INFO"
        return self.logging.level
