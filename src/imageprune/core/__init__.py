"""
Core ImagePrune Package

Contains core infrastructure: the error hierarchy, configuration and the
filter pipeline executor.
"""

from imageprune.core.exceptions import (
    ImagePruneError,
    FilterError,
    InvalidFilterSyntax,
    PatternCompileFailure,
    InvalidUntilTimestamp,
    NoUntilTimestamp,
    UnparsableUntilTimestamp,
    ReferenceFormatError,
    ReferenceResolutionFailure,
    InventoryError,
    LabelReadFailure,
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    RecoverySuggestion
)

__all__ = [
    'ImagePruneError',
    'FilterError',
    'InvalidFilterSyntax',
    'PatternCompileFailure',
    'InvalidUntilTimestamp',
    'NoUntilTimestamp',
    'UnparsableUntilTimestamp',
    'ReferenceFormatError',
    'ReferenceResolutionFailure',
    'InventoryError',
    'LabelReadFailure',
    'ConfigurationError',
    'ErrorCode',
    'ErrorContext',
    'RecoverySuggestion',
]
