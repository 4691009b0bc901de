"""
Core Exception Hierarchy for ImagePrune

Provides error classification with error codes, recovery suggestions and
context information. Every failure raised while selecting images is terminal:
selection is all-or-nothing, so callers get a single error and no partial
result.
"""

import sys
import time
import traceback
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """Standard error codes for different error categories."""

    # Filter expression errors (1000-1999)
    FILTER_INVALID_SYNTAX = 1001
    FILTER_PATTERN_COMPILE = 1002
    FILTER_NO_UNTIL_TIMESTAMP = 1003
    FILTER_UNPARSABLE_UNTIL_TIMESTAMP = 1004

    # Reference errors (2000-2999)
    REFERENCE_INVALID_FORMAT = 2001
    REFERENCE_NOT_FOUND = 2002

    # Inventory errors (3000-3999)
    INVENTORY_READ_FAILED = 3001
    INVENTORY_LABEL_READ_FAILED = 3002
    INVENTORY_WRITE_FAILED = 3003
    INVENTORY_NOT_FOUND = 3004
    INVENTORY_INVALID_QUERY = 3005

    # Configuration errors (4000-4999)
    CONFIG_INVALID_FORMAT = 4001
    CONFIG_INVALID_VALUE = 4002
    CONFIG_FILE_NOT_FOUND = 4003

    # Generic/unknown errors (9000-9999)
    UNKNOWN_ERROR = 9000
    INTERNAL_ERROR = 9001


@dataclass
class ErrorContext:
    """Contextual information about an error occurrence."""

    operation: str = ""
    stage: str = ""
    image_name: Optional[str] = None
    filter_expression: Optional[str] = None
    correlation_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    system_info: Dict[str, Any] = field(default_factory=dict)
    user_context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            'operation': self.operation,
            'stage': self.stage,
            'image_name': self.image_name,
            'filter_expression': self.filter_expression,
            'correlation_id': self.correlation_id,
            'timestamp': self.timestamp,
            'system_info': self.system_info,
            'user_context': self.user_context
        }


@dataclass
class RecoverySuggestion:
    """Structured recovery suggestion for error resolution."""

    action: str  # Brief action description
    description: str  # Detailed explanation
    command: Optional[str] = None  # CLI command to resolve
    priority: int = 1  # Priority order (1=highest)

    def to_dict(self) -> Dict[str, Any]:
        """Convert suggestion to dictionary."""
        return {
            'action': self.action,
            'description': self.description,
            'command': self.command,
            'priority': self.priority
        }


class ImagePruneError(Exception):
    """
    Base exception for all ImagePrune errors.

    Carries an error code, recovery suggestions and detailed context for
    debugging. None of these errors are retried internally.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[RecoverySuggestion]] = None
    ):
        """
        Initialize ImagePrune error.

        Args:
            message: Human-readable error description
            error_code: Standardized error code
            context: Contextual information about the error
            cause: Original exception that caused this error
            suggestions: List of recovery suggestions
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []
        self.stack_trace = traceback.format_exc()

        if not self.context.correlation_id:
            self.context.correlation_id = str(uuid.uuid4())[:8]

        if not self.context.system_info:
            self.context.system_info = {
                'platform': sys.platform,
                'python_version': sys.version,
            }

    def add_suggestion(self, suggestion: RecoverySuggestion) -> None:
        """Add a recovery suggestion to the error."""
        self.suggestions.append(suggestion)
        self.suggestions.sort(key=lambda s: s.priority)

    def get_user_message(self) -> str:
        """Get user-friendly error message with suggestions."""
        lines = [f"Error: {self.message}"]

        if self.error_code != ErrorCode.UNKNOWN_ERROR:
            lines.append(f"Error Code: {self.error_code.value}")

        if self.context.correlation_id:
            lines.append(f"Correlation ID: {self.context.correlation_id}")

        if self.suggestions:
            lines.append("\nSuggested solutions:")
            for i, suggestion in enumerate(self.suggestions[:3], 1):
                lines.append(f"  {i}. {suggestion.action}")
                lines.append(f"     {suggestion.description}")
                if suggestion.command:
                    lines.append(f"     Command: {suggestion.command}")

        return "\n".join(lines)

    def get_debug_info(self) -> Dict[str, Any]:
        """Get comprehensive debug information."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'error_code': self.error_code.value,
            'context': self.context.to_dict(),
            'cause': {
                'type': type(self.cause).__name__ if self.cause else None,
                'message': str(self.cause) if self.cause else None
            },
            'suggestions': [s.to_dict() for s in self.suggestions],
            'stack_trace': self.stack_trace
        }


class FilterError(ImagePruneError):
    """Exception for problems with a filter expression or its evaluation."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILTER_INVALID_SYNTAX,
        filter_expression: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if filter_expression is not None:
            context.filter_expression = filter_expression

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)
        self.filter_expression = filter_expression


class InvalidFilterSyntax(FilterError):
    """A raw filter string does not match the filter grammar."""

    def __init__(self, filter_expression: str, reason: str = "", **kwargs):
        message = f"invalid filter {filter_expression!r}"
        if reason:
            message = f"{message}: {reason}"
        kwargs['error_code'] = ErrorCode.FILTER_INVALID_SYNTAX

        super().__init__(message, filter_expression=filter_expression, **kwargs)

        self.add_suggestion(RecoverySuggestion(
            action="Check filter syntax",
            description=(
                "Filters take the form before=<image>, since=<image>, "
                "label=<key>[=<value>], reference=<pattern>, dangling=true|false "
                "or until=<timestamp>."
            ),
            priority=1
        ))


class PatternCompileFailure(FilterError):
    """A reference pattern is neither a valid shell pattern nor a valid regex."""

    def __init__(self, pattern: str, reason: str = "", **kwargs):
        message = f"invalid reference pattern {pattern!r}"
        if reason:
            message = f"{message}: {reason}"
        kwargs['error_code'] = ErrorCode.FILTER_PATTERN_COMPILE

        super().__init__(message, filter_expression=f"reference={pattern}", **kwargs)
        self.pattern = pattern


class InvalidUntilTimestamp(FilterError):
    """Base class for unusable until= values."""


class NoUntilTimestamp(InvalidUntilTimestamp):
    """The until= filter was given an empty timestamp."""

    def __init__(self, **kwargs):
        kwargs['error_code'] = ErrorCode.FILTER_NO_UNTIL_TIMESTAMP
        super().__init__("no until timestamp provided", filter_expression="until=", **kwargs)


class UnparsableUntilTimestamp(InvalidUntilTimestamp):
    """The until= value is neither a duration nor a timestamp."""

    def __init__(self, value: str, **kwargs):
        kwargs['error_code'] = ErrorCode.FILTER_UNPARSABLE_UNTIL_TIMESTAMP
        super().__init__(
            f"unable to parse until timestamp {value!r}",
            filter_expression=f"until={value}",
            **kwargs
        )
        self.value = value

        self.add_suggestion(RecoverySuggestion(
            action="Use a duration or RFC 3339 timestamp",
            description="For example until=24h or until=2024-01-02T15:04:05Z.",
            priority=1
        ))


class ReferenceFormatError(ImagePruneError):
    """A string is not a valid image reference."""

    def __init__(self, reference: str, reason: str = "invalid reference format", **kwargs):
        kwargs['error_code'] = ErrorCode.REFERENCE_INVALID_FORMAT
        super().__init__(f"{reason}: {reference!r}", **kwargs)
        self.reference = reference
        self.reason = reason


class ReferenceResolutionFailure(ImagePruneError):
    """A before=/since= reference cannot be parsed or found in the inventory."""

    def __init__(
        self,
        message: str,
        reference: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.REFERENCE_NOT_FOUND,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if reference is not None:
            context.image_name = reference

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)
        self.reference = reference

        if error_code == ErrorCode.REFERENCE_NOT_FOUND:
            self.add_suggestion(RecoverySuggestion(
                action="List available images",
                description="before= and since= must name an image that exists in the store.",
                command="imageprune image ls",
                priority=1
            ))


class InventoryError(ImagePruneError):
    """Exception for failures of the image inventory collaborator."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVENTORY_READ_FAILED,
        **kwargs
    ):
        kwargs['error_code'] = error_code
        super().__init__(message, **kwargs)


class LabelReadFailure(InventoryError):
    """The configuration blob holding an image's labels could not be read."""

    def __init__(self, image_name: str, reason: str = "", **kwargs):
        context = kwargs.get('context') or ErrorContext()
        context.image_name = image_name
        kwargs['context'] = context

        message = f"failed to read image config for {image_name!r}"
        if reason:
            message = f"{message}: {reason}"

        super().__init__(message, error_code=ErrorCode.INVENTORY_LABEL_READ_FAILED, **kwargs)
        self.image_name = image_name


class ConfigurationError(ImagePruneError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIG_INVALID_FORMAT,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if config_key:
            context.user_context['config_key'] = config_key
            context.user_context['config_value'] = config_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)

        if error_code == ErrorCode.CONFIG_INVALID_VALUE:
            self.add_suggestion(RecoverySuggestion(
                action="Check configuration values",
                description="Review the configuration file for invalid values and correct them.",
                priority=1
            ))
