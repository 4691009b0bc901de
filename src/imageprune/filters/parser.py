"""
Filter Expression Parsing

Turns the raw ``key=value`` strings collected by the CLI into typed filter
clauses and aggregates them into a FilterSet. Parsing is purely syntactic:
no inventory lookups and no reference resolution happen here.

Grammar::

    dangling=true|false
    before=<reference>
    since=<reference>
    until=<timestamp>
    label=<key>
    label=<key>=<value>
    reference=<pattern>
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from imageprune.core.exceptions import InvalidFilterSyntax

logger = logging.getLogger(__name__)


class FilterKind(Enum):
    """Filter keywords accepted on the command line."""
    BEFORE = "before"
    SINCE = "since"
    UNTIL = "until"
    LABEL = "label"
    REFERENCE = "reference"
    DANGLING = "dangling"


@dataclass(frozen=True)
class TimeClause:
    """``before=<ref>`` or ``since=<ref>``; the reference is resolved later."""
    kind: FilterKind
    reference: str


@dataclass(frozen=True)
class UntilClause:
    """``until=<timestamp>``; the timestamp is resolved when the stage runs."""
    timestamp: str


@dataclass(frozen=True)
class LabelClause:
    """``label=<key>`` (value is empty, meaning any value) or ``label=<key>=<value>``."""
    key: str
    value: str = ""


@dataclass(frozen=True)
class ReferenceClause:
    """``reference=<pattern>``."""
    pattern: str


@dataclass(frozen=True)
class DanglingClause:
    """``dangling=true|false``."""
    dangling: bool


FilterClause = Union[TimeClause, UntilClause, LabelClause, ReferenceClause, DanglingClause]


@dataclass
class FilterSet:
    """
    All parsed clauses grouped by kind.

    Time and reference clauses accumulate in input order. Labels use mapping
    semantics (a repeated key overwrites its value) and dangling/until are
    single values where the last clause wins.

    Attributes:
        before: Raw before= references, in input order
        since: Raw since= references, in input order
        until: Raw until= timestamp, or None
        labels: Requested label key -> value ("" matches any value)
        reference: Reference patterns, in input order
        dangling: None for no constraint, else the requested flag
    """
    before: List[str] = field(default_factory=list)
    since: List[str] = field(default_factory=list)
    until: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)
    reference: List[str] = field(default_factory=list)
    dangling: Optional[bool] = None

    def add(self, clause: FilterClause) -> None:
        """Fold a single clause into the set."""
        if isinstance(clause, TimeClause):
            if clause.kind is FilterKind.BEFORE:
                self.before.append(clause.reference)
            else:
                self.since.append(clause.reference)
        elif isinstance(clause, UntilClause):
            self.until = clause.timestamp
        elif isinstance(clause, LabelClause):
            self.labels[clause.key] = clause.value
        elif isinstance(clause, ReferenceClause):
            self.reference.append(clause.pattern)
        elif isinstance(clause, DanglingClause):
            self.dangling = clause.dangling
        else:
            raise TypeError(f"Unsupported filter clause: {clause!r}")

    def is_empty(self) -> bool:
        """True when no clause constrains the selection."""
        return not (
            self.before or self.since or self.until is not None
            or self.labels or self.reference or self.dangling is not None
        )

    def describe(self) -> List[str]:
        """Render the set back into filter strings, grouped by kind."""
        parts = [f"before={ref}" for ref in self.before]
        parts.extend(f"since={ref}" for ref in self.since)
        if self.until is not None:
            parts.append(f"until={self.until}")
        parts.extend(
            f"label={key}={value}" if value else f"label={key}"
            for key, value in self.labels.items()
        )
        parts.extend(f"reference={pattern}" for pattern in self.reference)
        if self.dangling is not None:
            parts.append(f"dangling={'true' if self.dangling else 'false'}")
        return parts


def parse_clause(raw: str) -> FilterClause:
    """
    Parse one raw filter string into a typed clause.

    Args:
        raw: Filter string such as ``label=org=acme`` or ``dangling=true``

    Returns:
        The parsed clause

    Raises:
        InvalidFilterSyntax: If the string is outside the filter grammar
    """
    tokens = raw.split("=")

    if len(tokens) == 2:
        keyword, value = tokens
        try:
            kind = FilterKind(keyword)
        except ValueError:
            raise InvalidFilterSyntax(raw, f"unknown filter {keyword!r}") from None

        if kind is FilterKind.DANGLING:
            if value == "true":
                return DanglingClause(True)
            if value == "false":
                return DanglingClause(False)
            raise InvalidFilterSyntax(raw, "dangling expects 'true' or 'false'")
        if kind in (FilterKind.BEFORE, FilterKind.SINCE):
            return TimeClause(kind, value)
        if kind is FilterKind.UNTIL:
            return UntilClause(value)
        if kind is FilterKind.LABEL:
            return LabelClause(value)
        return ReferenceClause(value)

    if len(tokens) == 3:
        keyword, key, value = tokens
        if keyword == FilterKind.LABEL.value:
            return LabelClause(key, value)
        raise InvalidFilterSyntax(raw, "only label filters take a key=value argument")

    raise InvalidFilterSyntax(raw)


def parse_filters(raw_filters: Iterable[str]) -> FilterSet:
    """
    Parse an ordered sequence of raw filter strings.

    Args:
        raw_filters: Filter strings in the order the user supplied them

    Returns:
        FilterSet aggregating every clause

    Raises:
        InvalidFilterSyntax: On the first string outside the grammar
    """
    filter_set = FilterSet()
    for raw in raw_filters:
        filter_set.add(parse_clause(raw))
    logger.debug(f"Parsed filters: {filter_set.describe()}")
    return filter_set
