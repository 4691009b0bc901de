"""
Filtering System for Images

Parses ``key=value`` filter expressions into typed clauses and compiles them
into an ordered list of predicate stages that narrow an image inventory.

Key Components:
- parse_filters / FilterSet: the filter expression parser
- FilterFactory: compiles a FilterSet into stages bound to an inventory
- Filter: abstract base class for all stages
- Stage implementations for creation time, labels, references and dangling images
"""

from .base import Filter, select
from .parser import (
    FilterKind, FilterSet, FilterClause, TimeClause, UntilClause, LabelClause,
    ReferenceClause, DanglingClause, parse_clause, parse_filters
)
from .created import CreatedAtFilter, UntilFilter
from .label import LabelFilter, matches_any_label
from .reference import ReferenceFilter, matches_references
from .dangling import DanglingFilter, dangling_images, tagged_images
from .factory import FilterFactory

__all__ = [
    "Filter",
    "select",
    "FilterKind",
    "FilterSet",
    "FilterClause",
    "TimeClause",
    "UntilClause",
    "LabelClause",
    "ReferenceClause",
    "DanglingClause",
    "parse_clause",
    "parse_filters",
    "CreatedAtFilter",
    "UntilFilter",
    "LabelFilter",
    "matches_any_label",
    "ReferenceFilter",
    "matches_references",
    "DanglingFilter",
    "dangling_images",
    "tagged_images",
    "FilterFactory",
]
