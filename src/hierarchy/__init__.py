"""DepTree hierarchy package.

This package resolves the transitive dependency hierarchy of a package:
version selection, per-framework dependency selection, exclusion filters,
memoization of feed lookups and the recursive concurrent builder.
"""

from .models import DependencyGroup, DependencySpec, HierarchyNode, PackageMetadata
from .cache import ResolutionCache
from .filters import ExclusionFilter, compile_filters, filters_from_cli
from .dependencies import DependencySelection, select_dependencies
from .builder import HierarchyBuilder, gather_in_order

__all__ = [
    "DependencyGroup",
    "DependencySpec",
    "HierarchyNode",
    "PackageMetadata",
    "ResolutionCache",
    "ExclusionFilter",
    "compile_filters",
    "filters_from_cli",
    "DependencySelection",
    "select_dependencies",
    "HierarchyBuilder",
    "gather_in_order",
]
