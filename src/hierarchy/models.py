"""Data models for published package metadata and resolved hierarchies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from versioning.frameworks import Framework
from versioning.models import PackageIdentity, VersionConstraint


@dataclass(frozen=True)
class DependencySpec:
    """An unresolved reference to another package inside one dependency group."""

    name: str
    constraint: VersionConstraint


@dataclass(frozen=True)
class DependencyGroup:
    """One row of a package's per-framework dependency table."""

    framework: Framework
    dependencies: Tuple[DependencySpec, ...] = ()


@dataclass(frozen=True)
class PackageMetadata:
    """Published record of one concrete package version."""

    identity: PackageIdentity
    dependency_groups: Tuple[DependencyGroup, ...] = ()


@dataclass
class HierarchyNode:
    """A resolved package and its resolved dependencies, in declaration order.

    ``value`` and ``children`` form the read-only view consumed by writers.
    """

    identity: PackageIdentity
    children: List["HierarchyNode"] = field(default_factory=list)

    @property
    def value(self) -> PackageIdentity:
        return self.identity

    def names(self) -> List[str]:
        """Package names of every node in the tree, depth-first."""
        result = [self.identity.name]
        for child in self.children:
            result.extend(child.names())
        return result
