"""NuGet metadata parsing: versions and dependency groups from v3 JSON documents."""

import logging
from typing import Any, Dict, List, Optional

from common.logging_utils import extra_context, is_debug_enabled
from hierarchy.models import DependencyGroup, DependencySpec, PackageMetadata
from versioning.frameworks import parse_framework
from versioning.models import NuGetVersion, PackageIdentity
from versioning.parser import parse_range, try_parse_version

logger = logging.getLogger(__name__)


def parse_flat_container_versions(data: Optional[Dict[str, Any]]) -> List[NuGetVersion]:
    """Extract versions from a flat container ``index.json`` document.

    Invalid version strings are skipped.

    Args:
        data: Parsed ``{"versions": [...]}`` document

    Returns:
        List of versions in feed order
    """
    if not isinstance(data, dict):
        return []
    versions: List[NuGetVersion] = []
    for raw in data.get("versions", []) or []:
        parsed = try_parse_version(raw) if isinstance(raw, str) else None
        if parsed is None:
            if is_debug_enabled(logger):
                logger.debug("Skipping invalid version", extra=extra_context(
                    event="parse", component="metadata", outcome="invalid_version", target=str(raw)
                ))
            continue
        versions.append(parsed)
    return versions


def _parse_dependency(entry: Dict[str, Any]) -> Optional[DependencySpec]:
    """Parse one ``{"id": ..., "range": ...}`` dependency entry."""
    name = (entry.get("id") or "").strip()
    if not name:
        return None
    raw_range = entry.get("range")
    try:
        constraint = parse_range(raw_range)
    except ValueError:
        logger.warning("Ignoring invalid version range %r for dependency %s", raw_range, name)
        constraint = parse_range(None)
    return DependencySpec(name=name, constraint=constraint)


def parse_dependency_groups(catalog_entry: Dict[str, Any]) -> List[DependencyGroup]:
    """Extract the per-framework dependency table from a catalog entry.

    A group without ``targetFramework`` applies to any framework.

    Args:
        catalog_entry: Registration ``catalogEntry`` object

    Returns:
        Dependency groups in published order
    """
    groups: List[DependencyGroup] = []
    for group in catalog_entry.get("dependencyGroups", []) or []:
        if not isinstance(group, dict):
            continue
        framework = parse_framework(group.get("targetFramework"))
        specs = []
        for entry in group.get("dependencies", []) or []:
            if isinstance(entry, dict):
                spec = _parse_dependency(entry)
                if spec is not None:
                    specs.append(spec)
        groups.append(DependencyGroup(framework=framework, dependencies=tuple(specs)))
    return groups


def parse_package_metadata(identity: PackageIdentity, catalog_entry: Dict[str, Any]) -> PackageMetadata:
    """Build :class:`PackageMetadata` for ``identity`` from its catalog entry."""
    groups = parse_dependency_groups(catalog_entry)
    if is_debug_enabled(logger):
        logger.debug("Parsed package metadata", extra=extra_context(
            event="parse", component="metadata", action="parse_package_metadata",
            target=str(identity), count=len(groups),
        ))
    return PackageMetadata(identity=identity, dependency_groups=tuple(groups))
