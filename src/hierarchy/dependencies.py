"""Selection of the dependency group applicable to a target framework."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from exceptions import IncompatiblePlatform
from versioning.frameworks import Framework, nearest_compatible

from .models import DependencyGroup, DependencySpec, PackageMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencySelection:
    """Outcome of picking a dependency group.

    ``error`` is set, and ``dependencies`` empty, when the package publishes
    dependency groups but none is compatible with the target framework.
    Callers are expected to check it.
    """

    dependencies: Tuple[DependencySpec, ...] = ()
    group: Optional[DependencyGroup] = None
    error: Optional[IncompatiblePlatform] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def select_dependencies(metadata: PackageMetadata, framework: Framework) -> DependencySelection:
    """Return the dependencies of ``metadata`` that apply to ``framework``.

    A package publishing no dependency groups is a leaf for every framework.
    Otherwise the group whose framework is the nearest compatible match wins.
    """
    groups = metadata.dependency_groups
    if not groups:
        return DependencySelection()

    by_framework = {}
    for group in groups:
        # First group wins when a package lists the same framework twice.
        by_framework.setdefault(group.framework, group)
    nearest = nearest_compatible(framework, by_framework.keys())

    if nearest is None:
        if is_debug_enabled(logger):
            logger.debug(
                "No compatible dependency group",
                extra=extra_context(
                    event="decision",
                    component="dependencies",
                    action="select_dependencies",
                    outcome="incompatible",
                    target=str(metadata.identity),
                    framework=framework.short_folder_name(),
                ),
            )
        return DependencySelection(
            error=IncompatiblePlatform(str(metadata.identity), framework.short_folder_name())
        )

    group = by_framework[nearest]
    if is_debug_enabled(logger):
        logger.debug(
            "Selected dependency group",
            extra=extra_context(
                event="decision",
                component="dependencies",
                action="select_dependencies",
                outcome="selected",
                target=str(metadata.identity),
                framework=nearest.short_folder_name(),
                count=len(group.dependencies),
            ),
        )
    return DependencySelection(dependencies=group.dependencies, group=group)
