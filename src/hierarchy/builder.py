"""Recursive, concurrent construction of resolved dependency hierarchies.

For every node the builder fetches the package metadata, picks the
dependency group for the target framework, drops dependencies matching a
dependency-exclusion filter, resolves the remaining ones to concrete versions
and recurses into each of them. Siblings are resolved and expanded
concurrently; children keep the declaration order of the dependency group.

Packages matching an expansion-exclusion filter are listed as leaves and
their metadata is never fetched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Iterable, List, Optional, Sequence, TypeVar

from common.logging_utils import extra_context, is_debug_enabled, Timer
from exceptions import DepTreeError, FeedError, PackageNotFound
from versioning.frameworks import Framework
from versioning.models import FloatBehavior, PackageIdentity, VersionConstraint
from versioning.selector import VersionSelector

from .cache import ResolutionCache
from .dependencies import select_dependencies
from .filters import ExclusionFilter, matches_any
from .models import DependencySpec, HierarchyNode, PackageMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_in_order(awaitables: Iterable[Awaitable[T]]) -> List[T]:
    """Run awaitables concurrently and return their results in input order.

    On the first failure every sibling still running is cancelled and the
    failure is raised. Cancelling the caller cancels all of them.
    """
    tasks = [asyncio.ensure_future(a) for a in awaitables]
    if not tasks:
        return []
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise
    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    for task in tasks:
        if task.done() and not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


class HierarchyBuilder:
    """Resolves packages and their transitive dependency hierarchies.

    One builder is one resolution session: it owns the
    :class:`ResolutionCache` shared by every branch it expands.
    """

    def __init__(
        self,
        feed,
        *,
        cache: Optional[ResolutionCache] = None,
        float_behavior: FloatBehavior = FloatBehavior.MAJOR,
        include_prerelease: bool = False,
    ):
        """Initialize the builder.

        Args:
            feed: Feed client exposing ``list_versions`` and ``fetch_metadata``.
            cache: Cache to share; a fresh one is created when omitted.
            float_behavior: Default float for dependency constraints.
            include_prerelease: Consider prerelease versions everywhere.
        """
        self.feed = feed
        self.cache = cache if cache is not None else ResolutionCache()
        self.selector = VersionSelector(
            feed,
            self.cache,
            float_behavior=float_behavior,
            include_prerelease=include_prerelease,
        )

    async def resolve_latest(
        self, name: str, constraint: Optional[VersionConstraint] = None
    ) -> PackageIdentity:
        """Resolve ``name`` to its best version for ``constraint``."""
        return await self.selector.resolve_latest(name, constraint)

    async def get_metadata(self, identity: PackageIdentity) -> PackageMetadata:
        """Fetch (once) the published metadata of ``identity``."""
        key = self.cache.make_key("metadata-of", identity.name.lower(), identity.version)
        try:
            return await self.cache.get_or_fetch(key, lambda: self.feed.fetch_metadata(identity))
        except FeedError as exc:
            raise PackageNotFound(str(identity), getattr(self.feed, "feed_url", None)) from exc

    async def get_dependencies(
        self,
        identity: PackageIdentity,
        framework: Framework,
        dependency_filters: Sequence[ExclusionFilter] = (),
    ) -> List[PackageIdentity]:
        """Resolve the direct dependencies of ``identity`` for ``framework``.

        Dependencies matching a dependency-exclusion filter are dropped before
        they are resolved.

        Raises:
            PackageNotFound, VersionNotFound, IncompatiblePlatform
        """
        metadata = await self.get_metadata(identity)
        selection = select_dependencies(metadata, framework)
        if selection.error is not None:
            raise selection.error
        kept = self._filter(selection.dependencies, dependency_filters)
        return await gather_in_order(
            self.selector.resolve_latest(spec.name, spec.constraint) for spec in kept
        )

    async def build_hierarchy(
        self,
        identity: PackageIdentity,
        framework: Framework,
        dependency_filters: Sequence[ExclusionFilter] = (),
        expansion_filters: Sequence[ExclusionFilter] = (),
    ) -> HierarchyNode:
        """Build the resolved dependency tree rooted at ``identity``.

        Raises:
            PackageNotFound, VersionNotFound, IncompatiblePlatform: annotated
                with the path from the root to the failing package.
        """
        if identity is None:
            raise ValueError("identity must not be None")
        if framework is None:
            raise ValueError("framework must not be None")
        dependency_filters = tuple(dependency_filters)
        expansion_filters = tuple(expansion_filters)

        with Timer() as t:
            try:
                root = await self._expand(identity, framework, dependency_filters, expansion_filters, ())
            except asyncio.CancelledError:
                logger.debug(
                    "Resolution cancelled",
                    extra=extra_context(event="cancelled", component="builder", target=str(identity)),
                )
                raise
        if is_debug_enabled(logger):
            logger.debug(
                "Hierarchy built",
                extra=extra_context(
                    event="function_exit",
                    component="builder",
                    action="build_hierarchy",
                    outcome="success",
                    target=str(identity),
                    duration_ms=t.duration_ms(),
                    cache=self.cache.stats(),
                ),
            )
        return root

    async def _expand(
        self,
        identity: PackageIdentity,
        framework: Framework,
        dependency_filters: Sequence[ExclusionFilter],
        expansion_filters: Sequence[ExclusionFilter],
        parent_path: Sequence[str],
    ) -> HierarchyNode:
        if matches_any(expansion_filters, identity.name):
            return HierarchyNode(identity)

        path = tuple(parent_path) + (str(identity),)
        try:
            children = await self.get_dependencies(identity, framework, dependency_filters)
        except DepTreeError as exc:
            if exc.path:
                raise
            raise exc.with_path(path) from exc

        nodes = await gather_in_order(
            self._expand(child, framework, dependency_filters, expansion_filters, path)
            for child in children
        )
        return HierarchyNode(identity, nodes)

    @staticmethod
    def _filter(
        dependencies: Iterable[DependencySpec], filters: Sequence[ExclusionFilter]
    ) -> List[DependencySpec]:
        kept = []
        for spec in dependencies:
            if matches_any(filters, spec.name):
                logger.debug(
                    "Dependency excluded",
                    extra=extra_context(event="decision", component="builder", outcome="excluded", target=spec.name),
                )
                continue
            kept.append(spec)
        return kept
