"""Version selection: the best published version of a package for a constraint."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from exceptions import FeedError, PackageNotFound, VersionNotFound

from .models import FloatBehavior, NuGetVersion, PackageIdentity, VersionConstraint

logger = logging.getLogger(__name__)


class VersionSelector:
    """Resolves ``(name, constraint)`` to a concrete :class:`PackageIdentity`.

    Version lists come from the feed through the shared resolution cache, so
    each package name is listed at most once per session.
    """

    def __init__(
        self,
        feed,
        cache,
        *,
        float_behavior: FloatBehavior = FloatBehavior.MAJOR,
        include_prerelease: bool = False,
    ):
        """Initialize the selector.

        Args:
            feed: Feed client exposing ``list_versions(name)``.
            cache: Shared :class:`hierarchy.cache.ResolutionCache`.
            float_behavior: Float applied to constraints that carry none.
            include_prerelease: Consider prerelease versions for every constraint.
        """
        self.feed = feed
        self.cache = cache
        self.float_behavior = float_behavior
        self.include_prerelease = include_prerelease

    async def list_versions(self, name: str) -> List[NuGetVersion]:
        """Fetch (once) every published version of ``name``."""
        key = self.cache.make_key("versions-of", name.lower())
        return await self.cache.get_or_fetch(key, lambda: self.feed.list_versions(name))

    async def resolve_latest(
        self, name: str, constraint: Optional[VersionConstraint] = None
    ) -> PackageIdentity:
        """Return the best published version of ``name`` satisfying ``constraint``.

        Raises:
            ValueError: If ``name`` is empty.
            PackageNotFound: If the feed lists no versions for ``name``.
            VersionNotFound: If no published version satisfies ``constraint``.
        """
        if not name or not name.strip():
            raise ValueError("Package name must not be empty")
        effective = (constraint or VersionConstraint.any()).with_float(self.float_behavior)

        try:
            candidates = await self.list_versions(name)
        except FeedError as exc:
            raise PackageNotFound(name, getattr(self.feed, "feed_url", None)) from exc
        if not candidates:
            raise PackageNotFound(name, getattr(self.feed, "feed_url", None))

        version, count, error = self.pick(effective, candidates)
        if version is None:
            if is_debug_enabled(logger):
                logger.debug(
                    "No version satisfies constraint",
                    extra=extra_context(
                        event="decision",
                        component="selector",
                        action="resolve_latest",
                        outcome="version_not_found",
                        target=name,
                        count=count,
                        reason=error,
                    ),
                )
            raise VersionNotFound(name, effective.interval_text())

        if is_debug_enabled(logger):
            logger.debug(
                "Resolved version",
                extra=extra_context(
                    event="decision",
                    component="selector",
                    action="resolve_latest",
                    outcome="resolved",
                    target=f"{name} {version}",
                    count=count,
                ),
            )
        return PackageIdentity(name, version)

    def pick(
        self, constraint: VersionConstraint, candidates: Sequence[NuGetVersion]
    ) -> Tuple[Optional[NuGetVersion], int, Optional[str]]:
        """Apply ``constraint`` to the candidates.

        Prerelease versions are only considered when the selector includes
        them or when the constraint's lower bound is itself a prerelease.

        Returns:
            Tuple of (resolved_version, candidate_count, error_message)
        """
        if not candidates:
            return None, 0, "No versions available"
        allow_prerelease = self.include_prerelease or (
            constraint.min_version is not None and constraint.min_version.is_prerelease
        )
        eligible = [v for v in candidates if allow_prerelease or not v.is_prerelease]
        if not eligible:
            return None, len(candidates), "No stable versions available"
        best = constraint.find_best_match(eligible)
        if best is None:
            return None, len(candidates), f"No versions match range '{constraint.interval_text()}'"
        return best, len(candidates), None
