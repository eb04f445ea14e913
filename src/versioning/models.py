"""Data models for NuGet versions, version ranges and package identities."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional, Tuple

import semantic_version


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class NuGetVersion:
    """A NuGet version: semantic ``major.minor.patch[-prerelease]`` plus a revision.

    Ordering follows SemVer precedence for the first three parts and the
    prerelease label (delegated to ``semantic_version``), with the fourth
    NuGet "revision" number as a tie breaker.
    """

    semver: semantic_version.Version
    revision: int = 0

    @property
    def major(self) -> int:
        return self.semver.major

    @property
    def minor(self) -> int:
        return self.semver.minor

    @property
    def patch(self) -> int:
        return self.semver.patch

    @property
    def is_prerelease(self) -> bool:
        return bool(self.semver.prerelease)

    def _key(self) -> Tuple[semantic_version.Version, int]:
        return self.semver, self.revision

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        if self.semver != other.semver:
            return self.semver < other.semver
        return self.revision < other.revision

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.semver.prerelease:
            text += "-" + ".".join(self.semver.prerelease)
        return text

    def __repr__(self) -> str:
        return f"NuGetVersion({str(self)!r})"


class FloatBehavior(Enum):
    """Scope inside which the highest matching version is preferred."""

    MAJOR = "major"  # highest version in the range
    MINOR = "minor"  # highest version sharing the range's anchor major
    PATCH = "patch"  # highest version sharing the range's anchor major.minor


@dataclass(frozen=True)
class VersionConstraint:
    """A NuGet version range with an optional floating directive.

    ``None`` bounds are open. The canonical ``str()`` form is stable for
    logically equal constraints and is what cache keys are built from.
    """

    min_version: Optional[NuGetVersion] = None
    min_inclusive: bool = True
    max_version: Optional[NuGetVersion] = None
    max_inclusive: bool = False
    float_behavior: Optional[FloatBehavior] = None
    original: Optional[str] = field(default=None, compare=False)

    @classmethod
    def any(cls) -> "VersionConstraint":
        """Accept anything, float to the absolute latest."""
        return cls(float_behavior=FloatBehavior.MAJOR, original="*")

    def with_float(self, behavior: FloatBehavior) -> "VersionConstraint":
        """Return a copy floating with ``behavior`` unless one is already set."""
        if self.float_behavior is not None:
            return self
        return replace(self, float_behavior=behavior)

    def satisfies(self, version: NuGetVersion) -> bool:
        """Check whether ``version`` falls inside the interval."""
        if self.min_version is not None:
            if self.min_inclusive and version < self.min_version:
                return False
            if not self.min_inclusive and version <= self.min_version:
                return False
        if self.max_version is not None:
            if self.max_inclusive and version > self.max_version:
                return False
            if not self.max_inclusive and version >= self.max_version:
                return False
        return True

    def find_best_match(self, candidates: Iterable[NuGetVersion]) -> Optional[NuGetVersion]:
        """Pick the highest satisfying candidate inside the floating scope.

        When the floating scope holds no satisfying candidate the highest
        satisfying candidate overall is returned instead.
        """
        matching = [v for v in candidates if self.satisfies(v)]
        if not matching:
            return None
        anchor = self._float_anchor()
        if anchor is not None:
            scoped = [v for v in matching if (v.major, v.minor)[:len(anchor)] == anchor]
            if scoped:
                return max(scoped)
        return max(matching)

    def _float_anchor(self) -> Optional[Tuple[int, ...]]:
        if self.float_behavior == FloatBehavior.MINOR:
            if self.max_version is not None:
                top = self.max_version
                exclusive_boundary = (
                    not self.max_inclusive
                    and top.minor == 0
                    and top.patch == 0
                    and top.revision == 0
                    and not top.is_prerelease
                )
                return (top.major - 1,) if exclusive_boundary else (top.major,)
            if self.min_version is not None:
                return (self.min_version.major,)
        elif self.float_behavior == FloatBehavior.PATCH:
            bound = self.min_version or self.max_version
            if bound is not None:
                return bound.major, bound.minor
        return None

    def interval_text(self) -> str:
        """NuGet normalized interval notation, e.g. ``[1.0.0, 2.0.0)``."""
        if (
            self.min_version is not None
            and self.min_version == self.max_version
            and self.min_inclusive
            and self.max_inclusive
        ):
            return f"[{self.min_version}]"
        left = "[" if self.min_version is not None and self.min_inclusive else "("
        right = "]" if self.max_version is not None and self.max_inclusive else ")"
        low = str(self.min_version) if self.min_version is not None else ""
        high = str(self.max_version) if self.max_version is not None else ""
        return f"{left}{low}, {high}{right}"

    def __str__(self) -> str:
        text = self.interval_text()
        if self.float_behavior is not None:
            text += f" float:{self.float_behavior.value}"
        return text


@dataclass(frozen=True)
class PackageIdentity:
    """A package name pinned to one concrete version."""

    name: str
    version: NuGetVersion

    def __str__(self) -> str:
        return f"{self.name} {self.version}"
