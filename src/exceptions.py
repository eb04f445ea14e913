"""Error taxonomy for dependency hierarchy resolution.

Resolution failures are terminal for the branch that raised them. When a
failure crosses the hierarchy builder it is annotated with the chain of
package identities from the root to the failing node, so a failure deep in a
wide tree is still locatable without a stack trace.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from constants import Constants


class DepTreeError(Exception):
    """Base class for all errors raised by the resolver."""

    def __init__(self, message: str, path: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.message = message
        self.path: List[str] = list(path or [])

    @property
    def path_text(self) -> str:
        """Human readable root-to-node path, empty when not annotated."""
        return Constants.PATH_SEPARATOR.join(self.path)

    def with_path(self, path: Sequence[str]) -> "DepTreeError":
        """Return a copy of this error annotated with ``path``.

        Cached lookup failures are shared by every branch that hits them, so
        the instance itself is never modified.
        """
        annotated = self.__class__.__new__(self.__class__)
        annotated.__dict__.update(self.__dict__)
        annotated.args = self.args
        annotated.path = list(path)
        return annotated

    def __str__(self) -> str:
        return self.message


class PackageNotFound(DepTreeError):
    """The named package has no published versions on the feed."""

    def __init__(self, package_id: str, feed_url: Optional[str] = None, path=None):
        where = f" in repository {feed_url}" if feed_url else ""
        super().__init__(f'Package "{package_id}" not found{where}', path)
        self.package_id = package_id


class VersionNotFound(DepTreeError):
    """Published versions exist but none satisfies the requested constraint."""

    def __init__(self, package_id: str, constraint: str, path=None):
        super().__init__(
            f'Package "{package_id}" has no versions compatible with range "{constraint}".',
            path,
        )
        self.package_id = package_id
        self.constraint = constraint


class IncompatiblePlatform(DepTreeError):
    """The package publishes dependency groups but none fits the target framework."""

    def __init__(self, package: str, framework: str, path=None):
        super().__init__(f'Package "{package}" is not compatible with {framework}', path)
        self.package = package
        self.framework = framework


class FeedError(DepTreeError):
    """Transport or protocol failure talking to the package feed."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ConfigError(DepTreeError):
    """Invalid configuration value, file or filter expression."""
