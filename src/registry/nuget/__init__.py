"""NuGet registry package.

This package provides NuGet feed access for the hierarchy builder:
- client.py: async HTTP interactions with the NuGet V3 API
- metadata.py: version lists and dependency groups from V3 JSON documents
"""

from .client import NuGetFeedClient  # noqa: F401
from .metadata import (  # noqa: F401
    parse_dependency_groups,
    parse_flat_container_versions,
    parse_package_metadata,
)

__all__ = [
    "NuGetFeedClient",
    "parse_dependency_groups",
    "parse_flat_container_versions",
    "parse_package_metadata",
]
