"""NuGet feed client: versions and package metadata via the NuGet V3 API."""
from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from constants import Constants
from common.http_client import get_json
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from exceptions import FeedError, PackageNotFound
from hierarchy.models import PackageMetadata
from versioning.models import NuGetVersion, PackageIdentity

from .metadata import parse_flat_container_versions, parse_package_metadata

logger = logging.getLogger(__name__)

# Shared HTTP JSON headers for this module
HEADERS_JSON = {"Accept": "application/json"}


def _find_resource(service_index: Dict[str, Any], *type_prefixes: str) -> Optional[str]:
    """Return the ``@id`` of a service index resource whose type starts with a prefix.

    Prefixes are tried in order, so earlier ones win regardless of where the
    resources sit in the index.

    Args:
        service_index: Service index dictionary
        type_prefixes: Resource types or type prefixes (e.g., "RegistrationsBaseUrl/3.6.0")

    Returns:
        Resource base URL (always ending with "/") or None
    """
    resources = service_index.get("resources", []) or []
    for type_prefix in type_prefixes:
        for resource in resources:
            resource_type = resource.get("@type")
            types = resource_type if isinstance(resource_type, list) else [resource_type]
            if any(isinstance(t, str) and t.startswith(type_prefix) for t in types):
                base_url = resource.get("@id")
                if base_url:
                    return base_url if base_url.endswith("/") else base_url + "/"
    return None


class NuGetFeedClient:
    """Async client for one NuGet V3 feed.

    The service index is fetched lazily, once per client. All requests share
    one aiohttp session; ``max_concurrency`` optionally bounds in-flight
    requests.
    """

    def __init__(
        self,
        feed_url: str = Constants.DEFAULT_FEED_URL,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = Constants.REQUEST_TIMEOUT,
        max_concurrency: Optional[int] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the feed client.

        Args:
            feed_url: Service index URL (``.../v3/index.json``).
            username: Optional basic-auth user name.
            password: Optional basic-auth password.
            timeout: Request timeout in seconds.
            max_concurrency: Optional cap on in-flight requests.
            session: Externally managed session (not closed by ``stop``).
        """
        if not feed_url:
            raise ValueError("feed_url must not be empty")
        self.feed_url = feed_url
        self._auth = aiohttp.BasicAuth(username, password or "") if username else None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None
        self._service_index: Optional["asyncio.Future[Dict[str, Any]]"] = None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                auth=self._auth,
                headers={"User-Agent": Constants.USER_AGENT},
            )
            self._owns_session = True

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "NuGetFeedClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()

    async def _get_json(self, url: str, context: str):
        if self._session is None:
            await self.start()
        assert self._session is not None
        if self._semaphore is None:
            return await get_json(self._session, url, context=context, headers=HEADERS_JSON)
        async with self._semaphore:
            return await get_json(self._session, url, context=context, headers=HEADERS_JSON)

    async def get_service_index(self) -> Dict[str, Any]:
        """Fetch and parse the V3 service index, once per client."""
        if self._service_index is None:
            self._service_index = asyncio.ensure_future(self._fetch_service_index())
        return await asyncio.shield(self._service_index)

    async def _fetch_service_index(self) -> Dict[str, Any]:
        status, data = await self._get_json(self.feed_url, "service-index")
        if status != 200 or not isinstance(data, dict):
            raise FeedError(
                f"Service index unavailable at {safe_url(self.feed_url)} (HTTP {status})",
                url=self.feed_url,
                status=status,
            )
        return data

    async def _resource_url(self, type_prefixes: Tuple[str, ...]) -> str:
        service_index = await self.get_service_index()
        base = _find_resource(service_index, *type_prefixes)
        if base is None:
            raise FeedError(f"Feed {safe_url(self.feed_url)} does not provide {type_prefixes[0]}", url=self.feed_url)
        return base

    async def list_versions(self, package_id: str) -> List[NuGetVersion]:
        """List every published version of ``package_id``.

        Args:
            package_id: Package identifier

        Returns:
            Versions in feed order, empty when the package is unknown
        """
        base = await self._resource_url((Constants.RESOURCE_PACKAGE_BASE_ADDRESS,))
        encoded_id = urllib.parse.quote(package_id.lower(), safe="")
        status, data = await self._get_json(f"{base}{encoded_id}/index.json", "versions-of")
        if status == 404:
            logger.debug("Package not found in feed", extra=extra_context(
                event="http_response", outcome="not_found", target=package_id,
            ))
            return []
        if status != 200:
            raise FeedError(f"Listing versions of {package_id} failed (HTTP {status})", status=status)
        versions = parse_flat_container_versions(data)
        if is_debug_enabled(logger):
            logger.debug(
                "NuGet versions fetched",
                extra=extra_context(
                    event="package_found",
                    component="client",
                    action="list_versions",
                    outcome="success",
                    target=package_id,
                    count=len(versions),
                ),
            )
        return versions

    async def fetch_metadata(self, identity: PackageIdentity) -> PackageMetadata:
        """Fetch the dependency groups published for one package version.

        Raises:
            PackageNotFound: If the feed has no registration leaf for ``identity``.
            FeedError: On transport or protocol failures.
        """
        base = await self._resource_url(Constants.RESOURCE_REGISTRATIONS_BASE_URL)
        encoded_id = urllib.parse.quote(identity.name.lower(), safe="")
        encoded_version = urllib.parse.quote(str(identity.version).lower(), safe="")
        leaf_url = f"{base}{encoded_id}/{encoded_version}.json"
        status, leaf = await self._get_json(leaf_url, "metadata-of")
        if status == 404:
            raise PackageNotFound(str(identity), self.feed_url)
        if status != 200 or not isinstance(leaf, dict):
            raise FeedError(f"Fetching metadata of {identity} failed (HTTP {status})", url=leaf_url, status=status)

        catalog_entry = leaf.get("catalogEntry")
        if isinstance(catalog_entry, str):
            status, catalog_entry = await self._get_json(catalog_entry, "catalog-entry")
            if status != 200:
                raise FeedError(f"Fetching catalog entry of {identity} failed (HTTP {status})", status=status)
        if not isinstance(catalog_entry, dict):
            raise FeedError(f"Registration leaf of {identity} has no catalog entry", url=leaf_url)
        return parse_package_metadata(identity, catalog_entry)
