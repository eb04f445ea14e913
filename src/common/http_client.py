"""Shared async HTTP helpers used by the feed client.

Encapsulates request/timeout/retry handling so the feed client only deals
with payloads. Server errors and timeouts are retried with exponential
back-off; client errors are returned to the caller untouched.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from exceptions import FeedError

logger = logging.getLogger(__name__)


async def get_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    retries: int = Constants.HTTP_RETRY_MAX,
) -> Tuple[int, Optional[Any]]:
    """Perform a GET request and parse the JSON body with DEBUG traces.

    Args:
        session: Open aiohttp session.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "versions-of").
        headers: Optional request headers.
        retries: Attempts before giving up on 5xx responses and timeouts.

    Returns:
        Tuple of (status_code, parsed_json_or_none). Non-200 statuses below
        500 are returned with a ``None`` payload.

    Raises:
        FeedError: When every attempt failed or the body is not valid JSON.
    """
    safe_target = safe_url(url)
    last_error = "no attempt made"

    for attempt in range(max(1, retries)):
        if attempt:
            await asyncio.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1,
                            context=context,
                        ),
                    )
                async with session.get(url, headers=headers) as response:
                    status = response.status
                    if status >= 500:
                        last_error = f"HTTP {status}"
                        logger.debug(
                            "HTTP server error, retrying",
                            extra=extra_context(
                                event="http_response",
                                component="http_client",
                                outcome="server_error",
                                status_code=status,
                                attempt=attempt + 1,
                                target=safe_target,
                            ),
                        )
                        continue
                    if status != 200:
                        return status, None
                    text = await response.text()
            except asyncio.TimeoutError:
                last_error = "timeout"
                logger.debug(
                    "HTTP timeout",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="timeout",
                        attempt=attempt + 1,
                        target=safe_target,
                    ),
                )
                continue
            except aiohttp.ClientError as exc:
                last_error = str(exc) or type(exc).__name__
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="request_exception",
                        attempt=attempt + 1,
                        target=safe_target,
                    ),
                )
                continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response ok",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                ),
            )
        try:
            return status, json.loads(text)
        except json.JSONDecodeError as exc:
            raise FeedError(f"{context}: invalid JSON from {safe_target}", url=url, status=status) from exc

    raise FeedError(
        f"{context}: request to {safe_target} failed after {max(1, retries)} attempts: {last_error}",
        url=url,
    )
