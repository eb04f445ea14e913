"""In-flight memoization of feed lookups for one resolution session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, TypeVar

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single shared lookup: the task computing it and who is waiting on it."""

    task: "asyncio.Task[T]"
    waiters: int = 0


class ResolutionCache:
    """Memoizes ``(operation, arguments) -> result`` for one resolution run.

    The first caller for a key starts the fetch; concurrent and later callers
    await the same task and observe the same outcome. Completed outcomes,
    successes and failures alike, are kept for the lifetime of the cache so a
    failing lookup is not retried at every occurrence in a large tree.

    A cancelled caller only stops waiting. The fetch itself is cancelled and
    evicted once its last waiter is cancelled, so a later caller starts it
    afresh.

    The cache is unbounded. It must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry[Any]] = {}
        self._hits = 0
        self._misses = 0
        self._abandoned = 0

    @staticmethod
    def make_key(operation: str, *args: Any) -> str:
        """Generate a cache key from the operation and canonical argument strings."""
        parts = [operation]
        parts.extend("null" if arg is None else str(arg) for arg in args)
        return ":".join(parts)

    async def get_or_fetch(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the shared outcome for ``key``, starting ``factory`` at most once."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            task = asyncio.ensure_future(factory())
            entry = CacheEntry(task=task)
            self._entries[key] = entry
            task.add_done_callback(lambda t, k=key: self._on_done(k, t))
            if is_debug_enabled(logger):
                logger.debug(
                    "Cache miss",
                    extra=extra_context(event="cache_miss", component="cache", target=key),
                )
        else:
            self._hits += 1
            if is_debug_enabled(logger):
                logger.debug(
                    "Cache hit",
                    extra=extra_context(event="cache_hit", component="cache", target=key),
                )
        entry.waiters += 1
        try:
            return await asyncio.shield(entry.task)
        except asyncio.CancelledError:
            if entry.waiters == 1 and not entry.task.done():
                self._abandon(key, entry)
            raise
        finally:
            entry.waiters -= 1

    def _abandon(self, key: str, entry: CacheEntry[Any]) -> None:
        current = self._entries.get(key)
        if current is entry:
            del self._entries[key]
        entry.task.cancel()
        self._abandoned += 1
        if is_debug_enabled(logger):
            logger.debug(
                "Fetch abandoned by its last waiter",
                extra=extra_context(event="cache_evict", component="cache", outcome="cancelled", target=key),
            )

    def _on_done(self, key: str, task: "asyncio.Task[Any]") -> None:
        if task.cancelled():
            current = self._entries.get(key)
            if current is not None and current.task is task:
                del self._entries[key]
            return
        # Mark the exception retrieved; waiters re-raise it from the task.
        task.exception()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Drop every entry. In-flight fetches keep running for their waiters."""
        self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        done = [e.task for e in self._entries.values() if e.task.done()]
        failures = sum(1 for t in done if not t.cancelled() and t.exception() is not None)
        return {
            "total_entries": len(self._entries),
            "pending_entries": len(self._entries) - len(done),
            "failed_entries": failures,
            "abandoned": self._abandoned,
            "hits": self._hits,
            "misses": self._misses,
        }
