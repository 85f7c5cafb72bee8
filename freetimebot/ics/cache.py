"""Short-lived in-memory cache of fetched feed text."""

import logging
import time
from typing import Callable, Dict, Optional

from .models import CachedFeed

logger = logging.getLogger(__name__)

DEFAULT_FEED_TTL_SECONDS = 5 * 60


def normalize_url(url: str) -> str:
    """Rewrite a ``webcal://`` URL to ``https://``; other URLs pass through."""
    if url.startswith("webcal://"):
        return "https://" + url[len("webcal://") :]
    return url


class FeedCache:
    """Feed text keyed by normalized URL.

    Entries are never swept; an entry older than the TTL is treated as absent
    when it is looked up. Not safe for concurrent writers from several threads.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_FEED_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize feed cache.

        Args:
            ttl_seconds: Age after which an entry is ignored
            clock: Time source in seconds, ``time.monotonic`` by default
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CachedFeed] = {}

    def get(self, url: str) -> Optional[str]:
        """Return cached feed text for ``url`` or None if missing or expired."""
        entry = self._entries.get(normalize_url(url))
        if entry is None:
            return None

        age = self._clock() - entry.fetched_at
        if age >= self.ttl_seconds:
            logger.debug(f"Feed cache entry expired for {url} ({age:.0f}s old)")
            return None

        return entry.feed_text

    def put(self, url: str, feed_text: str) -> None:
        """Store feed text for ``url``, replacing any previous entry."""
        self._entries[normalize_url(url)] = CachedFeed(feed_text=feed_text, fetched_at=self._clock())

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
