"""Source manager aggregating occurrences from every configured feed."""

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from datetime import datetime
from typing import Any, Callable, Optional

from ..ics.cache import FeedCache, normalize_url
from ..ics.exceptions import ICSError
from ..ics.fetcher import ICSFetcher
from ..ics.models import CalendarSource, EventOccurrence
from ..ics.parser import ICSParser
from .exceptions import SourceConnectionError

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str], Awaitable[str]]


class SourceManager:
    """Fetches, caches and parses calendar feeds.

    A failure in one feed never affects the others: it is logged here and
    that feed contributes no occurrences.
    """

    def __init__(
        self,
        settings: Any,
        fetch: Optional[FetchFunc] = None,
        cache: Optional[FeedCache] = None,
        parser: Optional[ICSParser] = None,
    ):
        """Initialize source manager.

        Args:
            settings: Application settings
            fetch: Coroutine function returning feed text for a URL; an
                httpx based ICSFetcher is used per refresh when omitted
            cache: Feed text cache shared across refreshes
            parser: Feed parser
        """
        self.settings = settings
        self._fetch = fetch
        self.cache = cache if cache is not None else FeedCache(settings.feed_cache_ttl_seconds)
        self.parser = parser or ICSParser(settings.get_tzinfo())

        logger.debug("Source manager initialized")

    async def fetch_feed_text(self, source: CalendarSource, fetch: FetchFunc) -> str:
        """Return feed text for ``source``, from the cache when still fresh.

        Raises:
            SourceConnectionError: If the download fails
        """
        url = normalize_url(source.url)

        cached = self.cache.get(url)
        if cached is not None:
            logger.debug(f"Using cached feed for '{source.name}'")
            return cached

        try:
            feed_text = await fetch(url)
        except ICSError as e:
            raise SourceConnectionError(
                f"Failed to fetch '{source.name}': {e.message}", source.name
            ) from e

        self.cache.put(url, feed_text)
        return feed_text

    async def fetch_all_events(
        self, sources: Sequence[CalendarSource], start: datetime, end: datetime
    ) -> list[EventOccurrence]:
        """Collect occurrences in ``[start, end)`` from every enabled source.

        Feeds are fetched concurrently; results keep the order of ``sources``.

        Args:
            sources: Configured calendar sources
            start: Range start
            end: Range end (exclusive)

        Returns:
            Occurrences from all feeds that could be read
        """
        active = [source for source in sources if source.enabled and source.url.strip()]
        if not active:
            logger.debug("No enabled calendar sources")
            return []

        if self._fetch is not None:
            return await self._gather(active, self._fetch, start, end)

        async with ICSFetcher(self.settings) as fetcher:
            return await self._gather(active, fetcher.fetch_text, start, end)

    async def _gather(
        self,
        sources: Sequence[CalendarSource],
        fetch: FetchFunc,
        start: datetime,
        end: datetime,
    ) -> list[EventOccurrence]:
        results = await asyncio.gather(
            *(self._fetch_source(source, fetch, start, end) for source in sources)
        )

        occurrences = [occurrence for feed in results for occurrence in feed]
        logger.info(f"Fetched {len(occurrences)} occurrences from {len(sources)} calendar(s)")
        return occurrences

    async def _fetch_source(
        self,
        source: CalendarSource,
        fetch: FetchFunc,
        start: datetime,
        end: datetime,
    ) -> list[EventOccurrence]:
        try:
            feed_text = await self.fetch_feed_text(source, fetch)
            occurrences = self.parser.parse(feed_text, source.name, start, end)
        except Exception:
            logger.exception(f"Failed to fetch from source '{source.name}'")
            return []

        logger.verbose(  # type: ignore[attr-defined]
            f"Parsed {len(occurrences)} occurrences from '{source.name}'"
        )
        return occurrences
