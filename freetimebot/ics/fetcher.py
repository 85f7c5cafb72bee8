"""HTTP client for downloading ICS calendar feeds."""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from .cache import normalize_url
from .exceptions import ICSAuthError, ICSFetchError, ICSNetworkError, ICSTimeoutError
from .models import ICSResponse

logger = logging.getLogger(__name__)


class ICSFetcher:
    """Async HTTP client for downloading ICS calendar files."""

    def __init__(self, settings: Any):
        """Initialize ICS fetcher.

        Args:
            settings: Application settings (request_timeout, max_retries,
                retry_backoff_factor, app_name)
        """
        self.settings = settings
        self.client: Optional[httpx.AsyncClient] = None

        logger.debug("ICS fetcher initialized")

    async def __aenter__(self) -> "ICSFetcher":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self._close_client()

    async def _ensure_client(self) -> None:
        """Ensure HTTP client exists."""
        if self.client is None or self.client.is_closed:
            timeout = httpx.Timeout(
                connect=10.0, read=self.settings.request_timeout, write=10.0, pool=30.0
            )

            self.client = httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                headers={
                    "User-Agent": f"{self.settings.app_name}/1.0.0 ICS-Client",
                    "Accept": "text/calendar, text/plain, */*",
                    "Accept-Charset": "utf-8",
                    "Cache-Control": "no-cache",
                },
            )

    async def _close_client(self) -> None:
        """Close HTTP client."""
        if self.client and not self.client.is_closed:
            await self.client.aclose()

    async def fetch_ics(self, url: str) -> ICSResponse:
        """Download ICS content from ``url``.

        ``webcal://`` URLs are fetched over HTTPS. Non-success HTTP statuses
        other than 401/403 are reported through the response object.

        Args:
            url: Feed URL

        Returns:
            ICSResponse describing the outcome

        Raises:
            ICSAuthError: HTTP 401 or 403
            ICSTimeoutError: All attempts timed out
            ICSNetworkError: All attempts failed at the network level
            ICSFetchError: Any other unexpected failure
        """
        await self._ensure_client()
        url = normalize_url(url)

        try:
            logger.debug(f"Fetching ICS from {url}")
            response = await self._make_request_with_retry(url)
            return self._create_response(response)

        except httpx.TimeoutException as e:
            logger.error(f"Timeout fetching ICS from {url}: {e}")
            raise ICSTimeoutError(f"Request timeout after {self.settings.request_timeout}s")

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching ICS from {url}: {e.response.status_code}")

            if e.response.status_code == 401:
                raise ICSAuthError("Authentication failed - check credentials", 401)
            if e.response.status_code == 403:
                raise ICSAuthError("Access forbidden - insufficient permissions", 403)
            return ICSResponse(
                success=False,
                status_code=e.response.status_code,
                error_message=f"HTTP {e.response.status_code}: {e.response.reason_phrase}",
                headers=dict(e.response.headers),
            )

        except httpx.NetworkError as e:
            logger.error(f"Network error fetching ICS from {url}: {e}")
            raise ICSNetworkError(f"Network error: {e}")

        except ICSFetchError:
            raise

        except httpx.HTTPError as e:
            logger.error(f"Unexpected error fetching ICS from {url}: {e}")
            raise ICSFetchError(f"Unexpected error: {e}")

    async def fetch_text(self, url: str) -> str:
        """Return the feed text for ``url`` or raise.

        This is the fetch capability handed to the source manager: anything
        other than a successful, non-empty download is an exception.

        Raises:
            ICSFetchError: On an unsuccessful or empty response
            ICSError: Auth, timeout and network failures from fetch_ics
        """
        response = await self.fetch_ics(url)
        if not response.success or response.content is None:
            raise ICSFetchError(
                response.error_message or "ICS fetch failed", response.status_code
            )
        return response.content

    async def _make_request_with_retry(self, url: str) -> httpx.Response:
        """Make HTTP request with retry logic.

        Timeouts and network errors are retried with exponential backoff;
        HTTP status errors are not.

        Args:
            url: URL to fetch

        Returns:
            HTTP response
        """
        last_exception: Optional[Exception] = None

        for attempt in range(self.settings.max_retries + 1):
            try:
                if self.client is None:
                    raise ICSFetchError("HTTP client not initialized")

                response = await self.client.get(url)
                response.raise_for_status()

                logger.debug(f"Successfully fetched ICS from {url} (attempt {attempt + 1})")
                return response

            except (httpx.TimeoutException, httpx.NetworkError) as e:
                last_exception = e

                if attempt < self.settings.max_retries:
                    backoff_time = self.settings.retry_backoff_factor**attempt
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.settings.max_retries + 1}), "
                        f"retrying in {backoff_time:.1f}s: {e}"
                    )
                    await asyncio.sleep(backoff_time)
                else:
                    logger.error(f"All retry attempts failed for {url}")
                    raise

        if last_exception:
            raise last_exception
        raise ICSFetchError("Maximum retries exceeded")

    def _create_response(self, http_response: httpx.Response) -> ICSResponse:
        """Create ICS response from HTTP response.

        Args:
            http_response: HTTP response object

        Returns:
            ICS response object
        """
        headers: Dict[str, str] = dict(http_response.headers)
        content = http_response.text
        content_type = headers.get("content-type", "").lower()

        if content_type and not any(ct in content_type for ct in ["text/calendar", "text/plain"]):
            logger.warning(f"Unexpected content type: {content_type}")

        if not content or not content.strip():
            logger.error("Empty ICS content received")
            return ICSResponse(
                success=False,
                status_code=http_response.status_code,
                error_message="Empty content received",
                headers=headers,
            )

        if "BEGIN:VCALENDAR" not in content:
            logger.warning("Content does not appear to be valid ICS format")

        response = ICSResponse(
            success=True,
            content=content,
            status_code=http_response.status_code,
            headers=headers,
        )
        logger.debug(f"Successfully fetched ICS content ({response.content_length} bytes)")
        return response
