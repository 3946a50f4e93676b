"""
HTTP collaborators for the extraction pipeline.

The analyzers never touch the network; these helpers fetch the reference
page, its linked stylesheets and remote images, bounded by a timeout.
"""

import asyncio
from typing import Any, List, Optional, Tuple

import aiohttp

from .exceptions import FetchError
from .logging_config import get_logger
from .models import WebsiteAnalysisOptions
from .website_analyzer import extract_stylesheet_urls, merge_css

logger = get_logger(__name__)

# Upper bounds on response sizes kept in memory
MAX_HTML_CHARS = 500_000
MAX_CSS_CHARS = 500_000
MAX_IMAGE_BYTES = 10 * 1024 * 1024


class PageFetcher:
    """Fetches pages, stylesheets and images (best-effort)."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        session: Optional[Any] = None
    ) -> None:
        defaults = WebsiteAnalysisOptions()
        self.timeout = timeout or defaults.timeout_seconds
        self.user_agent = user_agent or defaults.user_agent
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get_session(self):
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": self.user_agent})
            self._owns_session = True
        return self._session

    async def _get(self, url: str, as_text: bool):
        try:
            session = await self._get_session()
            async with session.get(url, allow_redirects=True) as resp:
                if resp.status != 200:
                    raise FetchError(url, f"Unexpected status {resp.status}", status=resp.status)
                if as_text:
                    return await resp.text(errors="ignore")
                return await resp.read()
        except asyncio.TimeoutError as e:
            raise FetchError(url, f"Timed out after {self.timeout}s", cause=e)
        except aiohttp.ClientError as e:
            raise FetchError(url, "Request failed", cause=e)

    async def get_text(self, url: str) -> str:
        """
        Fetch a text resource.

        Raises:
            FetchError: on timeout, connection failure or a non-200 status
        """
        text = await self._get(url, as_text=True)
        return text[:MAX_HTML_CHARS]

    async def get_bytes(self, url: str) -> bytes:
        """Fetch a binary resource; raises FetchError like get_text."""
        data = await self._get(url, as_text=False)
        if len(data) > MAX_IMAGE_BYTES:
            raise FetchError(url, "Response too large", context={'bytes': len(data)})
        return data

    async def fetch_text(self, url: str) -> str:
        """Fetch a text resource, returning "" on any fetch failure."""
        try:
            return await self.get_text(url)
        except FetchError as e:
            logger.warning(f"Fetch failed: {e}")
            return ""

    async def fetch_bytes(self, url: str) -> Optional[bytes]:
        """Fetch a binary resource, returning None on any fetch failure."""
        try:
            return await self.get_bytes(url)
        except FetchError as e:
            logger.warning(f"Image download failed: {e}")
            return None

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


async def fetch_stylesheets(fetcher: PageFetcher, urls: List[str]) -> str:
    """Download stylesheets concurrently and concatenate the ones that arrived."""
    sheets = await asyncio.gather(*(fetcher.fetch_text(url) for url in urls))
    css = merge_css(sheet[:MAX_CSS_CHARS] for sheet in sheets)
    logger.debug(f"Fetched {sum(1 for s in sheets if s)}/{len(urls)} stylesheets")
    return css


async def fetch_website(
    url: str,
    options: Optional[WebsiteAnalysisOptions] = None,
    fetcher: Optional[PageFetcher] = None
) -> Tuple[str, str]:
    """
    Fetch a reference page and, when enabled, its linked stylesheets.

    Inline <style> blocks stay in the returned HTML; the CSS part holds only
    the linked sheets, at most `max_stylesheets` of them.

    Args:
        url: Page URL
        options: Stylesheet and timeout settings
        fetcher: Existing fetcher to reuse (closed by its owner)

    Returns:
        (html, css)

    Raises:
        FetchError: if the page itself cannot be fetched
    """
    options = options or WebsiteAnalysisOptions()
    owned = fetcher is None
    fetcher = fetcher or PageFetcher(timeout=options.timeout_seconds, user_agent=options.user_agent)
    try:
        html = await fetcher.get_text(url)
        css = ""
        if options.follow_linked_stylesheets and options.max_stylesheets > 0:
            urls = extract_stylesheet_urls(html, url)[:options.max_stylesheets]
            if urls:
                css = await fetch_stylesheets(fetcher, urls)
        logger.info(f"Fetched {url} | html={len(html)} chars | css={len(css)} chars")
        return html, css
    finally:
        if owned:
            await fetcher.close()
