"""
Page Fetcher - retrieves one page and extracts its metadata
"""

import time
import logging
from typing import Optional

import aiohttp

from ..config import CrawlConfig
from ..errors import CrawlCancelled, FetchError, classify_error
from ..parser import HTMLParser
from ..sessions import CancelToken
from ..utils.rate_limiter import RateLimiter
from ..utils.urls import path_from_url
from .result import PageRecord

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Fetch & extract for a single URL.

    Every failure (non-2xx, transport error, parse error) is turned into a
    failed PageRecord; only cancellation propagates.
    """

    def __init__(self, session: aiohttp.ClientSession, rate_limiter: RateLimiter,
                 config: Optional[CrawlConfig] = None):
        self.session = session
        self.rate_limiter = rate_limiter
        self.config = config or CrawlConfig()
        self.headers = {
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
        }

    async def fetch(self, url: str, base_domain: str, token: Optional[CancelToken] = None) -> PageRecord:
        """Fetch a single URL and return its PageRecord"""
        token = token or CancelToken()
        path = path_from_url(url)
        start_time = time.time()

        try:
            await token.guard(self.rate_limiter.wait_for_rate_limit())
            return await token.guard(self._fetch_and_extract(url, path, start_time))
        except CrawlCancelled:
            raise
        except FetchError as e:
            logger.warning(f"Failed to crawl {url}: {e}")
            return PageRecord.failed(url, path, str(e), status_code=e.status_code,
                                     response_time=time.time() - start_time)
        except Exception as e:
            error_type = classify_error(e)
            message = str(e) or type(e).__name__
            logger.warning(f"Failed to crawl {url}: {error_type.value} - {message}")
            return PageRecord.failed(url, path, message, response_time=time.time() - start_time)

    async def _fetch_and_extract(self, url: str, path: str, start_time: float) -> PageRecord:
        timeout = aiohttp.ClientTimeout(total=self.config.fetch_timeout)

        async with self.session.get(url, headers=self.headers, timeout=timeout,
                                    max_redirects=self.config.max_redirects) as response:
            response_time = time.time() - start_time

            if not 200 <= response.status < 300:
                raise FetchError(url, f"HTTP {response.status}", status_code=response.status)

            content = await response.text(errors='replace')

        parsed_data = HTMLParser(url, max_body_chars=self.config.max_body_chars).parse(content)

        return PageRecord(
            url=url,
            path=path,
            title=parsed_data['title'],
            description=parsed_data['description'],
            keywords=parsed_data['keywords'],
            body_content=parsed_data['body_content'],
            links=tuple(parsed_data['links']),
            success=True,
            status_code=response.status,
            response_time=response_time,
        )
