"""
Page Fetcher - one rate-limited, time-bounded GET per call
"""

import asyncio
import time
import logging
from typing import Optional
from urllib.parse import urlparse

import aiohttp

from .result import FetchResult
from ..error_handler import ErrorHandler
from ..parser import DocumentParser
from ..utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; PermawebLLMFuel/1.0)'
DEFAULT_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
}


def is_plain_text(url: str, content_type: Optional[str]) -> bool:
    if content_type and 'text/plain' in content_type.lower():
        return True
    return urlparse(url).path.lower().endswith('.txt')


class PageFetcher:
    """Fetches pages through a shared RateLimiter

    Never raises for network trouble: every outcome comes back as a FetchResult,
    with ``error`` set when nothing usable was fetched.
    """

    def __init__(self, session: aiohttp.ClientSession, rate_limiter: RateLimiter,
                 timeout: float = 15.0, parser: Optional[DocumentParser] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.session = session
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.parser = parser or DocumentParser()
        self.error_handler = error_handler or ErrorHandler()
        self.request_count = 0

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        """Fetch a single URL and classify the response"""
        await self.rate_limiter.acquire()

        self.request_count += 1
        start_time = time.time()
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)

        try:
            async with self.session.get(url, headers=DEFAULT_HEADERS, timeout=client_timeout) as response:
                content_type = response.headers.get('Content-Type', '')

                if response.status == 404:
                    logger.warning(f"404 Not Found: {url}")
                if not 200 <= response.status < 300:
                    response_time = time.time() - start_time
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content_type=content_type,
                        error=f"HTTP {response.status}",
                        error_type=self.error_handler.classify_error(None, response.status),
                        response_time=response_time,
                    )

                body = await response.text(errors='replace')
                response_time = time.time() - start_time

                if is_plain_text(url, content_type):
                    return FetchResult(
                        url=url,
                        text=body,
                        is_plain_text=True,
                        status_code=response.status,
                        content_type=content_type,
                        response_time=response_time,
                    )

                return FetchResult(
                    url=url,
                    html=body,
                    document=self.parser.parse(body),
                    status_code=response.status,
                    content_type=content_type,
                    response_time=response_time,
                )

        except asyncio.TimeoutError as e:
            response_time = time.time() - start_time
            logger.error(f"Timeout fetching {url} after {response_time:.1f}s")
            return FetchResult(
                url=url,
                error=f"Timeout after {timeout or self.timeout}s",
                error_type=self.error_handler.classify_error(e),
                response_time=response_time,
            )
        except aiohttp.ClientError as e:
            response_time = time.time() - start_time
            logger.error(f"Failed to fetch {url}: {e}")
            return FetchResult(
                url=url,
                error=str(e) or e.__class__.__name__,
                error_type=self.error_handler.classify_error(e),
                response_time=response_time,
            )
