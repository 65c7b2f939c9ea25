"""
Site Crawler - breadth-first traversal of a site's same-domain page graph
"""

import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, List, Optional, Protocol, Set, Tuple

from ..config import CrawlConfig
from ..sessions import CancelToken
from ..utils.urls import (
    canonical_url,
    describe_path,
    get_domain,
    is_same_domain,
    normalize_base_url,
    resolve_link,
    unique_paths,
)
from .result import PageMetadata, PageRecord, PathSelection, SiteData

logger = logging.getLogger(__name__)

PageObserver = Callable[[int, PageRecord], Awaitable[None]]


class Fetcher(Protocol):
    async def fetch(self, url: str, base_domain: str, token: Optional[CancelToken] = None) -> PageRecord:
        ...


class SiteCrawler:
    """
    Breadth-first crawler scoped to the base URL's hostname.

    The frontier is FIFO, so links found at the same depth are visited in
    the order they were encountered. Each URL is fetched at most once per
    run, and the run stops at the page cap, the depth cap or when the
    frontier drains.
    """

    def __init__(self, fetcher: Fetcher, config: Optional[CrawlConfig] = None):
        self.fetcher = fetcher
        self.config = config or CrawlConfig()

    async def crawl(self, url: str, max_depth: Optional[int] = None, max_pages: Optional[int] = None,
                    token: Optional[CancelToken] = None,
                    on_page: Optional[PageObserver] = None) -> SiteData:
        """Crawl the site rooted at `url`.

        Raises:
            CrawlCancelled: if the token fires before the run completes
        """
        token = token or CancelToken()
        max_depth = self.config.max_depth if max_depth is None else max_depth
        max_pages = self.config.max_pages if max_pages is None else max_pages
        max_pages = max(max_pages, 1)

        base_url = normalize_base_url(url)
        base_domain = get_domain(base_url)
        logger.info(f"Starting website extraction for {base_url} (max_depth={max_depth}, max_pages={max_pages})")

        run = _TraversalRun(base_url, base_domain)
        run.add_url_to_queue(base_url, 0)

        while run.url_queue and len(run.visited) < max_pages:
            token.raise_if_cancelled()

            current_url, depth = run.fetch_next_url()
            if run.is_visited(current_url) or depth > max_depth:
                continue

            run.visited.append(current_url)
            run.visited_set.add(canonical_url(current_url))
            logger.info(f"Crawling page {len(run.visited)}/{max_pages}: {current_url} (depth: {depth})")

            record = await self.fetcher.fetch(current_url, base_domain, token)
            run.crawled[current_url] = record

            if record.success:
                if depth + 1 <= max_depth:
                    for link in record.links:
                        absolute_url = resolve_link(link, base_url)
                        if absolute_url and is_same_domain(absolute_url, base_domain):
                            run.add_url_to_queue(absolute_url, depth + 1)
            else:
                logger.debug(f"Failed to crawl {current_url}: {record.error}")

            if on_page is not None:
                await on_page(len(run.visited), record)

            await token.sleep(self.config.crawl_delay)

        token.raise_if_cancelled()
        site_data = run.build_site_data()
        logger.info(
            f"Extraction complete for {base_url}: {site_data.total_pages_crawled} pages, "
            f"{site_data.total_links_found} links, {site_data.unique_paths_found} unique paths"
        )
        return site_data


class _TraversalRun:
    """Discovered set and frontier owned by a single crawl invocation"""

    def __init__(self, base_url: str, base_domain: str):
        self.base_url = base_url
        self.base_domain = base_domain
        self.visited: List[str] = []
        self.visited_set: Set[str] = set()
        self.crawled: Dict[str, PageRecord] = {}

        self.url_queue: Deque[Tuple[str, int]] = deque()
        self.queued_urls: Set[str] = set()  # canonical forms of the URLs waiting in url_queue

    def is_visited(self, url: str) -> bool:
        return canonical_url(url) in self.visited_set

    def add_url_to_queue(self, url: str, depth: int) -> None:
        key = canonical_url(url)
        if key not in self.queued_urls and key not in self.visited_set:
            self.url_queue.append((url, depth))
            self.queued_urls.add(key)

    def fetch_next_url(self) -> Tuple[str, int]:
        url, depth = self.url_queue.popleft()
        self.queued_urls.discard(canonical_url(url))
        return url, depth

    def build_site_data(self) -> SiteData:
        paths = unique_paths(self.visited, self.base_domain)

        records_by_path: Dict[str, PageRecord] = {}
        for record in self.crawled.values():
            records_by_path.setdefault(record.path, record)

        page_metadatas = []
        for path in paths:
            record = records_by_path.get(path)
            if record is None:
                page_metadatas.append(PageMetadata(path=path))
                continue
            page_metadatas.append(PageMetadata(
                path=path,
                title=record.title,
                description=record.description,
                keywords=record.keywords,
                body_content=record.body_content,
            ))

        total_links = sum(len(record.links) for record in self.crawled.values() if record.success)

        pending = {url for url in self.queued_urls if is_same_domain(url, self.base_domain)}
        discovered = len(self.visited_set | pending)

        main = self.crawled.get(self.base_url)
        return SiteData(
            base_url=self.base_url,
            title=(main.title if main else "") or "Untitled",
            description=(main.description if main else "") or "No description available",
            paths=paths,
            total_pages_crawled=len(self.visited),
            total_links_found=total_links,
            unique_paths_found=len(paths),
            total_pages_discovered=discovered,
            page_metadatas=page_metadatas,
            pages=[self.crawled[url] for url in self.visited if url in self.crawled],
        )


def path_selections(site_data: SiteData) -> List[PathSelection]:
    """PathSelection objects for every discovered path"""
    return [PathSelection(path=path, description=describe_path(path)) for path in site_data.paths]
