import unittest

from sitegraph.config import CrawlConfig
from sitegraph.crawler import SiteCrawler, path_selections
from sitegraph.errors import CrawlCancelled
from sitegraph.sessions import CancelToken

from tests.fakes import FakeSiteFetcher, hub_site

BASE = "https://example.com/"


class SiteCrawlerTests(unittest.IsolatedAsyncioTestCase):
    def make_crawler(self, site, failures=(), **config):
        self.fetcher = FakeSiteFetcher(site, failures)
        return SiteCrawler(self.fetcher, CrawlConfig(crawl_delay=0, **config))

    async def test_chain_is_followed_to_the_end(self):
        site = {
            BASE: ["https://example.com/b"],
            "https://example.com/b": ["https://example.com/c"],
            "https://example.com/c": [],
        }
        crawler = self.make_crawler(site)

        data = await crawler.crawl(BASE)

        self.assertEqual(data.total_pages_crawled, 3)
        self.assertEqual(data.paths, ['/', '/b', '/c'])
        self.assertEqual(data.total_links_found, 2)
        self.assertEqual(data.title, "Title /")
        self.assertEqual(data.metadata_for('/c').title, "Title /c")

    async def test_breadth_first_order(self):
        site = {
            BASE: ["https://example.com/a", "https://example.com/b"],
            "https://example.com/a": ["https://example.com/a/deep"],
            "https://example.com/b": [],
            "https://example.com/a/deep": [],
        }
        crawler = self.make_crawler(site)

        await crawler.crawl(BASE)

        self.assertEqual(self.fetcher.fetched, [
            BASE, "https://example.com/a", "https://example.com/b", "https://example.com/a/deep",
        ])

    async def test_page_cap_is_respected(self):
        crawler = self.make_crawler(hub_site())

        data = await crawler.crawl(BASE, max_pages=5)

        self.assertEqual(data.total_pages_crawled, 5)
        self.assertEqual(len(self.fetcher.fetched), 5)

    async def test_depth_cap_is_respected(self):
        site = {
            BASE: ["https://example.com/1"],
            "https://example.com/1": ["https://example.com/2"],
            "https://example.com/2": ["https://example.com/3"],
            "https://example.com/3": [],
        }
        crawler = self.make_crawler(site)

        data = await crawler.crawl(BASE, max_depth=1)

        self.assertEqual(data.paths, ['/', '/1'])

    async def test_no_url_is_fetched_twice(self):
        site = {
            BASE: ["https://example.com/a", "https://example.com/b", "https://example.com/a"],
            "https://example.com/a": [BASE, "https://example.com/b"],
            "https://example.com/b": [BASE, "https://example.com/a"],
        }
        crawler = self.make_crawler(site)

        await crawler.crawl(BASE)

        self.assertEqual(len(self.fetcher.fetched), len(set(self.fetcher.fetched)))
        self.assertEqual(len(self.fetcher.fetched), 3)

    async def test_seed_without_trailing_slash_is_fetched_once(self):
        site = {
            "https://example.com": [BASE, "https://example.com/a", "https://Example.com/#top"],
            "https://example.com/a": [BASE],
        }
        crawler = self.make_crawler(site)

        data = await crawler.crawl("example.com")

        self.assertEqual(self.fetcher.fetched, ["https://example.com", "https://example.com/a"])
        self.assertEqual(data.total_pages_crawled, 2)
        self.assertEqual(data.total_pages_discovered, 2)
        self.assertEqual(data.paths, ['/', '/a'])

    async def test_other_domains_are_never_fetched(self):
        site = {
            BASE: ["https://other.org/", "https://blog.example.com/", "https://example.com/a"],
            "https://example.com/a": [],
        }
        crawler = self.make_crawler(site)

        data = await crawler.crawl(BASE)

        self.assertEqual(self.fetcher.fetched, [BASE, "https://example.com/a"])
        self.assertEqual(data.total_links_found, 3)

    async def test_failed_pages_do_not_stop_the_run(self):
        site = {
            BASE: ["https://example.com/broken", "https://example.com/ok"],
            "https://example.com/ok": [],
        }
        crawler = self.make_crawler(site)

        data = await crawler.crawl(BASE)

        self.assertEqual(data.total_pages_crawled, 3)
        failed = [page for page in data.pages if not page.success]
        self.assertEqual([page.path for page in failed], ['/broken'])

    async def test_cancellation_stops_before_next_fetch(self):
        crawler = self.make_crawler(hub_site())
        token = CancelToken()

        async def on_page(pages_crawled, record):
            if pages_crawled == 2:
                token.cancel()

        with self.assertRaises(CrawlCancelled):
            await crawler.crawl(BASE, token=token, on_page=on_page)
        self.assertEqual(len(self.fetcher.fetched), 2)

    async def test_on_page_receives_running_count(self):
        crawler = self.make_crawler(hub_site(pages=4))
        counts = []

        async def on_page(pages_crawled, record):
            counts.append((pages_crawled, record.path))

        await crawler.crawl(BASE, on_page=on_page)

        self.assertEqual([count for count, _ in counts], [1, 2, 3, 4])
        self.assertEqual(counts[0][1], '/')

    async def test_discovered_count_includes_pending_frontier(self):
        crawler = self.make_crawler(hub_site(pages=20))

        data = await crawler.crawl(BASE, max_pages=5)

        self.assertEqual(data.total_pages_crawled, 5)
        self.assertEqual(data.total_pages_discovered, 20)

    async def test_defaults_when_homepage_fails(self):
        crawler = self.make_crawler({}, failures=[BASE])

        data = await crawler.crawl(BASE)

        self.assertEqual(data.title, "Untitled")
        self.assertEqual(data.description, "No description available")
        self.assertEqual(data.total_pages_crawled, 1)

    async def test_path_selections_describe_every_path(self):
        crawler = self.make_crawler({BASE: ["https://example.com/about"], "https://example.com/about": []})

        data = await crawler.crawl(BASE)
        selections = path_selections(data)

        self.assertEqual([s.to_dict() for s in selections], [
            {'path': '/', 'allow': True, 'description': "Homepage"},
            {'path': '/about', 'allow': True, 'description': "About page"},
        ])
