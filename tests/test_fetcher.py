import unittest

import aiohttp

from sitegraph.config import CrawlConfig
from sitegraph.crawler import PageFetcher
from sitegraph.errors import CrawlCancelled
from sitegraph.sessions import CancelToken
from sitegraph.utils.rate_limiter import RateLimiter

from tests.fakes import FakeHTTPSession, FakeResponse

HTML = """<html><head><title>Docs</title><meta name="keywords" content="a, b"></head>
<body><p>Hello docs.</p><a href="/guide/">Guide</a></body></html>"""


class PageFetcherTests(unittest.IsolatedAsyncioTestCase):
    def make_fetcher(self, responses):
        self.http = FakeHTTPSession(responses)
        return PageFetcher(self.http, RateLimiter(1000), CrawlConfig(fetch_timeout=5))

    async def test_successful_fetch_extracts_page(self):
        fetcher = self.make_fetcher({"https://example.com/docs/": FakeResponse(200, HTML)})

        record = await fetcher.fetch("https://example.com/docs/", "example.com")

        self.assertTrue(record.success)
        self.assertEqual(record.path, "/docs")
        self.assertEqual(record.title, "Docs")
        self.assertEqual(record.description, "Hello docs.")
        self.assertEqual(record.keywords, "a, b")
        self.assertEqual(record.links, ("https://example.com/guide/",))
        self.assertEqual(record.status_code, 200)

    async def test_undecodable_bytes_are_replaced(self):
        body = b"<html><head><title>Caf\xe9 menu</title></head><body><a href='/a'>A</a></body></html>"
        fetcher = self.make_fetcher({"https://example.com/": FakeResponse(200, body=body)})

        record = await fetcher.fetch("https://example.com/", "example.com")

        self.assertTrue(record.success)
        self.assertEqual(record.title, "Caf\ufffd menu")
        self.assertEqual(record.links, ("https://example.com/a",))

    async def test_sends_fixed_headers_and_limits(self):
        fetcher = self.make_fetcher({"https://example.com/": FakeResponse(200, HTML)})
        await fetcher.fetch("https://example.com/", "example.com")

        method, url, kwargs = self.http.requests[0]
        self.assertEqual(method, 'GET')
        for header in ('User-Agent', 'Accept', 'Accept-Language', 'Accept-Encoding', 'Connection'):
            self.assertIn(header, kwargs['headers'])
        self.assertEqual(kwargs['max_redirects'], 5)
        self.assertEqual(kwargs['timeout'].total, 5)

    async def test_non_2xx_becomes_failed_record(self):
        fetcher = self.make_fetcher({"https://example.com/missing": FakeResponse(404, "nope")})

        record = await fetcher.fetch("https://example.com/missing", "example.com")

        self.assertFalse(record.success)
        self.assertEqual(record.error, "HTTP 404")
        self.assertEqual(record.status_code, 404)
        self.assertEqual(record.links, ())

    async def test_transport_error_becomes_failed_record(self):
        fetcher = self.make_fetcher({"https://example.com/": aiohttp.ClientConnectionError("refused")})

        record = await fetcher.fetch("https://example.com/", "example.com")

        self.assertFalse(record.success)
        self.assertEqual(record.error, "refused")

    async def test_cancellation_propagates(self):
        fetcher = self.make_fetcher({"https://example.com/": FakeResponse(200, HTML)})
        token = CancelToken()
        token.cancel()

        with self.assertRaises(CrawlCancelled):
            await fetcher.fetch("https://example.com/", "example.com", token)
        self.assertEqual(self.http.requests, [])
