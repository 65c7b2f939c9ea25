"""
In-memory stand-ins for the network collaborators
"""

import asyncio
import json
from typing import Callable, Dict, Iterable, List, Optional

from sitegraph.crawler.result import PageRecord
from sitegraph.utils.urls import path_from_url


class FakeSiteFetcher:
    """Serves a site graph given as url -> outbound links"""

    def __init__(self, site: Dict[str, List[str]], failures: Iterable[str] = ()):
        self.site = site
        self.failures = set(failures)
        self.fetched: List[str] = []
        self.before_fetch: Optional[Callable[[int, str], None]] = None

    async def fetch(self, url, base_domain, token=None):
        self.fetched.append(url)
        if self.before_fetch is not None:
            self.before_fetch(len(self.fetched), url)
        await asyncio.sleep(0)

        path = path_from_url(url)
        if url in self.failures or url not in self.site:
            return PageRecord.failed(url, path, "HTTP 404", status_code=404)
        return PageRecord(
            url=url,
            path=path,
            title=f"Title {path}",
            description=f"Description {path}",
            keywords="alpha, beta",
            body_content=f"Body of {path}",
            links=tuple(self.site[url]),
            success=True,
            status_code=200,
        )


def hub_site(base: str = "https://example.com", pages: int = 20) -> Dict[str, List[str]]:
    """Homepage linking to every other page, leaves linking back home"""
    children = [f"{base}/page-{i}" for i in range(1, pages)]
    site = {f"{base}/": children}
    for child in children:
        site[child] = [f"{base}/"]
    return site


class FakeResponse:
    def __init__(self, status: int = 200, text: str = "", payload=None, body: Optional[bytes] = None):
        self.status = status
        self._body = body if body is not None else text.encode("utf-8")
        self._text = text
        self._payload = payload

    async def text(self, encoding: str = "utf-8", errors: str = "strict"):
        return self._body.decode(encoding, errors)

    async def json(self):
        if self._payload is not None:
            return self._payload
        return json.loads(self._text)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeHTTPSession:
    """Minimal aiohttp.ClientSession replacement keyed by URL"""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requests = []

    def _respond(self, method, url, kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self._respond('GET', url, kwargs)

    def post(self, url, **kwargs):
        return self._respond('POST', url, kwargs)


COMPLETION_TEXT = """SUMMARY: A page about things.
CONTEXT: It explains the things in detail.
KEYWORDS: things, stuff, details
CONTENT_TYPE: docs
PRIORITY: high
AI_USAGE: citation-only"""


class FakeCompletionClient:
    """Returns canned completions; `fail_on` maps call number -> exception"""

    model = "fake-model"

    def __init__(self, text: str = COMPLETION_TEXT, fail_on: Optional[Dict[int, Exception]] = None):
        self.text = text
        self.fail_on = fail_on or {}
        self.calls: List[list] = []

    async def complete(self, messages):
        self.calls.append(messages)
        await asyncio.sleep(0)
        error = self.fail_on.get(len(self.calls))
        if error is not None:
            raise error
        return self.text


class EventRecorder:
    """Collects what a ProgressEmitter writes and decodes it back into events"""

    def __init__(self):
        self.chunks: List[str] = []

    async def write(self, data: bytes):
        self.chunks.append(data.decode('utf-8'))

    @property
    def events(self):
        events = []
        for chunk in self.chunks:
            name_line, data_line = chunk.strip().split('\n')
            events.append((name_line[len('event: '):], json.loads(data_line[len('data: '):])))
        return events

    @property
    def names(self):
        return [name for name, _ in self.events]

    def payloads(self, name):
        return [data for event, data in self.events if event == name]


class FakeClock:
    """Manual clock whose sleep advances time instead of waiting"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self):
        return self.now

    async def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)
