"""
Analysis Pipeline - crawl, optional enrichment and progress streaming for one request
"""

import copy
import time
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import Settings
from .crawler import PageFetcher, PathSelection, SiteCrawler, SiteData, path_selections
from .crawler.result import PageRecord
from .enrichment import (
    CompletionClient,
    EnrichmentQueue,
    EnrichmentRecord,
    EnrichmentService,
    compose_content,
)
from .errors import CrawlCancelled, UpstreamRateLimit, ValidationError
from .monitoring import CrawlProgressEstimate, Heartbeat, ProgressEmitter, log_analysis_outcome
from .sessions import CancelToken, SessionRegistry
from .utils.rate_limiter import RateLimiter
from .utils.urls import get_domain, normalize_base_url

logger = logging.getLogger(__name__)

SUPPORTED_BOTS = ('ChatGPT-User', 'GPTBot', 'GoogleExtended', 'Claude', 'Anthropic', 'CCBot')

DEMO_MESSAGE = "Sign up or log in to access all features. You are seeing a demo experience."
ASYNC_PROMPT_MESSAGE = (
    "This site is large and the analysis may take a while. "
    "You can keep this page open or come back later."
)
RATE_LIMIT_MESSAGE = "AI rate limit reached. Please try again in a few minutes."

ENRICHMENT_BASE_PERCENT = 90
ENRICHMENT_SPAN_PERCENT = 9

ResultHook = Callable[[Dict[str, Any]], None]


class AnalysisRequest(BaseModel):
    """Parameters of one streaming analysis request"""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    bots: List[str] = Field(default_factory=list)
    ai_enrichment: bool = Field(False, alias='aiEnrichment')
    session_id: Optional[str] = Field(None, alias='sessionId')
    demo: bool = False

    @field_validator('url')
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        if not value or any(ch.isspace() for ch in value):
            raise ValueError("Invalid URL")
        normalized = normalize_base_url(value)
        if not normalized.startswith(('http://', 'https://')) or not get_domain(normalized):
            raise ValueError("Invalid URL")
        return normalized

    @field_validator('bots', mode='before')
    @classmethod
    def split_bots(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [bot.strip() for bot in value.split(',') if bot.strip()]
        return value

    @field_validator('bots')
    @classmethod
    def validate_bots(cls, value: List[str]) -> List[str]:
        unknown = [bot for bot in value if bot not in SUPPORTED_BOTS]
        if unknown:
            raise ValueError(f"Unsupported bots: {', '.join(unknown)}")
        return value

    @field_validator('session_id')
    @classmethod
    def blank_session_id(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


def parse_request(params: Mapping[str, Any]) -> AnalysisRequest:
    """Validate raw request parameters.

    Raises:
        ValidationError: with the list of field errors as `details`
    """
    try:
        return AnalysisRequest.model_validate(dict(params))
    except PydanticValidationError as e:
        details = [
            {'field': '.'.join(str(part) for part in error['loc']), 'message': error['msg']}
            for error in e.errors()
        ]
        raise ValidationError("Invalid request data", details=details) from e


@dataclass
class AppContext:
    """Process-wide collaborators shared by every request"""
    settings: Settings
    rate_limiter: RateLimiter
    sessions: SessionRegistry
    enrichment_queue: EnrichmentQueue
    crawler: SiteCrawler
    enrichment: EnrichmentService
    on_result: Optional[ResultHook] = None

    @classmethod
    def create(cls, http: aiohttp.ClientSession, settings: Optional[Settings] = None,
               on_result: Optional[ResultHook] = None) -> "AppContext":
        settings = settings or Settings()
        rate_limiter = RateLimiter(settings.crawl.requests_per_second)
        queue = EnrichmentQueue(settings.enrichment.max_requests_per_window,
                                settings.enrichment.window_seconds)
        client = CompletionClient(http, settings.enrichment)
        return cls(
            settings=settings,
            rate_limiter=rate_limiter,
            sessions=SessionRegistry(),
            enrichment_queue=queue,
            crawler=SiteCrawler(PageFetcher(http, rate_limiter, settings.crawl), settings.crawl),
            enrichment=EnrichmentService(client, queue, settings.enrichment.max_content_chars),
            on_result=on_result,
        )


def build_result(request: AnalysisRequest, site_data: SiteData, selections: List[PathSelection],
                 ai_records: Optional[List[EnrichmentRecord]] = None,
                 page_limit: Optional[int] = None) -> Dict[str, Any]:
    """The `result` event payload"""
    summaries = {record.path: record.summary for record in ai_records or ()}

    page_metadatas = []
    for metadata in site_data.page_metadatas:
        entry = metadata.to_dict()
        if metadata.path in summaries:
            entry['summary'] = summaries[metadata.path]
        page_metadatas.append(entry)

    payload: Dict[str, Any] = {
        'success': True,
        'metadata': {
            'title': site_data.title,
            'description': site_data.description,
            'url': request.url,
            'totalPagesCrawled': site_data.total_pages_crawled,
            'totalLinksFound': site_data.total_links_found,
            'uniquePathsFound': site_data.unique_paths_found,
        },
        'paths': [selection.to_dict() for selection in selections],
        'pageMetadatas': page_metadatas,
    }
    if request.bots:
        payload['bots'] = list(request.bots)
    if ai_records is not None:
        payload['aiGeneratedContent'] = [record.to_dict() for record in ai_records]

    if request.demo and page_limit is not None:
        payload['demo'] = True
        payload['remainingPages'] = max(0, site_data.total_pages_discovered - page_limit)
        payload['demoMessage'] = DEMO_MESSAGE

    return payload


class AnalysisPipeline:
    """
    Runs one analysis request end to end and reports it through a ProgressEmitter.

    Exactly one terminal event is emitted per request: `result` on success,
    `cancelled` when the session is cancelled, `error` otherwise. The
    session's registry entry and enrichment state are released on every
    exit path.
    """

    def __init__(self, context: AppContext):
        self.context = context
        self.config = context.settings.crawl

    async def run(self, params: Mapping[str, Any], emitter: ProgressEmitter) -> Optional[Dict[str, Any]]:
        try:
            request = params if isinstance(params, AnalysisRequest) else parse_request(params)
        except ValidationError as e:
            logger.warning(f"Rejected analysis request: {e.details}")
            await emitter.error(e.message, details=e.details)
            return None

        session_id = request.session_id or uuid.uuid4().hex
        token = self.context.sessions.register(session_id)
        logger.info(f"Analysis started for {request.url} (session {session_id})")
        started = time.monotonic()

        try:
            payload = await self._analyze(request, session_id, token, emitter)
        except CrawlCancelled:
            logger.info(f"Analysis cancelled for session {session_id}")
            log_analysis_outcome(session_id, request.url, 'cancelled', started)
            await emitter.cancelled()
            return None
        except UpstreamRateLimit as e:
            logger.error(f"Enrichment stopped for session {session_id}: {e}")
            log_analysis_outcome(session_id, request.url, 'rate_limited', started)
            await emitter.error(RATE_LIMIT_MESSAGE, details=str(e))
            return None
        except Exception as e:
            logger.error(f"Analysis failed for {request.url}: {e}", exc_info=True)
            log_analysis_outcome(session_id, request.url, 'error', started, error=str(e))
            await emitter.error(str(e) or "Failed to analyze website")
            return None
        finally:
            self.context.sessions.release(session_id, token)
            self.context.enrichment.release(session_id, token)

        logger.info(f"Analysis complete for {request.url} (session {session_id})")
        log_analysis_outcome(session_id, request.url, 'completed', started,
                             pages=payload['metadata']['totalPagesCrawled'],
                             enriched='aiGeneratedContent' in payload, demo=request.demo)
        return payload

    async def _analyze(self, request: AnalysisRequest, session_id: str, token: CancelToken,
                       emitter: ProgressEmitter) -> Dict[str, Any]:
        await emitter.progress(1, "Starting extraction...")

        page_limit = self.config.demo_page_limit if request.demo else None
        site_data = await self._crawl(request.url, page_limit, token, emitter)
        await emitter.progress(90, "Website data extracted")

        selections = path_selections(site_data)

        ai_records = None
        if request.ai_enrichment:
            ai_records = await self._enrich(site_data, selections, session_id, token, emitter)

        token.raise_if_cancelled()
        payload = build_result(request, site_data, selections, ai_records, page_limit)
        self._hand_off(payload)

        await emitter.progress(100, "Analysis complete")
        await emitter.result(payload)
        return payload

    async def _crawl(self, url: str, page_limit: Optional[int], token: CancelToken,
                     emitter: ProgressEmitter) -> SiteData:
        estimate = CrawlProgressEstimate()

        async def tick():
            percent = estimate.advance()
            if percent is not None:
                await emitter.progress(percent, "Crawling website...")

        async def on_page(pages_crawled: int, record: PageRecord):
            if pages_crawled >= self.config.long_job_pages:
                await emitter.async_prompt(ASYNC_PROMPT_MESSAGE)

        max_pages = self.config.max_pages
        if page_limit is not None:
            max_pages = min(max_pages, page_limit)

        async with Heartbeat(tick, self.context.settings.server.heartbeat_interval):
            return await self.context.crawler.crawl(url, max_pages=max_pages, token=token, on_page=on_page)

    async def _enrich(self, site_data: SiteData, selections: List[PathSelection], session_id: str,
                      token: CancelToken, emitter: ProgressEmitter) -> List[EnrichmentRecord]:
        total = len(selections)
        records = []

        for completed, selection in enumerate(selections, start=1):
            token.raise_if_cancelled()
            content = compose_content(selection.path, site_data.metadata_for(selection.path))
            record = await self.context.enrichment.generate(selection.path, content, token, session_id)
            records.append(record)

            percent = ENRICHMENT_BASE_PERCENT + round(completed / total * ENRICHMENT_SPAN_PERCENT)
            await emitter.progress(percent, f"AI enrichment: {completed}/{total}")

        await emitter.progress(99, "AI enrichment complete")
        return records

    def _hand_off(self, payload: Dict[str, Any]) -> None:
        if self.context.on_result is None:
            return
        try:
            self.context.on_result(copy.deepcopy(payload))
        except Exception as e:
            logger.error(f"Result hand-off failed: {e}")
