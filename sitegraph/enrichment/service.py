"""
Enrichment Service - per-path semantic labels from the completion API
"""

import logging
from typing import Dict, List, Optional, Protocol

from ..crawler.result import PageMetadata
from ..errors import CrawlCancelled, UpstreamRateLimit
from ..sessions import CancelToken
from .queue import EnrichmentQueue
from .response_parser import EnrichmentRecord, fallback_record, parse_completion

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant for website content analysis. "
    "Always provide responses in the exact format requested."
)

PROMPT_TEMPLATE = """Analyze this webpage content and provide the following information:

Path: {path}
Content: {content}...

Please provide your response in this exact format:

SUMMARY: [1-2 sentence summary of the main purpose and key information]
CONTEXT: [2-3 sentences describing what this page is about and its key value proposition]
KEYWORDS: [keyword1, keyword2, keyword3, keyword4, keyword5]
CONTENT_TYPE: [page|blog|docs|project|archive|terms]
PRIORITY: [high|medium|low]
AI_USAGE: [allow|citation-only|no-fine-tuning|disallow]

Guidelines:
- CONTENT_TYPE: page (regular pages), blog (blog posts), docs (documentation), project (project pages), archive (archived content), terms (legal/terms pages)
- PRIORITY: high (main pages, important content), medium (regular content), low (archive, terms, less important)
- AI_USAGE: allow (standard content), citation-only (citation only), no-fine-tuning (use but don't train), disallow (should not be used by AI)
- KEYWORDS: 5-10 relevant keywords separated by commas
- SUMMARY: concise 1-2 sentence summary
- CONTEXT: brief context about page purpose and value

Return only the formatted response with the exact labels shown above."""


class CompletionBackend(Protocol):
    model: str

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        ...


def compose_content(path: str, metadata: Optional[PageMetadata]) -> str:
    """Source text for a path: its title, description and keywords"""
    content = ""
    if metadata is not None:
        if metadata.title:
            content += f"Title: {metadata.title}\n"
        if metadata.description:
            content += f"Description: {metadata.description}\n"
        if metadata.keywords:
            content += f"Keywords: {metadata.keywords}\n"
    return content or f"Path: {path}"


def build_messages(path: str, content: str, max_content_chars: int = 3000) -> List[Dict[str, str]]:
    prompt = PROMPT_TEMPLATE.format(path=path, content=content[:max_content_chars])
    return [
        {'role': 'system', 'content': SYSTEM_PROMPT},
        {'role': 'user', 'content': prompt},
    ]


class EnrichmentService:
    """Runs one completion per path through the session's enrichment queue"""

    def __init__(self, client: CompletionBackend, queue: EnrichmentQueue, max_content_chars: int = 3000):
        self.client = client
        self.queue = queue
        self.max_content_chars = max_content_chars

    async def generate(self, path: str, content: str, token: CancelToken, session_id: str) -> EnrichmentRecord:
        """Enrich one path.

        Raises:
            UpstreamRateLimit: the completion API signalled budget exhaustion
            CrawlCancelled: the session was cancelled
        """
        messages = build_messages(path, content, self.max_content_chars)

        try:
            text = await self.queue.enqueue(lambda: self.client.complete(messages), token, session_id)
        except (UpstreamRateLimit, CrawlCancelled):
            raise
        except Exception as e:
            logger.warning(f"AI enrichment failed for path {path}: {e}")
            return fallback_record(path, model=self.client.model)

        return parse_completion(text, path, model=self.client.model)

    def release(self, session_id: str, token: Optional[CancelToken] = None) -> None:
        self.queue.release(session_id, token)
