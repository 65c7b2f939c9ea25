"""
Client for an OpenAI-compatible chat completions API
"""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import EnrichmentConfig
from ..errors import UpstreamRateLimit

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Non rate-limit failure reported by the completion API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CompletionClient:
    """Sends chat messages and returns the first choice's text"""

    def __init__(self, session: aiohttp.ClientSession, config: Optional[EnrichmentConfig] = None):
        self.session = session
        self.config = config or EnrichmentConfig()
        if not self.config.api_key:
            logger.warning("AI_API_KEY not set; enrichment calls will be rejected upstream")

    @property
    def model(self) -> str:
        return self.config.model

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Raises:
            UpstreamRateLimit: on an HTTP 429 response
            CompletionError: on any other non-2xx response
        """
        url = f"{self.config.api_url.rstrip('/')}/chat/completions"
        headers = {
            'Authorization': f"Bearer {self.config.api_key}",
            'Content-Type': 'application/json',
        }
        payload: Dict[str, Any] = {
            'model': self.config.model,
            'messages': messages,
            'temperature': self.config.temperature,
            'max_tokens': self.config.max_tokens,
            'stream': False,
        }
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)

        async with self.session.post(url, json=payload, headers=headers, timeout=timeout) as response:
            if response.status == 429:
                error_text = await response.text()
                logger.error(f"Completion API rate limit hit (429): {error_text}")
                raise UpstreamRateLimit(f"RATE_LIMIT_REACHED: {error_text}")

            if not 200 <= response.status < 300:
                error_text = await response.text()
                logger.error(f"Completion API error: {response.status} - {error_text}")
                raise CompletionError(f"Completion API error: {response.status} - {error_text}",
                                      status_code=response.status)

            data = await response.json()

        choices = data.get('choices') or [{}]
        content = (choices[0].get('message') or {}).get('content') or ""
        return content.strip()
