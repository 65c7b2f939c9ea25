"""
AI enrichment: completion client, token buckets and the per-session queue
"""

from .client import CompletionClient, CompletionError
from .queue import EnrichmentQueue
from .response_parser import EnrichmentRecord, ResponseField, fallback_record, parse_completion
from .service import EnrichmentService, compose_content
from .token_bucket import TokenBucket

__all__ = [
    'CompletionClient',
    'CompletionError',
    'EnrichmentQueue',
    'EnrichmentRecord',
    'EnrichmentService',
    'ResponseField',
    'TokenBucket',
    'compose_content',
    'fallback_record',
    'parse_completion',
]
