"""
Error taxonomy for the crawl/enrich/stream pipeline
"""

import asyncio
from enum import Enum
from typing import Any, Optional

import aiohttp


class ErrorType(Enum):
    """Classification of different error types"""
    NETWORK_TIMEOUT = "network_timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_CLIENT_ERROR = "http_client_error"  # 4xx
    HTTP_SERVER_ERROR = "http_server_error"  # 5xx
    RATE_LIMITED = "rate_limited"  # 429
    PARSING_ERROR = "parsing_error"
    UNKNOWN_ERROR = "unknown_error"


class SiteGraphError(Exception):
    """Base class for all pipeline errors"""


class ValidationError(SiteGraphError):
    """Malformed analysis request; no crawl is attempted"""

    def __init__(self, message: str = "Invalid request data", details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class FetchError(SiteGraphError):
    """A single page could not be fetched"""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class CrawlCancelled(SiteGraphError):
    """The session was cancelled by the caller. Not a failure."""

    def __init__(self, message: str = "Analysis cancelled by user"):
        super().__init__(message)
        self.message = message


class UpstreamRateLimit(SiteGraphError):
    """The text-completion API refused the call with a rate-limit response"""

    def __init__(self, message: str, status_code: int = 429):
        super().__init__(message)
        self.status_code = status_code


def classify_error(error: Exception, status_code: Optional[int] = None) -> ErrorType:
    """Classify an error into appropriate error type"""
    if isinstance(error, asyncio.TimeoutError):
        return ErrorType.NETWORK_TIMEOUT
    elif isinstance(error, aiohttp.ClientConnectorError):
        return ErrorType.CONNECTION_ERROR
    elif isinstance(error, UpstreamRateLimit):
        return ErrorType.RATE_LIMITED

    status_code = status_code or getattr(error, 'status_code', None) or getattr(error, 'status', None)
    if status_code:
        if status_code == 429:
            return ErrorType.RATE_LIMITED
        elif 400 <= status_code < 500:
            return ErrorType.HTTP_CLIENT_ERROR
        elif 500 <= status_code < 600:
            return ErrorType.HTTP_SERVER_ERROR
    elif "parsing" in str(error).lower():
        return ErrorType.PARSING_ERROR

    return ErrorType.UNKNOWN_ERROR
