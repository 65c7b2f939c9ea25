"""
Utility modules for web crawling
"""

from .rate_limiter import RateLimiter, RateBudget
from .urls import (
    canonical_url,
    describe_path,
    get_domain,
    is_same_domain,
    normalize_base_url,
    path_from_url,
    unique_paths,
)

__all__ = [
    'RateLimiter',
    'RateBudget',
    'canonical_url',
    'describe_path',
    'get_domain',
    'is_same_domain',
    'normalize_base_url',
    'path_from_url',
    'unique_paths',
]
