"""
Crawler - same-domain breadth-first traversal and page extraction
"""

from .base import SiteCrawler, path_selections
from .fetcher import PageFetcher
from .result import PageMetadata, PageRecord, PathSelection, SiteData

__all__ = [
    'SiteCrawler',
    'PageFetcher',
    'PageRecord',
    'PageMetadata',
    'PathSelection',
    'SiteData',
    'path_selections',
]
