"""
SiteGraph - same-domain site crawler with optional AI enrichment and streamed progress
"""

from .config import CrawlConfig, EnrichmentConfig, ServerConfig, Settings
from .pipeline import AnalysisPipeline, AnalysisRequest, AppContext
from .sessions import CancelToken, SessionRegistry

__version__ = "0.1.0"

__all__ = [
    'AnalysisPipeline',
    'AnalysisRequest',
    'AppContext',
    'CancelToken',
    'CrawlConfig',
    'EnrichmentConfig',
    'ServerConfig',
    'SessionRegistry',
    'Settings',
]
