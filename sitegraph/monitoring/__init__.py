"""
Progress reporting and logging
"""

from .events import ProgressEmitter, format_event
from .log_manager import LogManager, log_analysis_outcome
from .progress_reporter import CrawlProgressEstimate, Heartbeat

__all__ = [
    'ProgressEmitter',
    'format_event',
    'LogManager',
    'log_analysis_outcome',
    'CrawlProgressEstimate',
    'Heartbeat',
]
