import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any

ANALYSIS_LOGGER = 'sitegraph.analysis'

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
SIMPLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class LogManager:
    """
    Process-wide logging for the analysis server.

    The root logger gets a console handler, a daily detailed log and a
    daily warnings-and-above log. One JSON line per finished analysis
    goes to a separate daily outcome log.
    """

    def __init__(self, log_dir: str = "crawl_data/logs", log_level: str = "INFO", console: bool = True):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.day = datetime.now().strftime('%Y%m%d')

        self.configure(log_level, console)

    def daily_file(self, prefix: str) -> Path:
        return self.log_dir / f"{prefix}_{self.day}.log"

    def configure(self, log_level: str, console: bool = True):
        detailed = logging.Formatter(DETAILED_FORMAT)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        root_logger.handlers.clear()

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
            root_logger.addHandler(console_handler)

        for prefix, level in (('sitegraph', logging.DEBUG), ('errors', logging.WARNING)):
            handler = logging.FileHandler(self.daily_file(prefix))
            handler.setLevel(level)
            handler.setFormatter(detailed)
            root_logger.addHandler(handler)

        outcome_logger = logging.getLogger(ANALYSIS_LOGGER)
        outcome_logger.handlers.clear()
        outcome_handler = logging.FileHandler(self.daily_file('analysis'))
        outcome_handler.setFormatter(logging.Formatter('%(message)s'))
        outcome_logger.addHandler(outcome_handler)
        outcome_logger.setLevel(logging.INFO)
        outcome_logger.propagate = False

        # one access line per streamed request otherwise
        logging.getLogger('aiohttp.access').setLevel(logging.WARNING)


def log_analysis_outcome(session_id: str, url: str, outcome: str, started: float, **fields: Any):
    """Record how one analysis ended. `started` is a time.monotonic() reading."""
    event = {
        'timestamp': datetime.now().isoformat(),
        'session_id': session_id,
        'url': url,
        'outcome': outcome,
        'duration': round(time.monotonic() - started, 3),
        **fields,
    }
    logging.getLogger(ANALYSIS_LOGGER).info(json.dumps(event))
