"""
Configuration objects for crawling, enrichment and serving
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass
class CrawlConfig:
    """Configuration for site traversal"""
    max_pages: int = 1000
    max_depth: int = 6
    requests_per_second: float = 25.0
    crawl_delay: float = 0.5              # polite pause after every hop
    fetch_timeout: float = 10.0
    max_redirects: int = 5
    max_body_chars: int = 30000
    user_agent: str = "SiteGraphCrawler/1.0"
    demo_page_limit: int = 5              # page cap for unauthenticated callers
    long_job_pages: int = 100             # crawled pages before the asyncPrompt warning


@dataclass
class EnrichmentConfig:
    """Configuration for the text-completion API and its budgets"""
    api_key: str = ""
    api_url: str = "https://api.x.ai/v1"
    model: str = "grok-3-mini"
    temperature: float = 0.7
    max_tokens: int = 1024
    request_timeout: float = 60.0
    max_requests_per_window: int = 6
    window_seconds: float = 1.0
    max_content_chars: int = 3000


@dataclass
class ServerConfig:
    """Configuration for the streaming HTTP surface"""
    host: str = "0.0.0.0"
    port: int = 5000
    heartbeat_interval: float = 3.0
    log_dir: str = "crawl_data/logs"
    log_level: str = "INFO"


@dataclass
class Settings:
    """All settings, grouped"""
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment (and a .env file, if present)"""
        load_dotenv()

        crawl = CrawlConfig(
            max_pages=_env_int("SITEGRAPH_MAX_PAGES", CrawlConfig.max_pages),
            max_depth=_env_int("SITEGRAPH_MAX_DEPTH", CrawlConfig.max_depth),
            requests_per_second=_env_float("SITEGRAPH_REQUESTS_PER_SECOND", CrawlConfig.requests_per_second),
            crawl_delay=_env_float("SITEGRAPH_CRAWL_DELAY", CrawlConfig.crawl_delay),
            fetch_timeout=_env_float("SITEGRAPH_FETCH_TIMEOUT", CrawlConfig.fetch_timeout),
            demo_page_limit=_env_int("SITEGRAPH_DEMO_PAGE_LIMIT", CrawlConfig.demo_page_limit),
            long_job_pages=_env_int("SITEGRAPH_LONG_JOB_PAGES", CrawlConfig.long_job_pages),
        )
        enrichment = EnrichmentConfig(
            api_key=os.getenv("AI_API_KEY", ""),
            api_url=os.getenv("AI_API_URL", EnrichmentConfig.api_url),
            model=os.getenv("AI_MODEL", EnrichmentConfig.model),
            max_requests_per_window=_env_int("AI_MAX_REQUESTS_PER_WINDOW", EnrichmentConfig.max_requests_per_window),
            window_seconds=_env_float("AI_WINDOW_SECONDS", EnrichmentConfig.window_seconds),
        )
        server = ServerConfig(
            host=os.getenv("SITEGRAPH_HOST", ServerConfig.host),
            port=_env_int("SITEGRAPH_PORT", ServerConfig.port),
            log_dir=os.getenv("SITEGRAPH_LOG_DIR", ServerConfig.log_dir),
            log_level=os.getenv("SITEGRAPH_LOG_LEVEL", ServerConfig.log_level),
        )
        return cls(crawl=crawl, enrichment=enrichment, server=server)
