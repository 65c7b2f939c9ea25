"""
Crawl Result - Data structures for crawling results
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PageRecord:
    """Result of fetching and extracting a single URL"""
    url: str
    path: str
    title: str = ""
    description: str = ""
    keywords: str = ""
    body_content: str = ""
    links: Tuple[str, ...] = ()
    success: bool = False
    error: Optional[str] = None
    status_code: Optional[int] = None
    response_time: float = 0.0

    @classmethod
    def failed(cls, url: str, path: str, error: str, status_code: Optional[int] = None,
               response_time: float = 0.0) -> "PageRecord":
        return cls(url=url, path=path, success=False, error=error,
                   status_code=status_code, response_time=response_time)


@dataclass(frozen=True)
class PageMetadata:
    """Per-path metadata synthesized from the matching PageRecord"""
    path: str
    title: str = ""
    description: str = ""
    keywords: str = ""
    body_content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'title': self.title,
            'description': self.description,
            'keywords': self.keywords,
            'bodyContent': self.body_content,
        }


@dataclass(frozen=True)
class PathSelection:
    """A discovered path offered to the caller, always allowed"""
    path: str
    description: str
    allow: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'allow': self.allow, 'description': self.description}


@dataclass
class SiteData:
    """Aggregate result of one traversal run"""
    base_url: str
    title: str
    description: str
    paths: List[str]
    total_pages_crawled: int
    total_links_found: int
    unique_paths_found: int
    total_pages_discovered: int
    page_metadatas: List[PageMetadata] = field(default_factory=list)
    pages: List[PageRecord] = field(default_factory=list)

    def metadata_for(self, path: str) -> Optional[PageMetadata]:
        for metadata in self.page_metadatas:
            if metadata.path == path:
                return metadata
        return None
