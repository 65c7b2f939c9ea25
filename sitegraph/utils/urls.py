"""
URL helpers: base URL normalization, path normalization, domain scoping
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

PATH_DESCRIPTIONS = [
    (('/blog', '/news'), "Blog/News"),
    (('/about',), "About page"),
    (('/contact',), "Contact page"),
    (('/privacy',), "Privacy policy"),
    (('/terms',), "Terms of service"),
    (('/api',), "API endpoint"),
    (('/admin',), "Admin panel"),
    (('/login', '/signin'), "Authentication"),
    (('/product', '/service'), "Product/Service page"),
    (('/help', '/support'), "Help/Support"),
    (('/faq',), "FAQ page"),
]

_PAGE_EXTENSION_RE = re.compile(r'\.(html|htm|php|asp|aspx)$', re.IGNORECASE)


def normalize_base_url(url: str) -> str:
    """Prefix https:// when the URL carries no scheme"""
    url = url.strip()
    if not url.startswith(('http://', 'https://')):
        return f"https://{url}"
    return url


def get_domain(url: str) -> str:
    """Extract the lowercase hostname from a URL ('' if it has none)"""
    try:
        return urlsplit(url).hostname or ''
    except ValueError:
        return ''


def is_same_domain(url: str, base_domain: str) -> bool:
    return bool(base_domain) and get_domain(url) == base_domain.lower()


def path_from_url(url: str) -> str:
    """
    Normalized path for a URL or bare path.

    Trailing slashes are stripped (root stays '/'); query string and
    fragment are kept. Anything unparsable maps to '/'.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return '/'

    path = re.sub(r'^/{2,}', '/', parts.path).rstrip('/') or '/'
    if parts.query:
        path += f"?{parts.query}"
    if parts.fragment:
        path += f"#{parts.fragment}"
    return path


def canonical_url(url: str) -> str:
    """
    Identity key for a URL within one crawl.

    Scheme and host are lowercased, an empty path becomes '/' and the
    fragment is dropped, so `https://Example.com` and
    `https://example.com/#top` name the same page.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path or '/', parts.query, ''))


def resolve_link(link: str, base_url: str) -> Optional[str]:
    """Resolve a link against base_url, None if it cannot be resolved"""
    try:
        return urljoin(base_url, link)
    except ValueError:
        return None


def unique_paths(urls: Iterable[str], base_domain: str) -> List[str]:
    """Sorted distinct normalized paths of the URLs on base_domain"""
    return sorted({path_from_url(url) for url in urls if is_same_domain(url, base_domain)})


def describe_path(path: str) -> str:
    """Human-readable category for a path, derived from its shape"""
    if path == '/':
        return "Homepage"

    lowered = path.lower()
    for needles, description in PATH_DESCRIPTIONS:
        if any(needle in lowered for needle in needles):
            return description

    parts = [part for part in path.split('/') if part]
    if parts:
        name = _PAGE_EXTENSION_RE.sub('', parts[-1])
        name = re.sub(r'[-_]', ' ', name)
        name = re.sub(r'\b\w', lambda m: m.group(0).upper(), name)
        return name or "Page"
    return "Page"
