import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

STRIPPED_TAGS = ['script', 'style', 'noscript', 'iframe', 'svg']
MAX_BODY_CHARS = 30000
MAX_FALLBACK_DESCRIPTION = 160


class HTMLParser:
    def __init__(self, base_url, max_body_chars=MAX_BODY_CHARS):
        self.base_url = base_url
        self.max_body_chars = max_body_chars

    def parse(self, html_content):
        """Parse HTML content and extract page metadata, links and body text"""
        soup = BeautifulSoup(html_content, 'html.parser')

        return {
            'title': self._extract_title(soup),
            'description': self._extract_description(soup),
            'keywords': self._meta_content(soup, name='keywords'),
            'links': self._extract_links(soup),
            # must run last: strips tags from the tree
            'body_content': self._extract_body_text(soup),
        }

    def _extract_title(self, soup):
        if soup.title:
            title = soup.title.get_text().strip()
            if title:
                return title

        h1 = soup.find('h1')
        if h1:
            heading = h1.get_text().strip()
            if heading:
                return heading

        return self._meta_content(soup, prop='og:title')

    def _extract_description(self, soup):
        description = (self._meta_content(soup, name='description')
                       or self._meta_content(soup, prop='og:description'))
        if description:
            return description

        paragraph = soup.find('p')
        if paragraph:
            return paragraph.get_text().strip()[:MAX_FALLBACK_DESCRIPTION]
        return ''

    def _meta_content(self, soup, name=None, prop=None):
        if name:
            meta = soup.find('meta', attrs={'name': name})
        else:
            meta = soup.find('meta', attrs={'property': prop})
        if meta and meta.get('content'):
            return meta['content']
        return ''

    def _extract_links(self, soup):
        """All anchor hrefs as absolute http(s) URLs, deduplicated in encounter order"""
        links = []
        seen = set()
        for link in soup.find_all('a', href=True):
            try:
                absolute_url = urljoin(self.base_url, link['href'].strip())
            except ValueError:
                continue
            # Filter out non-HTTP(S) links
            if not absolute_url.startswith(('http://', 'https://')):
                continue
            if absolute_url not in seen:
                seen.add(absolute_url)
                links.append(absolute_url)
        return links

    def _extract_body_text(self, soup):
        for tag in soup.find_all(STRIPPED_TAGS):
            tag.decompose()

        root = soup.body or soup
        text = root.get_text()
        text = re.sub(r'[ \t]+', ' ', text)
        text = re.sub(r' *\n *', '\n', text)
        text = re.sub(r'\n{3,}', '\n\n', text)
        return text.strip()[:self.max_body_chars]
