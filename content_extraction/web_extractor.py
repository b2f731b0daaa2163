"""
Article fetch pipeline: download, optional print-view substitution,
readability extraction and block conversion
"""

import logging
from typing import Optional, Tuple
from urllib.parse import urldefrag

import httpx
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from config import config
from utils.errors import ExtractionError, FetchError
from utils.logging_config import TimedLogger
from .block_extractor import extract_blocks, parse_html, resolve_url
from .models import Article
from .noise import clean_text

logger = logging.getLogger(__name__)

PRINT_LINK_TEXTS = {'print', 'printer-friendly', 'print view'}

# readability-lxml placeholder for documents without a <title>
_NO_TITLE = '[no-title]'

_BYLINE_SELECTORS = [
    'meta[name="author"]',
    'meta[property="article:author"]',
    'meta[name="byl"]',
    '[rel="author"]',
    '[itemprop="author"]',
    '.byline',
]


def build_client(timeout_s: float = None, transport: httpx.AsyncBaseTransport = None) -> httpx.AsyncClient:
    """HTTP client with the identifying user agent"""
    timeout_s = timeout_s or config.FETCH_TIMEOUT_S
    headers = {
        "User-Agent": config.USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=5,
        timeout=httpx.Timeout(timeout_s),
        headers=headers,
        transport=transport,
    )


async def _get(client: httpx.AsyncClient, url: str) -> httpx.Response:
    """
    GET a URL, following redirects.

    Non-2xx responses and transport failures, timeouts included, raise FetchError.
    """
    try:
        response = await client.get(url)
    except httpx.TimeoutException as e:
        raise FetchError(url, f"Timed out fetching {url}") from e
    except httpx.RequestError as e:
        raise FetchError(url, f"Failed to fetch {url}: {e}") from e

    if not response.is_success:
        raise FetchError(
            url,
            f"Failed to fetch {url}: {response.status_code} {response.reason_phrase}",
            status=response.status_code,
        )

    return response


async def fetch_bytes(client: httpx.AsyncClient, url: str) -> Tuple[bytes, str]:
    """GET a URL and return (body, final_url)"""
    response = await _get(client, url)
    return response.content, str(response.url)


async def fetch_html(client: httpx.AsyncClient, url: str) -> Tuple[str, str]:
    """GET a page and return (text, final_url), decoded with the response charset"""
    response = await _get(client, url)
    return response.text, str(response.url)


def _same_page(first: str, second: str) -> bool:
    return urldefrag(first).url == urldefrag(second).url


def find_printable_url(html: str, base_url: str) -> Optional[str]:
    """Print-friendly alternative advertised by the page, resolved to an absolute URL"""
    soup = parse_html(html, base_url)

    for link in soup.select('link[rel~="alternate"][media*="print"]'):
        resolved = resolve_url(link.get('href'), base_url)
        if resolved and not _same_page(resolved, base_url):
            return resolved

    for anchor in soup.find_all('a'):
        if anchor.get_text().strip().lower() in PRINT_LINK_TEXTS:
            resolved = resolve_url(anchor.get('href'), base_url)
            # "#" and other in-page anchors are not a print view
            if resolved and not _same_page(resolved, base_url):
                return resolved

    return None


def _extract_byline(soup: BeautifulSoup) -> Optional[str]:
    for selector in _BYLINE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        value = element.get('content') if element.name == 'meta' else element.get_text()
        byline = clean_text(value)
        if byline:
            return byline
    return None


def _extract_title(document: Document) -> Optional[str]:
    for candidate in (document.short_title(), document.title()):
        title = clean_text(candidate)
        if title and title != _NO_TITLE:
            return title
    return None


def extract_main_content(html: str, url: str) -> Tuple[Optional[str], Optional[str], str]:
    """
    Run readability over a page.

    Returns (title, byline, content_html); raises ExtractionError when the page
    has no readable article.
    """
    soup = parse_html(html, url)
    try:
        document = Document(html, url=url)
        content_html = document.summary(html_partial=True)
    except Unparseable as e:
        raise ExtractionError(url, f"Could not parse article at {url}: {e}") from e

    content = BeautifulSoup(content_html or '', 'lxml')
    if not clean_text(content.get_text()) and content.find('img') is None:
        raise ExtractionError(url, f"Could not parse article at {url}")

    return _extract_title(document), _extract_byline(soup), content_html


async def fetch_article(url: str, client: Optional[httpx.AsyncClient] = None) -> Article:
    """
    Fetch one URL and build an Article.

    A print-friendly alternative replaces the page at most once; the print page
    is not searched for further alternates.
    """
    if client is None:
        async with build_client() as own_client:
            return await fetch_article(url, own_client)

    with TimedLogger(logger, f"article fetch {url}", url=url):
        html, final_url = await fetch_html(client, url)

        printable_url = find_printable_url(html, final_url)
        if printable_url and not any(_same_page(printable_url, seen) for seen in (url, final_url)):
            logger.info(f"Using print view {printable_url} for {url}")
            html, final_url = await fetch_html(client, printable_url)

        title, byline, content_html = extract_main_content(html, final_url)
        blocks = extract_blocks(content_html, final_url)

    logger.info(f"Extracted {len(blocks)} blocks from {final_url}")
    return Article(
        title=title or url,
        byline=byline,
        source_url=url,
        blocks=blocks,
    )
