"""
Converts readability-cleaned article HTML into an ordered list of typed blocks
"""

import logging
from typing import List, Optional, Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

from utils.errors import ParseError
from .models import ContentBlock, Heading, Image, Paragraph
from .noise import clean_text, is_noise

logger = logging.getLogger(__name__)

_HEADING_LEVEL = {'h1': 1, 'h2': 2, 'h3': 3, 'h4': 4, 'h5': 5, 'h6': 6}
_TEXT_BLOCK_TAGS = {'p', 'li', 'blockquote'}
# Never rendered as reading text
_SKIP_TAGS = {'script', 'style', 'noscript', 'template'}


def parse_html(html: Union[str, bytes], url: str) -> BeautifulSoup:
    """Parse markup with lxml, raising ParseError with the offending URL"""
    if not isinstance(html, (str, bytes)):
        raise ParseError(url, f"Failed to parse HTML for {url}: expected markup, got {type(html).__name__}")
    try:
        return BeautifulSoup(html, 'lxml')
    except ParserRejectedMarkup as e:
        raise ParseError(url, f"Failed to parse HTML for {url}: {e}") from e


def resolve_url(src: Optional[str], base_url: str) -> Optional[str]:
    """Absolute http(s) URL for src, or None when it cannot be resolved"""
    if not src or not src.strip():
        return None
    try:
        resolved = urljoin(base_url, src.strip())
        parsed = urlparse(resolved)
    except ValueError:
        return None
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        return None
    return resolved


def _text_block(text: str) -> Optional[Paragraph]:
    cleaned = clean_text(text)
    if is_noise(cleaned):
        return None
    return Paragraph(text=cleaned)


def _heading_block(tag: Tag) -> Optional[Heading]:
    cleaned = clean_text(tag.get_text())
    if is_noise(cleaned):
        return None
    return Heading(level=_HEADING_LEVEL[tag.name], text=cleaned)


def _image_block(img: Optional[Tag], base_url: str) -> Optional[Image]:
    if img is None:
        return None
    resolved = resolve_url(img.get('src'), base_url)
    if resolved is None:
        logger.debug(f"Dropping image with unresolvable source: {img.get('src')!r}")
        return None
    return Image(source_url=resolved)


def _figure_blocks(figure: Tag, base_url: str) -> List[ContentBlock]:
    blocks: List[ContentBlock] = []
    image = _image_block(figure.find('img'), base_url)
    if image:
        blocks.append(image)
    caption = figure.find('figcaption')
    if caption is not None:
        paragraph = _text_block(caption.get_text())
        if paragraph:
            blocks.append(paragraph)
    return blocks


def _node_blocks(node, base_url: str) -> Optional[List[ContentBlock]]:
    """
    Blocks emitted by a single node, or None when its children
    should be traversed instead.
    """
    if isinstance(node, Tag):
        name = node.name
        if name in _SKIP_TAGS:
            return []
        if name in _HEADING_LEVEL:
            heading = _heading_block(node)
            return [heading] if heading else []
        if name in _TEXT_BLOCK_TAGS:
            paragraph = _text_block(node.get_text())
            return [paragraph] if paragraph else []
        if name == 'figure':
            return _figure_blocks(node, base_url)
        if name == 'img':
            image = _image_block(node, base_url)
            return [image] if image else []
        return None

    # Comments, doctypes and CDATA are NavigableString subclasses
    if type(node) is NavigableString:
        paragraph = _text_block(str(node))
        return [paragraph] if paragraph else []

    return []


def walk_blocks(root: Tag, base_url: str) -> List[ContentBlock]:
    """
    Depth-first, document-order traversal with an explicit worklist.

    Headings, paragraphs, list items, blockquotes and figures are leaves:
    their children are never visited, so nested text is not counted twice.
    """
    blocks: List[ContentBlock] = []
    pending = [root]

    while pending:
        node = pending.pop()
        emitted = _node_blocks(node, base_url)
        if emitted is None:
            pending.extend(reversed(list(node.children)))
        else:
            blocks.extend(emitted)

    return blocks


def extract_blocks(content_html: Union[str, bytes], base_url: str) -> List[ContentBlock]:
    """Extract typed blocks from an article HTML fragment"""
    soup = parse_html(content_html, base_url)
    root = soup.body or soup
    blocks = walk_blocks(root, base_url)
    logger.debug(f"Extracted {len(blocks)} blocks from {base_url}")
    return blocks
