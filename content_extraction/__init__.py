"""
Article content extraction
Pipeline: fetch → print-view substitution → readability-lxml → typed blocks
"""

from .collector import collect_articles
from .models import Article, ComprehensionSection, ContentBlock, Heading, Image, Paragraph
from .web_extractor import fetch_article

__all__ = [
    'collect_articles',
    'fetch_article',
    'Article',
    'ComprehensionSection',
    'ContentBlock',
    'Heading',
    'Image',
    'Paragraph',
]
