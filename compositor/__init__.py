"""
PDF composition: pagination, font roles and image placement
"""

from .fonts import FileSystemFontProvider, FontSet, StandardFontProvider
from .layout import MAX_IMAGE_HEIGHT, PageCursor, fit_image
from .pdf_compositor import DocumentCompositor, RenderedDocument, compose

__all__ = [
    'DocumentCompositor',
    'RenderedDocument',
    'compose',
    'FileSystemFontProvider',
    'FontSet',
    'StandardFontProvider',
    'MAX_IMAGE_HEIGHT',
    'PageCursor',
    'fit_image',
]
