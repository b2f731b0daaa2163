"""
Font resolution for the compositor.

Providers map the four font roles onto registered reportlab font names.
The compositor only ever sees a FontSet, so tests can pin the standard
PDF fonts while production searches the filesystem.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from config import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FontSet:
    """Registered font names for each role"""
    regular: str
    bold: str
    sans_regular: str
    sans_bold: str


STANDARD_FONTS = FontSet(
    regular='Times-Roman',
    bold='Times-Bold',
    sans_regular='Helvetica',
    sans_bold='Helvetica-Bold',
)


class StandardFontProvider:
    """PDF core fonts; no files, fully deterministic"""

    def resolve(self) -> FontSet:
        return STANDARD_FONTS


HOEFLER_PATHS = [
    '/Library/Fonts/Hoefler Text.ttf',
    '/System/Library/Fonts/Hoefler Text.ttf',
    '/System/Library/Fonts/Supplemental/Hoefler Text.ttf',
]
HOEFLER_BOLD_PATHS = [
    '/Library/Fonts/Hoefler Text Bold.ttf',
    '/System/Library/Fonts/Hoefler Text Bold.ttf',
    '/System/Library/Fonts/Supplemental/Hoefler Text Bold.ttf',
]
GEORGIA_PATHS = [
    '/Library/Fonts/Georgia.ttf',
    '/System/Library/Fonts/Supplemental/Georgia.ttf',
    '/usr/share/fonts/truetype/msttcorefonts/Georgia.ttf',
]
GEORGIA_BOLD_PATHS = [
    '/Library/Fonts/Georgia Bold.ttf',
    '/System/Library/Fonts/Supplemental/Georgia Bold.ttf',
    '/usr/share/fonts/truetype/msttcorefonts/Georgia_Bold.ttf',
]
ARIAL_PATHS = [
    '/Library/Fonts/Arial.ttf',
    '/System/Library/Fonts/Arial.ttf',
    '/System/Library/Fonts/Supplemental/Arial.ttf',
    '/usr/share/fonts/truetype/msttcorefonts/Arial.ttf',
]
ARIAL_BOLD_PATHS = [
    '/Library/Fonts/Arial Bold.ttf',
    '/System/Library/Fonts/Arial Bold.ttf',
    '/System/Library/Fonts/Supplemental/Arial Bold.ttf',
    '/usr/share/fonts/truetype/msttcorefonts/Arial_Bold.ttf',
]


class FileSystemFontProvider:
    """
    Checks well-known TrueType locations, best first:
    Goudy Bookletter 1911 (fonts_dir), Hoefler Text, Georgia for serif text
    and Arial for sans. Missing roles fall back to the standard fonts.
    """

    def __init__(self, fonts_dir: str = 'fonts', search_root: Optional[str] = None):
        self.fonts_dir = Path(fonts_dir)
        # Prefix for the absolute system paths, used to sandbox lookups
        self.search_root = search_root

    def _system_path(self, path: str) -> Path:
        if self.search_root:
            return Path(self.search_root) / path.lstrip('/')
        return Path(path)

    def _register(self, name: str, candidates: Sequence[Path]) -> Optional[str]:
        if name in pdfmetrics.getRegisteredFontNames():
            return name
        for path in candidates:
            if not path.exists():
                continue
            try:
                pdfmetrics.registerFont(TTFont(name, str(path)))
                logger.info(f"Registered font {name} from {path}")
                return name
            except Exception as e:
                # Collections and CFF-flavoured files are not loadable by TTFont
                logger.debug(f"Failed to register font from {path}: {e}")
        return None

    def resolve(self) -> FontSet:
        goudy = self._register('Goudy', [
            self.fonts_dir / 'GoudyBookletter1911.ttf',
            self.fonts_dir / 'goudy_bookletter_1911.otf',
        ])
        hoefler = self._register('Hoefler', [self._system_path(p) for p in HOEFLER_PATHS])
        hoefler_bold = self._register('Hoefler-Bold', [self._system_path(p) for p in HOEFLER_BOLD_PATHS])
        georgia = self._register('Georgia', [self._system_path(p) for p in GEORGIA_PATHS])
        georgia_bold = self._register('Georgia-Bold', [self._system_path(p) for p in GEORGIA_BOLD_PATHS])
        arial = self._register('Arial', [self._system_path(p) for p in ARIAL_PATHS])
        arial_bold = self._register('Arial-Bold', [self._system_path(p) for p in ARIAL_BOLD_PATHS])

        fonts = FontSet(
            regular=goudy or hoefler or georgia or STANDARD_FONTS.regular,
            # Goudy ships without a bold face; reuse the regular one
            bold=goudy or hoefler_bold or georgia_bold or STANDARD_FONTS.bold,
            sans_regular=arial or STANDARD_FONTS.sans_regular,
            sans_bold=arial_bold or STANDARD_FONTS.sans_bold,
        )
        logger.debug(f"Resolved fonts: {fonts}")
        return fonts


def default_font_provider():
    """Filesystem provider rooted at FONTS_DIR"""
    return FileSystemFontProvider(fonts_dir=os.path.expanduser(config.FONTS_DIR))
