"""
Page geometry, the page cursor and image scaling
"""

from dataclasses import dataclass
from typing import Tuple

from reportlab.lib.pagesizes import LETTER

PAGE_SIZE = LETTER
PAGE_MARGIN = 50.0
# ~8 cm in points; no single image may dominate a page
MAX_IMAGE_HEIGHT = 226.8
# Kept free below an image when measuring availability
IMAGE_BOTTOM_PADDING = 10.0
# Extra room demanded before placing an image
IMAGE_BREAK_SLACK = 8.0
# Less room than this is too cramped to shrink an image into
MIN_IMAGE_HEIGHT = 72.0
LINE_HEIGHT_FACTOR = 1.2


def line_height(font_size: float) -> float:
    return font_size * LINE_HEIGHT_FACTOR


def fit_image(
    image_width: float,
    image_height: float,
    max_width: float,
    available_height: float,
    max_height: float = MAX_IMAGE_HEIGHT,
) -> Tuple[float, float]:
    """
    Draw size preserving aspect ratio.

    scale = min(max_width / w, min(max_height, available) / h, 1), so images are
    never upscaled. No available room falls back to the cap, which makes the
    caller break the page.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image has no area: {image_width}x{image_height}")
    height_limit = min(max_height, available_height) if available_height > 0 else max_height
    scale = min(max_width / image_width, height_limit / image_height, 1.0)
    return image_width * scale, image_height * scale


@dataclass
class PageCursor:
    """
    Write position on the current page, measured downward from the top edge.

    Owned by exactly one composition; never shared.
    """
    page_width: float = PAGE_SIZE[0]
    page_height: float = PAGE_SIZE[1]
    margin: float = PAGE_MARGIN
    y: float = PAGE_MARGIN
    page_number: int = 1
    font_role: str = 'regular'

    @property
    def top(self) -> float:
        return self.margin

    @property
    def bottom(self) -> float:
        return self.page_height - self.margin

    @property
    def left(self) -> float:
        return self.margin

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.bottom - self.top

    @property
    def remaining(self) -> float:
        return self.bottom - self.y

    @property
    def at_page_top(self) -> bool:
        return self.y <= self.top

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom

    def advance(self, height: float) -> None:
        self.y += height

    def move_down(self, lines: float, font_size: float) -> None:
        """Advance by a number of lines of the given font size"""
        self.y += lines * line_height(font_size)

    def next_page(self) -> None:
        self.page_number += 1
        self.y = self.top

    def to_pdf_y(self, y: float) -> float:
        """reportlab measures from the bottom edge"""
        return self.page_height - y
