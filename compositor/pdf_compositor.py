"""
Document compositor: lays articles and the optional comprehension quiz
onto fixed-size PDF pages.

Layout is a single sequential writer over one PageCursor. Text that
overflows the page is split by lines onto the next page (soft break);
every article after the first and both quiz sections start on a fresh
page (hard break). Images are measured twice: once against the space left
on the current page to decide the break, and again after the break so the
draw size never comes from stale cursor state.
"""

import html
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph as TextFlowable

from content_extraction.models import Article, ComprehensionSection, Heading, Image, Paragraph
from utils.errors import EmptyInputError, LayoutError
from utils.logging_config import TimedLogger
from .fonts import FontSet, default_font_provider
from .images import ImageFetcher, LoadedImage, prefetch_images
from .layout import (
    IMAGE_BOTTOM_PADDING,
    IMAGE_BREAK_SLACK,
    MAX_IMAGE_HEIGHT,
    MIN_IMAGE_HEIGHT,
    PAGE_MARGIN,
    PAGE_SIZE,
    PageCursor,
    fit_image,
    line_height,
)

logger = logging.getLogger(__name__)

BODY_SIZE = 12


@dataclass(frozen=True)
class TextRole:
    """A font role at a size and colour"""
    name: str
    font: str
    size: float
    color: object = colors.black


@dataclass(frozen=True)
class ImagePlacement:
    url: str
    page: int
    top: float
    width: float
    height: float


@dataclass
class RenderedDocument:
    """Finished PDF bytes with layout facts"""
    content: bytes
    page_count: int
    images: List[ImagePlacement] = field(default_factory=list)


def _roles(fonts: FontSet) -> Dict[str, TextRole]:
    return {
        'title': TextRole('title', fonts.sans_bold, 22),
        'byline': TextRole('byline', fonts.sans_regular, 12, colors.gray),
        'source': TextRole('source', fonts.sans_regular, 10, colors.blue),
        'heading': TextRole('heading', fonts.bold, 16),
        'body': TextRole('body', fonts.regular, BODY_SIZE),
        'section': TextRole('section', fonts.sans_bold, 20),
        'quiz_title': TextRole('quiz_title', fonts.bold, 14),
    }


def _markup(text: str) -> str:
    return html.escape(text, quote=False)


class _PageWriter:
    """Owns the canvas and the cursor for one composition"""

    def __init__(self, fonts: FontSet, page_size, margin: float, max_image_height: float):
        self.buffer = io.BytesIO()
        # invariant=1 pins creation dates and document IDs for reproducible output
        self.canvas = canvas.Canvas(self.buffer, pagesize=page_size, invariant=1)
        self.canvas.setTitle('Clippings')
        self.cursor = PageCursor(page_width=page_size[0], page_height=page_size[1], margin=margin, y=margin)
        self.roles = _roles(fonts)
        self.styles = {
            name: ParagraphStyle(
                name,
                fontName=role.font,
                fontSize=role.size,
                leading=line_height(role.size),
                textColor=role.color,
            )
            for name, role in self.roles.items()
        }
        self.max_image_height = max_image_height
        self.placements: List[ImagePlacement] = []

    # -- primitives -------------------------------------------------------

    def new_page(self) -> None:
        self.canvas.showPage()
        self.cursor.next_page()

    def move_down(self, lines: float, role: str) -> None:
        self.cursor.move_down(lines, self.roles[role].size)

    def _draw(self, flowable: TextFlowable, height: float) -> None:
        bottom_y = self.cursor.to_pdf_y(self.cursor.y + height)
        flowable.drawOn(self.canvas, self.cursor.left, bottom_y)
        self.cursor.advance(height)

    def write_text(self, markup: str, role: str) -> None:
        """Write wrapped text, splitting it by lines across page breaks"""
        self.cursor.font_role = role
        width = self.cursor.content_width
        pending = TextFlowable(markup, self.styles[role])

        while True:
            _, height = pending.wrap(width, self.cursor.content_height)
            if self.cursor.fits(height):
                self._draw(pending, height)
                return

            available = self.cursor.remaining
            parts = pending.split(width, available) if available > 0 else []
            if len(parts) >= 2:
                head, pending = parts[0], parts[1]
                _, head_height = head.wrap(width, available)
                self._draw(head, head_height)
                self.new_page()
                continue

            if self.cursor.at_page_top:
                raise LayoutError(f"Text line taller than an empty page ({role} role)")
            self.new_page()

    def write_image(self, image: LoadedImage) -> None:
        width = self.cursor.content_width

        # Provisional size against the space left right now decides the break
        available_now = max(0.0, self.cursor.remaining - IMAGE_BOTTOM_PADDING)
        if available_now < MIN_IMAGE_HEIGHT:
            # Measure against the cap instead, which forces the break
            available_now = 0.0
        _, estimated_height = fit_image(
            image.width, image.height, width, available_now, self.max_image_height
        )
        if not self.cursor.fits(estimated_height + IMAGE_BREAK_SLACK):
            self.new_page()

        # Final size against the post-break position
        top = self.cursor.y
        available = max(0.0, self.cursor.remaining - IMAGE_BOTTOM_PADDING)
        draw_width, draw_height = fit_image(
            image.width, image.height, width, available, self.max_image_height
        )

        try:
            self.canvas.drawImage(
                ImageReader(io.BytesIO(image.data)),
                self.cursor.left,
                self.cursor.to_pdf_y(top + draw_height),
                width=draw_width,
                height=draw_height,
                mask='auto',
            )
        except Exception as e:
            logger.warning(f"Skipping image {image.url}: {e}", extra={'url': image.url})
            return

        self.placements.append(ImagePlacement(
            url=image.url, page=self.cursor.page_number, top=top,
            width=draw_width, height=draw_height,
        ))
        self.cursor.advance(draw_height)
        self.move_down(0.6, 'body')

    # -- document structure -----------------------------------------------

    def write_title_block(self, article: Article) -> None:
        self.write_text(_markup(article.title or 'Untitled'), 'title')

        if article.byline:
            self.move_down(0.25, 'title')
            self.write_text(_markup(article.byline), 'byline')

        if article.source_url:
            if article.byline:
                self.move_down(0.15, 'byline')
            else:
                self.move_down(0.3, 'title')
            url = _markup(article.source_url)
            self.write_text(f'<a href="{html.escape(article.source_url)}"><u>{url}</u></a>', 'source')

        self.move_down(0.75, 'source')

    def write_article(self, article: Article, index: int, images: Dict[str, Optional[LoadedImage]]) -> None:
        if index > 0:
            self.new_page()

        self.write_title_block(article)

        for block in article.blocks:
            if isinstance(block, Paragraph):
                self.write_text(_markup(block.text), 'body')
                self.move_down(0.6, 'body')
            elif isinstance(block, Heading):
                self.move_down(0.2, 'body')
                self.write_text(_markup(block.text), 'heading')
                self.move_down(0.4, 'heading')
            elif isinstance(block, Image):
                loaded = images.get(block.source_url)
                if loaded is None:
                    logger.debug(f"Omitting unavailable image {block.source_url}")
                    continue
                self.write_image(loaded)
            else:
                raise TypeError(f"Unknown content block: {block!r}")

    def write_comprehension(self, sections: Sequence[ComprehensionSection]) -> None:
        self.new_page()
        self.write_text('Comprehension', 'section')
        self.move_down(0.6, 'section')

        for section in sections:
            self.write_text(_markup(section.title or 'Untitled'), 'quiz_title')
            self.move_down(0.3, 'quiz_title')
            for number, question in enumerate(section.questions, 1):
                self.write_text(_markup(f"{number}. {question}"), 'body')
                self.move_down(0.4, 'body')
            self.move_down(0.6, 'body')

        self.new_page()
        self.write_text('Answers', 'section')
        self.move_down(0.6, 'section')

        for section in sections:
            self.write_text(_markup(section.title or 'Untitled'), 'quiz_title')
            self.move_down(0.3, 'quiz_title')
            for number, (_, answer) in enumerate(section.answer_pairs(), 1):
                self.write_text(_markup(f"Q{number}: {answer}"), 'body')
                self.move_down(0.3, 'body')
            self.move_down(0.6, 'body')

    def finish(self) -> RenderedDocument:
        self.canvas.showPage()
        self.canvas.save()
        return RenderedDocument(
            content=self.buffer.getvalue(),
            page_count=self.cursor.page_number,
            images=list(self.placements),
        )


class DocumentCompositor:
    """
    Turns articles (and an optional quiz) into finished PDF bytes.

    An empty article list raises EmptyInputError; no zero-article document
    is ever produced.
    """

    def __init__(
        self,
        font_provider=None,
        image_fetcher: Optional[ImageFetcher] = None,
        page_size=PAGE_SIZE,
        margin: float = PAGE_MARGIN,
        max_image_height: float = MAX_IMAGE_HEIGHT,
    ):
        self.font_provider = font_provider or default_font_provider()
        self.image_fetcher = image_fetcher
        self.page_size = page_size
        self.margin = margin
        self.max_image_height = max_image_height

    def render(
        self,
        articles: Sequence[Article],
        comprehension: Optional[Sequence[ComprehensionSection]] = None,
        images: Optional[Dict[str, Optional[LoadedImage]]] = None,
    ) -> RenderedDocument:
        """Synchronous layout over already-resolved images"""
        if not articles:
            raise EmptyInputError("No articles to compose")

        writer = _PageWriter(
            self.font_provider.resolve(), self.page_size, self.margin, self.max_image_height
        )
        images = images or {}

        for index, article in enumerate(articles):
            writer.write_article(article, index, images)

        if comprehension:
            writer.write_comprehension(comprehension)

        return writer.finish()

    async def compose(
        self,
        articles: Sequence[Article],
        comprehension: Optional[Sequence[ComprehensionSection]] = None,
    ) -> RenderedDocument:
        """Prefetch images concurrently, then lay out sequentially"""
        if not articles:
            raise EmptyInputError("No articles to compose")

        with TimedLogger(logger, "document composition", article_count=len(articles)):
            image_urls = [
                block.source_url
                for article in articles
                for block in article.blocks
                if isinstance(block, Image)
            ]
            images = await prefetch_images(image_urls, self.image_fetcher)
            rendered = self.render(articles, comprehension, images)

        logger.info(
            f"Composed {rendered.page_count} pages ({len(rendered.content)} bytes)",
            extra={'page_count': rendered.page_count, 'byte_size': len(rendered.content)},
        )
        return rendered


async def compose(
    articles: Sequence[Article],
    comprehension: Optional[Sequence[ComprehensionSection]] = None,
    **options,
) -> bytes:
    """Compose articles into PDF bytes"""
    rendered = await DocumentCompositor(**options).compose(articles, comprehension)
    return rendered.content
