#!/usr/bin/env python3
"""
Tests for PDF composition: pagination, image placement and the quiz
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from reportlab.lib.pagesizes import LETTER

sys.path.insert(0, str(Path(__file__).parent.parent))

from compositor import DocumentCompositor, compose
from compositor.fonts import STANDARD_FONTS, FileSystemFontProvider, StandardFontProvider
from compositor.images import LoadedImage, decode_image, prefetch_images
from compositor.layout import MAX_IMAGE_HEIGHT, PAGE_MARGIN
from compositor.pdf_compositor import _PageWriter
from conftest import make_png
from content_extraction.models import Article, ComprehensionSection, Heading, Image, Paragraph
from utils.errors import EmptyInputError, FetchError

LOREM = (
    "Tides are the regular rise and fall of sea level, driven mostly by the gravity "
    "of the Moon and to a lesser degree by the Sun, as the Earth rotates beneath them. "
)


def make_article(index: int = 1, blocks=None) -> Article:
    return Article(
        title=f"Article {index}",
        byline="Dana Reyes",
        source_url=f"https://news.test/{index}",
        blocks=blocks if blocks is not None else [Heading(2, "Intro"), Paragraph(LOREM)],
    )


def make_compositor(image_fetcher=None) -> DocumentCompositor:
    return DocumentCompositor(font_provider=StandardFontProvider(), image_fetcher=image_fetcher)


def make_writer() -> _PageWriter:
    return _PageWriter(STANDARD_FONTS, LETTER, PAGE_MARGIN, MAX_IMAGE_HEIGHT)


def loaded(url: str, width: int, height: int) -> LoadedImage:
    return LoadedImage(url=url, data=make_png(width, height), width=width, height=height)


class TestPagination:
    """Page breaks between articles and inside long text"""

    def test_single_short_article(self):
        rendered = make_compositor().render([make_article()])

        assert rendered.page_count == 1
        assert rendered.content.startswith(b"%PDF")

    def test_each_article_starts_new_page(self):
        rendered = make_compositor().render([make_article(1), make_article(2), make_article(3)])
        assert rendered.page_count == 3

    def test_long_paragraph_splits_across_pages(self):
        article = make_article(blocks=[Paragraph(LOREM * 120)])
        rendered = make_compositor().render([article])
        assert rendered.page_count >= 2

    def test_many_blocks_flow_onto_later_pages(self):
        blocks = []
        for i in range(40):
            blocks.append(Heading(3, f"Section {i}"))
            blocks.append(Paragraph(LOREM * 2))
        rendered = make_compositor().render([make_article(blocks=blocks)])
        assert rendered.page_count >= 3

    def test_empty_input_rejected(self):
        with pytest.raises(EmptyInputError):
            make_compositor().render([])

    def test_article_without_blocks(self):
        rendered = make_compositor().render([make_article(blocks=[])])
        assert rendered.page_count == 1

    def test_markup_characters_escaped(self):
        article = Article(
            title="Fish & Chips <tonight>",
            byline=None,
            source_url="https://news.test/a?x=1&y=2",
            blocks=[Paragraph("Less < more & greater > less")],
        )
        rendered = make_compositor().render([article])
        assert rendered.page_count == 1

    def test_deterministic_output(self):
        articles = [make_article(1), make_article(2)]
        quiz = [ComprehensionSection("Article 1", ("q1",), ("a1",))]

        first = make_compositor().render(articles, quiz)
        second = make_compositor().render(articles, quiz)

        assert first.page_count == second.page_count
        assert first.content == second.content


class TestImages:
    """Two-phase image measurement and omission of failed images"""

    def test_image_breaks_to_next_page_at_full_size(self):
        writer = make_writer()
        writer.cursor.y = writer.cursor.bottom - 50

        writer.write_image(loaded("https://x.test/wide.png", 1000, 500))

        placement = writer.placements[0]
        assert placement.page == 2
        assert placement.top == pytest.approx(PAGE_MARGIN)
        assert placement.height == pytest.approx(MAX_IMAGE_HEIGHT)
        assert placement.width == pytest.approx(MAX_IMAGE_HEIGHT * 2)

    def test_image_shrinks_into_remaining_space(self):
        writer = make_writer()
        writer.cursor.y = writer.cursor.bottom - 150

        writer.write_image(loaded("https://x.test/wide.png", 1000, 500))

        placement = writer.placements[0]
        assert placement.page == 1
        assert (placement.width, placement.height) == pytest.approx((280, 140))

    def test_image_on_fresh_page(self):
        writer = make_writer()
        writer.write_image(loaded("https://x.test/small.png", 200, 100))

        placement = writer.placements[0]
        assert (placement.page, placement.width, placement.height) == (1, 200, 100)
        assert writer.cursor.y > PAGE_MARGIN + 100

    def test_unavailable_image_omitted(self):
        article = make_article(blocks=[Paragraph("Before"), Image("https://x.test/gone.png"), Paragraph("After")])
        rendered = make_compositor().render([article], images={"https://x.test/gone.png": None})

        assert rendered.images == []
        assert rendered.page_count == 1

    def test_second_article_image_on_second_page(self):
        url = "https://x.test/chart.png"
        articles = [make_article(1), make_article(2, blocks=[Paragraph("Chart below"), Image(url)])]
        rendered = make_compositor().render(articles, images={url: loaded(url, 300, 150)})

        assert [placement.page for placement in rendered.images] == [2]

    @pytest.mark.asyncio
    async def test_compose_prefetches_and_skips_failures(self):
        good = "https://x.test/good.png"
        missing = "https://x.test/missing.png"
        garbage = "https://x.test/garbage.png"
        requested = []

        async def fetcher(url):
            requested.append(url)
            if url == missing:
                raise FetchError(url, "404", status=404)
            if url == garbage:
                return b"not an image"
            return make_png(120, 60)

        article = make_article(blocks=[Image(good), Image(missing), Paragraph("Text"), Image(garbage), Image(good)])
        rendered = await make_compositor(image_fetcher=fetcher).compose([article])

        assert sorted(requested) == sorted([good, missing, garbage]), "Each distinct URL fetched once"
        assert [placement.url for placement in rendered.images] == [good, good]

    @pytest.mark.asyncio
    async def test_module_compose_returns_bytes(self):
        async def fetcher(url):
            raise FetchError(url, "offline")

        content = await compose(
            [make_article()], font_provider=StandardFontProvider(), image_fetcher=fetcher
        )
        assert content.startswith(b"%PDF")


class TestComprehension:
    """Quiz and answer key sections"""

    def test_quiz_adds_two_pages(self):
        quiz = [ComprehensionSection("Article 1", ("q1", "q2"), ("a1", "a2"))]
        rendered = make_compositor().render([make_article()], quiz)
        assert rendered.page_count == 3

    def test_mismatched_answers_render_overlap_only(self):
        quiz = [ComprehensionSection("Article 1", ("q1", "q2", "q3"), ("a1", "a2"))]
        written = []
        original = _PageWriter.write_text

        def recording_write_text(self, markup, role):
            written.append(markup)
            return original(self, markup, role)

        with patch.object(_PageWriter, 'write_text', autospec=True, side_effect=recording_write_text):
            rendered = make_compositor().render([make_article()], quiz)

        assert [text for text in written if text.startswith("Q")] == ["Q1: a1", "Q2: a2"]
        assert [text for text in written if text[:2] in ("1.", "2.", "3.")] == ["1. q1", "2. q2", "3. q3"]
        assert rendered.page_count == 3

    def test_empty_quiz_is_omitted(self):
        rendered = make_compositor().render([make_article()], [])
        assert rendered.page_count == 1


class TestImageLoading:
    """Decoding and concurrent prefetch"""

    def test_decode_measures_pixels(self):
        image = decode_image("https://x.test/a.png", make_png(64, 32))
        assert (image.width, image.height) == (64, 32)

    @pytest.mark.asyncio
    async def test_prefetch_maps_failures_to_none(self):
        async def fetcher(url):
            if url.endswith("bad"):
                return b"\x00\x01"
            return make_png(10, 10)

        images = await prefetch_images(["https://x.test/ok", "https://x.test/bad"], fetcher)

        assert images["https://x.test/ok"].width == 10
        assert images["https://x.test/bad"] is None

    @pytest.mark.asyncio
    async def test_prefetch_empty(self):
        assert await prefetch_images([]) == {}


class TestFonts:
    """Font providers"""

    def test_standard_fonts(self):
        assert StandardFontProvider().resolve() == STANDARD_FONTS

    def test_filesystem_fallback(self, tmp_path):
        provider = FileSystemFontProvider(fonts_dir=str(tmp_path / "fonts"), search_root=str(tmp_path))
        assert provider.resolve() == STANDARD_FONTS
