#!/usr/bin/env python3
"""
Tests for the article content model
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from content_extraction.models import Article, ComprehensionSection, Heading, Image, Paragraph


class TestBlocks:
    """Block validation"""

    @pytest.mark.parametrize("level", [0, 7, -1])
    def test_heading_level_range(self, level):
        with pytest.raises(ValueError):
            Heading(level=level, text="Out of range")

    def test_empty_text_rejected(self):
        with pytest.raises(ValueError):
            Heading(level=2, text="")
        with pytest.raises(ValueError):
            Paragraph(text="")

    @pytest.mark.parametrize("url", ["/img/a.png", "img/a.png", "https://", ""])
    def test_image_url_must_be_absolute(self, url):
        with pytest.raises(ValueError):
            Image(source_url=url)

    def test_image_absolute(self):
        assert Image(source_url="https://x.test/img/a.png").source_url == "https://x.test/img/a.png"


class TestArticle:
    """Article construction"""

    def test_title_required(self):
        with pytest.raises(ValueError):
            Article(title="", byline=None, source_url="https://x.test/a")

    def test_blocks_stored_as_tuple(self):
        blocks = [Paragraph("One"), Paragraph("Two")]
        article = Article(title="T", byline=None, source_url="https://x.test/a", blocks=blocks)
        blocks.append(Paragraph("Three"))

        assert article.blocks == (Paragraph("One"), Paragraph("Two"))

    def test_text_content_skips_images(self):
        article = Article(
            title="T",
            byline=None,
            source_url="https://x.test/a",
            blocks=[Heading(2, "Intro"), Image("https://x.test/i.png"), Paragraph("Body text")],
        )
        assert article.text_content() == "Intro Body text"


class TestComprehensionSection:
    """Quiz section shape handling"""

    def test_answer_pairs_use_shorter_list(self):
        section = ComprehensionSection(
            title="Tides",
            questions=["q1", "q2", "q3"],
            answers=["a1", "a2"],
        )
        assert section.answer_pairs() == [("q1", "a1"), ("q2", "a2")]

    def test_from_payload(self):
        section = ComprehensionSection.from_payload({
            'title': ' Tides ',
            'questions': ['What drives tides?', 42, '  '],
            'answers': ['The Moon'],
        })
        assert section.title == "Tides"
        assert section.questions == ('What drives tides?',)
        assert section.answers == ('The Moon',)

    def test_from_payload_missing_fields(self):
        section = ComprehensionSection.from_payload({'questions': 'not a list'})
        assert section.title == "Untitled"
        assert section.questions == ()
        assert section.answers == ()

    def test_blank_answer_keeps_later_answers_aligned(self):
        section = ComprehensionSection.from_payload({
            'title': 'T',
            'questions': ['q1', 'q2'],
            'answers': ['', 'a2'],
        })
        assert section.answers == ()
        assert section.answer_pairs() == []

    def test_items_stop_at_first_unusable_entry(self):
        section = ComprehensionSection.from_payload({
            'title': 'T',
            'questions': ['q1', 'q2', 'q3'],
            'answers': ['a1', None, 'a3'],
        })
        assert section.answer_pairs() == [('q1', 'a1')]
