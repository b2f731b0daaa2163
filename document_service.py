"""
Clippings service: URLs in, one paginated PDF out (optionally emailed)
"""

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional

from config import config
from compositor import DocumentCompositor
from content_extraction import collect_articles
from content_extraction.models import CompiledDocument
from llm.comprehension import generate_comprehension
from utils.errors import EmptyInputError
from utils.mailer import Mailer, is_valid_email

logger = logging.getLogger(__name__)


def clean_urls(urls: Iterable) -> List[str]:
    """Trimmed non-empty URL strings, input order kept"""
    cleaned = []
    for url in urls or []:
        if isinstance(url, str) and url.strip():
            cleaned.append(url.strip())
    return cleaned


def document_filename(day: date) -> str:
    return f"Clippings-{day.isoformat()}.pdf"


class ClippingsService:
    """Orchestrates collection, quiz generation, composition and delivery"""

    def __init__(
        self,
        collector=collect_articles,
        quiz_generator=generate_comprehension,
        compositor: Optional[DocumentCompositor] = None,
        mailer_factory: Callable[[], Mailer] = Mailer.from_config,
        today: Callable[[], date] = date.today,
    ):
        self.collector = collector
        self.quiz_generator = quiz_generator
        self.compositor = compositor or DocumentCompositor()
        self.mailer_factory = mailer_factory
        self.today = today

    async def compile(self, urls: Iterable, include_quiz: bool = True) -> CompiledDocument:
        """
        Build the document.

        Raises EmptyInputError when no URL was given or none could be
        extracted; partial failures are reported through `skipped`.
        """
        cleaned = clean_urls(urls)
        if not cleaned:
            raise EmptyInputError('Please provide at least one URL.')

        collected = await self.collector(cleaned)
        if not collected.articles:
            raise EmptyInputError('Could not fetch any articles.', skipped=collected.skipped)

        comprehension = None
        if include_quiz:
            try:
                comprehension = await self.quiz_generator(collected.articles)
            except Exception as e:
                logger.error(f"Comprehension generation failed, continuing without quiz: {e}", exc_info=True)
                comprehension = None

        rendered = await self.compositor.compose(collected.articles, comprehension)
        return CompiledDocument(
            filename=document_filename(self.today()),
            content=rendered.content,
            skipped=list(collected.skipped),
            page_count=rendered.page_count,
        )

    async def email(
        self,
        urls: Iterable,
        email: Optional[str] = None,
        include_quiz: bool = True,
    ) -> CompiledDocument:
        """Compile and send to the given address or the default e-reader address"""
        requested = (email or '').strip()
        if requested and not is_valid_email(requested):
            raise ValueError('Please provide a valid email address.')

        document = await self.compile(urls, include_quiz=include_quiz)

        mailer = self.mailer_factory()
        destination = requested or config.DEFAULT_KINDLE_EMAIL
        if not destination:
            raise ValueError(
                'No destination email configured. Set DEFAULT_KINDLE_EMAIL or provide an email.'
            )

        # Kindle personal documents treat the subject "convert" as a conversion request
        subject = f"Clippings Articles {self.today().isoformat()}" if requested else 'convert'
        await mailer.send_document(destination, subject, document.filename, document.content)
        logger.info(f"Sent {document.filename} to {destination}")
        return document
