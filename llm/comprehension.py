"""
Comprehension quiz generation through the OpenAI chat completions API.

Absence is a normal outcome: no key, an API error or an unusable reply
all return None so the document is built without a quiz.
"""

import json
import logging
import re
from typing import Any, List, Optional, Sequence

import openai

from config import config
from content_extraction.models import Article, ComprehensionSection, Heading, Paragraph

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = 'You generate concise reading comprehension questions and answers.'

USER_PROMPT = """For each article, create 5 questions: 3 about general themes/claims and 2 about memorable specific details.
Return JSON with this shape: [{{"title": "...", "questions": ["q1", ...], "answers": ["a1", ...]}}].
Questions should be standalone and not reference numbering from the source.
Answers should be brief but specific.
Use the provided article summaries below.

{articles}"""

_FENCED_JSON_RE = re.compile(r'```json\s*([\s\S]*?)```', re.IGNORECASE)
_FENCED_ANY_RE = re.compile(r'```[\s\S]*?```')


def build_article_summary(article: Article, max_chars: Optional[int] = None) -> str:
    """Title plus the start of the article text"""
    max_chars = max_chars or config.QUIZ_SUMMARY_CHARS
    text = ' '.join(
        block.text for block in article.blocks if isinstance(block, (Heading, Paragraph))
    )
    prefix = f"{article.title}. " if article.title else ''
    return prefix + text[:max_chars]


def parse_comprehension_reply(content: str) -> Optional[List[ComprehensionSection]]:
    """Pull the JSON array out of a model reply, fenced or bare"""
    fenced_json = _FENCED_JSON_RE.search(content)
    fenced_any = _FENCED_ANY_RE.search(content)
    if fenced_json:
        json_text = fenced_json.group(1)
    elif fenced_any:
        json_text = fenced_any.group(0).replace('```', '')
    else:
        json_text = content

    try:
        parsed: Any = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.error(f"Comprehension reply is not valid JSON: {e}")
        return None

    if not isinstance(parsed, list):
        logger.error("Unexpected comprehension response shape")
        return None

    return [ComprehensionSection.from_payload(item) for item in parsed if isinstance(item, dict)]


def _build_client() -> Optional[openai.AsyncOpenAI]:
    if not config.is_quiz_available():
        return None
    return openai.AsyncOpenAI(api_key=config.OPENAI_API_KEY)


async def generate_comprehension(
    articles: Sequence[Article],
    client: Optional[openai.AsyncOpenAI] = None,
    model: Optional[str] = None,
) -> Optional[List[ComprehensionSection]]:
    """Quiz sections for the articles, or None when unavailable"""
    client = client or _build_client()
    if client is None:
        logger.warning("OPENAI_API_KEY not set; skipping comprehension generation.")
        return None

    payload_articles = [
        {
            'title': article.title or f"Article {index + 1}",
            'summary': build_article_summary(article),
        }
        for index, article in enumerate(articles)
    ]
    messages = [
        {'role': 'system', 'content': SYSTEM_PROMPT},
        {'role': 'user', 'content': USER_PROMPT.format(
            articles=json.dumps(payload_articles, indent=2, ensure_ascii=False)
        )},
    ]

    try:
        response = await client.chat.completions.create(
            model=model or config.OPENAI_MODEL,
            messages=messages,
            temperature=config.QUIZ_TEMPERATURE,
            max_tokens=config.QUIZ_MAX_TOKENS,
        )
    except openai.OpenAIError as e:
        logger.error(f"Failed to generate comprehension questions: {e}")
        return None

    content = ''
    if response.choices:
        content = response.choices[0].message.content or ''

    sections = parse_comprehension_reply(content)
    if sections is not None:
        logger.info(f"Generated comprehension for {len(sections)} articles")
    return sections
