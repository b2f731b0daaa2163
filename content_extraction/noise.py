"""
Boilerplate detection for extracted text (subscribe prompts, follow links)
"""

import re
from typing import Iterable, Optional, Tuple

from config import config

# Built-in phrases; NOISE_PHRASES_EXTRA in the environment appends more
DEFAULT_NOISE_PHRASES: Tuple[str, ...] = (
    'follow this publication',
    'follow us on',
    'follow me on',
    'keep up with our latest articles',
    'support our work',
    'subscribe below',
    'subscribe',
    'ready for more',
    'discussion about this post',
    'join the discussion',
    'sign up for our newsletter',
    'receive pieces like this in your inbox',
    'get new posts',
    'become a subscriber',
    'unlock full access',
)

_WHITESPACE_RE = re.compile(r'\s+')


def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace runs to one space and trim"""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(' ', text).strip()


def noise_phrases() -> Tuple[str, ...]:
    """Built-in phrases plus configured extras, lowercased"""
    extras = tuple(phrase.lower() for phrase in config.NOISE_PHRASES_EXTRA)
    return DEFAULT_NOISE_PHRASES + extras


def is_noise(text: Optional[str], phrases: Optional[Iterable[str]] = None) -> bool:
    """True when text is empty or contains a boilerplate phrase"""
    normalized = clean_text(text).lower()
    if not normalized:
        return True

    candidates = noise_phrases() if phrases is None else tuple(p.lower() for p in phrases)
    return any(phrase in normalized for phrase in candidates)
