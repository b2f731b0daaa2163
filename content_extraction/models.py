"""
Article content model: typed blocks, articles and comprehension sections
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse


@dataclass(frozen=True)
class Heading:
    """Section heading, level 1..6"""
    level: int
    text: str

    def __post_init__(self):
        if not 1 <= self.level <= 6:
            raise ValueError(f"Heading level must be 1..6, got {self.level}")
        if not self.text:
            raise ValueError("Heading text must not be empty")


@dataclass(frozen=True)
class Paragraph:
    """Body text"""
    text: str

    def __post_init__(self):
        if not self.text:
            raise ValueError("Paragraph text must not be empty")


@dataclass(frozen=True)
class Image:
    """Image reference, always an absolute URL"""
    source_url: str

    def __post_init__(self):
        parsed = urlparse(self.source_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Image URL must be absolute: {self.source_url!r}")


ContentBlock = Union[Heading, Paragraph, Image]


@dataclass(frozen=True)
class Article:
    """Extracted article ready for composition"""
    title: str
    byline: Optional[str]
    source_url: str
    blocks: Tuple[ContentBlock, ...] = ()

    def __post_init__(self):
        if not self.title:
            raise ValueError("Article title must not be empty")
        # Accept any sequence from callers, store an immutable tuple
        object.__setattr__(self, 'blocks', tuple(self.blocks))

    def text_content(self) -> str:
        """Heading and paragraph text joined in reading order"""
        parts = []
        for block in self.blocks:
            if isinstance(block, (Heading, Paragraph)):
                parts.append(block.text)
            elif isinstance(block, Image):
                continue
            else:
                raise TypeError(f"Unknown content block: {block!r}")
        return ' '.join(parts)


def _string_items(value: Any) -> Tuple[str, ...]:
    """Leading run of non-blank strings; stops at the first unusable item so indexes stay aligned"""
    if not isinstance(value, list):
        return ()
    items = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            break
        items.append(item.strip())
    return tuple(items)


@dataclass(frozen=True)
class ComprehensionSection:
    """Quiz questions and answers for one article, matched by index"""
    title: str
    questions: Tuple[str, ...] = ()
    answers: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'questions', tuple(self.questions))
        object.__setattr__(self, 'answers', tuple(self.answers))

    def answer_pairs(self) -> List[Tuple[str, str]]:
        """(question, answer) pairs over the overlapping prefix"""
        return list(zip(self.questions, self.answers))

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'ComprehensionSection':
        """Build a section from loosely shaped model output"""
        title = payload.get('title') if isinstance(payload, dict) else None
        if not isinstance(title, str) or not title.strip():
            title = 'Untitled'
        if not isinstance(payload, dict):
            return cls(title=title)
        return cls(
            title=title.strip(),
            questions=_string_items(payload.get('questions')),
            answers=_string_items(payload.get('answers')),
        )


@dataclass
class CollectionResult:
    """Successful articles in input order plus the URLs that failed"""
    articles: List[Article] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


@dataclass
class CompiledDocument:
    """Finished PDF and its out-of-band skip list"""
    filename: str
    content: bytes
    skipped: List[str] = field(default_factory=list)
    page_count: int = 0
