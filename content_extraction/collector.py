"""
Batch collection: runs the fetch pipeline over many URLs, isolating failures
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, Tuple

import httpx

from config import config
from utils.errors import ClippingsError
from .models import Article, CollectionResult
from .web_extractor import build_client, fetch_article

logger = logging.getLogger(__name__)

ArticleFetcher = Callable[[str, httpx.AsyncClient], Awaitable[Article]]


async def collect_articles(
    urls: Sequence[str],
    *,
    client: Optional[httpx.AsyncClient] = None,
    fetcher: ArticleFetcher = fetch_article,
    concurrency: Optional[int] = None,
) -> CollectionResult:
    """
    Fetch every URL concurrently; failures go to the skip list.

    Results are tagged with their input index and re-sorted, so both
    articles and skipped URLs follow input order regardless of completion order.
    """
    if client is None:
        async with build_client() as own_client:
            return await collect_articles(
                urls, client=own_client, fetcher=fetcher, concurrency=concurrency
            )

    semaphore = asyncio.Semaphore(concurrency or config.FETCH_CONCURRENCY)

    async def run(index: int, url: str) -> Tuple[int, str, Optional[Article]]:
        async with semaphore:
            try:
                return index, url, await fetcher(url, client)
            except ClippingsError as e:
                logger.warning(f"Failed to fetch/parse {url}: {e}", extra={'url': url})
            except Exception as e:
                logger.error(f"Unexpected error processing {url}: {e}", exc_info=True, extra={'url': url})
            return index, url, None

    outcomes = await asyncio.gather(*(run(i, url) for i, url in enumerate(urls)))
    outcomes.sort(key=lambda outcome: outcome[0])

    result = CollectionResult()
    for _, url, article in outcomes:
        if article is None:
            result.skipped.append(url)
        else:
            result.articles.append(article)

    logger.info(
        f"Collected {len(result.articles)} articles, skipped {len(result.skipped)}",
        extra={'article_count': len(result.articles), 'skipped_count': len(result.skipped)},
    )
    return result
