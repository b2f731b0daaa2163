"""
Concurrent image prefetch for composition.

Every image is resolved (bytes decoded, or skipped) before layout starts,
because page-break decisions depend on pixel dimensions.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional

import httpx
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from config import config
from content_extraction.web_extractor import build_client, fetch_bytes
from utils.errors import FetchError

logger = logging.getLogger(__name__)

ImageFetcher = Callable[[str], Awaitable[bytes]]


@dataclass(frozen=True)
class LoadedImage:
    """Decoded image bytes with native pixel size"""
    url: str
    data: bytes
    width: int
    height: int


def decode_image(url: str, data: bytes) -> LoadedImage:
    """Verify the bytes are a decodable raster and measure it"""
    with PILImage.open(io.BytesIO(data)) as img:
        img.load()
        width, height = img.size
    if width <= 0 or height <= 0:
        raise ValueError(f"Image {url} has no pixels")
    return LoadedImage(url=url, data=data, width=width, height=height)


def http_image_fetcher(client: httpx.AsyncClient) -> ImageFetcher:
    async def fetch(url: str) -> bytes:
        content, _ = await fetch_bytes(client, url)
        return content
    return fetch


async def prefetch_images(
    urls: Iterable[str],
    fetcher: Optional[ImageFetcher] = None,
    concurrency: Optional[int] = None,
) -> Dict[str, Optional[LoadedImage]]:
    """
    Fetch and decode each distinct URL once.

    Failed or undecodable images map to None; they are omitted from the
    document, never fatal.
    """
    unique_urls = list(dict.fromkeys(urls))
    if not unique_urls:
        return {}

    if fetcher is None:
        async with build_client() as client:
            return await prefetch_images(unique_urls, http_image_fetcher(client), concurrency)

    semaphore = asyncio.Semaphore(concurrency or config.IMAGE_FETCH_CONCURRENCY)

    async def load(url: str) -> Optional[LoadedImage]:
        async with semaphore:
            try:
                data = await fetcher(url)
                return decode_image(url, data)
            except (FetchError, UnidentifiedImageError, PILImage.DecompressionBombError, OSError, ValueError) as e:
                logger.warning(f"Skipping image {url}: {e}", extra={'url': url})
                return None
            except Exception as e:
                logger.warning(f"Skipping image {url} after unexpected error: {e}", exc_info=True, extra={'url': url})
                return None

    loaded = await asyncio.gather(*(load(url) for url in unique_urls))
    return dict(zip(unique_urls, loaded))
