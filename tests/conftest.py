"""
Shared fixtures for the Clippings tests
"""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image as PILImage

# Project root on the path so tests import the packages directly
sys.path.insert(0, str(Path(__file__).parent.parent))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(filename: str) -> str:
    """Read an HTML fixture"""
    return (FIXTURES_DIR / filename).read_text(encoding='utf-8')


def make_png(width: int, height: int, color=(30, 90, 160)) -> bytes:
    """Synthetic PNG of the given pixel size"""
    buffer = io.BytesIO()
    PILImage.new('RGB', (width, height), color).save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png
