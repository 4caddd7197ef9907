import io

import pytest
from PIL import Image

from addna.core.errors import ExtractionError
from addna.core.registry import InMemoryRegistry
from addna.models.features import ImageFeatures
from addna.services.verification import DNAService

BASE_HASH = "0" * 64
BRAND_BLUE = (0, 83, 159)


def hash_at_distance(distance: int, base: str = BASE_HASH) -> str:
    """Return a hash differing from `base` in exactly `distance` leading positions."""
    return "f" * distance + base[distance:]


def make_image_bytes(color=(255, 0, 0), size=(64, 64), fmt="PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def no_text(image, timeout=None):
    return []


class StubExtractor:
    """Feature extractor returning canned features keyed by image bytes."""

    def __init__(self):
        self.features = {}

    def add(self, data: bytes, perceptual_hash=BASE_HASH, palette=None, width=400, height=300,
            text_regions=None) -> bytes:
        self.features[data] = ImageFeatures(
            perceptual_hash=perceptual_hash,
            palette=[BRAND_BLUE] if palette is None else palette,
            width=width,
            height=height,
            text_regions=text_regions or [],
        )
        return data

    def extract(self, data, timeout=None):
        if data not in self.features:
            raise ExtractionError("Could not decode image")
        return self.features[data]

    def shutdown(self):
        pass


@pytest.fixture
def registry():
    return InMemoryRegistry()


@pytest.fixture
def extractor():
    return StubExtractor()


@pytest.fixture
def service(registry, extractor):
    return DNAService(registry, extractor, enable_qr_codes=False)
