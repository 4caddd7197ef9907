"""
Perceptual feature extraction: hash, palette, dimensions and text regions.

Extraction is the slow part of every issuance and verification (OCR in
particular), so it runs on a bounded worker pool and honours a timeout.
"""

import io
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Callable, List, Optional, Tuple

import structlog
from PIL import Image, UnidentifiedImageError

from addna import config
from addna.core.errors import ExtractionError
from addna.models.features import ImageFeatures, TextRegion
from addna.services import image_hash, palette, text_regions

logger = structlog.get_logger()

Hasher = Callable[[Image.Image], str]
PaletteExtractor = Callable[[Image.Image], List[Tuple[int, int, int]]]
TextDetector = Callable[..., List[TextRegion]]


def load_image(data: bytes) -> Image.Image:
    """Decode image bytes fully, raising ExtractionError on corrupt input."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ExtractionError(f"Could not decode image: {e}") from e

    if image.width == 0 or image.height == 0:
        raise ExtractionError("Image has no pixels")
    return image.convert('RGB')


class FeatureExtractor:
    """Default feature extractor with pluggable hashing, palette and text detection."""

    def __init__(self,
                 hasher: Optional[Hasher] = None,
                 palette_extractor: Optional[PaletteExtractor] = None,
                 text_detector: Optional[TextDetector] = None,
                 max_workers: Optional[int] = None):
        self.hasher = hasher or image_hash.phash
        self.palette_extractor = palette_extractor or palette.extract_palette
        self.text_detector = text_detector or text_regions.detect_text_regions
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or config.EXTRACTION_WORKERS,
            thread_name_prefix="feature-extract",
        )

    def extract(self, data: bytes, timeout: Optional[float] = None) -> ImageFeatures:
        """
        Extract features from raw image bytes.

        Args:
            data: Encoded JPEG or PNG bytes
            timeout: Seconds to wait before giving up; defaults to
                EXTRACTION_TIMEOUT_SECONDS

        Raises:
            ExtractionError: the image is corrupt, a collaborator failed, or
                the timeout expired
        """
        if timeout is None:
            timeout = config.EXTRACTION_TIMEOUT_SECONDS

        future = self._executor.submit(self._extract, data, timeout)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            future.cancel()
            logger.warning("Feature extraction timed out", timeout=timeout, size=len(data))
            raise ExtractionError(f"Feature extraction timed out after {timeout}s") from e

    def _extract(self, data: bytes, timeout: float) -> ImageFeatures:
        image = load_image(data)
        try:
            features = ImageFeatures(
                perceptual_hash=self.hasher(image),
                palette=self.palette_extractor(image),
                width=image.width,
                height=image.height,
                text_regions=self.text_detector(image, timeout=timeout),
            )
        except ExtractionError:
            raise
        except Exception as e:
            logger.error("Feature extraction failed", error=str(e))
            raise ExtractionError(f"Feature extraction failed: {e}") from e

        logger.debug("Extracted image features",
                     width=features.width,
                     height=features.height,
                     colors=len(features.palette),
                     text_regions=len(features.text_regions))
        return features

    def shutdown(self):
        self._executor.shutdown(wait=False)
