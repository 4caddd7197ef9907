"""
Text region detection with Tesseract OCR.

Only word boxes matter for the safe-zone rule; recognized text is discarded.
"""

from typing import List, Optional

import structlog
import pytesseract
from PIL import Image

from addna import config
from addna.core.errors import ExtractionError
from addna.models.features import TextRegion

logger = structlog.get_logger()

# Tesseract hierarchy level for single words
WORD_LEVEL = 5


def tesseract_available() -> bool:
    try:
        pytesseract.get_tesseract_version()
        return True
    except (pytesseract.TesseractNotFoundError, OSError):
        return False


def detect_text_regions(image: Image.Image, timeout: Optional[float] = None,
                        min_confidence: float = None) -> List[TextRegion]:
    """
    Run Tesseract over the image and return a bounding box per detected word.

    `timeout` is passed to the tesseract subprocess, which is killed when it
    runs over.
    """
    if not config.ENABLE_TEXT_DETECTION:
        return []

    if min_confidence is None:
        min_confidence = config.TEXT_MIN_CONFIDENCE

    try:
        data = pytesseract.image_to_data(
            image.convert('RGB'),
            output_type=pytesseract.Output.DICT,
            timeout=timeout or 0,
        )
    except pytesseract.TesseractNotFoundError as e:
        logger.error("Tesseract binary not found")
        raise ExtractionError("Text detection unavailable: tesseract not installed") from e
    except pytesseract.TesseractError as e:
        raise ExtractionError(f"Text detection failed: {e.message}") from e
    except RuntimeError as e:
        # pytesseract signals a killed subprocess with RuntimeError
        raise ExtractionError(f"Text detection timed out after {timeout}s") from e

    regions = []
    for i, text in enumerate(data.get('text', [])):
        if data['level'][i] != WORD_LEVEL or not (text or "").strip():
            continue
        try:
            conf = float(data['conf'][i])
        except (TypeError, ValueError):
            conf = -1.0
        if conf < min_confidence:
            continue
        left, top = int(data['left'][i]), int(data['top'][i])
        regions.append(TextRegion(
            x0=left,
            y0=top,
            x1=left + int(data['width'][i]),
            y1=top + int(data['height'][i]),
        ))

    logger.debug("Detected text regions", regions=len(regions))
    return regions
