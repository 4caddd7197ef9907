"""
Dominant color extraction for creative palettes.
"""

from typing import List, Tuple

import structlog
from PIL import Image

from addna import config

logger = structlog.get_logger()

# Palette extraction works on a thumbnail; dominant colors survive downscaling
SAMPLE_SIZE = 256


def extract_palette(image: Image.Image, color_count: int = None) -> List[Tuple[int, int, int]]:
    """
    Return up to `color_count` dominant colors as RGB triples, most frequent first.

    Uses Pillow's median-cut quantizer, which is deterministic for a given
    image. Ties in pixel count are broken by palette index.
    """
    color_count = color_count or config.PALETTE_SIZE

    sample = image.convert('RGB')
    sample.thumbnail((SAMPLE_SIZE, SAMPLE_SIZE), Image.Resampling.LANCZOS)

    quantized = sample.quantize(colors=color_count, method=Image.Quantize.MEDIANCUT)
    flat_palette = quantized.getpalette()
    counts = quantized.getcolors(maxcolors=256) or []

    colors = []
    for count, index in sorted(counts, key=lambda c: (-c[0], c[1]))[:color_count]:
        r, g, b = flat_palette[index * 3:index * 3 + 3]
        colors.append((int(r), int(g), int(b)))

    logger.debug("Extracted palette", colors=len(colors))
    return colors
