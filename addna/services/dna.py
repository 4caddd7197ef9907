"""
Deterministic DNA derivation.

The DNA is an identity and deduplication key, not a commitment to the exact
bytes: two images with the same perceptual hash, palette, dimensions, MIME
type and brand rule version share a DNA.
"""

import hashlib
import math
from typing import Iterable, List, Sequence

from addna import config


def color_to_hex(color: Sequence[float]) -> str:
    """Render an RGB triple as six lowercase hex digits, rounding half up."""
    return ''.join(format(int(math.floor(channel + 0.5)), '02x') for channel in color)


def canonical_palette(colors: Iterable[Sequence[float]]) -> List[str]:
    """Palette as sorted hex strings, independent of extraction order."""
    return sorted(color_to_hex(color) for color in colors)


def derive_dna(perceptual_hash: str,
               color_palette: Iterable[Sequence[float]],
               width: int,
               height: int,
               mime_type: str,
               brand_rule_version: str = None) -> str:
    """Return the SHA-256 hex digest identifying these image features."""
    if brand_rule_version is None:
        brand_rule_version = config.BRAND_RULE_VERSION

    colors = ','.join(canonical_palette(color_palette))
    source = f"{perceptual_hash}|{colors}|{width}x{height}|{mime_type}|{brand_rule_version}"
    return hashlib.sha256(source.encode('utf-8')).hexdigest()
