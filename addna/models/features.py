"""
Pydantic models for the output of perceptual feature extraction.
"""

from typing import List, Tuple
from pydantic import BaseModel, Field


class TextRegion(BaseModel):
    """Bounding box of a detected word, in pixels."""
    x0: int
    y0: int
    x1: int
    y1: int


class ImageFeatures(BaseModel):
    """Everything the DNA engine needs from an image."""
    perceptual_hash: str = Field(..., description="Fixed-length perceptual hash (hex)")
    palette: List[Tuple[int, int, int]] = Field(default_factory=list, description="Dominant colors, most frequent first")
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)
    text_regions: List[TextRegion] = Field(default_factory=list)
