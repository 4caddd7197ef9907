"""
Perceptual image hashing for creative fingerprints.
Visually similar images produce hashes at a small Hamming distance.
"""

import numpy as np
import structlog
from PIL import Image
import cv2

from addna import config

logger = structlog.get_logger()


def _bits_to_hex(bits: np.ndarray) -> str:
    hash_bits = ''.join('1' if b else '0' for b in bits.flatten())
    return hex(int(hash_bits, 2))[2:].rjust(len(hash_bits) // 4, '0')


def phash(image: Image.Image, hash_size: int = None) -> str:
    """
    Generate perceptual hash (pHash) using DCT.

    The image is reduced to grayscale at hash_size * 4 square, transformed with
    a DCT and the low-frequency hash_size x hash_size corner is thresholded
    against its median. hash_size=16 yields 256 bits, i.e. 64 hex characters.
    """
    hash_size = hash_size or config.PHASH_SIZE

    gray = image.convert('L').resize((hash_size * 4, hash_size * 4), Image.Resampling.LANCZOS)
    pixels = np.array(gray, dtype=np.float32)

    dct = cv2.dct(pixels)
    dct_low = dct[:hash_size, :hash_size]
    median = np.median(dct_low)

    hash_hex = _bits_to_hex(dct_low > median)
    logger.debug("Generated pHash", hash_size=hash_size)
    return hash_hex


def hamming_distance(hash1: str, hash2: str) -> int:
    """
    Count differing character positions between two hash strings.
    Positions present in only one string count as differences.
    """
    distance = sum(c1 != c2 for c1, c2 in zip(hash1, hash2))
    return distance + abs(len(hash1) - len(hash2))
