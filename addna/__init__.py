"""
Ad Creative DNA - Tamper-Evident Creative Fingerprinting

Issues deterministic "DNA" certificates for advertising creatives and
classifies displayed creatives as valid, tampered, unregistered or revoked.
"""

__version__ = "1.0.0"
__author__ = "Ad Creative DNA Team"
__description__ = "Tamper-Evident Creative Fingerprinting"
