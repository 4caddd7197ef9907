"""
Landing page check: is the URL attached to a creative on a brand-owned domain?
"""

from typing import Iterable, Optional
from urllib.parse import urlparse

from addna import config


def extract_domain(url: str) -> Optional[str]:
    """Hostname of `url` without a leading www., or None when it is not a URL."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return hostname[4:] if hostname.startswith("www.") else hostname


def is_whitelisted(domain: str, whitelist: Optional[Iterable[str]] = None) -> bool:
    if whitelist is None:
        whitelist = config.PHISHING_WHITELIST
    return any(domain == allowed or domain.endswith(f".{allowed}") for allowed in whitelist)
