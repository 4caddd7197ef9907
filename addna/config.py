import os


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


def _parse_colors(raw: str) -> list:
    """Parse "r,g,b;r,g,b" into a list of RGB triples."""
    colors = []
    for chunk in raw.split(";"):
        chunk = chunk.strip()
        if chunk:
            colors.append(tuple(int(part) for part in chunk.split(",")))
    return colors


# Brand rules
BRAND_COLORS = _parse_colors(os.getenv("BRAND_COLORS", "0,83,159;237,28,36;255,255,255"))
BRAND_RULE_VERSION = os.getenv("BRAND_RULE_VERSION", "v1")

# Color rule thresholds (Euclidean RGB distance)
COLOR_PASS_DISTANCE = float(os.getenv("COLOR_PASS_DISTANCE", 40))
COLOR_WARN_DISTANCE = float(os.getenv("COLOR_WARN_DISTANCE", 80))

# Safe zone thresholds (pixels from the nearest edge)
SAFE_ZONE_PASS_MARGIN = float(os.getenv("SAFE_ZONE_PASS_MARGIN", 20))
SAFE_ZONE_WARN_MARGIN = float(os.getenv("SAFE_ZONE_WARN_MARGIN", 10))

# Tamper classification (Hamming distance between perceptual hashes)
PHASH_THRESHOLD = int(os.getenv("PHASH_THRESHOLD", 5))
NEAR_DUPLICATE_THRESHOLD = int(os.getenv("NEAR_DUPLICATE_THRESHOLD", 10))

# Feature extraction
PHASH_SIZE = int(os.getenv("PHASH_SIZE", 16))
PALETTE_SIZE = int(os.getenv("PALETTE_SIZE", 5))
TEXT_MIN_CONFIDENCE = float(os.getenv("TEXT_MIN_CONFIDENCE", 0))
ENABLE_TEXT_DETECTION = _env_bool("ENABLE_TEXT_DETECTION", True)
EXTRACTION_TIMEOUT_SECONDS = float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", 30))
EXTRACTION_WORKERS = int(os.getenv("EXTRACTION_WORKERS", 4))

# Uploads
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", 20 * 1024 * 1024))  # 20MB default
SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png"}

# Certificates
PUBLIC_VERIFY_URL = os.getenv("PUBLIC_VERIFY_URL", "http://localhost:3000")
ENABLE_QR_CODES = _env_bool("ENABLE_QR_CODES", True)

# Landing page whitelist
PHISHING_WHITELIST = [
    domain.strip()
    for domain in os.getenv("PHISHING_WHITELIST", "tesco.com,tesco.co.uk").split(",")
    if domain.strip()
]

# Server
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", 8000))
DEBUG = _env_bool("DEBUG", False)
