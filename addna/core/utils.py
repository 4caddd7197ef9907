import os
import re
import uuid

import structlog

logger = structlog.get_logger()


def new_certificate_id() -> str:
    """Generate a new unique certificate ID."""
    return str(uuid.uuid4())


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format."""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size_bytes >= 1024 and i < len(size_names) - 1:
        size_bytes /= 1024.0
        i += 1

    return f"{size_bytes:.1f} {size_names[i]}"


def sanitize_filename(filename: str) -> str:
    """Sanitize a client-supplied filename before it is stored on a certificate."""
    if not filename:
        return "unnamed_file"

    # Strip any client-side directory components
    filename = filename.replace("\\", "/").rsplit("/", 1)[-1]

    # Keep only alphanumeric, dots, dashes, underscores
    sanitized = re.sub(r'[^\w\-_\.]', '_', filename)

    # Remove multiple consecutive underscores
    sanitized = re.sub(r'_{2,}', '_', sanitized)

    # Ensure it doesn't start with a dot (hidden file)
    if sanitized.startswith('.'):
        sanitized = 'file_' + sanitized

    if len(sanitized) > 255:
        name, ext = os.path.splitext(sanitized)
        sanitized = name[:255 - len(ext)] + ext

    return sanitized
