"""Photo URL parsing for warehouse records."""

import json
from typing import Any, List
from urllib.parse import urlparse

from ..config.logger_module import log_error


def _split_urls(value: str) -> List[str]:
    return [url.strip() for url in value.split(",")]


def is_valid_photo_url(url: Any) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not isinstance(url, str):
        return False
    candidate = url.strip()
    if not candidate.startswith(("http://", "https://")):
        return False
    try:
        return bool(urlparse(candidate).netloc)
    except ValueError:
        return False


def parse_photos(photos: Any) -> List[str]:
    """
    Parse the photos column of a warehouse record.

    Accepts a list, a JSON array string or a comma-separated string and
    keeps only valid http(s) URLs, in their original order.

    Args:
        photos: Raw photos value

    Returns:
        List of photo URLs
    """
    if not photos:
        return []

    urls: List[Any] = []
    if isinstance(photos, (list, tuple)):
        urls = list(photos)
    elif isinstance(photos, str):
        if photos.strip().startswith("["):
            try:
                parsed = json.loads(photos)
                urls = parsed if isinstance(parsed, list) else []
            except ValueError as e:
                log_error("Error parsing photos", error=str(e), photos=photos[:100])
                urls = _split_urls(photos)
        else:
            urls = _split_urls(photos)

    return [url.strip() for url in urls if is_valid_photo_url(url)]
