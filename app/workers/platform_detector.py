"""
Ad Platform Detection Module

Identifies which ads library a URL belongs to by matching it against
known ad-detail URL patterns.
"""

from typing import Any, Optional


# Checked in order; tiktok first
PLATFORM_PATTERNS = {
    "tiktok": ["tiktok.com/ads/detail"],
    "meta": ["facebook.com/ads/library"],
}


def detect_ad_platform(url: Any) -> Optional[str]:
    """
    Classify an ads-library URL.

    Args:
        url: The ad URL submitted by the caller

    Returns:
        Platform name ('meta' or 'tiktok') or None if the URL matches neither
    """
    if not isinstance(url, str) or not url:
        return None

    for platform, patterns in PLATFORM_PATTERNS.items():
        for pattern in patterns:
            if pattern in url:
                return platform

    return None


def is_supported_ad_url(url: Any) -> bool:
    return detect_ad_platform(url) is not None
