"""
Site/page filters and failure classification.

Catches targets and pages that are not worth analysing (social-media
profiles, placeholder pages) and turns network failures into the
terminal searchMethod tags.
"""

from typing import Optional, Union
from urllib.parse import urlparse

import contact_finder.config as cfg
from contact_finder.discovery.http_client import ErrorCategory, NetworkError

# ── Blocklist: platforms whose contact surfaces are not site forms ────────

SOCIAL_MEDIA_DOMAINS = frozenset(
    {
        "facebook.com",
        "twitter.com",
        "x.com",
        "instagram.com",
        "linkedin.com",
        "youtube.com",
        "tiktok.com",
        "line.me",
        "ameba.jp",
        "note.com",
        "qiita.com",
    }
)

# ── Markers of a placeholder / error body served with HTTP 200 ────────────

INVALID_PAGE_MARKERS = (
    "page not found",
    "ページが見つかりません",
    "404 not found",
    "under construction",
    "工事中",
    "site under construction",
    "coming soon",
)

# ── Status codes that mean "this site blocks automated clients" ───────────

BOT_BLOCK_STATUS_CODES = frozenset({403, 501})

HTTP_ERROR_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized - authentication required",
    403: "Forbidden - access denied (bot protection or access restriction)",
    404: "Not Found - page does not exist",
    405: "Method Not Allowed",
    408: "Request Timeout",
    429: "Too Many Requests - rate limited",
    500: "Internal Server Error",
    501: "Not Implemented - blocked by bot protection",
    502: "Bad Gateway",
    503: "Service Unavailable - maintenance",
    504: "Gateway Timeout",
    520: "Web Server Error (Cloudflare)",
    521: "Web Server Down (Cloudflare)",
    522: "Connection Timed Out (Cloudflare)",
    523: "Origin Unreachable (Cloudflare)",
    524: "A Timeout Occurred (Cloudflare)",
}


def is_social_media_url(url: str) -> bool:
    """True when *url* is hosted on (a sub-domain of) a social platform."""
    host = (urlparse(url).hostname or "").lower()
    if not host:
        host = url.lower()
    for blocked in SOCIAL_MEDIA_DOMAINS:
        if host == blocked or host.endswith("." + blocked):
            return True
    return False


def is_valid_page(html: str) -> bool:
    """Reject near-empty bodies and 'not found' / 'under construction' shells."""
    if len(html) <= cfg.MIN_PAGE_LENGTH:
        return False
    lower = html.lower()
    return not any(marker in lower for marker in INVALID_PAGE_MARKERS)


def status_message(status_code: int) -> str:
    return HTTP_ERROR_MESSAGES.get(status_code, f"HTTP Error {status_code}")


def is_bot_blocked(status_code: int) -> bool:
    return status_code in BOT_BLOCK_STATUS_CODES


def classify_failure(failure: Union[NetworkError, int]) -> str:
    """
    Map a transport error or a failing HTTP status onto a terminal tag:
    ``dns_error``, ``timeout_error``, ``bot_blocked`` or ``site_closed``.
    """
    if isinstance(failure, int):
        return "bot_blocked" if is_bot_blocked(failure) else "site_closed"
    if failure.category is ErrorCategory.DNS:
        return "dns_error"
    if failure.category is ErrorCategory.TIMEOUT:
        return "timeout_error"
    if failure.category is ErrorCategory.FORBIDDEN:
        return "bot_blocked"
    return "site_closed"


def failure_message(failure: Union[NetworkError, int]) -> str:
    if isinstance(failure, int):
        return status_message(failure)
    return failure.message


def first_marker(html: str) -> Optional[str]:
    """The placeholder marker that invalidated *html*, for logging."""
    lower = html.lower()
    for marker in INVALID_PAGE_MARKERS:
        if marker in lower:
            return marker
    return None
