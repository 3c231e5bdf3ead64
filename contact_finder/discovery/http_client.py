"""
Stealth HTTP client using curl_cffi for TLS-fingerprint evasion.

Wraps curl_cffi.requests with:
- Chrome TLS impersonation
- Browser-like header rotation (no cookies carried between requests)
- Per-domain courtesy delay
- Transport failures folded into a closed set of error categories

No retries: the caller decides whether a failed probe means "try the
next path" or "give up on this site".
"""

import random
import threading
import time
from enum import Enum
from typing import Optional, Union
from urllib.parse import urlparse

from curl_cffi import requests as cffi_requests
from loguru import logger
from pydantic import BaseModel

import contact_finder.config as cfg
from contact_finder.discovery.text_utils import decode_body

# ── Rotating header pools ─────────────────────────────────────────────────

_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:128.0) Gecko/20100101 Firefox/128.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.5; rv:128.0) Gecko/20100101 Firefox/128.0",
]

_ACCEPT_LANGUAGES = [
    "ja,en-US;q=0.9,en;q=0.8",
    "ja-JP,ja;q=0.9,en;q=0.8",
    "en-US,en;q=0.9,ja;q=0.8",
    "en-US,en;q=0.9",
]


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    DNS = "dns"
    CONNECTION_REFUSED = "connection_refused"
    SSL = "ssl"
    HOST_UNREACHABLE = "host_unreachable"
    FORBIDDEN = "forbidden"
    UNKNOWN = "unknown"


# Checked in order against the lowercased exception text; first hit wins.
_ERROR_PATTERNS: list[tuple[ErrorCategory, tuple[str, ...], str]] = [
    (
        ErrorCategory.TIMEOUT,
        ("timed out", "timeout"),
        "Network timeout - server took too long to respond",
    ),
    (
        ErrorCategory.DNS,
        ("could not resolve", "name resolution", "nxdomain",
         "name or service not known", "dns"),
        "DNS resolution failed - domain does not exist",
    ),
    (
        ErrorCategory.CONNECTION_REFUSED,
        ("connection refused", "econnrefused", "failed to connect", "couldn't connect"),
        "Connection refused - cannot connect to server",
    ),
    (
        ErrorCategory.SSL,
        ("ssl", "tls", "certificate"),
        "SSL certificate error",
    ),
    (
        ErrorCategory.HOST_UNREACHABLE,
        ("no route to host", "network is unreachable", "host"),
        "Host unreachable",
    ),
    (
        ErrorCategory.FORBIDDEN,
        ("forbidden", "403"),
        "Access forbidden (403)",
    ),
]


class FetchResponse(BaseModel):
    """A completed HTTP exchange (any status code)."""

    url: str
    status_code: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class NetworkError(BaseModel):
    """A transport failure, already classified."""

    url: str
    category: ErrorCategory
    message: str
    detail: str = ""


FetchResult = Union[FetchResponse, NetworkError]


def classify_network_error(url: str, exc: BaseException) -> NetworkError:
    """Map an arbitrary transport exception onto :class:`ErrorCategory`."""
    text = str(exc).lower()
    for category, needles, message in _ERROR_PATTERNS:
        if any(needle in text for needle in needles):
            return NetworkError(url=url, category=category, message=message, detail=str(exc))
    return NetworkError(
        url=url,
        category=ErrorCategory.UNKNOWN,
        message=f"Network error: {exc}",
        detail=str(exc),
    )


class StealthHTTPClient:
    """
    Thread-safe HTTP client that mimics a real Chrome browser.

    Handles TLS fingerprinting, courtesy delays, and error classification.
    """

    def __init__(self, same_domain_delay: Optional[float] = None) -> None:
        self._lock = threading.Lock()
        self._domain_timestamps: dict[str, float] = {}
        self._delay = (
            cfg.SAME_DOMAIN_DELAY if same_domain_delay is None else same_domain_delay
        )

    @staticmethod
    def _random_headers(url: str) -> dict:
        """Generate randomised but realistic browser headers."""
        parsed = urlparse(url)
        return {
            "User-Agent": random.choice(_USER_AGENTS),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": random.choice(_ACCEPT_LANGUAGES),
            "Accept-Encoding": "gzip, deflate, br",
            "Referer": f"{parsed.scheme}://{parsed.netloc}/",
            "Upgrade-Insecure-Requests": "1",
        }

    def _rate_limit(self, domain: str) -> None:
        """Enforce minimum delay between requests to the same domain."""
        if self._delay <= 0:
            return
        with self._lock:
            last = self._domain_timestamps.get(domain, 0)
            elapsed = time.time() - last
            if elapsed < self._delay:
                time.sleep(self._delay - elapsed)
            self._domain_timestamps[domain] = time.time()

    def fetch(self, url: str, timeout: float = cfg.PROBE_TIMEOUT) -> FetchResult:
        """
        GET *url*, following redirects.

        Returns a :class:`FetchResponse` for any HTTP status, or a
        :class:`NetworkError` when the exchange itself failed.  Never raises.
        """
        domain = urlparse(url).netloc
        self._rate_limit(domain)

        try:
            resp = cffi_requests.get(
                url,
                headers=self._random_headers(url),
                timeout=timeout,
                impersonate=cfg.IMPERSONATE,
                allow_redirects=True,
            )
        except Exception as exc:
            error = classify_network_error(url, exc)
            logger.debug("Request failed for {} ({}): {}", url, error.category.value, exc)
            return error

        text = decode_body(resp.content or b"", resp.encoding or None)
        logger.debug("HTTP {} for {} ({} chars)", resp.status_code, url, len(text))
        return FetchResponse(url=str(resp.url), status_code=resp.status_code, text=text)
