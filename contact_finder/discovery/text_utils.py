"""
Small text and URL helpers shared by every discovery stage.

No network, no state -- only string in, string (or bool) out.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from loguru import logger

import contact_finder.config as cfg

_NON_WEB_SCHEMES = ("mailto:", "javascript:", "tel:")

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")

_HOMEPAGE_SUFFIXES = ("", "index.html", "index.htm", "index.php", "home", "home/")


def extract_domain(url: str) -> str:
    """
    Reduce *url* to ``scheme://host/``.

    Returns the input unchanged when it is not an absolute http(s) URL.
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return url
    return f"{parsed.scheme}://{parsed.netloc}/"


def is_web_link(href: str) -> bool:
    return bool(href) and not href.strip().lower().startswith(_NON_WEB_SCHEMES)


def resolve_url(href: str, base_url: str) -> str:
    """Turn a (possibly relative) link into an absolute URL."""
    href = href.strip()
    if not is_web_link(href):
        return href
    return urljoin(base_url, href)


def url_path(url: str) -> str:
    """Lowercased path + query + fragment, i.e. the URL minus its host."""
    parsed = urlparse(url)
    tail = parsed.path or "/"
    if parsed.query:
        tail += "?" + parsed.query
    if parsed.fragment:
        tail += "#" + parsed.fragment
    return tail.lower()


def path_segments(url: str) -> list[str]:
    return [seg for seg in urlparse(url).path.split("/") if seg]


def is_anchor_link(url: str) -> bool:
    return bool(urlparse(url).fragment)


def fragment_of(url: str) -> Optional[str]:
    fragment = urlparse(url).fragment
    return fragment or None


def is_homepage_url(url: str, base_url: str) -> bool:
    """True when *url* resolves to the site's top page (``/``, ``index.html``...)."""
    full = resolve_url(url, base_url).split("#", 1)[0].lower()
    domain = extract_domain(base_url).lower()
    homepages = {domain + suffix for suffix in _HOMEPAGE_SUFFIXES}
    homepages.add(domain.rstrip("/"))
    return full in homepages


def clean_link_text(raw: str) -> str:
    """Strip nested tags and collapse whitespace in an anchor's inner HTML."""
    return _WS_RE.sub(" ", _TAG_RE.sub("", raw)).strip()


def content_hash(text: str) -> str:
    """
    Cheap rolling 32-bit hash (``h * 31 + ord(c)``) rendered as hex.

    Only used to spot identical bodies across probe URLs; collisions are
    acceptable.
    """
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return format(h, "x")


def is_valid_encoding(text: str) -> bool:
    """A decode is usable when under 5 % of its characters are U+FFFD."""
    if not text:
        return True
    ratio = text.count("�") / len(text)
    return ratio < cfg.MAX_REPLACEMENT_RATIO


def decode_body(content: bytes, declared: Optional[str] = None) -> str:
    """
    Decode a response body, trying the declared charset first and then
    the usual Japanese fallbacks.
    """
    encodings = [declared] if declared else []
    encodings += [enc for enc in cfg.ENCODING_CANDIDATES if enc != declared]
    for encoding in encodings:
        try:
            text = content.decode(encoding, errors="replace")
        except LookupError:
            continue
        if is_valid_encoding(text):
            return text
        logger.debug("Rejected {} decode (too many replacement chars)", encoding)
    return content.decode("utf-8", errors="replace")
