"""
Single-page-application handling.

Some sites answer every path with the same static shell and render the
real content client-side.  When several probe URLs return identical
bodies, the contact section can only be reached through an in-page
anchor (``/#contact``), so the section behind the anchor is analysed
on its own for phone / e-mail / form signals.
"""

import re
from typing import List, Optional

from loguru import logger

import contact_finder.config as cfg
from contact_finder.discovery.form_detector import extract_contact_info
from contact_finder.discovery.links import find_best_navigation_link
from contact_finder.discovery.state import SearchState
from contact_finder.discovery.text_utils import content_hash, fragment_of, is_anchor_link
from contact_finder.models.result import SearchResult

SECTION_END_RE = re.compile(r"<(?:section|article|footer)\b", re.IGNORECASE)
SECTION_BLOCK_RE = re.compile(r"<section\b[^>]*>[\s\S]*?</section>", re.IGNORECASE)

ANCHOR_CONTACT_KEYWORDS = (
    "お問い合わせ",
    "問い合わせ",
    "お問合せ",
    "contact",
    "inquiry",
    "enquiry",
)


def detect_repeated_content(urls: List[str], new_html: str, state: SearchState) -> bool:
    """
    True once at least ``SPA_SAME_CONTENT_THRESHOLD`` already-cached URLs
    hold the same digest as *new_html*.  URLs not cached yet get the new
    digest recorded.
    """
    digest = content_hash(new_html)
    same_content = 0
    for url in urls:
        cached = state.get_cached_hash(url)
        if cached is None:
            state.cache_hash(url, digest)
        elif cached == digest:
            same_content += 1

    detected = same_content >= cfg.SPA_SAME_CONTENT_THRESHOLD
    if detected:
        logger.info("SPA shell detected: {} probe URLs share digest {}", same_content, digest)
    return detected


def _element_excerpt(html: str, fragment: str) -> Optional[str]:
    pattern = re.compile(
        r"<[a-z][a-z0-9]*\b[^>]*\b(?:id|name)\s*=\s*[\"']" + re.escape(fragment) + r"[\"'][^>]*>",
        re.IGNORECASE,
    )
    match = pattern.search(html)
    if not match:
        return None
    end_limit = min(len(html), match.start() + cfg.ANCHOR_SECTION_MAX_LENGTH)
    next_section = SECTION_END_RE.search(html, match.end(), end_limit)
    end = next_section.start() if next_section else end_limit
    return html[match.start():end]


def _section_excerpt(html: str, fragment: str) -> Optional[str]:
    needle = fragment.lower()
    for match in SECTION_BLOCK_RE.finditer(html):
        if needle in match.group(0).lower():
            return match.group(0)
    return None


def _keyword_window(html: str) -> Optional[str]:
    lower = html.lower()
    positions = [lower.find(kw) for kw in ANCHOR_CONTACT_KEYWORDS]
    positions = [p for p in positions if p >= 0]
    if not positions:
        return None
    index = min(positions)
    window = cfg.ANCHOR_FALLBACK_WINDOW
    return html[max(0, index - window):index + window]


def analyze_anchor_section(
    html: str,
    anchor_url: str,
    base_url: str,
    search_method: str = "spa_anchor_analysis",
) -> Optional[SearchResult]:
    """
    Look for contact signals in the part of *html* that *anchor_url*
    points at.

    The excerpt is, in order of preference: the element whose ``id`` or
    ``name`` equals the fragment (up to the next section), a ``<section>``
    mentioning the fragment, or a window around the first contact keyword.
    Returns a result naming *anchor_url* only when a signal is present.
    """
    fragment = fragment_of(anchor_url)
    if not fragment:
        return None

    excerpt = _element_excerpt(html, fragment)
    source = "element"
    if excerpt is None:
        excerpt = _section_excerpt(html, fragment)
        source = "section"
    if excerpt is None:
        excerpt = _keyword_window(html)
        source = "keyword_window"
    if excerpt is None:
        logger.debug("No section found for #{} on {}", fragment, base_url)
        return None

    info = extract_contact_info(excerpt)
    if not info.any:
        logger.debug("Section #{} ({}) has no contact signals", fragment, source)
        return None

    signals = [name for name, present in (
        ("phone", info.phone), ("email", info.email), ("contact_form", info.contact_form)
    ) if present]
    logger.info("Anchor section #{} confirmed via {} ({})", fragment, source, ", ".join(signals))
    return SearchResult(
        contact_url=anchor_url,
        actual_form_url=anchor_url,
        found_keywords=[f"anchor:#{fragment}"] + signals,
        search_method=search_method,
    )


def analyze_spa(html: str, base_url: str) -> Optional[SearchResult]:
    """Resolve an SPA shell through its navigation's anchor link, if it has one."""
    link = find_best_navigation_link(html, base_url)
    if link is None or not is_anchor_link(link.url):
        logger.debug("SPA shell on {} has no anchor contact link", base_url)
        return None
    return analyze_anchor_section(html, link.url, base_url)
