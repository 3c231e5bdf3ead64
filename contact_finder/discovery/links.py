"""
Navigation / footer link scan.

Cuts the homepage into the regions where sites put their contact link
(``<nav>``, ``<footer>``, menu containers), pulls every ``<a>`` out of
each region with BeautifulSoup, scores it with the purity scorer plus
the region bonus, and keeps the best link that mentions contact intent.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup
from loguru import logger
from pydantic import BaseModel, Field

from contact_finder.discovery.purity import calculate_purity, matches_contact_filter
from contact_finder.discovery.text_utils import (
    clean_link_text,
    is_anchor_link,
    is_homepage_url,
    is_web_link,
    resolve_url,
)

# ── Region table: (name, pattern, context) ────────────────────────────────
# Greedy patterns are intentional for containers that usually nest lists.

NAVIGATION_REGIONS = [
    ("nav", re.compile(r"<nav\b[\s\S]*?</nav>", re.IGNORECASE), "navigation"),
    ("#menu", re.compile(r"<[^>]*id=[\"']menu[\"'][^>]*>[\s\S]*?</[^>]+>", re.IGNORECASE), "navigation"),
    ("footer", re.compile(r"<footer\b[\s\S]*?</footer>", re.IGNORECASE), "footer"),
    ("#naviArea", re.compile(r"<ul[^>]*id=[\"']naviArea[\"'][^>]*>[\s\S]*</ul>", re.IGNORECASE), "navigation"),
    ("#navigation", re.compile(r"<[^>]*id=[\"']navigation[\"'][^>]*>[\s\S]*?</[^>]+>", re.IGNORECASE), "navigation"),
    ("#nav", re.compile(r"<[^>]*id=[\"']nav[\"'][^>]*>[\s\S]*?</[^>]+>", re.IGNORECASE), "navigation"),
    ("div.nav", re.compile(r"<div[^>]*class=[\"'][^\"']*\bnav\b[^\"']*[\"'][^>]*>[\s\S]*</div>", re.IGNORECASE), "navigation"),
    ("nav.navigation", re.compile(r"<nav[^>]*class=[\"'][^\"']*\bnavigation\b[^\"']*[\"'][^>]*>[\s\S]*</nav>", re.IGNORECASE), "navigation"),
    ("ul.menu", re.compile(r"<ul[^>]*class=[\"'][^\"']*\bmenu\b[^\"']*[\"'][^>]*>[\s\S]*</ul>", re.IGNORECASE), "navigation"),
]


class NavigationLink(BaseModel):
    url: str
    link_text: str = ""
    context: str = "navigation"
    score: int = 0
    reasons: List[str] = Field(default_factory=list)


def _link_text(tag) -> str:
    text = clean_link_text(tag.get_text(" ", strip=True))
    if text:
        return text
    # image-only links: fall back to alt / title
    img = tag.find("img", alt=True)
    if img is not None:
        return clean_link_text(img["alt"])
    return clean_link_text(tag.get("title", ""))


def extract_region_links(region_html: str, base_url: str, context: str) -> List[NavigationLink]:
    """Every scored web link inside one navigation region."""
    soup = BeautifulSoup(region_html, "lxml")
    links: List[NavigationLink] = []
    for tag in soup.find_all("a", href=True):
        href = tag["href"].strip()
        if not is_web_link(href):
            continue
        text = _link_text(tag)
        url = resolve_url(href, base_url)
        purity = calculate_purity(url, text, context)
        if purity.raw_score < 0:
            logger.debug("Skipping excluded link {} ({})", url, purity.reasons)
            continue
        links.append(
            NavigationLink(
                url=url,
                link_text=text,
                context=context,
                score=purity.score,
                reasons=purity.reasons,
            )
        )
    return links


def collect_navigation_links(html: str, base_url: str) -> List[NavigationLink]:
    links: List[NavigationLink] = []
    for name, pattern, context in NAVIGATION_REGIONS:
        matches = pattern.findall(html)
        if matches:
            logger.debug("Navigation region {}: {} match(es)", name, len(matches))
        for region in matches:
            links.extend(extract_region_links(region, base_url, context))
    return links


def find_best_navigation_link(html: str, base_url: str) -> Optional[NavigationLink]:
    """
    Highest-scoring navigation link that carries a contact keyword.

    Links back to the homepage never qualify, unless they carry an anchor
    fragment (``/#contact``).  Ties keep the link seen
    first (region table order, then document order).
    """
    best: Optional[NavigationLink] = None
    candidates = 0
    for link in collect_navigation_links(html, base_url):
        if is_homepage_url(link.url, base_url) and not is_anchor_link(link.url):
            continue
        if not matches_contact_filter(link.url, link.link_text):
            continue
        candidates += 1
        if best is None or link.score > best.score:
            best = link

    if best:
        logger.debug(
            "Best navigation link {} (score {}, {} candidates)", best.url, best.score, candidates
        )
    else:
        logger.debug("No contact link in navigation regions of {}", base_url)
    return best
