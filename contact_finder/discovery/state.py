"""
Per-invocation search state.

One ``SearchState`` is created for every ``discover()`` call and handed
to each strategy in turn.  It is never shared between targets, so no
locking is needed.
"""

import time
from typing import Dict, List, Optional, Set
from urllib.parse import unquote, urlparse

from loguru import logger
from pydantic import BaseModel

import contact_finder.config as cfg
from contact_finder.discovery.form_detector import analyze_structured_forms
from contact_finder.discovery.text_utils import path_segments

# ── Fallback selection tables ─────────────────────────────────────────────

FALLBACK_PRIORITY_PATTERNS = (
    "/contact/",
    "/contact",
    "/inquiry/",
    "/inquiry",
    "/form/",
    "/form",
)

# (path fragment, confidence bonus), first hit only
PATTERN_CONFIDENCE = (
    ("contact", 0.4),
    ("inquiry", 0.35),
    ("form", 0.2),
)
LOCALIZED_CONTACT_SEGMENTS = ("お問い合わせ", "問い合わせ")

BASE_CONFIDENCE = 0.3
SIMPLE_PATH_BONUS = 0.05
LOCALIZED_SEGMENT_BONUS = 0.4
MAX_SIMPLE_SEGMENTS = 4

# (path fragment, candidate score bonus), first hit only
CANDIDATE_PATH_BONUS = (
    ("/contact", 15),
    ("/inquiry", 12),
    ("/form", 8),
)


class Candidate(BaseModel):
    url: str
    reason: str
    score: int = 0


class ValidUrl(BaseModel):
    url: str
    pattern_matched: str


class FallbackSelection(BaseModel):
    url: str
    pattern_matched: str
    confidence: float

    @property
    def high_confidence(self) -> bool:
        return self.confidence >= cfg.FALLBACK_HIGH_CONFIDENCE


def score_candidate(url: str, reason: str, html: str = "") -> int:
    """
    Rank a page seen without a confirmed form.

    Path specificity, structured forms and their field count, contact
    field names inside a form, and a penalty when *reason* names the
    absence of a form.  Never negative.
    """
    path = urlparse(url).path.lower()
    score = 0
    for fragment, bonus in CANDIDATE_PATH_BONUS:
        if fragment in path:
            score += bonus
            break

    if html:
        stats = analyze_structured_forms(html)
        score += stats.form_count * 5 + stats.total_fields * 2
        if stats.has_contact_fields:
            score += 10

    if "no_" in reason:
        score -= 5
    return max(0, score)


def fallback_confidence(url: str) -> float:
    path = urlparse(url).path.lower()
    confidence = BASE_CONFIDENCE
    for fragment, bonus in PATTERN_CONFIDENCE:
        if fragment in path:
            confidence += bonus
            break

    segments = path_segments(url)
    if len(segments) <= MAX_SIMPLE_SEGMENTS:
        confidence += SIMPLE_PATH_BONUS
    if any(unquote(seg) in LOCALIZED_CONTACT_SEGMENTS for seg in segments):
        confidence += LOCALIZED_SEGMENT_BONUS
    return min(confidence, 1.0)


class SearchState:
    """
    Accumulator for one discovery run.

    ``budget`` (seconds) bounds the URL-pattern probe loop and is checked
    before every probe, never mid-fetch.
    """

    def __init__(self, budget: Optional[float] = None) -> None:
        self.budget = cfg.MAX_TOTAL_TIME if budget is None else budget
        self.started_at = time.monotonic()
        self.candidates: List[Candidate] = []
        self.valid_urls: List[ValidUrl] = []
        self.confirmed_form_urls: Set[str] = set()
        self.content_hash_cache: Dict[str, str] = {}

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def budget_exhausted(self) -> bool:
        return self.elapsed() >= self.budget

    # -- Candidates ------------------------------------------------------

    def add_candidate(self, url: str, reason: str, html: str = "") -> Candidate:
        candidate = Candidate(url=url, reason=reason, score=score_candidate(url, reason, html))
        self.candidates.append(candidate)
        logger.debug("Candidate {} ({}, score {})", url, reason, candidate.score)
        return candidate

    def ranked_candidates(self) -> List[Candidate]:
        """Candidates by descending score; insertion order breaks ties."""
        return sorted(self.candidates, key=lambda c: -c.score)

    # -- Valid URLs ------------------------------------------------------

    def add_valid_url(self, url: str, pattern_matched: str) -> None:
        self.valid_urls.append(ValidUrl(url=url, pattern_matched=pattern_matched))

    # -- Confirmed forms -------------------------------------------------

    def mark_form_confirmed(self, url: str) -> None:
        self.confirmed_form_urls.add(url)

    def is_form_confirmed(self, url: str) -> bool:
        return url in self.confirmed_form_urls

    # -- SPA hash cache --------------------------------------------------

    def cache_hash(self, url: str, digest: str) -> None:
        self.content_hash_cache[url] = digest

    def get_cached_hash(self, url: str) -> Optional[str]:
        return self.content_hash_cache.get(url)

    # -- Fallback --------------------------------------------------------

    def select_fallback(self) -> Optional[FallbackSelection]:
        """
        Best recorded valid URL, or None when nothing returned 2xx.

        Priority patterns are tried in order; the first valid URL matching
        a pattern wins, otherwise the first valid URL recorded.
        """
        if not self.valid_urls:
            return None

        chosen: Optional[ValidUrl] = None
        for pattern in FALLBACK_PRIORITY_PATTERNS:
            for entry in self.valid_urls:
                path = urlparse(entry.url).path.lower()
                if pattern in path or entry.pattern_matched.strip("/") == pattern.strip("/"):
                    chosen = entry
                    break
            if chosen:
                break
        if chosen is None:
            chosen = self.valid_urls[0]

        return FallbackSelection(
            url=chosen.url,
            pattern_matched=chosen.pattern_matched,
            confidence=fallback_confidence(chosen.url),
        )
