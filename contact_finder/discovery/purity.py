"""
Keyword purity scoring for candidate contact links.

Scores a (url, link text, region) triple for "contact intent" using the
keyword tables below.  The raw sum may go negative; ``score`` is always
clamped to zero so it can be used directly as a ranking key.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from contact_finder.discovery.text_utils import url_path

# ── Keyword tables ────────────────────────────────────────────────────────

HIGH_PRIORITY_TERMS = (
    "contact",
    "contact us",
    "contact form",
    "inquiry",
    "enquiry",
    "get in touch",
    "reach out",
    "send message",
    "message us",
    "お問い合わせ",
    "問い合わせ",
    "お問合せ",
    "問合せ",
    "ご相談",
    "相談",
    "お客様窓口",
    "お問い合わせフォーム",
    "お問い合わせはこちら",
    "問い合わせフォーム",
    # percent-encoded お問い合わせ / 問い合わせ as they appear in paths
    "%e3%81%8a%e5%95%8f%e3%81%84%e5%90%88%e3%82%8f%e3%81%9b",
    "%e5%95%8f%e3%81%84%e5%90%88%e3%82%8f%e3%81%9b",
)

MEDIUM_PRIORITY_TERMS = (
    "form",
    "フォーム",
    "submit",
    "send",
    "mail form",
    "feedback",
)

EXCLUDED_TERMS = ("download", "recruit", "career")

CONTACT_PATHS = (
    "/contact/",
    "/inquiry/",
    "/sales-contact/",
    "/business-contact/",
    "/contact-us/",
    "/get-in-touch/",
    "/reach-out/",
    "/問い合わせ/",
    "/お問い合わせ/",
    "/%e5%95%8f%e3%81%84%e5%90%88%e3%82%8f%e3%81%9b/",
    "/%e3%81%8a%e5%95%8f%e3%81%84%e5%90%88%e3%82%8f%e3%81%9b/",
)

SERVICE_PATH_PENALTY = ("/service/", -10)
GENERIC_PATH_PENALTY = (("/about/", "/company/", "/info/"), -5)

CONTEXT_BONUS = {"navigation": 5, "footer": 3}

# Links must carry one of these to be considered at all during navigation scan
CONTACT_LINK_FILTER = HIGH_PRIORITY_TERMS + ("form", "フォーム")

EXCLUSION_PENALTY = -15


class PurityResult(BaseModel):
    score: int = Field(..., ge=0, description="Clamped ranking score")
    raw_score: int = Field(..., description="Unclamped sum of all rules")
    reasons: List[str] = Field(default_factory=list)


def calculate_purity(url: str, link_text: str, context: Optional[str] = None) -> PurityResult:
    """
    Score one candidate link.

    *context* is the region the link was found in (``navigation``,
    ``footer`` or ``general``).  ``reasons`` lists every rule that fired,
    in application order.
    """
    path = url_path(url)
    text = link_text.lower()
    reasons: List[str] = []

    for term in EXCLUDED_TERMS:
        if term in path or term in text:
            reasons.append(f"excluded:{term}")
            return PurityResult(score=0, raw_score=EXCLUSION_PENALTY, reasons=reasons)

    raw = 0

    for term in HIGH_PRIORITY_TERMS:
        if term in text:
            raw += 10
            reasons.append(f"high_text:{term}")
        elif term in path:
            raw += 8
            reasons.append(f"high_url:{term}")

    for term in MEDIUM_PRIORITY_TERMS:
        if term in text:
            raw += 3
            reasons.append(f"medium_text:{term}")
        elif term in path:
            raw += 2
            reasons.append(f"medium_url:{term}")

    for pattern in CONTACT_PATHS:
        if pattern in path:
            raw += 15
            reasons.append(f"structure:{pattern}")
            break

    service_path, service_penalty = SERVICE_PATH_PENALTY
    generic_paths, generic_penalty = GENERIC_PATH_PENALTY
    if service_path in path:
        raw += service_penalty
        reasons.append(f"penalty:{service_path}")
    else:
        for generic in generic_paths:
            if generic in path:
                raw += generic_penalty
                reasons.append(f"penalty:{generic}")
                break

    if context in CONTEXT_BONUS:
        raw += CONTEXT_BONUS[context]
        reasons.append(f"context:{context}")

    return PurityResult(score=max(0, raw), raw_score=raw, reasons=reasons)


def matches_contact_filter(url: str, link_text: str) -> bool:
    """Whether a link mentions contact intent at all (text or path)."""
    path = url_path(url)
    text = link_text.lower()
    return any(term in text or term in path for term in CONTACT_LINK_FILTER)
