"""
Stage A: probe well-known contact paths.

Patterns are fetched one at a time, in priority order, until one hosts a
contact form, the time budget runs out, or the site proves unreachable
(DNS failure) or hostile (403/501).
"""

from typing import List, Optional

from loguru import logger

import contact_finder.config as cfg
from contact_finder.discovery.filters import (
    classify_failure,
    failure_message,
    first_marker,
    is_bot_blocked,
    is_valid_page,
)
from contact_finder.discovery.form_detector import (
    detect_google_form,
    is_valid_contact_form,
    validate_google_form_content,
)
from contact_finder.discovery.http_client import ErrorCategory, NetworkError, StealthHTTPClient
from contact_finder.discovery.spa import analyze_spa, detect_repeated_content
from contact_finder.discovery.state import SearchState
from contact_finder.models.result import SearchResult

HIGH_PRIORITY_PATTERNS = [
    "/contact/",
    "/contact",
    "/contact.php",
    "/inquiry/",
    "/inquiry",
    "/inquiry.php",
    "/form",
    "/form/",
    "/form.php",
    "/contact-us/",
    "/contact-us",
    "/%E3%81%8A%E5%95%8F%E3%81%84%E5%90%88%E3%82%8F%E3%81%9B/",  # /お問い合わせ/
    "/%E5%95%8F%E3%81%84%E5%90%88%E3%82%8F%E3%81%9B/",              # /問い合わせ/
]


def search_url_patterns(
    base_url: str,
    state: SearchState,
    client: StealthHTTPClient,
) -> Optional[SearchResult]:
    """
    Probe every high-priority path under *base_url*.

    Returns a terminal result (form found, ``dns_error``, ``bot_blocked``,
    SPA anchor hit) or None to hand over to the next stage.
    """
    root = base_url.rstrip("/")
    tested_urls: List[str] = []

    logger.info("Stage A: probing {} URL patterns on {}", len(HIGH_PRIORITY_PATTERNS), root)

    for pattern in HIGH_PRIORITY_PATTERNS:
        if state.budget_exhausted():
            logger.info(
                "Stage A: budget of {:.1f}s exhausted after {} probes",
                state.budget, len(tested_urls),
            )
            break

        test_url = root + pattern
        tested_urls.append(test_url)
        response = client.fetch(test_url, timeout=cfg.PROBE_TIMEOUT)

        if isinstance(response, NetworkError):
            if response.category is ErrorCategory.DNS:
                logger.info("Stage A: DNS failure on {}, aborting", test_url)
                return SearchResult.failure("dns_error", failure_message(response))
            logger.debug("Stage A: {} failed ({}), next pattern", test_url, response.category.value)
            continue

        if is_bot_blocked(response.status_code):
            logger.info("Stage A: HTTP {} on {}, bot protection", response.status_code, test_url)
            return SearchResult.failure(
                classify_failure(response.status_code), failure_message(response.status_code)
            )

        if response.status_code != 200:
            logger.debug("Stage A: HTTP {} on {}", response.status_code, test_url)
            continue

        html = response.text

        if len(tested_urls) >= 2 and detect_repeated_content(tested_urls, html, state):
            spa_result = analyze_spa(html, base_url)
            if spa_result:
                state.mark_form_confirmed(spa_result.contact_url)
                return spa_result
            logger.debug("Stage A: SPA anchor analysis inconclusive, continuing")

        if not is_valid_page(html):
            logger.debug(
                "Stage A: {} is not a real page ({})",
                test_url, first_marker(html) or f"{len(html)} chars",
            )
            continue

        state.add_valid_url(test_url, pattern.strip("/"))

        if is_valid_contact_form(html):
            logger.info("Stage A: contact form at {}", test_url)
            state.mark_form_confirmed(test_url)
            return SearchResult(
                contact_url=test_url,
                actual_form_url=test_url,
                found_keywords=[pattern],
                search_method="contact_form_priority_search",
            )

        google = detect_google_form(html)
        if google and validate_google_form_content(html, google.raw_url):
            logger.info("Stage A: Google Form {} on {}", google.url, test_url)
            state.mark_form_confirmed(test_url)
            return SearchResult(
                contact_url=test_url,
                actual_form_url=google.url,
                found_keywords=[pattern, "google_forms", google.via],
                search_method="google_forms_priority_search",
            )

        state.add_candidate(test_url, "no_contact_form", html)

    logger.info("Stage A: no form confirmed after {} probes", len(tested_urls))
    return None
