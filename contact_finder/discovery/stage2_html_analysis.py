"""
Stage B: read the homepage and follow its best contact link.
"""

from typing import Optional

from loguru import logger

import contact_finder.config as cfg
from contact_finder.discovery.filters import classify_failure, failure_message, is_bot_blocked
from contact_finder.discovery.form_detector import (
    detect_google_form,
    find_google_form_url,
    has_embedded_form,
    is_valid_contact_form,
)
from contact_finder.discovery.http_client import ErrorCategory, NetworkError, StealthHTTPClient
from contact_finder.discovery.links import NavigationLink, find_best_navigation_link
from contact_finder.discovery.spa import analyze_anchor_section
from contact_finder.discovery.state import SearchState
from contact_finder.discovery.text_utils import is_anchor_link
from contact_finder.models.result import SearchResult


def _follow_navigation_link(
    link: NavigationLink,
    state: SearchState,
    client: StealthHTTPClient,
) -> Optional[SearchResult]:
    """
    Fetch the chosen navigation target and decide whether it is the
    contact page.  Only DNS failures and bot-block codes are terminal.
    """
    response = client.fetch(link.url, timeout=cfg.NAVIGATION_TIMEOUT)

    if isinstance(response, NetworkError):
        if response.category is ErrorCategory.DNS:
            return SearchResult.failure("dns_error", failure_message(response))
        logger.debug("Stage B: navigation target {} failed: {}", link.url, response.message)
        return None

    if is_bot_blocked(response.status_code):
        return SearchResult.failure(
            classify_failure(response.status_code), failure_message(response.status_code)
        )
    if response.status_code != 200:
        logger.debug("Stage B: navigation target {} answered {}", link.url, response.status_code)
        return None

    html = response.text
    keywords = [link.link_text] if link.link_text else []

    if is_valid_contact_form(html):
        logger.info("Stage B: contact form behind navigation link {}", link.url)
        state.mark_form_confirmed(link.url)
        return SearchResult(
            contact_url=link.url,
            actual_form_url=link.url,
            found_keywords=keywords + ["contact_form"],
            search_method="homepage_navigation_form",
        )

    google = detect_google_form(html)
    if google:
        logger.info("Stage B: Google Form {} behind {}", google.url, link.url)
        state.mark_form_confirmed(link.url)
        return SearchResult(
            contact_url=link.url,
            actual_form_url=google.url,
            found_keywords=keywords + ["google_forms", google.via],
            search_method="homepage_navigation_google_forms",
        )

    if link.score >= cfg.KEYWORD_ACCEPT_SCORE:
        logger.info(
            "Stage B: accepting {} on keyword score {} (no form markup)", link.url, link.score
        )
        return SearchResult(
            contact_url=link.url,
            actual_form_url=link.url,
            found_keywords=keywords + [f"purity:{link.score}"],
            search_method="homepage_navigation_keyword_based",
        )

    state.add_candidate(link.url, "no_form_behind_navigation_link", html)
    return None


def analyze_homepage(
    base_url: str,
    state: SearchState,
    client: StealthHTTPClient,
) -> Optional[SearchResult]:
    """
    Homepage analysis.

    In order: a Google Form linked straight from the homepage, the best
    navigation/footer contact link (anchor section or fetched page), and
    finally a form embedded in the homepage itself.
    """
    logger.info("Stage B: analysing homepage {}", base_url)
    response = client.fetch(base_url, timeout=cfg.HOMEPAGE_TIMEOUT)

    if isinstance(response, NetworkError):
        logger.info("Stage B: homepage unreachable ({})", response.category.value)
        return SearchResult.failure(classify_failure(response), failure_message(response))

    if is_bot_blocked(response.status_code):
        return SearchResult.failure(
            classify_failure(response.status_code), failure_message(response.status_code)
        )
    if not response.ok:
        logger.info("Stage B: homepage answered {}, skipping", response.status_code)
        return None

    homepage = response.text

    google_url = find_google_form_url(homepage)
    if google_url:
        logger.info("Stage B: Google Form linked from homepage: {}", google_url)
        return SearchResult(
            contact_url=base_url,
            actual_form_url=google_url,
            found_keywords=["google_forms", "homepage"],
            search_method="homepage_google_form",
        )

    link = find_best_navigation_link(homepage, base_url)
    if link is not None:
        if state.is_form_confirmed(link.url):
            logger.debug("Stage B: {} already confirmed earlier, skipping", link.url)
            return None

        if is_anchor_link(link.url):
            result = analyze_anchor_section(
                homepage, link.url, base_url, search_method="homepage_navigation_anchor"
            )
            if result:
                state.mark_form_confirmed(link.url)
                return result
        else:
            result = _follow_navigation_link(link, state, client)
            if result:
                return result

    if has_embedded_form(homepage):
        logger.info("Stage B: embedded form on homepage {}", base_url)
        return SearchResult(
            contact_url=base_url,
            actual_form_url=base_url,
            found_keywords=["embedded_form"],
            search_method="homepage_embedded_fallback",
        )

    logger.info("Stage B: nothing conclusive on homepage")
    return None
