"""
Stage C: settle for the best page that answered 200 during probing.
"""

from loguru import logger

from contact_finder.discovery.http_client import StealthHTTPClient
from contact_finder.discovery.state import SearchState
from contact_finder.models.result import SearchResult


def select_fallback_result(
    base_url: str,
    state: SearchState,
    client: StealthHTTPClient,
) -> SearchResult:
    """Always terminal: a fallback URL tagged by confidence, or ``not_found``."""
    selection = state.select_fallback()
    if selection is None:
        logger.info("Stage C: no valid URL recorded for {}", base_url)
        return SearchResult.failure("not_found")

    tier = "high" if selection.high_confidence else "low"
    keywords = [selection.pattern_matched, f"confidence:{selection.confidence:.2f}"]
    ranked = state.ranked_candidates()
    if ranked:
        keywords.append(f"best_candidate:{ranked[0].url}")

    logger.info(
        "Stage C: fallback {} ({} confidence {:.2f})", selection.url, tier, selection.confidence
    )
    return SearchResult(
        contact_url=selection.url,
        actual_form_url=selection.url,
        found_keywords=keywords,
        search_method=f"final_fallback_{tier}_confidence",
    )
