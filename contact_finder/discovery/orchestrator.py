"""
Contact-page discovery orchestrator.

``discover()`` runs the pre-checks and the three-stage pipeline for one
homepage; ``discover_batch()`` fans a list of companies out over a
ThreadPoolExecutor.
"""

import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Callable, List, Optional

from loguru import logger

import contact_finder.config as cfg
from contact_finder.discovery.filters import (
    classify_failure,
    failure_message,
    is_social_media_url,
)
from contact_finder.discovery.http_client import NetworkError, StealthHTTPClient
from contact_finder.discovery.stage1_url_pattern import search_url_patterns
from contact_finder.discovery.stage2_html_analysis import analyze_homepage
from contact_finder.discovery.stage3_fallback import select_fallback_result
from contact_finder.discovery.state import SearchState
from contact_finder.discovery.text_utils import extract_domain
from contact_finder.models.result import CompanyTarget, SearchResult

Strategy = Callable[[str, SearchState, StealthHTTPClient], Optional[SearchResult]]

STRATEGIES: List[Strategy] = [
    search_url_patterns,
    analyze_homepage,
    select_fallback_result,
]


def run_pipeline(
    base_url: str,
    state: SearchState,
    client: StealthHTTPClient,
) -> SearchResult:
    """Run each strategy in order; the first non-None result wins."""
    for strategy in STRATEGIES:
        result = strategy(base_url, state, client)
        if result is not None:
            return result
    return SearchResult.failure("not_found")


def check_liveness(domain_url: str, client: StealthHTTPClient) -> Optional[SearchResult]:
    """A failure result when the bare domain does not answer 2xx/3xx."""
    response = client.fetch(domain_url, timeout=cfg.LIVENESS_TIMEOUT)
    if isinstance(response, NetworkError):
        logger.info("Liveness check failed for {}: {}", domain_url, response.message)
        return SearchResult.failure(classify_failure(response), failure_message(response))
    if not 200 <= response.status_code < 400:
        logger.info("Liveness check for {} answered {}", domain_url, response.status_code)
        return SearchResult.failure(
            classify_failure(response.status_code), failure_message(response.status_code)
        )
    return None


def discover(
    url: str,
    client: Optional[StealthHTTPClient] = None,
    budget: Optional[float] = None,
) -> SearchResult:
    """
    Find the contact page (and form endpoint) of the site at *url*.

    Never raises: every outcome, including an unexpected crash inside a
    strategy, is returned as a :class:`SearchResult`.
    """
    if client is None:
        client = StealthHTTPClient()

    if is_social_media_url(url):
        logger.info("{} is a social-media profile, not supported", url)
        return SearchResult.failure("sns_not_supported", "Social media URL not supported")

    domain_url = extract_domain(url)
    failure = check_liveness(domain_url, client)
    if failure is not None:
        return failure

    state = SearchState(budget=budget)
    try:
        result = run_pipeline(domain_url, state, client)
    except Exception:
        logger.exception("Discovery crashed for {}", domain_url)
        return SearchResult.failure("not_found")

    logger.info(
        "{} -> {} ({}) in {:.1f}s",
        domain_url, result.contact_url, result.search_method, state.elapsed(),
    )
    return result


def apply_result(target: CompanyTarget, result: SearchResult) -> CompanyTarget:
    """Write a discovery outcome back onto its batch row."""
    target.search_method = result.search_method
    target.contact_url = result.actual_form_url or result.contact_url
    if result.is_error:
        target.error_message = result.found_keywords[0] if result.found_keywords else result.search_method
        target.success = False
    else:
        target.error_message = None
        target.success = target.contact_url is not None
    target.processed_at = datetime.utcnow()
    return target


def discover_batch(
    targets: List[CompanyTarget],
    max_workers: Optional[int] = None,
    client: Optional[StealthHTTPClient] = None,
    delay: Optional[float] = None,
    budget: Optional[float] = None,
) -> List[CompanyTarget]:
    """
    Run discovery over every target concurrently.

    Parameters
    ----------
    targets : list[CompanyTarget]
        Rows to process; mutated in place and returned.
    max_workers : int or None
        Thread count. Defaults to ``cfg.MAX_WORKERS``.
    client : StealthHTTPClient or None
        Shared HTTP client (thread-safe).
    delay : float or None
        Pause after each company, per worker. Defaults to ``cfg.RATE_LIMIT_DELAY``.
    budget : float or None
        Stage A time budget per company. Defaults to ``cfg.MAX_TOTAL_TIME``.
    """
    if max_workers is None:
        max_workers = cfg.MAX_WORKERS
    if delay is None:
        delay = cfg.RATE_LIMIT_DELAY
    if client is None:
        client = StealthHTTPClient()

    if not targets:
        logger.info("No targets to process")
        return targets

    logger.info("Discovering contact pages for {} sites ({} workers) ...", len(targets), max_workers)

    completed = 0
    lock = threading.Lock()
    stats: Counter = Counter()

    def _worker(target: CompanyTarget) -> CompanyTarget:
        nonlocal completed
        result = discover(target.homepage_url, client=client, budget=budget)
        apply_result(target, result)
        if delay > 0:
            time.sleep(delay)
        with lock:
            completed += 1
            stats[result.search_method] += 1
            if completed % 10 == 0 or completed == len(targets):
                logger.info("  Discovery progress: {}/{}", completed, len(targets))
        return target

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(_worker, t): t for t in targets}
        for future in as_completed(futures):
            try:
                future.result()
            except Exception as exc:
                target = futures[future]
                logger.warning("Discovery crashed for {}: {}", target.homepage_url, exc)
                target.search_method = "not_found"
                target.error_message = str(exc)
                target.success = False
                with lock:
                    stats["not_found"] += 1

    total = len(targets)
    found = sum(1 for t in targets if t.success)
    logger.info("")
    logger.info("Contact Discovery Results:")
    for method, count in stats.most_common():
        logger.info("  {:<36} {}/{} ({:.0f}%)", method, count, total, count / max(total, 1) * 100)
    logger.info("  {:<36} {}/{} ({:.0f}%)", "Total contact URLs found", found, total, found / max(total, 1) * 100)

    return targets
