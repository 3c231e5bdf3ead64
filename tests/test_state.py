import pytest
from conftest import page

from contact_finder.discovery.state import (
    SearchState,
    fallback_confidence,
    score_candidate,
)


def test_no_valid_urls_means_no_fallback():
    assert SearchState().select_fallback() is None


def test_fallback_prefers_contact_over_insertion_order():
    state = SearchState()
    state.add_valid_url("https://x.test/about", "about")
    state.add_valid_url("https://x.test/contact", "contact")
    assert state.select_fallback().url == "https://x.test/contact"

    reversed_state = SearchState()
    reversed_state.add_valid_url("https://x.test/contact", "contact")
    reversed_state.add_valid_url("https://x.test/about", "about")
    assert reversed_state.select_fallback().url == "https://x.test/contact"


def test_fallback_pattern_priority():
    state = SearchState()
    state.add_valid_url("https://x.test/form/", "form")
    state.add_valid_url("https://x.test/inquiry/", "inquiry")
    assert state.select_fallback().url == "https://x.test/inquiry/"


def test_fallback_uses_first_url_when_nothing_matches():
    state = SearchState()
    state.add_valid_url("https://x.test/about", "about")
    state.add_valid_url("https://x.test/news", "news")
    selection = state.select_fallback()
    assert selection.url == "https://x.test/about"
    assert not selection.high_confidence


def test_fallback_confidence():
    assert fallback_confidence("https://x.test/contact/") == pytest.approx(0.75)
    assert fallback_confidence("https://x.test/form") == pytest.approx(0.55)
    assert fallback_confidence("https://x.test/a/b/c/d/e/contact") == pytest.approx(0.7)
    localized = "https://x.test/%E3%81%8A%E5%95%8F%E3%81%84%E5%90%88%E3%82%8F%E3%81%9B/"
    assert fallback_confidence(localized) == pytest.approx(0.75)
    assert fallback_confidence("https://x.test/contact/%E5%95%8F%E3%81%84%E5%90%88%E3%82%8F%E3%81%9B/") == pytest.approx(1.0)


def test_candidate_score_components():
    form = '<form><input name="name"><input name="email"><input type="submit"></form>'
    # /contact 15 + 1 form * 5 + 3 fields * 2 + contact fields 10
    assert score_candidate("https://x.test/contact/", "found_form", page(form)) == 36
    assert score_candidate("https://x.test/contact/", "no_contact_form") == 10
    assert score_candidate("https://x.test/about/", "no_contact_form") == 0


def test_candidates_are_ranked_stably():
    state = SearchState()
    state.add_candidate("https://x.test/form", "no_contact_form")
    state.add_candidate("https://x.test/contact", "no_contact_form")
    state.add_candidate("https://x.test/contact/", "no_contact_form")
    ranked = [c.url for c in state.ranked_candidates()]
    assert ranked == ["https://x.test/contact", "https://x.test/contact/", "https://x.test/form"]
    assert [c.url for c in state.candidates][0] == "https://x.test/form"


def test_confirmed_forms_and_hash_cache():
    state = SearchState()
    assert not state.is_form_confirmed("https://x.test/contact/")
    state.mark_form_confirmed("https://x.test/contact/")
    assert state.is_form_confirmed("https://x.test/contact/")

    assert state.get_cached_hash("https://x.test/a") is None
    state.cache_hash("https://x.test/a", "abc")
    assert state.get_cached_hash("https://x.test/a") == "abc"


def test_budget():
    assert SearchState(budget=0).budget_exhausted()
    assert not SearchState(budget=60).budget_exhausted()
