from conftest import page

from contact_finder.discovery.spa import (
    analyze_anchor_section,
    analyze_spa,
    detect_repeated_content,
)
from contact_finder.discovery.state import SearchState

SHELL = page(
    '<nav><a href="/#about">About</a><a href="/#contact">Contact</a></nav>'
    '<section id="about"><p>Founded long ago.</p></section>'
    '<section id="contact"><h2>Contact</h2><p>TEL 03-1234-5678</p></section>'
    "<footer>(c) Acme</footer>"
)

BASE = "https://x.test/"


def test_repeated_content_triggers_on_second_duplicate():
    state = SearchState()
    urls = ["https://x.test/contact/", "https://x.test/contact"]
    assert not detect_repeated_content(urls, SHELL, state)
    urls.append("https://x.test/contact.php")
    assert detect_repeated_content(urls, SHELL, state)


def test_distinct_content_never_triggers():
    state = SearchState()
    urls = ["https://x.test/a", "https://x.test/b"]
    assert not detect_repeated_content(urls, page("<p>one</p>"), state)
    urls.append("https://x.test/c")
    assert not detect_repeated_content(urls, page("<p>two</p>"), state)


def test_anchor_section_by_id():
    result = analyze_anchor_section(SHELL, "https://x.test/#contact", BASE)
    assert result.contact_url == "https://x.test/#contact"
    assert result.actual_form_url == "https://x.test/#contact"
    assert result.search_method == "spa_anchor_analysis"
    assert "phone" in result.found_keywords


def test_anchor_section_without_signals():
    assert analyze_anchor_section(SHELL, "https://x.test/#about", BASE) is None


def test_anchor_section_keyword_window_fallback():
    html = page("<div><h2>お問い合わせ</h2><p>info@acme.co.jp</p></div>")
    result = analyze_anchor_section(html, "https://x.test/#toiawase", BASE, "homepage_navigation_anchor")
    assert result.search_method == "homepage_navigation_anchor"
    assert "email" in result.found_keywords


def test_anchor_url_without_fragment():
    assert analyze_anchor_section(SHELL, "https://x.test/contact", BASE) is None


def test_analyze_spa_follows_navigation_anchor():
    result = analyze_spa(SHELL, BASE)
    assert result.contact_url == "https://x.test/#contact"
