import pytest

from contact_finder.discovery.purity import calculate_purity, matches_contact_filter


def test_navigation_contact_link_scores_high():
    result = calculate_purity("https://x.test/contact/", "お問い合わせ", "navigation")
    # お問い合わせ + 問い合わせ (text), contact (url), /contact/ structure, nav bonus
    assert result.score == 10 + 10 + 8 + 15 + 5
    assert "structure:/contact/" in result.reasons
    assert result.reasons[-1] == "context:navigation"


def test_exclusion_short_circuits():
    result = calculate_purity("https://x.test/recruit/contact/", "Contact")
    assert result.raw_score == -15
    assert result.score == 0
    assert result.reasons == ["excluded:recruit"]


def test_term_in_text_and_url_counts_once():
    result = calculate_purity("https://x.test/contact", "Contact")
    assert result.score == 10
    assert result.reasons == ["high_text:contact"]


def test_footer_bonus():
    result = calculate_purity("https://x.test/inquiry/", "Inquiry", "footer")
    assert result.score == 10 + 15 + 3


def test_generic_path_penalty():
    assert calculate_purity("https://x.test/company/contact", "Contact").score == 5


def test_medium_terms():
    result = calculate_purity("https://x.test/mail", "Send feedback")
    assert result.score == 3 + 3
    assert result.reasons == ["medium_text:send", "medium_text:feedback"]


@pytest.mark.parametrize(
    "url, text",
    [
        ("https://x.test/service/about/", "Our services"),
        ("https://x.test/download/", "Download brochure"),
        ("https://x.test/about/", ""),
        ("https://x.test/", "Home"),
        ("https://x.test/career/contact-us/", "Contact us"),
    ],
)
def test_score_is_never_negative(url, text):
    result = calculate_purity(url, text, "navigation")
    assert result.score >= 0
    assert result.score == max(0, result.raw_score)


def test_contact_filter():
    assert matches_contact_filter("https://x.test/form", "Apply")
    assert matches_contact_filter("https://x.test/ask", "ご相談はこちら")
    assert not matches_contact_filter("https://x.test/news", "News")
