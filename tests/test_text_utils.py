import pytest

from contact_finder.discovery.filters import (
    classify_failure,
    is_social_media_url,
    is_valid_page,
    status_message,
)
from contact_finder.discovery.http_client import (
    ErrorCategory,
    NetworkError,
    classify_network_error,
)
from contact_finder.discovery.text_utils import (
    content_hash,
    decode_body,
    extract_domain,
    is_homepage_url,
    is_valid_encoding,
    resolve_url,
    url_path,
)


# ── URLs ──────────────────────────────────────────────────────────────────


def test_extract_domain():
    assert extract_domain("https://www.acme.co.jp/company/about.html?x=1") == "https://www.acme.co.jp/"
    assert extract_domain("not a url") == "not a url"


def test_resolve_url():
    assert resolve_url("/contact/", "https://x.test/about/") == "https://x.test/contact/"
    assert resolve_url("form.html", "https://x.test/about/") == "https://x.test/about/form.html"
    assert resolve_url("mailto:info@x.test", "https://x.test/") == "mailto:info@x.test"


def test_url_path_excludes_host():
    assert url_path("https://contact.example.com/News?id=1#Top") == "/news?id=1#top"


@pytest.mark.parametrize(
    "href",
    ["/", "https://x.test", "https://x.test/index.html", "/index.php", "/home/", "/#top"],
)
def test_homepage_urls(href):
    assert is_homepage_url(href, "https://x.test/")


def test_non_homepage_url():
    assert not is_homepage_url("/contact/", "https://x.test/")


# ── Hashing & decoding ────────────────────────────────────────────────────


def test_content_hash_is_stable():
    assert content_hash("<html></html>") == content_hash("<html></html>")
    assert content_hash("<html>a</html>") != content_hash("<html>b</html>")
    assert content_hash("") == "0"


def test_encoding_validation():
    assert is_valid_encoding("plain text")
    assert not is_valid_encoding("ab\ufffd\ufffd")


def test_decode_shift_jis_fallback():
    raw = ("<html><body>" + "お問い合わせはこちら" * 20 + "</body></html>").encode("shift_jis")
    assert "お問い合わせ" in decode_body(raw)


def test_decode_declared_charset_first():
    raw = "問い合わせ".encode("euc-jp")
    assert decode_body(raw, "euc-jp") == "問い合わせ"


# ── Filters ───────────────────────────────────────────────────────────────


def test_social_media_urls():
    assert is_social_media_url("https://www.instagram.com/acme/")
    assert is_social_media_url("https://x.com/acme")
    assert not is_social_media_url("https://box.com/acme")
    assert not is_social_media_url("https://acme.co.jp/")


def test_page_validity():
    assert not is_valid_page("<html>short</html>")
    assert not is_valid_page("<html>" + "x" * 600 + "Coming Soon</html>")
    assert is_valid_page("<html>" + "x" * 600 + "</html>")


def test_page_length_boundary():
    assert not is_valid_page("x" * 500)
    assert is_valid_page("x" * 501)


def test_status_messages():
    assert status_message(404).startswith("Not Found")
    assert status_message(418) == "HTTP Error 418"


# ── Error classification ──────────────────────────────────────────────────


@pytest.mark.parametrize(
    "text, category",
    [
        ("Failed to perform, curl: (28) Operation timed out after 5000 ms", ErrorCategory.TIMEOUT),
        ("curl: (6) Could not resolve host: nowhere.invalid", ErrorCategory.DNS),
        ("curl: (7) Failed to connect to x.test port 443: Connection refused", ErrorCategory.CONNECTION_REFUSED),
        ("curl: (60) SSL certificate problem: unable to get local issuer", ErrorCategory.SSL),
        ("something odd happened", ErrorCategory.UNKNOWN),
    ],
)
def test_classify_network_error(text, category):
    error = classify_network_error("https://x.test/", RuntimeError(text))
    assert error.category is category
    assert error.detail == text


def test_classify_failure_tags():
    def err(category):
        return NetworkError(url="https://x.test/", category=category, message="m")

    assert classify_failure(err(ErrorCategory.DNS)) == "dns_error"
    assert classify_failure(err(ErrorCategory.TIMEOUT)) == "timeout_error"
    assert classify_failure(err(ErrorCategory.FORBIDDEN)) == "bot_blocked"
    assert classify_failure(err(ErrorCategory.SSL)) == "site_closed"
    assert classify_failure(403) == "bot_blocked"
    assert classify_failure(501) == "bot_blocked"
    assert classify_failure(500) == "site_closed"
