from conftest import page

from contact_finder.discovery.form_detector import (
    FormKind,
    analyze_structured_forms,
    detect_form,
    detect_google_form,
    extract_contact_info,
    find_embedded_html_form,
    find_google_form_url,
    has_submit_control,
    is_valid_contact_form,
    normalize_google_form_url,
    validate_google_form_content,
)

CONTACT_FORM = (
    '<form method="post" action="/send">'
    '<input type="text" name="name"><input type="email" name="email">'
    '<textarea name="message"></textarea><input type="submit" value="Send">'
    "</form>"
)


# ── detect_form ───────────────────────────────────────────────────────────


def test_native_form_wins():
    result = detect_form(page(CONTACT_FORM))
    assert result.found
    assert result.kind is FormKind.HTML
    assert result.confidence == 90


def test_untyped_button_counts_as_submit():
    assert has_submit_control("<form><input name='q'><button>Go</button></form>")
    assert not has_submit_control("<form><input name='q'><button type='button'>Go</button></form>")


def test_form_without_submit_is_not_native():
    markup = page("<form><input name='email'></form>")
    assert detect_form(markup).kind is FormKind.NONE


def test_google_form_iframe_detected_and_normalized():
    markup = page('<iframe src="https://docs.google.com/forms/d/1AbCdEf_123" width="640"></iframe>')
    result = detect_form(markup)
    assert result.kind is FormKind.GOOGLE_FORMS
    assert result.confidence == 95
    assert result.form_url == "https://docs.google.com/forms/d/1AbCdEf_123/viewform"


def test_script_and_captcha():
    markup = page(
        '<script src="https://www.google.com/recaptcha/api.js"></script>'
        '<div class="g-recaptcha" data-sitekey="abc"></div>'
    )
    result = detect_form(markup)
    assert result.kind is FormKind.SCRIPT_RECAPTCHA
    assert result.confidence == 70


def test_captcha_marker_without_script_is_ignored():
    assert detect_form(page("<p>I'm not a robot</p>")).kind is FormKind.NONE


def test_third_party_embed():
    markup = page('<div class="formrun-embed" data-formrun-embed-key="x"></div><a href="https://form.run/@acme">Form</a>')
    result = detect_form(markup)
    assert result.kind is FormKind.EMBEDDED_THIRDPARTY
    assert result.confidence == 60


def test_nothing_found():
    result = detect_form(page("<h1>Welcome</h1>"))
    assert not result.found
    assert result.confidence == 0


# ── is_valid_contact_form ─────────────────────────────────────────────────


def test_valid_contact_form():
    assert is_valid_contact_form(page(CONTACT_FORM))


def test_single_field_is_not_enough():
    assert not is_valid_contact_form(page('<form><input id="q"><input type="submit"></form>'))


def test_japanese_fields_count():
    markup = page(
        '<form><label>お名前</label><input id="a"><label>メールアドレス</label>'
        '<input id="b"><button type="submit">送信</button></form>'
    )
    assert is_valid_contact_form(markup)


def test_fields_without_submit_rejected():
    markup = page('<form><input name="name"><input name="email"></form>')
    assert not is_valid_contact_form(markup)


# ── Google Forms ──────────────────────────────────────────────────────────


def test_form_response_is_never_returned():
    assert normalize_google_form_url("https://docs.google.com/forms/d/e/XYZ/formResponse") is None
    markup = page('<a href="https://docs.google.com/forms/d/e/XYZ/formResponse">Sent</a>')
    assert detect_google_form(markup) is None
    assert detect_form(markup).kind is FormKind.NONE


def test_form_response_skipped_in_favour_of_view_url():
    markup = page(
        '<a href="https://docs.google.com/forms/d/e/XYZ/formResponse">Sent</a>'
        '<a href="https://docs.google.com/forms/d/e/XYZ/viewform">Open</a>'
    )
    match = detect_google_form(markup)
    assert match.url == "https://docs.google.com/forms/d/e/XYZ/viewform"
    assert match.via == "direct_link"


def test_short_links_are_kept():
    assert normalize_google_form_url("https://forms.gle/abc123") == "https://forms.gle/abc123"


def test_homepage_google_form_ignores_scripts():
    in_script = page('<script>var u = "https://docs.google.com/forms/d/SCRIPTID/viewform";</script>')
    assert find_google_form_url(in_script) is None
    in_text = page('<p>Contact: <a href="https://docs.google.com/forms/d/TEXTID/viewform">here</a></p>')
    assert find_google_form_url(in_text) == "https://docs.google.com/forms/d/TEXTID/viewform"


def test_google_form_recruiting_context_rejected():
    url = "https://docs.google.com/forms/d/RID/viewform"
    markup = page(f'<h2>採用情報</h2><p>求人への応募はこちら</p><a href="{url}">応募フォーム</a>')
    assert not validate_google_form_content(markup, url)


def test_google_form_contact_context_accepted():
    url = "https://docs.google.com/forms/d/CID/viewform"
    markup = page(f'<h2>お問い合わせ</h2><a href="{url}">フォームを開く</a>')
    assert validate_google_form_content(markup, url)


def test_google_form_exclusion_uses_word_boundaries():
    url = "https://docs.google.com/forms/d/JID/viewform"
    # "jobsite" must not trip the "job" term
    markup = page(f'<p>Contact us about jobsite tools</p><a href="{url}">Form</a>')
    assert validate_google_form_content(markup, url)


# ── Embedded forms & signals ──────────────────────────────────────────────


def test_embedded_contact_form():
    assert find_embedded_html_form(page(CONTACT_FORM))


def test_search_form_excluded():
    markup = page('<form method="get" action="/"><input name="search"><input name="email"><button>Search</button></form>')
    assert not find_embedded_html_form(markup)


def test_newsletter_form_excluded():
    markup = page('<h3>Newsletter</h3><form action="/subscribe"><input name="name"><input name="email"><button>OK</button></form>')
    assert not find_embedded_html_form(markup)


def test_structured_form_stats():
    stats = analyze_structured_forms(page(CONTACT_FORM))
    assert stats.form_count == 1
    assert stats.total_fields == 4
    assert stats.has_contact_fields


def test_extract_contact_info():
    info = extract_contact_info("<div>TEL: 03-1234-5678 / info@acme.co.jp</div>")
    assert info.phone and info.email and not info.contact_form
    assert info.any
    assert not extract_contact_info("<div>Our history</div>").any
