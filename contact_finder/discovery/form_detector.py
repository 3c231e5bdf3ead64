"""
Form detection on raw markup.

Decides whether a page carries a genuine, submittable contact form.  No
DOM is built: the detectors are regex tables over the fetched text, in
the priority order

1. native ``<form>`` with a submit control          (confidence 90)
2. Google Form link / iframe                         (confidence 95)
3. ``<script>`` + CAPTCHA widget (JS-rendered form)   (confidence 70)
4. known third-party embedded form provider          (confidence 60)

Also home to the stricter binary check (:func:`is_valid_contact_form`),
the Google Form context validator and the phone/email/form signal
extractor used by anchor-section analysis.
"""

import html as html_lib
import re
from enum import Enum
from typing import Optional

from loguru import logger
from pydantic import BaseModel

import contact_finder.config as cfg

# ── Pattern tables ────────────────────────────────────────────────────────

_FORM_BLOCK_RE = re.compile(r"<form\b([^>]*)>([\s\S]*?)</form>", re.IGNORECASE)

SUBMIT_CONTROL_PATTERNS = [
    re.compile(r"<input\b[^>]*\btype\s*=\s*[\"']?submit\b", re.IGNORECASE),
    re.compile(r"<input\b[^>]*\btype\s*=\s*[\"']?image\b", re.IGNORECASE),
    re.compile(r"<button\b[^>]*\btype\s*=\s*[\"']?submit\b", re.IGNORECASE),
    # <button> without a type attribute submits by default
    re.compile(r"<button\b(?![^>]*\btype\s*=)[^>]*>", re.IGNORECASE),
]

_GOOGLE_FORM_URL = (
    r"(?:https?:)?(?://)?"
    r"(?:docs\.google\.com/forms/(?:u/\d+/)?d/(?:e/)?[A-Za-z0-9_-]+[^\"'\s<>)]*"
    r"|forms\.gle/[A-Za-z0-9_-]+"
    r"|goo\.gl/forms/[A-Za-z0-9_-]+)"
)
GOOGLE_FORM_URL_RE = re.compile(_GOOGLE_FORM_URL, re.IGNORECASE)

GOOGLE_FORM_TARGET_PATTERNS = [
    ("direct_link", re.compile(r"<a\b[^>]*\bhref\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)),
    ("iframe_embed", re.compile(r"<iframe\b[^>]*\bsrc\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)),
]

_GOOGLE_FORM_ID_RE = re.compile(r"/forms/(?:u/\d+/)?d/((?:e/)?[^/?#&\"']+)", re.IGNORECASE)

_SCRIPT_TAG_RE = re.compile(r"<script\b", re.IGNORECASE)
_STRIP_BLOCKS_RE = re.compile(
    r"<(script|style)\b[^>]*>[\s\S]*?</\1>|/\*[\s\S]*?\*/", re.IGNORECASE
)

CAPTCHA_FINGERPRINTS = [
    re.compile(r"google\.com/recaptcha/api\.js", re.IGNORECASE),
    re.compile(r"recaptcha/(?:api|enterprise)\.js", re.IGNORECASE),
    re.compile(r"class\s*=\s*[\"'][^\"']*\bg-recaptcha\b", re.IGNORECASE),
    re.compile(r"id\s*=\s*[\"'][^\"']*recaptcha[^\"']*[\"']", re.IGNORECASE),
    re.compile(r"data-sitekey\s*=", re.IGNORECASE),
    re.compile(r"hcaptcha\.com/1/api\.js|class\s*=\s*[\"'][^\"']*\bh-captcha\b", re.IGNORECASE),
    re.compile(r"challenges\.cloudflare\.com/turnstile|\bcf-turnstile\b", re.IGNORECASE),
    re.compile(r"私はロボットではありません"),
    re.compile(r"I[’']m not a robot", re.IGNORECASE),
]

EMBEDDED_FORM_PROVIDERS = [
    ("formrun", re.compile(r"form\.run|sdk\.form\.run", re.IGNORECASE)),
    ("typeform", re.compile(r"typeform\.com", re.IGNORECASE)),
    ("hubspot", re.compile(r"hsforms\.(?:net|com)|hbspt\.forms|hubspot\.com[^\"'\s]*form", re.IGNORECASE)),
    ("wufoo", re.compile(r"wufoo\.com", re.IGNORECASE)),
    ("jotform", re.compile(r"jotform\.com|jotfor\.ms", re.IGNORECASE)),
    ("formstack", re.compile(r"formstack\.com", re.IGNORECASE)),
    ("formzu", re.compile(r"formzu\.(?:net|com)", re.IGNORECASE)),
    ("tayori", re.compile(r"tayori\.com/form", re.IGNORECASE)),
    ("cognito", re.compile(r"cognitoforms\.com", re.IGNORECASE)),
    ("ninja_forms", re.compile(r"ninja-forms", re.IGNORECASE)),
    ("contact_form_7", re.compile(r"contact-form-7|wpcf7", re.IGNORECASE)),
]

CONTACT_FIELD_NAMES = (
    "name", "email", "phone", "message", "inquiry",
    "お名前", "メール", "電話", "メッセージ", "問い合わせ", "件名",
)

_CONTACT_FIELD_RE = re.compile(
    r"name|email|phone|tel|message|inquiry|お名前|メール|電話|問い合わせ|メッセージ",
    re.IGNORECASE,
)
_FIELD_TAG_RE = re.compile(r"<(?:input|textarea|select)\b", re.IGNORECASE)

# Google Form context vocabularies (ascii terms matched on word boundaries)
GOOGLE_FORM_EXCLUDE_TERMS = (
    "writer", "recruit", "recruitment", "career", "job", "hire", "employment",
    "apply", "application", "survey", "questionnaire", "poll",
    "seminar", "webinar", "workshop", "event", "conference", "registration",
    "newsletter", "subscription", "subscribe",
    "ライター", "募集", "採用", "求人", "応募", "アンケート",
    "セミナー", "イベント", "参加登録", "メルマガ", "ニュースレター",
)
GOOGLE_FORM_CONTACT_TERMS = (
    "contact", "inquiry", "enquiry", "consultation", "support",
    "お問い合わせ", "問い合わせ", "お問合せ", "問合せ", "ご相談", "相談",
)

# Embedded homepage form: keywords and exclusion rules
EMBEDDED_FORM_FIELD_KEYWORDS = (
    "御社名", "会社名", "お名前", "名前", "メールアドレス", "メール", "電話番号",
    "ご質問", "質問", "問い合わせ", "送信", "確認",
    "company", "name", "email", "phone", "message", "inquiry",
    "submit", "send", "confirm",
)
FORM_EXCLUDE_ACTIONS = (
    "/search", "/filter", "/sort", "?search", "?q=", "?query=", "/newsletter",
    "/subscribe", "/download", "/signup", "/login", "/register", "/member",
    "formresponse",
)
FORM_EXCLUDE_CONTEXT_TERMS = (
    "newsletter", "subscribe", "メルマガ", "ニュースレター", "download",
    "ダウンロード", "資料請求", "資料ダウンロード", "survey", "questionnaire",
    "アンケート", "search", "検索",
)
FORM_SEARCH_TERMS = ("search", "filter", "sort", "検索", "find", "query")

_METHOD_RE = re.compile(r"method\s*=\s*[\"']?([a-z]+)", re.IGNORECASE)
_ACTION_RE = re.compile(r"action\s*=\s*[\"']([^\"']*)[\"']", re.IGNORECASE)

# Contact-info signals (anchor sections)
PHONE_PATTERNS = [
    re.compile(r"(?<!\d)\d{2,4}[-\s]\d{2,4}[-\s]\d{3,4}(?!\d)"),
    re.compile(r"(?<!\d)0\d{9,10}(?!\d)"),
    re.compile(r"\btel\s*[:：]\s*\d", re.IGNORECASE),
    re.compile(r"電話\s*[:：]\s*\d"),
    re.compile(r"\(\d{2,4}\)\s*\d{3,4}[-\s]\d{3,4}"),
]
EMAIL_PATTERNS = [
    re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
    re.compile(r"mailto:", re.IGNORECASE),
    re.compile(r"e-?mail\s*[:：]", re.IGNORECASE),
    re.compile(r"メール\s*[:：]"),
]
FORM_SIGNAL_PATTERNS = [
    re.compile(r"<form\b", re.IGNORECASE),
    re.compile(r"<input\b[^>]*\btype\s*=\s*[\"']?(?:email|tel)\b", re.IGNORECASE),
    re.compile(r"<textarea\b", re.IGNORECASE),
    re.compile(r"お問い合わせフォーム|問い合わせフォーム"),
    re.compile(r"contact\s+form", re.IGNORECASE),
]


# ── Result types ──────────────────────────────────────────────────────────


class FormKind(str, Enum):
    HTML = "html"
    GOOGLE_FORMS = "google_forms"
    SCRIPT_RECAPTCHA = "script_recaptcha"
    EMBEDDED_THIRDPARTY = "embedded_thirdparty"
    NONE = "none"


class FormDetection(BaseModel):
    found: bool
    kind: FormKind = FormKind.NONE
    confidence: int = 0
    form_url: Optional[str] = None


class GoogleFormMatch(BaseModel):
    url: str          # normalised, submittable form URL
    raw_url: str      # as it appears in the markup
    via: str          # direct_link | iframe_embed


class StructuredFormStats(BaseModel):
    form_count: int = 0
    total_fields: int = 0
    has_contact_fields: bool = False


class ContactInfo(BaseModel):
    phone: bool = False
    email: bool = False
    contact_form: bool = False

    @property
    def any(self) -> bool:
        return self.phone or self.email or self.contact_form


# ── Helpers ───────────────────────────────────────────────────────────────


def strip_scripts_and_styles(markup: str) -> str:
    return _STRIP_BLOCKS_RE.sub("", markup)


def _contains_term(text: str, term: str) -> bool:
    if term.isascii():
        return re.search(rf"\b{re.escape(term)}\b", text) is not None
    return term in text


# ── Native form ───────────────────────────────────────────────────────────


def has_submit_control(form_html: str) -> bool:
    return any(p.search(form_html) for p in SUBMIT_CONTROL_PATTERNS)


def has_native_form(markup: str) -> bool:
    """A ``<form>`` block containing at least one submit control."""
    for match in _FORM_BLOCK_RE.finditer(markup):
        if has_submit_control(match.group(0)):
            return True
    return False


# ── Google Forms ──────────────────────────────────────────────────────────


def normalize_google_form_url(url: str) -> Optional[str]:
    """
    Canonicalise a Google Form URL.

    Returns None for ``/formResponse`` targets (submission receipts, not
    forms).  A bare ``/forms/d/<id>`` gets ``/viewform`` appended.
    """
    url = html_lib.unescape(url.strip())
    if url.startswith("//"):
        url = "https:" + url
    elif not url.lower().startswith("http"):
        url = "https://" + url
    if "/formresponse" in url.lower():
        return None
    if "/forms/" in url.lower() and "/viewform" not in url.lower():
        id_match = _GOOGLE_FORM_ID_RE.search(url)
        if id_match:
            url = f"https://docs.google.com/forms/d/{id_match.group(1)}/viewform"
    return url


def detect_google_form(markup: str) -> Optional[GoogleFormMatch]:
    """First Google Form targeted by a link or an iframe."""
    for via, pattern in GOOGLE_FORM_TARGET_PATTERNS:
        for match in pattern.finditer(markup):
            target = match.group(1)
            url_match = GOOGLE_FORM_URL_RE.search(target)
            if not url_match:
                continue
            normalized = normalize_google_form_url(url_match.group(0))
            if normalized is None:
                logger.debug("Skipped formResponse target: {}", target)
                continue
            return GoogleFormMatch(url=normalized, raw_url=url_match.group(0), via=via)
    return None


def find_google_form_url(markup: str) -> Optional[str]:
    """Any Google Form URL in the page text (scripts and styles ignored)."""
    for match in GOOGLE_FORM_URL_RE.finditer(strip_scripts_and_styles(markup)):
        normalized = normalize_google_form_url(match.group(0))
        if normalized:
            return normalized
    return None


def validate_google_form_content(markup: str, form_url: str) -> bool:
    """
    Decide whether a Google Form is a contact form rather than a
    recruiting / survey / newsletter / event form.

    Looks at ±1000 characters around the URL's first occurrence: any
    exclusion term rejects; otherwise a contact term in that window, or
    failing that anywhere on the page, accepts.
    """
    lower = markup.lower()
    index = markup.find(form_url)
    if index < 0:
        index = lower.find(form_url.lower())
    window = cfg.GOOGLE_FORM_CONTEXT_WINDOW
    if index >= 0:
        start = max(0, index - window)
        end = min(len(markup), index + len(form_url) + window)
        context = lower[start:end]
    else:
        context = lower

    for term in GOOGLE_FORM_EXCLUDE_TERMS:
        if _contains_term(context, term):
            logger.debug("Google Form rejected by context term '{}'", term)
            return False
    if any(_contains_term(context, term) for term in GOOGLE_FORM_CONTACT_TERMS):
        return True
    return any(_contains_term(lower, term) for term in GOOGLE_FORM_CONTACT_TERMS)


# ── Script + CAPTCHA / third-party ────────────────────────────────────────


def has_script_and_captcha(markup: str) -> bool:
    if not _SCRIPT_TAG_RE.search(markup):
        return False
    return any(p.search(markup) for p in CAPTCHA_FINGERPRINTS)


def detect_embedded_provider(markup: str) -> Optional[str]:
    for provider, pattern in EMBEDDED_FORM_PROVIDERS:
        if pattern.search(markup):
            return provider
    return None


# ── Unified detection ─────────────────────────────────────────────────────


def detect_form(markup: str) -> FormDetection:
    """Ranked form detection; first matching detector wins."""
    if has_native_form(markup):
        return FormDetection(found=True, kind=FormKind.HTML, confidence=90)

    google = detect_google_form(markup)
    if google:
        return FormDetection(
            found=True, kind=FormKind.GOOGLE_FORMS, confidence=95, form_url=google.url
        )

    if has_script_and_captcha(markup):
        return FormDetection(found=True, kind=FormKind.SCRIPT_RECAPTCHA, confidence=70)

    provider = detect_embedded_provider(markup)
    if provider:
        logger.debug("Embedded form provider detected: {}", provider)
        return FormDetection(found=True, kind=FormKind.EMBEDDED_THIRDPARTY, confidence=60)

    return FormDetection(found=False)


def is_valid_contact_form(markup: str) -> bool:
    """
    Strict accept/reject: a form tag with inputs, at least
    ``CONTACT_FIELD_MIN_MATCHES`` contact field names, and a submit control.
    """
    lower = markup.lower()
    if "<form" not in lower or ("<input" not in lower and "<textarea" not in lower):
        return False
    field_count = sum(1 for field in CONTACT_FIELD_NAMES if field in lower)
    if field_count < cfg.CONTACT_FIELD_MIN_MATCHES:
        return False
    return has_native_form(markup)


def analyze_structured_forms(markup: str) -> StructuredFormStats:
    stats = StructuredFormStats()
    for match in _FORM_BLOCK_RE.finditer(markup):
        form = match.group(0)
        stats.form_count += 1
        stats.total_fields += len(_FIELD_TAG_RE.findall(form))
        if _CONTACT_FIELD_RE.search(match.group(2)):
            stats.has_contact_fields = True
    return stats


# ── Embedded homepage form ────────────────────────────────────────────────


def _should_exclude_form(form_attrs: str, form_body: str, context: str) -> Optional[str]:
    method_match = _METHOD_RE.search(form_attrs)
    action_match = _ACTION_RE.search(form_attrs)
    method = method_match.group(1).lower() if method_match else ""
    action = action_match.group(1).lower() if action_match else ""
    body = form_body.lower()

    if method == "get" and any(t in body or t in action for t in FORM_SEARCH_TERMS):
        return "get_search_form"
    if action and any(p in action for p in FORM_EXCLUDE_ACTIONS):
        return f"excluded_action:{action}"
    hits = [t for t in FORM_EXCLUDE_CONTEXT_TERMS if t in context]
    if hits:
        return "context:" + ",".join(hits)
    return None


def find_embedded_html_form(markup: str) -> bool:
    """
    A contact form embedded directly in a page: a ``<form>`` block with at
    least two contact-field keywords, not a search / newsletter / login form.
    """
    window = cfg.FORM_EXCLUSION_CONTEXT_WINDOW
    for match in _FORM_BLOCK_RE.finditer(markup):
        attrs, body = match.group(1), match.group(2)
        start = max(0, match.start() - window)
        end = min(len(markup), match.end() + window)
        reason = _should_exclude_form(attrs, body, markup[start:end].lower())
        if reason:
            logger.debug("Embedded form skipped ({})", reason)
            continue
        lower_body = body.lower()
        hits = [kw for kw in EMBEDDED_FORM_FIELD_KEYWORDS if kw in lower_body]
        if len(hits) >= 2:
            return True
    return False


def has_embedded_form(markup: str) -> bool:
    """Third-party provider embed, or a plain embedded contact form."""
    return detect_embedded_provider(markup) is not None or find_embedded_html_form(markup)


# ── Contact-info extraction ───────────────────────────────────────────────


def extract_contact_info(markup: str) -> ContactInfo:
    """Phone / e-mail / form-tag signals inside a page excerpt."""
    text = strip_scripts_and_styles(markup)
    return ContactInfo(
        phone=any(p.search(text) for p in PHONE_PATTERNS),
        email=any(p.search(text) for p in EMAIL_PATTERNS),
        contact_form=any(p.search(text) for p in FORM_SIGNAL_PATTERNS),
    )
