"""
Single-source configuration: paths, HTTP settings, search budget,
batch behaviour, and the scoring thresholds of the discovery engine.

Everything that might need tweaking lives here.  Values that an operator
is expected to change per deployment can be overridden from the
environment; everything else is a plain constant.
"""

import os
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ── Project Paths ─────────────────────────────────────────────────────────────

ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
LOGS_DIR = ROOT_DIR / "logs"


# ── HTTP ──────────────────────────────────────────────────────────────────────

IMPERSONATE: str = "chrome120"           # curl_cffi TLS fingerprint
SAME_DOMAIN_DELAY: float = _env_float("CONTACT_FINDER_REQUEST_DELAY", 0.5)

# ── Timeouts (seconds) ───────────────────────────────────────────────────────

PROBE_TIMEOUT: float = 5.0               # one URL-pattern probe
HOMEPAGE_TIMEOUT: float = 7.0            # Stage B homepage fetch
LIVENESS_TIMEOUT: float = 3.0            # domain pre-check
NAVIGATION_TIMEOUT: float = 5.0          # Stage B candidate link

# ── Search budget ────────────────────────────────────────────────────────────

MAX_TOTAL_TIME: float = _env_float("CONTACT_FINDER_MAX_TOTAL_TIME", 30.0)

# ── Batch ────────────────────────────────────────────────────────────────────

BATCH_SIZE: int = _env_int("CONTACT_FINDER_BATCH_SIZE", 10)
RATE_LIMIT_DELAY: float = _env_float("CONTACT_FINDER_RATE_LIMIT_DELAY", 1.0)
MAX_WORKERS: int = _env_int("CONTACT_FINDER_MAX_WORKERS", 5)

# ── Page validity ────────────────────────────────────────────────────────────

MIN_PAGE_LENGTH: int = 500               # bodies up to this length are placeholders
ENCODING_CANDIDATES: tuple = ("utf-8", "shift_jis", "euc-jp")
MAX_REPLACEMENT_RATIO: float = 0.05      # U+FFFD share for a usable decode

# ── Thresholds (tuned empirically, keep configurable) ─────────────────────────

KEYWORD_ACCEPT_SCORE: int = 15           # Stage B accepts without form markup
CONTACT_FIELD_MIN_MATCHES: int = 2       # strict contact-form check
FALLBACK_HIGH_CONFIDENCE: float = 0.7
SPA_SAME_CONTENT_THRESHOLD: int = 2

# ── Context windows (characters) ─────────────────────────────────────────────

GOOGLE_FORM_CONTEXT_WINDOW: int = 1000
ANCHOR_FALLBACK_WINDOW: int = 1000
ANCHOR_SECTION_MAX_LENGTH: int = 5000
FORM_EXCLUSION_CONTEXT_WINDOW: int = 500

# ── Output ────────────────────────────────────────────────────────────────────

OUTPUT_DIR: Path = DATA_DIR
