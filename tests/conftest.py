import pytest

import contact_finder.config as cfg
from contact_finder.discovery.http_client import ErrorCategory, FetchResponse, NetworkError

FILLER = "Lorem ipsum dolor sit amet. " * 25


def page(body: str, title: str = "Acme Corporation") -> str:
    """Wrap *body* in a full document long enough to count as a real page."""
    return (
        f"<html><head><title>{title}</title></head><body>"
        f"{body}<p>{FILLER}</p></body></html>"
    )


def ok(url: str, body: str) -> FetchResponse:
    return FetchResponse(url=url, status_code=200, text=body)


def status(url: str, code: int) -> FetchResponse:
    return FetchResponse(url=url, status_code=code, text="")


def net_error(url: str, category: ErrorCategory, message: str = "boom") -> NetworkError:
    return NetworkError(url=url, category=category, message=message)


class FakeClient:
    """
    Scripted stand-in for StealthHTTPClient.

    ``routes`` maps URL -> FetchResponse / NetworkError / HTML string (200).
    Unknown URLs answer 404.  Every fetched URL is recorded in ``fetched``.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.fetched = []

    def fetch(self, url, timeout=cfg.PROBE_TIMEOUT):
        self.fetched.append(url)
        route = self.routes.get(url)
        if route is None:
            return status(url, 404)
        if isinstance(route, str):
            return ok(url, route)
        return route


@pytest.fixture(autouse=True)
def no_delays(monkeypatch):
    """Keep tests off the wall clock."""
    monkeypatch.setattr(cfg, "RATE_LIMIT_DELAY", 0.0)
    monkeypatch.setattr(cfg, "SAME_DOMAIN_DELAY", 0.0)
