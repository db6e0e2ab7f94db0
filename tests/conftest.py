"""Shared fixtures for the Grade Notifier tests."""

from typing import List, Optional

import pytest
from bs4 import BeautifulSoup

from grade_notifier.auth import AuthenticationFailed
from grade_notifier.config import REQUIRED_GROUPS, load_settings


LOGIN_URL = "https://portal.example.edu/login/login.php"
LOGIN_FAIL_URL = "https://portal.example.edu/login/_login.php"
GRADES_URL = "https://portal.example.edu/haksa/record/grades.php"


def render_grade_page(rows: List[List[str]], header: Optional[List[str]] = None) -> str:
    """Build a grade report page the way the portal lays it out."""
    header = header or ["No", "Subject", "Grade"]
    lines = ['<html><body><table id="att_list">']
    lines.append("<tr>" + "".join(f"<td>{cell}</td>" for cell in header) + "</tr>")
    for row in rows:
        lines.append("<tr>" + "".join(f"<td> {cell} </td>" for cell in row) + "</tr>")
    lines.append("</table></body></html>")
    return "\n".join(lines)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's real environment out of the tests."""
    for name in REQUIRED_GROUPS:
        monkeypatch.delenv(name.upper(), raising=False)


@pytest.fixture
def settings_kwargs(tmp_path):
    """Complete settings using a three column layout (No, Subject, Grade)."""
    return {
        "school_id": "21900001",
        "school_pw": "hunter2",
        "twilio_sid": "AC123",
        "twilio_auth": "secret-token",
        "twilio_from": "+15005550006",
        "twilio_to": "+821012345678",
        "portal_login_url": LOGIN_URL,
        "portal_login_fail_url": LOGIN_FAIL_URL,
        "portal_grades_url": GRADES_URL,
        "identity_column": 1,
        "status_column": 2,
        "snapshot_path": tmp_path / "grades.json",
        "typing_delay_ms": 0,
        "navigation_timeout_ms": 200,
        "page_timeout_ms": 200,
    }


@pytest.fixture
def settings(settings_kwargs):
    return load_settings(env_file=None, **settings_kwargs)


class FakeSession:
    """
    Stand-in for PortalSession that serves a fixed grade page.

    Records which operations the orchestrator called so tests can check
    that the browser was always closed.
    """

    def __init__(self, settings, html: str = "", landing_url: str = GRADES_URL,
                 fail_on_open: Optional[Exception] = None):
        self.settings = settings
        self.html = html
        self.landing_url = landing_url
        self.fail_on_open = fail_on_open
        self.calls: List[str] = []
        self.closed = False

    def open(self):
        self.calls.append("open")
        if self.fail_on_open is not None:
            raise self.fail_on_open

    def close(self):
        self.calls.append("close")
        self.closed = True

    def authenticate(self, identity, secret):
        self.calls.append("authenticate")
        if self.landing_url in (self.settings.portal_login_url,
                                self.settings.portal_login_fail_url):
            raise AuthenticationFailed(f"landed on {self.landing_url}")

    def fetch_page(self, url, wait_for=None):
        self.calls.append("fetch_page")
        return BeautifulSoup(self.html, "lxml")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RecordingNotifier:
    """Notifier double that records every dispatch."""

    def __init__(self, delivery_id: str = "SM0001", error: Optional[Exception] = None):
        self.delivery_id = delivery_id
        self.error = error
        self.sent: List[List[List[str]]] = []

    def notify(self, changes):
        self.sent.append(changes)
        if self.error is not None:
            raise self.error
        return self.delivery_id


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()
