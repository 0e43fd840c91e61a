"""
Page-level tests: the real page scripts run under streamlit.testing's AppTest.

use_auth is patched to hand back a MagicMock provider and st.switch_page to
record the target and stop the run, the way the real call ends a run.
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

from starter.cookies import CODE_VERIFIER_COOKIE
from starter.profiles import Profile, ProfileResult
from tests.conftest import make_session

ROOT = Path(__file__).resolve().parents[1]
APP = str(ROOT / "app.py")
LOGIN = str(ROOT / "pages" / "login.py")


def _fake_auth(session=None, profile=None):
    auth = MagicMock()
    auth.client.auth.get_session.return_value = session
    auth.user = session.user if session is not None else None
    auth.profile = profile or ProfileResult.not_started()
    auth.exchange_code.return_value = None
    return auth


def _run(at, auth, cookies=None):
    """Run the page once; return the switch_page mock and the clear_code_verifier mock."""
    switch_page = MagicMock(side_effect=lambda page: st.stop())
    context = SimpleNamespace(cookies=cookies or {})
    with patch("starter.providers.use_auth", return_value=auth), \
         patch("streamlit.switch_page", switch_page), \
         patch("streamlit.context", context), \
         patch("starter.cookies.clear_code_verifier") as clear_verifier:
        at.run()
    return switch_page, clear_verifier


# ─── Session guard on each page ──────────────────────────────────────────────

def test_signed_out_index_switches_to_login_before_rendering():
    auth = _fake_auth(None)
    at = AppTest.from_file(APP, default_timeout=10)

    switch_page, _ = _run(at, auth)

    switch_page.assert_called_once_with("pages/login.py")
    auth.flush_cookies.assert_not_called()
    assert len(at.markdown) == 0
    assert len(at.subheader) == 0
    assert not at.exception


def test_signed_in_login_switches_to_index():
    auth = _fake_auth(make_session())
    at = AppTest.from_file(LOGIN, default_timeout=10)

    switch_page, _ = _run(at, auth)

    switch_page.assert_called_once_with("app.py")
    auth.flush_cookies.assert_not_called()
    auth.exchange_code.assert_not_called()
    assert len(at.title) == 0


def test_signed_out_login_renders_form():
    auth = _fake_auth(None)
    at = AppTest.from_file(LOGIN, default_timeout=10)

    switch_page, _ = _run(at, auth)

    switch_page.assert_not_called()
    auth.flush_cookies.assert_called_once_with()
    assert at.title[0].value == "Sign in"
    assert not at.error


# ─── Index page profile states ───────────────────────────────────────────────

@pytest.mark.parametrize(
    "result, element, expected",
    [
        (
            ProfileResult.loaded("user-1", Profile(id="user-1", full_name="Ada Lovelace")),
            "subheader",
            "Ada Lovelace",
        ),
        (
            ProfileResult.failed("user-1", "connection refused"),
            "warning",
            "Your profile could not be loaded. Try signing out and back in.",
        ),
        (ProfileResult.not_started(), "caption", "Loading profile…"),
    ],
)
def test_index_renders_each_profile_state(result, element, expected):
    session = make_session()
    auth = _fake_auth(session, result)
    at = AppTest.from_file(APP, default_timeout=10)

    switch_page, _ = _run(at, auth)

    switch_page.assert_not_called()
    auth.flush_cookies.assert_called_once_with()
    assert at.markdown[0].value == "Hey, ada@example.com!"
    assert [el.value for el in getattr(at, element)] == [expected]
    for other in {"subheader", "warning", "caption"} - {element}:
        assert len(getattr(at, other)) == 0


# ─── OAuth callback ──────────────────────────────────────────────────────────

def test_failed_code_exchange_shows_error_once():
    auth = _fake_auth(None)
    params_at_exchange = []

    def exchange(code, verifier):
        params_at_exchange.append(st.query_params.to_dict())
        return "invalid flow state"

    auth.exchange_code.side_effect = exchange
    at = AppTest.from_file(LOGIN, default_timeout=10)
    at.query_params["code"] = "abc"

    _, clear_verifier = _run(at, auth, cookies={CODE_VERIFIER_COOKIE: "verifier-1"})

    auth.exchange_code.assert_called_once_with("abc", "verifier-1")
    assert params_at_exchange == [{}]
    assert at.error[0].value == "Sign-in with your provider failed: invalid flow state"
    clear_verifier.assert_called_once_with()

    _run(at, auth)

    auth.exchange_code.assert_called_once()
    assert not at.error


def test_successful_code_exchange_shows_no_error():
    auth = _fake_auth(None)
    at = AppTest.from_file(LOGIN, default_timeout=10)
    at.query_params["code"] = "abc"

    _, clear_verifier = _run(at, auth, cookies={CODE_VERIFIER_COOKIE: "verifier-1"})

    auth.exchange_code.assert_called_once_with("abc", "verifier-1")
    clear_verifier.assert_not_called()
    assert not at.error


def test_provider_error_description_shown_once():
    auth = _fake_auth(None)
    at = AppTest.from_file(LOGIN, default_timeout=10)
    at.query_params["error"] = "access_denied"
    at.query_params["error_description"] = "The user denied access"

    _, clear_verifier = _run(at, auth)

    assert at.error[0].value == "The user denied access"
    assert "error_description" not in at.query_params
    clear_verifier.assert_called_once_with()

    _run(at, auth)

    assert not at.error
