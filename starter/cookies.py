"""
starter/cookies.py
Session cookie helpers.

Streamlit has no server-side Set-Cookie hook, so cookies are written by a
zero-height component that runs in the browser and reaches the top-level
document.  They are read back on the next page load through st.context.cookies.
"""

import json
from typing import Mapping

import streamlit.components.v1 as components

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
CODE_VERIFIER_COOKIE = "sb-code-verifier"

# Refresh tokens outlive access tokens; keep the pair for a week and let
# Supabase decide whether the refresh token is still good.
COOKIE_MAX_AGE = 60 * 60 * 24 * 7
# Long enough to get through the provider consent screen.
CODE_VERIFIER_MAX_AGE = 60 * 10


def read_session_tokens(cookies: Mapping[str, str]) -> tuple[str, str] | None:
    """
    Return (access_token, refresh_token) from a cookie mapping.

    Returns None unless both cookies are present and non-empty.
    """
    access_token = cookies.get(ACCESS_TOKEN_COOKIE)
    refresh_token = cookies.get(REFRESH_TOKEN_COOKIE)
    if not access_token or not refresh_token:
        return None
    return access_token, refresh_token


def _cookie_assignment(name: str, value: str, max_age: int) -> str:
    cookie = f"{name}={value}; path=/; max-age={max_age}; samesite=lax"
    return f"window.parent.document.cookie = {json.dumps(cookie)};"


def session_cookie_script(session) -> str:
    """
    Return the <script> block that stores the session's token pair.

    A session means any OAuth sign-in has finished, so the PKCE verifier
    cookie is expired along with it.
    """
    lines = [
        _cookie_assignment(ACCESS_TOKEN_COOKIE, session.access_token, COOKIE_MAX_AGE),
        _cookie_assignment(REFRESH_TOKEN_COOKIE, session.refresh_token, COOKIE_MAX_AGE),
        _cookie_assignment(CODE_VERIFIER_COOKIE, "", 0),
    ]
    return "<script>\n" + "\n".join(lines) + "\n</script>"


def clear_cookie_script() -> str:
    """Return the <script> block that expires the session and PKCE verifier cookies."""
    lines = [
        _cookie_assignment(ACCESS_TOKEN_COOKIE, "", 0),
        _cookie_assignment(REFRESH_TOKEN_COOKIE, "", 0),
        _cookie_assignment(CODE_VERIFIER_COOKIE, "", 0),
    ]
    return "<script>\n" + "\n".join(lines) + "\n</script>"


def sync_session_cookies(session) -> None:
    """
    Write the session's tokens to the browser, or clear them when session is None.
    """
    script = session_cookie_script(session) if session is not None else clear_cookie_script()
    components.html(script, height=0)


def oauth_redirect_script(url: str, code_verifier: str | None) -> str:
    """
    Return the <script> block that stores the PKCE verifier and leaves for the provider.

    The verifier cookie is what lets the fresh session the provider redirects
    back into finish the code exchange.
    """
    lines = []
    if code_verifier:
        lines.append(_cookie_assignment(CODE_VERIFIER_COOKIE, code_verifier, CODE_VERIFIER_MAX_AGE))
    lines.append(f"window.parent.location.href = {json.dumps(url)};")
    return "<script>\n" + "\n".join(lines) + "\n</script>"


def redirect_to_provider(url: str, code_verifier: str | None) -> None:
    components.html(oauth_redirect_script(url, code_verifier), height=0)


def clear_code_verifier_script() -> str:
    """Return the <script> block that expires the PKCE verifier cookie."""
    return "<script>\n" + _cookie_assignment(CODE_VERIFIER_COOKIE, "", 0) + "\n</script>"


def clear_code_verifier() -> None:
    components.html(clear_code_verifier_script(), height=0)
