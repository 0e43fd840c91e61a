"""
starter/providers.py
Per-session providers for the Supabase handle and the signed-in user.

Both live in the UI tree's state (st.session_state unless a mapping is passed
in) so they survive reruns of the same browser session and nothing is shared
between sessions.  Pages receive the handle explicitly from use_supabase() /
use_auth() and hand it on; no module keeps a global client.
"""

import logging
from typing import Callable, Mapping, MutableMapping

import streamlit as st

from starter.clients import create_browser_client, get_site_url
from starter.cookies import read_session_tokens, sync_session_cookies
from starter.guard import LOGIN_PATH, lookup_session
from starter.profiles import ProfileCache, ProfileResult

logger = logging.getLogger(__name__)

SUPABASE_STATE_KEY = "supabase_client"
AUTH_STATE_KEY = "auth_provider"
COOKIE_SYNC_KEY = "pending_cookie_sync"


def _resolve_state(state: MutableMapping | None) -> MutableMapping:
    return st.session_state if state is None else state


def _error_message(exc: Exception) -> str:
    """Return the backend's message for display, falling back to str(exc)."""
    return getattr(exc, "message", None) or str(exc)


# ─── Supabase handle ─────────────────────────────────────────────────────────

def use_supabase(state: MutableMapping | None = None, factory: Callable = create_browser_client):
    """
    Return the Supabase handle for this UI tree, creating it on first use.

    The handle is memoized under SUPABASE_STATE_KEY; factory is only called
    when the key is missing.
    """
    state = _resolve_state(state)
    if SUPABASE_STATE_KEY not in state:
        state[SUPABASE_STATE_KEY] = factory()
    return state[SUPABASE_STATE_KEY]


# ─── Auth provider ───────────────────────────────────────────────────────────

class AuthProvider:
    """
    Sign-in / sign-out operations and the current user's profile.

    Any auth-state change (sign-in, sign-out, token refresh, user update)
    drops the cached profile, queues a cookie write for the next run and
    reruns the whole page rather than patching individual widgets.
    """

    def __init__(
        self,
        client,
        state: MutableMapping,
        rerun: Callable[[], None] = st.rerun,
        cookies: Mapping[str, str] | None = None,
    ):
        self.client = client
        self._state = state
        self._rerun = rerun
        self._profiles = ProfileCache()
        if cookies is not None:
            self._queue_stale_cookies(cookies)
        self._subscription = client.auth.on_auth_state_change(self._on_auth_state_change)

    # ── Session accessors ────────────────────────────────────────────────────

    @property
    def session(self):
        return lookup_session(self.client)

    @property
    def user(self):
        session = self.session
        return session.user if session is not None else None

    @property
    def profile(self) -> ProfileResult:
        """The signed-in user's profile, fetched once per user id."""
        user = self.user
        return self._profiles.get(self.client, user.id if user is not None else None)

    # ── Auth operations ──────────────────────────────────────────────────────

    def sign_in_with_password(self, email: str, password: str) -> str | None:
        """Return None on success, otherwise the backend's error message."""
        try:
            self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            logger.info("Password sign-in failed for %s: %s", email, exc)
            return _error_message(exc)
        return None

    def sign_in_with_oauth(self, provider: str, redirect_to: str | None = None) -> str:
        """
        Start an OAuth sign-in and return the provider URL to send the user to.

        The provider redirects back to redirect_to (the login page by default)
        with a ?code= parameter for exchange_code().
        """
        if redirect_to is None:
            redirect_to = get_site_url() + LOGIN_PATH
        response = self.client.auth.sign_in_with_oauth(
            {"provider": provider, "options": {"redirect_to": redirect_to}}
        )
        return response.url

    @property
    def pending_code_verifier(self) -> str | None:
        """PKCE verifier of the OAuth sign-in started on this handle, if any."""
        storage = getattr(self.client.options, "storage", None)
        if storage is None or not hasattr(storage, "code_verifier"):
            return None
        return storage.code_verifier()

    def exchange_code(self, code: str, code_verifier: str | None = None) -> str | None:
        """
        Finish an OAuth sign-in.  Return None on success, otherwise the error message.

        code_verifier is required when the sign-in was started in another
        session; without it the verifier kept on this handle is used.
        """
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            self.client.auth.exchange_code_for_session(params)
        except Exception as exc:
            logger.warning("OAuth code exchange failed: %s", exc)
            return _error_message(exc)
        return None

    def sign_up(self, email: str, password: str, full_name: str) -> str | None:
        """
        Create an account.  Return None on success, otherwise the error message.

        full_name is stored as user metadata; the backend trigger copies it
        into the new profiles row.
        """
        try:
            self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": full_name}},
                }
            )
        except Exception as exc:
            logger.info("Sign-up failed for %s: %s", email, exc)
            return _error_message(exc)
        return None

    def sign_out(self) -> str | None:
        """Return None on success, otherwise the error message."""
        try:
            self.client.auth.sign_out()
        except Exception as exc:
            logger.error("Sign-out failed: %s", exc, exc_info=True)
            return _error_message(exc)
        return None

    # ── Auth-state changes ───────────────────────────────────────────────────

    def _queue_stale_cookies(self, cookies: Mapping[str, str]) -> None:
        """
        Queue a cookie write when the handle no longer matches the request cookies.

        Restoring an expired session refreshes it before anyone is subscribed,
        and Supabase rotates the refresh token on every refresh.  The browser
        must get the new pair or its next reload presents a spent token.  A
        pair the backend rejected is cleared instead.
        """
        cookie_tokens = read_session_tokens(cookies)
        session = lookup_session(self.client)
        if session is None:
            if cookie_tokens is not None:
                self._state[COOKIE_SYNC_KEY] = None
            return
        if cookie_tokens != (session.access_token, session.refresh_token):
            logger.info("Session tokens changed while restoring from cookies")
            self._state[COOKIE_SYNC_KEY] = session

    def _on_auth_state_change(self, event, session) -> None:
        logger.info("Auth state changed: %s", event)
        self._profiles.invalidate()
        self._state[COOKIE_SYNC_KEY] = session
        self._rerun()

    def flush_cookies(self, sync: Callable = sync_session_cookies) -> None:
        """
        Write or clear the session cookies queued by the last auth-state change.

        Pages call this once per run after the guard; it is a no-op when
        nothing is pending.
        """
        if COOKIE_SYNC_KEY not in self._state:
            return
        sync(self._state.pop(COOKIE_SYNC_KEY))

    def close(self) -> None:
        """Stop listening for auth-state changes."""
        self._subscription.unsubscribe()


def use_auth(
    state: MutableMapping | None = None,
    client=None,
    rerun: Callable[[], None] = st.rerun,
    cookies: Mapping[str, str] | None = None,
) -> AuthProvider:
    """
    Return the AuthProvider for this UI tree, creating it on first use.

    client defaults to the handle from use_supabase() on the same state, and
    cookies to the ones the handle was restored from (st.context.cookies when
    state is the live session state).
    """
    if cookies is None and state is None:
        cookies = st.context.cookies
    state = _resolve_state(state)
    if AUTH_STATE_KEY not in state:
        if client is None:
            client = use_supabase(state)
        state[AUTH_STATE_KEY] = AuthProvider(client, state, rerun, cookies)
    return state[AUTH_STATE_KEY]
