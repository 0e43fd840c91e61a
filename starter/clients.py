"""
starter/clients.py
Supabase handle factories for the starter.
All access to the backend goes through this module.

Two variants exist and they differ only in where the session cookies come
from:
  create_browser_client()        — ambient cookies of the live Streamlit request
  create_server_client(cookies)  — an explicit cookie mapping supplied by the caller
"""

import logging
import os
from typing import Mapping

import psycopg2
import streamlit as st
from supabase import create_client, Client, ClientOptions
from dotenv import load_dotenv

from starter.cookies import read_session_tokens

load_dotenv()

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when a required secret is missing from both st.secrets and the environment."""


class SessionStorage:
    """
    In-memory auth storage owned by the app rather than by supabase-py.

    Holds whatever the auth client persists (the session, the PKCE code
    verifier) for as long as the handle lives.  Owning it lets the OAuth flow
    carry the verifier across the provider redirect.
    """

    CODE_VERIFIER_SUFFIX = "-code-verifier"

    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def code_verifier(self) -> str | None:
        """Return the PKCE verifier of the OAuth sign-in in progress, if any."""
        for key, value in self._items.items():
            if key.endswith(self.CODE_VERIFIER_SUFFIX):
                return value
        return None


# ─── Private helpers ─────────────────────────────────────────────────────────

def _get_secret(key: str, default: str | None = None) -> str | None:
    """
    Resolve a secret by name.

    Tries st.secrets first (Streamlit Cloud), then falls back to os.environ
    (local development via .env loaded above).  Returns default if the key is
    absent in both sources.
    """
    try:
        return st.secrets[key]
    except Exception:
        return os.environ.get(key, default)


def _require_secret(key: str) -> str:
    value = _get_secret(key)
    if not value:
        raise ConfigurationError(f"{key} is not set in st.secrets or the environment.")
    return value


def _hydrate(client: Client, cookies: Mapping[str, str] | None) -> Client:
    """
    Restore the session carried by the cookie mapping onto the client.

    A missing token pair leaves the client anonymous.  A rejected pair (expired
    refresh token, revoked session) is logged and also leaves it anonymous;
    callers treat that the same as never having signed in.
    """
    tokens = read_session_tokens(cookies or {})
    if tokens is None:
        return client

    access_token, refresh_token = tokens
    try:
        client.auth.set_session(access_token, refresh_token)
    except Exception as exc:
        logger.warning("Could not restore session from cookies: %s", exc)
    return client


# ─── Supabase handles ────────────────────────────────────────────────────────

def get_supabase_client() -> Client:
    """
    Return a Supabase client authenticated with the anon key.

    Intentionally not cached: Auth state is per-session and must not bleed
    between Streamlit sessions or users.  Memoizing a handle for one UI tree
    is the job of starter.providers.  The auth storage is reachable afterwards
    as client.options.storage.  Background token refresh is off: get_session()
    refreshes an expired session on demand, on the script thread.
    """
    url = _require_secret("SUPABASE_URL")
    key = _require_secret("SUPABASE_ANON_KEY")
    return create_client(url, key, options=ClientOptions(
        storage=SessionStorage(),
        flow_type="pkce",
        auto_refresh_token=False,
    ))


def create_browser_client() -> Client:
    """
    Return a handle for code running inside a Streamlit script run.

    Session cookies are read from the request that opened the websocket
    (st.context.cookies), so a reload of the tab keeps the user signed in.
    """
    return _hydrate(get_supabase_client(), st.context.cookies)


def create_server_client(cookies: Mapping[str, str]) -> Client:
    """
    Return a handle for code running outside a script run.

    The caller supplies the cookie mapping of whatever request it is serving.
    """
    return _hydrate(get_supabase_client(), cookies)


def get_site_url() -> str:
    """Return the public base URL of the app, used as the OAuth redirect target."""
    return _get_secret("SITE_URL", "http://localhost:8501").rstrip("/")


def get_oauth_provider() -> str:
    """Return the OAuth provider offered on the login page (github unless configured)."""
    return _get_secret("OAUTH_PROVIDER", "github")


# ─── Direct psycopg2 connection (used by the typegen script) ─────────────────

def get_pg_connection():
    """
    Return a raw psycopg2 connection to Supabase PostgreSQL.

    sslmode is set to 'require' and connect_timeout to 15 seconds.
    The caller is responsible for closing the connection when finished.
    """
    return psycopg2.connect(
        host=_get_secret("DB_HOST"),
        port=_get_secret("DB_PORT", "5432"),
        dbname=_get_secret("DB_NAME", "postgres"),
        user=_get_secret("DB_USER", "postgres"),
        password=_get_secret("DB_PASSWORD"),
        sslmode="require",
        connect_timeout=15,
    )
