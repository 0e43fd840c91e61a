"""
starter/guard.py
Session guard for every page of the starter.

Each Streamlit script run is treated as one inbound request.  The guard looks
up the session on the handle it is given and switches page when the requested
path does not match the caller's authentication state:

  no session  + "/"       → "/login"
  session     + "/login"  → "/"
  anything else           → pass through
"""

import logging
from typing import Callable

import streamlit as st

logger = logging.getLogger(__name__)

ROOT_PATH = "/"
LOGIN_PATH = "/login"

# Page script that serves each guarded path, relative to the main script.
PAGE_SCRIPTS = {
    ROOT_PATH:  "app.py",
    LOGIN_PATH: "pages/login.py",
}


def resolve_redirect(path: str, has_session: bool) -> str | None:
    """Return the path to redirect to, or None when the request may proceed."""
    if not has_session and path == ROOT_PATH:
        return LOGIN_PATH
    if has_session and path == LOGIN_PATH:
        return ROOT_PATH
    return None


def lookup_session(client):
    """
    Return the client's current session, or None.

    Any failure during the lookup counts as "no session"; the guard never
    retries and never lets a backend error through to the page.
    """
    try:
        return client.auth.get_session()
    except Exception as exc:
        logger.warning("Session lookup failed, treating request as signed out: %s", exc)
        return None


def check_request(path: str, client) -> str | None:
    """Look up the session and apply the redirect rule for path."""
    target = resolve_redirect(path, lookup_session(client) is not None)
    if target == ROOT_PATH:
        logger.info("Already signed in, redirecting %s to %s", path, target)
    elif target is not None:
        logger.debug("No session, redirecting %s to %s", path, target)
    return target


def guard_page(path: str, client, switch_page: Callable[[str], None] | None = None) -> None:
    """
    Guard for the page serving path.

    Call at the top of a page before anything is rendered.  When a redirect is
    due, switch_page stops the current run and Streamlit renders the target
    page instead.  switch_page defaults to st.switch_page.
    """
    target = check_request(path, client)
    if target is not None:
        (switch_page or st.switch_page)(PAGE_SCRIPTS[target])
