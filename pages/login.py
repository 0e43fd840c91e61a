"""
pages/login.py
Login and registration page, served at "/login".
Also finishes OAuth sign-ins: the provider redirects back here with ?code=.
"""

import streamlit as st

from starter.clients import get_oauth_provider
from starter.cookies import CODE_VERIFIER_COOKIE, clear_code_verifier, redirect_to_provider
from starter.guard import LOGIN_PATH, guard_page
from starter.providers import use_auth

st.set_page_config(page_title="Starter · Sign In", page_icon="🔐", layout="centered")

auth = use_auth()
guard_page(LOGIN_PATH, auth.client)
auth.flush_cookies()

# ── OAuth callback ────────────────────────────────────────────────────────────
oauth_code = st.query_params.get("code", None)
if isinstance(oauth_code, list):
    oauth_code = oauth_code[0] if oauth_code else None
if oauth_code:
    # Clear first so a failed exchange is not retried on every rerun.
    st.query_params.clear()
    error = auth.exchange_code(oauth_code, st.context.cookies.get(CODE_VERIFIER_COOKIE))
    if error:
        st.error(f"Sign-in with your provider failed: {error}")
        clear_code_verifier()

# The provider reports a denied or failed sign-in as ?error=...&error_description=...
oauth_error = st.query_params.get("error_description", None)
if oauth_error:
    st.query_params.clear()
    st.error(oauth_error)
    clear_code_verifier()

st.title("Sign in")

sign_in_tab, create_account_tab = st.tabs(["Sign In", "Create Account"])

with sign_in_tab:
    email = st.text_input("Email", key="sign_in_email")
    password = st.text_input("Password", type="password", key="sign_in_password")

    if st.button("Sign In", use_container_width=True):
        if not email or not password:
            st.warning("Email and password are required.")
        else:
            error = auth.sign_in_with_password(email, password)
            if error:
                st.error(error)

    st.divider()

    provider = get_oauth_provider()
    if st.button(f"Continue with {provider.title()}", use_container_width=True):
        try:
            url = auth.sign_in_with_oauth(provider)
        except Exception as exc:
            st.error(f"Could not start sign-in: {exc}")
        else:
            redirect_to_provider(url, auth.pending_code_verifier)

with create_account_tab:
    full_name = st.text_input("Full name", key="register_full_name")
    register_email = st.text_input("Email", key="register_email")
    register_password = st.text_input("Password", type="password", key="register_password")
    confirm_password = st.text_input("Confirm password", type="password", key="confirm_password")

    if st.button("Create Account", use_container_width=True):
        if not all([full_name, register_email, register_password, confirm_password]):
            st.warning("All fields are required.")
        elif register_password != confirm_password:
            st.warning("Passwords must match.")
        elif len(register_password) < 8:
            st.warning("Password must be at least 8 characters.")
        else:
            error = auth.sign_up(register_email, register_password, full_name)
            if error:
                st.error(error)
            else:
                st.success(
                    "Account created. Please check your email to confirm your address before signing in."
                )
