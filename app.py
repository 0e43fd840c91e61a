"""
app.py
Supabase Streamlit Starter, index page.
Entry point and the page served at "/".  Signed-out visitors are sent to the
login page by the session guard before anything renders.
"""

import logging

import streamlit as st

from starter.guard import ROOT_PATH, guard_page
from starter.profiles import ProfileStatus
from starter.providers import use_auth

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

st.set_page_config(
    page_title = "Starter",
    page_icon  = "🔐",
    layout     = "centered",
)

# ── Guard ─────────────────────────────────────────────────────────────────────
auth = use_auth()
guard_page(ROOT_PATH, auth.client)
auth.flush_cookies()

# ── Navigation bar ────────────────────────────────────────────────────────────
user = auth.user

_, nav_right = st.columns([3, 2])
with nav_right:
    if user is not None:
        st.markdown(f"Hey, {user.email}!")
        if st.button("Sign Out", key="nav_signout", use_container_width=True):
            error = auth.sign_out()
            if error:
                st.error(f"Could not sign out: {error}")
    else:
        st.page_link("pages/login.py", label="Login")

st.divider()

# ── Profile ───────────────────────────────────────────────────────────────────
if user is not None:
    result = auth.profile
    if result.status is ProfileStatus.SUCCESS:
        profile = result.profile
        if profile.avatar_url:
            st.image(profile.avatar_url, width=72)
        st.subheader(profile.display_name or user.email)
        if profile.website:
            st.caption(profile.website)
    elif result.status is ProfileStatus.ERROR:
        st.warning("Your profile could not be loaded. Try signing out and back in.")
    else:
        st.caption("Loading profile…")
