"""
Shared fixtures.

The Supabase client is replaced by MagicMock stand-ins and st.session_state by
a plain dict, so nothing here needs a network connection or a running
Streamlit server.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest


def make_session(user_id: str = "user-1", email: str = "ada@example.com"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=email),
        access_token=f"access-{user_id}",
        refresh_token=f"refresh-{user_id}",
    )


def make_client(session=None, profile_row=None):
    """Return a MagicMock shaped like supabase.Client."""
    client = MagicMock()
    client.auth.get_session.return_value = session
    query = client.table.return_value.select.return_value.eq.return_value.single.return_value
    query.execute.return_value = SimpleNamespace(data=profile_row)
    return client


def profile_query(client):
    """The .execute mock at the end of the profiles query chain."""
    return client.table.return_value.select.return_value.eq.return_value.single.return_value.execute


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def profile_row():
    return {
        "id": "user-1",
        "updated_at": None,
        "username": "ada",
        "full_name": "Ada Lovelace",
        "avatar_url": "https://example.com/ada.png",
        "website": None,
    }
