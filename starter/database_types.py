"""
starter/database_types.py
Row types for the public schema.
Generated by `python -m starter.typegen`; do not edit by hand.
"""

from typing import Any, TypedDict


class ProfilesRow(TypedDict):
    id: str
    updated_at: str | None
    username: str | None
    full_name: str | None
    avatar_url: str | None
    website: str | None


TABLES = {
    "profiles": ProfilesRow,
}
