"""
starter/profiles.py
Profile lookup for the signed-in user.

A fetch result is always one of three states so callers can tell a failed
lookup apart from one that has not happened yet:
  NOT_STARTED  no fetch for the current session
  ERROR        the lookup failed; error holds the message
  SUCCESS      profile holds the row
"""

import logging
from dataclasses import dataclass
from enum import Enum

from starter.database_types import ProfilesRow

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"


class ProfileStatus(str, Enum):
    NOT_STARTED = "not_started"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class Profile:
    """Display attributes of a user, one row of the profiles table."""

    id: str
    full_name: str | None = None
    avatar_url: str | None = None
    username: str | None = None
    website: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: ProfilesRow) -> "Profile":
        return cls(
            id=row["id"],
            full_name=row.get("full_name"),
            avatar_url=row.get("avatar_url"),
            username=row.get("username"),
            website=row.get("website"),
            updated_at=row.get("updated_at"),
        )

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or ""


@dataclass(frozen=True)
class ProfileResult:
    status: ProfileStatus
    user_id: str | None = None
    profile: Profile | None = None
    error: str | None = None

    @classmethod
    def not_started(cls) -> "ProfileResult":
        return cls(ProfileStatus.NOT_STARTED)

    @classmethod
    def failed(cls, user_id: str, error: str) -> "ProfileResult":
        return cls(ProfileStatus.ERROR, user_id=user_id, error=error)

    @classmethod
    def loaded(cls, user_id: str, profile: Profile) -> "ProfileResult":
        return cls(ProfileStatus.SUCCESS, user_id=user_id, profile=profile)


def fetch_profile(client, user_id: str) -> ProfileResult:
    """
    Read the profiles row whose id is user_id.

    Never raises.  Any backend error, including a missing row, is logged and
    returned as an ERROR result.
    """
    try:
        response = (
            client.table(PROFILES_TABLE)
            .select("*")
            .eq("id", user_id)
            .single()
            .execute()
        )
    except Exception as exc:
        logger.error("Profile fetch failed for user %s: %s", user_id, exc)
        return ProfileResult.failed(user_id, str(exc))

    if not response.data:
        logger.error("Profile fetch for user %s returned no row", user_id)
        return ProfileResult.failed(user_id, "Profile not found.")
    return ProfileResult.loaded(user_id, Profile.from_row(response.data))


class ProfileCache:
    """
    The current user's profile, fetched at most once per session user id.

    get() with the same user id returns the cached result without touching
    the backend, including a cached ERROR.  Only invalidate() or a different
    user id leads to a new fetch.
    """

    def __init__(self, fetch=fetch_profile):
        self._fetch = fetch
        self._result = ProfileResult.not_started()

    @property
    def result(self) -> ProfileResult:
        return self._result

    def get(self, client, user_id: str | None) -> ProfileResult:
        if user_id is None:
            self._result = ProfileResult.not_started()
        elif self._result.status is ProfileStatus.NOT_STARTED or self._result.user_id != user_id:
            self._result = self._fetch(client, user_id)
        return self._result

    def invalidate(self) -> None:
        self._result = ProfileResult.not_started()
