from __future__ import annotations

from typing import Optional, Protocol

from .model import Profile


class ProfileRepository(Protocol):
    def get_profile(self, profile_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def upsert_profile(self, profile: Profile) -> Profile:
        """Insert or replace the profile keyed by its id."""

        raise NotImplementedError
