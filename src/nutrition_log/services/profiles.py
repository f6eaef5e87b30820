"""Profile store with field-level merge updates."""

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from nutrition_log.domain.profiles import GOALS_KEY, MacroGoals, UserProfile


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the stored profile, if any."""

    def save_profile(self, profile: UserProfile) -> None:
        """Insert or replace the stored profile record."""

    def clear(self) -> None:
        """Delete every profile."""


@dataclass
class ProfileStore:
    """Service for reading and merging user profiles."""

    repository: ProfileRepository

    def get(self, user_id: str) -> UserProfile | None:
        """Return the profile, or None when the user has not onboarded."""
        return self.repository.get_profile(user_id)

    def get_goals(self, user_id: str) -> MacroGoals:
        """Return the user's goals or the defaults."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            return MacroGoals()
        return profile.macro_goals

    def update(self, user_id: str, partial: Mapping[str, object]) -> UserProfile:
        """Merge attributes into the profile, creating it when absent."""
        current = self.repository.get_profile(user_id)
        if current is None:
            base: dict[str, object] = {GOALS_KEY: MacroGoals().to_dict()}
        else:
            base = current.attributes
        merged = merge_attributes(base, partial)
        raw_goals = merged.get(GOALS_KEY)
        merged[GOALS_KEY] = MacroGoals.from_dict(
            raw_goals if isinstance(raw_goals, dict) else None
        ).to_dict()
        profile = UserProfile(user_id=user_id, attributes=merged)
        self.repository.save_profile(profile)
        return profile

    def clear_all(self) -> None:
        """Remove every stored profile."""
        self.repository.clear()


def merge_attributes(
    base: Mapping[str, object], partial: Mapping[str, object]
) -> dict[str, object]:
    """Return base updated with partial, merging nested mappings key by key."""
    merged = copy.deepcopy(dict(base))
    for key, value in partial.items():
        if isinstance(value, Mapping):
            existing = merged.get(key)
            nested = existing if isinstance(existing, Mapping) else {}
            merged[key] = merge_attributes(nested, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
