"""Supabase repository for user profiles."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutrition_log.adapters.supabase_support import execute
from nutrition_log.domain.profiles import UserProfile
from nutrition_log.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for user profiles."""

    client: Client

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile row for a user."""
        response = execute(
            self.client.table("user_profiles")
            .select("user_id, attributes")
            .eq("user_id", user_id)
            .limit(1),
            "get profile",
        )
        if not response.data:
            return None
        attributes = response.data[0].get("attributes")
        return UserProfile(
            user_id=user_id,
            attributes=attributes if isinstance(attributes, dict) else {},
        )

    def save_profile(self, profile: UserProfile) -> None:
        """Upsert the profile row."""
        execute(
            self.client.table("user_profiles").upsert(
                {
                    "user_id": profile.user_id,
                    "attributes": profile.attributes,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="user_id",
            ),
            "save profile",
        )

    def clear(self) -> None:
        """Delete all profile rows."""
        execute(
            self.client.table("user_profiles").delete().neq("user_id", ""),
            "clear profiles",
        )
