"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from nutrition_log.adapters.json_file_repository import (
    JsonFileEntryRepository,
    JsonFileProfileRepository,
    JsonFileStore,
)
from nutrition_log.adapters.supabase_entry_repository import SupabaseEntryRepository
from nutrition_log.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_log.config import Settings
from nutrition_log.services.data_reset import DataResetService
from nutrition_log.services.entries import EntryRepository, EntryStore
from nutrition_log.services.notifications import NotificationBus
from nutrition_log.services.profiles import ProfileRepository, ProfileStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    entry_store: EntryStore
    profile_store: ProfileStore
    notification_bus: NotificationBus
    data_reset_service: DataResetService


def build_repositories(
    settings: Settings,
) -> tuple[EntryRepository, ProfileRepository]:
    """Create entry and profile repositories for the configured backend."""
    if settings.storage_backend == "local":
        store = JsonFileStore(settings.data_file)
        return JsonFileEntryRepository(store), JsonFileProfileRepository(store)
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "supabase_url and supabase_service_key are required "
                "for the supabase storage backend"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseEntryRepository(client), SupabaseProfileRepository(client)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def build_container(
    settings: Settings | None = None,
    entry_repository: EntryRepository | None = None,
    profile_repository: ProfileRepository | None = None,
) -> AppContainer:
    """Create the dependency container, optionally with injected repositories."""
    resolved_settings = settings or Settings()
    if entry_repository is None or profile_repository is None:
        default_entries, default_profiles = build_repositories(resolved_settings)
        entry_repository = entry_repository or default_entries
        profile_repository = profile_repository or default_profiles
    notification_bus = NotificationBus(entry_repository)
    entry_store = EntryStore(
        repository=entry_repository,
        notification_bus=notification_bus,
    )
    profile_store = ProfileStore(profile_repository)
    data_reset_service = DataResetService(
        entry_store=entry_store,
        profile_store=profile_store,
    )

    return AppContainer(
        settings=resolved_settings,
        entry_store=entry_store,
        profile_store=profile_store,
        notification_bus=notification_bus,
        data_reset_service=data_reset_service,
    )
