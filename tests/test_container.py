"""Tests for container wiring."""

import pytest

from nutrition_log.adapters.json_file_repository import JsonFileEntryRepository
from nutrition_log.config import Settings
from nutrition_log.containers import build_container, build_repositories


def test_build_container_defaults_to_local_file_backend(settings: Settings) -> None:
    container = build_container(settings)

    assert isinstance(container.entry_store.repository, JsonFileEntryRepository)
    assert container.notification_bus is container.entry_store.notification_bus
    assert container.data_reset_service.entry_store is container.entry_store


def test_supabase_backend_requires_credentials(settings: Settings) -> None:
    settings.storage_backend = "supabase"

    with pytest.raises(ValueError):
        build_repositories(settings)


def test_unknown_backend_is_rejected(settings: Settings) -> None:
    settings.storage_backend = "sqlite"

    with pytest.raises(ValueError):
        build_repositories(settings)
