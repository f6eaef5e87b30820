"""Shared test fixtures."""

import itertools
from dataclasses import dataclass, field

import pytest

from nutrition_log.config import Settings
from nutrition_log.containers import AppContainer, build_container
from nutrition_log.domain.entries import LogEntry
from nutrition_log.domain.profiles import UserProfile
from nutrition_log.errors import PersistenceError
from nutrition_log.services.entries import EntryRepository
from nutrition_log.services.ids import IdGenerator
from nutrition_log.services.profiles import ProfileRepository


@dataclass
class InMemoryEntryRepository(EntryRepository):
    """In-memory entry repository for tests."""

    entries: dict[str, list[LogEntry]] = field(default_factory=dict)
    fail_names: set[str] = field(default_factory=set)
    fail_reads: bool = False
    reads: int = 0

    def list_entries(self, user_id: str) -> list[LogEntry]:
        self.reads += 1
        if self.fail_reads:
            raise PersistenceError("storage unavailable")
        return list(self.entries.get(user_id, []))

    def insert_entry(self, user_id: str, entry: LogEntry) -> None:
        if entry.name in self.fail_names:
            raise PersistenceError("quota exceeded")
        self.entries.setdefault(user_id, []).append(entry)

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        self.entries[user_id] = [
            entry for entry in self.entries.get(user_id, []) if entry.id != entry_id
        ]

    def clear(self) -> None:
        self.entries.clear()


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[str, UserProfile] = field(default_factory=dict)
    fail_writes: bool = False

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self.profiles.get(user_id)

    def save_profile(self, profile: UserProfile) -> None:
        if self.fail_writes:
            raise PersistenceError("storage unavailable")
        self.profiles[profile.user_id] = profile

    def clear(self) -> None:
        self.profiles.clear()


@dataclass
class SequentialIdGenerator(IdGenerator):
    """Predictable ids for assertions."""

    counter: itertools.count = field(default_factory=lambda: itertools.count(1))

    def new_id(self) -> str:
        return f"entry-{next(self.counter)}"


def make_entry(entry_id: str, name: str = "Oats", **overrides: object) -> LogEntry:
    values: dict[str, object] = {
        "calories": 150,
        "protein": 5,
        "carbs": 27,
        "fat": 3,
        "timestamp": 1717243200000,
    }
    values.update(overrides)
    return LogEntry(id=entry_id, name=name, **values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        admin_token="admin-token",
        data_file=tmp_path / "nutrition_log.json",
    )


@pytest.fixture
def entry_repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def container(
    settings: Settings,
    entry_repository: InMemoryEntryRepository,
    profile_repository: InMemoryProfileRepository,
) -> AppContainer:
    built = build_container(
        settings,
        entry_repository=entry_repository,
        profile_repository=profile_repository,
    )
    built.entry_store.id_generator = SequentialIdGenerator()
    return built
