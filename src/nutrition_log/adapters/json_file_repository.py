"""Local JSON file storage for entries and profiles."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from nutrition_log.domain.entries import LogEntry
from nutrition_log.domain.profiles import UserProfile
from nutrition_log.errors import PersistenceError
from nutrition_log.services.entries import EntryRepository
from nutrition_log.services.profiles import ProfileRepository

_ENTRIES = "entries"
_PROFILES = "profiles"


def _empty_document() -> dict[str, dict[str, object]]:
    return {_ENTRIES: {}, _PROFILES: {}}


@dataclass
class JsonFileStore:
    """Single JSON document holding both collections, keyed by user id."""

    path: Path

    def read(self) -> dict[str, dict[str, object]]:
        """Load the document, or an empty one when the file does not exist."""
        if not self.path.exists():
            return _empty_document()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Failed to read {self.path}") from exc
        if not isinstance(raw, dict):
            raise PersistenceError(f"Unexpected document in {self.path}")
        document = _empty_document()
        for key in (_ENTRIES, _PROFILES):
            section = raw.get(key)
            if isinstance(section, dict):
                document[key] = section
        return document

    def write(self, document: dict[str, dict[str, object]]) -> None:
        """Replace the document atomically."""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            payload = json.dumps(
                document, ensure_ascii=False, indent=2, allow_nan=False
            )
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Failed to write {self.path}") from exc


@dataclass
class JsonFileEntryRepository(EntryRepository):
    """Entry collection stored in a JSON file."""

    store: JsonFileStore

    def list_entries(self, user_id: str) -> list[LogEntry]:
        """Return the user's entries in insertion order."""
        rows = self.store.read()[_ENTRIES].get(user_id) or []
        try:
            return [LogEntry.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Corrupt entries for user {user_id}") from exc

    def insert_entry(self, user_id: str, entry: LogEntry) -> None:
        """Append an entry to the user's list."""
        document = self.store.read()
        rows = list(document[_ENTRIES].get(user_id) or [])
        rows.append(entry.to_dict())
        document[_ENTRIES][user_id] = rows
        self.store.write(document)

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Remove the entry with the given id if present."""
        document = self.store.read()
        rows = document[_ENTRIES].get(user_id) or []
        kept = [row for row in rows if row.get("id") != entry_id]
        if len(kept) == len(rows):
            return
        document[_ENTRIES][user_id] = kept
        self.store.write(document)

    def clear(self) -> None:
        """Drop every user's entries."""
        document = self.store.read()
        document[_ENTRIES] = {}
        self.store.write(document)


@dataclass
class JsonFileProfileRepository(ProfileRepository):
    """Profile collection stored in a JSON file."""

    store: JsonFileStore

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the stored profile, if any."""
        attributes = self.store.read()[_PROFILES].get(user_id)
        if not isinstance(attributes, dict):
            return None
        return UserProfile(user_id=user_id, attributes=attributes)

    def save_profile(self, profile: UserProfile) -> None:
        """Store the profile record."""
        document = self.store.read()
        document[_PROFILES][profile.user_id] = profile.attributes
        self.store.write(document)

    def clear(self) -> None:
        """Drop every profile."""
        document = self.store.read()
        document[_PROFILES] = {}
        self.store.write(document)
