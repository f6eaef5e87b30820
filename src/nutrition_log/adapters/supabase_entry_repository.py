"""Supabase repository for log entries."""

from dataclasses import dataclass

from supabase import Client

from nutrition_log.adapters.supabase_support import execute
from nutrition_log.domain.entries import DEFAULT_PORTION, LogEntry
from nutrition_log.errors import PersistenceError
from nutrition_log.services.entries import EntryRepository

_COLUMNS = "entry_id, name, portion, calories, protein, carbs, fat, logged_at_ms"


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for log entries."""

    client: Client

    def list_entries(self, user_id: str) -> list[LogEntry]:
        """Return entries for a user ordered by insertion."""
        response = execute(
            self.client.table("log_entries")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("id", desc=False),
            "list entries",
        )
        return [_parse_row(row) for row in response.data or []]

    def insert_entry(self, user_id: str, entry: LogEntry) -> None:
        """Insert an entry row."""
        response = execute(
            self.client.table("log_entries").insert(
                {
                    "user_id": user_id,
                    "entry_id": entry.id,
                    "name": entry.name,
                    "portion": entry.portion,
                    "calories": entry.calories,
                    "protein": entry.protein,
                    "carbs": entry.carbs,
                    "fat": entry.fat,
                    "logged_at_ms": entry.timestamp,
                }
            ),
            "insert entry",
        )
        if not response.data:
            raise PersistenceError("Failed to create log entry")

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Delete an entry row if it exists."""
        execute(
            self.client.table("log_entries")
            .delete()
            .eq("user_id", user_id)
            .eq("entry_id", entry_id),
            "delete entry",
        )

    def clear(self) -> None:
        """Delete all entry rows."""
        execute(
            self.client.table("log_entries").delete().neq("entry_id", ""),
            "clear entries",
        )


def _parse_row(row: dict[str, object]) -> LogEntry:
    logged_at = row.get("logged_at_ms")
    return LogEntry(
        id=str(row["entry_id"]),
        name=str(row.get("name", "")),
        portion=str(row.get("portion") or DEFAULT_PORTION),
        calories=float(row.get("calories", 0.0)),
        protein=float(row.get("protein", 0.0)),
        carbs=float(row.get("carbs", 0.0)),
        fat=float(row.get("fat", 0.0)),
        timestamp=int(logged_at) if isinstance(logged_at, int | float) else None,
    )
