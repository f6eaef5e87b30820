"""Domain models for logged food entries."""

from dataclasses import dataclass, field
from datetime import date

DEFAULT_PORTION = "1 serving"
MACRO_FIELDS = ("calories", "protein", "carbs", "fat")


class DuplicateEntryError(ValueError):
    """Raised when an entry id already exists in a user's entry set."""


@dataclass(frozen=True)
class LogEntry:
    """One recorded food intake event."""

    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    portion: str = DEFAULT_PORTION
    timestamp: int | None = None

    def __post_init__(self) -> None:
        for name in MACRO_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable representation."""
        return {
            "id": self.id,
            "name": self.name,
            "portion": self.portion,
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, row: dict[str, object]) -> "LogEntry":
        """Build an entry from a stored mapping."""
        timestamp = row.get("timestamp")
        return cls(
            id=str(row["id"]),
            name=str(row.get("name", "")),
            portion=str(row.get("portion") or DEFAULT_PORTION),
            calories=float(row.get("calories", 0.0)),
            protein=float(row.get("protein", 0.0)),
            carbs=float(row.get("carbs", 0.0)),
            fat=float(row.get("fat", 0.0)),
            timestamp=int(timestamp) if isinstance(timestamp, int | float) else None,
        )


@dataclass(frozen=True)
class MacroTotals:
    """Summed macros over a set of entries."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def __add__(self, other: "MacroTotals") -> "MacroTotals":
        return MacroTotals(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )


@dataclass(frozen=True)
class DailyMacros:
    """Macro totals for one calendar day."""

    day: date
    totals: MacroTotals
    entry_count: int = 0


@dataclass(frozen=True)
class BatchFailure:
    """An item of a batch that could not be persisted."""

    index: int
    entry: LogEntry
    error: str


@dataclass(frozen=True)
class BatchResult:
    """Outcome of adding several entries in one logical action."""

    added: list[LogEntry] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """Return True when every item was persisted."""
        return not self.failed
