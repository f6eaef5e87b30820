"""Domain models for user profiles and goals."""

from dataclasses import dataclass, field

GOALS_KEY = "macroGoals"


@dataclass(frozen=True)
class MacroGoals:
    """Daily macro targets."""

    calories: float = 2000
    protein: float = 150
    carbs: float = 250
    fat: float = 65

    def __post_init__(self) -> None:
        for name in ("calories", "protein", "carbs", "fat"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} goal must be non-negative")

    def to_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, object] | None) -> "MacroGoals":
        """Build goals from a stored mapping; missing or null keys use defaults."""
        defaults = cls()
        raw = raw or {}
        return cls(
            calories=_goal_value(raw, "calories", defaults.calories),
            protein=_goal_value(raw, "protein", defaults.protein),
            carbs=_goal_value(raw, "carbs", defaults.carbs),
            fat=_goal_value(raw, "fat", defaults.fat),
        )


@dataclass(frozen=True)
class UserProfile:
    """Profile record for one user."""

    user_id: str
    attributes: dict[str, object] = field(default_factory=dict)

    @property
    def macro_goals(self) -> MacroGoals:
        """Return stored goals, falling back to defaults."""
        raw = self.attributes.get(GOALS_KEY)
        return MacroGoals.from_dict(raw if isinstance(raw, dict) else None)


def _goal_value(raw: dict[str, object], name: str, default: float) -> float:
    value = raw.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} goal must be a number")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} goal must be a number") from exc
