"""Pydantic models for HTTP payloads."""

from pydantic import BaseModel, ConfigDict, Field


class EntryIn(BaseModel):
    """Food item submitted for logging."""

    name: str = Field(min_length=1)
    portion: str | None = None
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    timestamp: int | None = Field(default=None, ge=0)


class EntryBatchIn(BaseModel):
    """One logging action, possibly with several items."""

    items: list[EntryIn] = Field(min_length=1)


class MacroGoalsPatch(BaseModel):
    """Partial macro goals."""

    calories: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    carbs: float | None = Field(default=None, ge=0)
    fat: float | None = Field(default=None, ge=0)


class ProfileUpdate(BaseModel):
    """Partial profile attributes; unknown fields are stored as given."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    macro_goals: MacroGoalsPatch | None = Field(default=None, alias="macroGoals")


class ClearRequest(BaseModel):
    """Confirmation for erasing all data."""

    confirm: bool = False
