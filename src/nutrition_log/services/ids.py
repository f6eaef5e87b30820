"""Entry id generation."""

from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4


class IdGenerator(Protocol):
    """Source of unlikely-to-collide entry ids."""

    def new_id(self) -> str:
        """Return a fresh id."""


@dataclass
class UuidIdGenerator(IdGenerator):
    """Generates random UUID4 hex ids."""

    def new_id(self) -> str:
        """Return a fresh UUID4 hex string."""
        return uuid4().hex
