"""Irreversible erase of all persisted state."""

import logging
from dataclasses import dataclass

from nutrition_log.services.entries import EntryStore
from nutrition_log.services.profiles import ProfileStore

_logger = logging.getLogger(__name__)


@dataclass
class DataResetService:
    """Clears entries and profiles for every user."""

    entry_store: EntryStore
    profile_store: ProfileStore

    async def clear_all_data(self, *, confirm: bool = False) -> None:
        """Erase all persisted data. Requires confirm=True.

        Entries go first so that a storage failure leaves profiles intact and
        the call can simply be retried.
        """
        if not confirm:
            raise ValueError("clear_all_data requires explicit confirmation")
        await self.entry_store.clear_all()
        self.profile_store.clear_all()
        _logger.warning("All persisted nutrition data cleared")
