"""
Password reuse prevention. The last five hashes per staff member are kept.
"""

from __future__ import annotations

import logging

from library_staff.domain.ports import PasswordHistoryRepository
from library_staff.domain.staff import PasswordHistory
from library_staff.domain.value_objects import StaffId

HISTORY_COUNT = 5

logger = logging.getLogger(__name__)


class PasswordHistoryService:
    def __init__(self, repository: PasswordHistoryRepository) -> None:
        self._repository = repository

    async def is_reused(self, staff_id: StaffId, candidate: str) -> bool:
        """True when ``candidate`` matches any of the newest five stored hashes."""
        recent = await self._repository.find_recent(staff_id, HISTORY_COUNT)
        return any(entry.matches(candidate) for entry in recent)

    async def add_to_history(self, staff_id: StaffId, password_hash: str) -> None:
        await self._repository.add(PasswordHistory.create(staff_id, password_hash))
        removed = await self._repository.prune(staff_id, HISTORY_COUNT)
        if removed == 0:
            logger.debug("Password history for %s within limit, nothing pruned", staff_id.value)
