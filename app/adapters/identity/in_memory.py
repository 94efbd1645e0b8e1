"""In-memory identity directory.

Stand-in for the hosted user directory in local development and tests.
Users are registered up front; lookups never hit the network.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from app.adapters.identity.base import MAX_BATCH_SIZE, AbstractIdentityDirectory
from app.schemas.user import DirectoryUser


class InMemoryIdentityDirectory(AbstractIdentityDirectory):
    """Directory backed by a dict keyed by user id."""

    def __init__(self, users: Iterable[DirectoryUser] = ()) -> None:
        self._users: dict[str, DirectoryUser] = {}
        for user in users:
            self.add_user(user)

    def add_user(self, user: DirectoryUser) -> None:
        self._users[user.id] = user

    def remove_user(self, user_id: str) -> None:
        self._users.pop(user_id, None)

    async def get_user(self, user_id: str) -> DirectoryUser | None:
        return self._users.get(user_id)

    async def get_user_list(
        self,
        user_ids: Sequence[str],
        *,
        limit: int = MAX_BATCH_SIZE,
    ) -> list[DirectoryUser]:
        ids = list(dict.fromkeys(user_ids))
        found = [self._users[user_id] for user_id in ids if user_id in self._users]
        return found[: min(limit, MAX_BATCH_SIZE)]
