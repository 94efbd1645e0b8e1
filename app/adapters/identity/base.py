from abc import ABC, abstractmethod
from typing import Sequence

from app.schemas.user import DirectoryUser

MAX_BATCH_SIZE = 100


class AbstractIdentityDirectory(ABC):
	"""Interface for user directories owned by the identity provider."""

	@abstractmethod
	async def get_user(self, user_id: str) -> DirectoryUser | None:
		"""Fetch a single user.

		Args:
			user_id: Identity provider user id.

		Returns:
			DirectoryUser, or None when no user has this id.
		"""
		...

	@abstractmethod
	async def get_user_list(
		self,
		user_ids: Sequence[str],
		*,
		limit: int = MAX_BATCH_SIZE,
	) -> list[DirectoryUser]:
		"""Fetch many users in one call.

		Unknown ids are silently absent from the result.

		Args:
			user_ids: Ids to resolve.
			limit: Maximum number of records returned (at most 100).

		Returns:
			list[DirectoryUser]: Matching users in no particular order.
		"""
		...

	async def close(self) -> None:
		"""Release network resources (no-op by default)."""
		return None
