"""Identity directory adapter for a Clerk-compatible Backend API."""

import logging
from typing import Any, Sequence
from urllib.parse import quote

import httpx

from app.adapters.identity.base import MAX_BATCH_SIZE, AbstractIdentityDirectory
from app.schemas.user import DirectoryUser

logger = logging.getLogger(__name__)


class ClerkIdentityDirectory(AbstractIdentityDirectory):
    """Resolve users through the provider's REST Backend API.

    Uses one pooled ``httpx.AsyncClient`` for the lifetime of the process.
    Transport and non-404 HTTP errors propagate unchanged to the caller.
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.clerk.com",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            secret_key: Backend API secret key, sent as a bearer token.
            base_url: API root; ``/v1`` is appended.
            timeout_seconds: Per-request timeout.
            transport: Optional transport override (tests use MockTransport).
        """
        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/v1",
            headers={"Authorization": f"Bearer {secret_key}"},
            timeout=httpx.Timeout(timeout_seconds, connect=3.0),
            transport=transport,
        )

    async def get_user(self, user_id: str) -> DirectoryUser | None:
        # Dot segments would be resolved away by URL normalisation.
        if not user_id or user_id in (".", ".."):
            return None

        # The id is sent as one opaque path segment.
        response = await self.client.get(f"/users/{quote(user_id, safe='')}")
        if response.status_code == 404:
            logger.info("identity.user_not_found", extra={"user_id": user_id})
            return None
        response.raise_for_status()

        return DirectoryUser.model_validate(response.json())

    async def get_user_list(
        self,
        user_ids: Sequence[str],
        *,
        limit: int = MAX_BATCH_SIZE,
    ) -> list[DirectoryUser]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return []

        params: list[tuple[str, Any]] = [("user_id", user_id) for user_id in ids]
        params.append(("limit", min(limit, MAX_BATCH_SIZE)))

        response = await self.client.get("/users", params=params)
        response.raise_for_status()

        payload = response.json()
        # Newer API versions wrap lists as {"data": [...], "total_count": n}
        if isinstance(payload, dict):
            payload = payload.get("data", [])

        users = [DirectoryUser.model_validate(item) for item in payload]
        logger.debug(
            "identity.user_list_fetched",
            extra={"requested": len(ids), "returned": len(users)},
        )
        return users

    async def close(self) -> None:
        await self.client.aclose()
