"""Server-side helpers for pre-rendering pages.

A page renderer can run the same procedures the API serves, without an HTTP
round trip and without a signed-in user, then embed the results in the page:

    helpers = generate_ss_helper()
    await helpers.prefetch("posts.getPostsByUserId", {"id": user_id})
    state = helpers.dehydrate()   # superjson payload, dates preserved

The client hydrates its query cache from ``state`` and skips the first fetch.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.identity.base import AbstractIdentityDirectory
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.database import get_session_factory
from app.core.identity import get_identity_directory
from app.core.rate_limit import get_rate_limiter
from app.repositories.post_repository import PostRepository
from app.services.post_service import PostService
from app.services.procedures import call_procedure, get_procedure
from app.utils import superjson

logger = logging.getLogger(__name__)


@dataclass
class _QueryEntry:
    path: str
    input: Any
    data: Any


def _query_hash(path: str, raw_input: Any) -> str:
    return json.dumps([path, raw_input], sort_keys=True, default=str)


class ServerSideHelpers:
    """Invocation context bound to the store with no authenticated user.

    Attributes:
        current_user_id: Always None; private procedures reject this context.
    """

    current_user_id: str | None = None

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        identity: AbstractIdentityDirectory,
        limiter: AbstractRateLimiter,
        *,
        serialize: Callable[[Any], dict[str, Any]] = superjson.serialize,
    ) -> None:
        self._session_factory = session_factory
        self._identity = identity
        self._limiter = limiter
        self._serialize = serialize
        self._queries: dict[str, _QueryEntry] = {}

    async def fetch(self, path: str, raw_input: Any = None) -> Any:
        """Run a procedure and return its result.

        Query results are kept for ``dehydrate``. Errors propagate.
        """
        procedure = get_procedure(path)

        async with self._session_factory() as session:
            service = PostService(PostRepository(session), self._identity, self._limiter)
            try:
                result = await call_procedure(
                    service,
                    path,
                    raw_input,
                    current_user_id=self.current_user_id,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        if procedure.kind == "query":
            self._queries[_query_hash(path, raw_input)] = _QueryEntry(path, raw_input, result)
        return result

    async def prefetch(self, path: str, raw_input: Any = None) -> None:
        """Like ``fetch`` but never raises.

        A failed query is logged and left out of the dehydrated state so the
        client fetches it again itself.
        """
        try:
            await self.fetch(path, raw_input)
        except Exception as exc:
            logger.warning(
                "prefetch.failed",
                extra={
                    "procedure": path,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )

    def dehydrate(self) -> dict[str, Any]:
        """Serialize every successful query for embedding in a page."""
        queries = [
            {
                "queryKey": [
                    entry.path.split("."),
                    {"input": entry.input, "type": "query"},
                ],
                "state": {"data": entry.data, "status": "success"},
            }
            for entry in self._queries.values()
        ]
        return self._serialize({"mutations": [], "queries": queries})


def generate_ss_helper() -> ServerSideHelpers:
    """Build helpers from the process-wide store, directory and limiter."""
    return ServerSideHelpers(
        session_factory=get_session_factory(),
        identity=get_identity_directory(),
        limiter=get_rate_limiter(),
    )
