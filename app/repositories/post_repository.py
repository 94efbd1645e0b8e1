"""Data access for the ``posts`` table."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post


class PostRepository:
    """Thin query layer over an AsyncSession.

    The repository flushes but never commits; the session owner (the
    ``get_db`` dependency or a prefetch context) decides the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_many(
        self,
        *,
        limit: int = 100,
        author_id: str | None = None,
    ) -> list[Post]:
        """Return the newest posts first, optionally for one author only."""
        stmt = select(Post).order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)
        if author_id is not None:
            stmt = stmt.where(Post.author_id == author_id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, *, author_id: str, content: str) -> Post:
        """Insert a post and return it with generated columns populated."""
        post = Post(author_id=author_id, content=content)
        self.session.add(post)
        await self.session.flush()
        await self.session.refresh(post)
        return post
