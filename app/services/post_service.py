"""Post service orchestrating the store, the identity directory and the limiter.

This service is the business logic behind the three post procedures:
- Listing the newest posts, globally or for one author
- Enriching posts with their authors' public profiles (all-or-nothing)
- Creating posts for the signed-in caller behind a per-user rate limit
"""

import logging
from typing import Sequence

from app.adapters.identity.base import MAX_BATCH_SIZE, AbstractIdentityDirectory
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.config import settings
from app.core.errors import AuthenticationAppError, InternalAppError
from app.core.rate_limit import enforce_rate_limit
from app.models.post import Post
from app.repositories.post_repository import PostRepository
from app.schemas.post import FullPost, PostRead
from app.schemas.user import AuthorProfile

logger = logging.getLogger(__name__)


def _author_not_found(author_id: str) -> InternalAppError:
    return InternalAppError(
        code="internal_server_error",
        message="Author for post not found",
        details={"user_id": author_id},
    )


class PostService:
    """Service behind the ``posts.*`` procedures.

    Attributes:
        repository: Query layer over the posts table.
        identity: Directory used to resolve authors.
        limiter: Sliding-window limiter gating post creation.
    """

    def __init__(
        self,
        repository: PostRepository,
        identity: AbstractIdentityDirectory,
        limiter: AbstractRateLimiter,
    ) -> None:
        self.repository = repository
        self.identity = identity
        self.limiter = limiter

    async def add_user_data_to_posts(self, posts: Sequence[Post]) -> list[FullPost]:
        """Pair every post with its author's public profile.

        Authors are resolved in a single batch call. If any author is missing
        from the directory the whole call fails; partial listings are never
        returned.

        Args:
            posts: Posts to enrich, in the order they should be returned.

        Returns:
            FullPost list in the same order as ``posts``.

        Raises:
            InternalAppError: If an author cannot be resolved.
        """
        if not posts:
            return []

        author_ids = list(dict.fromkeys(post.author_id for post in posts))
        users = await self.identity.get_user_list(author_ids, limit=MAX_BATCH_SIZE)
        profiles = {user.id: AuthorProfile.from_user(user) for user in users}

        full_posts: list[FullPost] = []
        for post in posts:
            author = profiles.get(post.author_id)
            if author is None:
                logger.error(
                    "posts.author_not_found",
                    extra={"post_id": post.id, "author_id": post.author_id},
                )
                raise _author_not_found(post.author_id)
            full_posts.append(FullPost(post=PostRead.model_validate(post), author=author))

        return full_posts

    async def get_all(self) -> list[FullPost]:
        """Newest posts across all authors, enriched with author profiles."""
        posts = await self.repository.find_many(limit=settings.app.page_size)
        return await self.add_user_data_to_posts(posts)

    async def get_posts_by_user_id(self, user_id: str) -> list[FullPost]:
        """Newest posts of one author.

        Raises:
            InternalAppError: If the directory has no user with this id.
        """
        author = await self.identity.get_user(user_id)
        if author is None:
            logger.warning("posts.author_lookup_failed", extra={"author_id": user_id})
            raise _author_not_found(user_id)

        posts = await self.repository.find_many(
            limit=settings.app.page_size,
            author_id=author.id,
        )
        return await self.add_user_data_to_posts(posts)

    async def create(self, author_id: str | None, content: str) -> PostRead:
        """Create a post for the signed-in caller.

        ``content`` is expected to be validated already (see PostCreate).

        Args:
            author_id: Caller's user id taken from the session, never from input.
            content: Post text.

        Returns:
            The persisted post, without author enrichment.

        Raises:
            AuthenticationAppError: If there is no signed-in caller.
            RateLimitAppError: If the caller exhausted their posting budget.
        """
        if not author_id:
            raise AuthenticationAppError(
                code="unauthorized",
                message="You must be signed in to do that",
            )

        await enforce_rate_limit(self.limiter, author_id)

        post = await self.repository.create(author_id=author_id, content=content)
        logger.info(
            "posts.created",
            extra={"post_id": post.id, "author_id": author_id, "length": len(content)},
        )
        return PostRead.model_validate(post)
