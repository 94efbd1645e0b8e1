from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.identity.base import AbstractIdentityDirectory
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.database import get_db
from app.core.identity import get_identity_directory
from app.core.rate_limit import get_rate_limiter
from app.repositories.post_repository import PostRepository
from app.services.post_service import PostService


def get_post_service(
    session: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[AbstractIdentityDirectory, Depends(get_identity_directory)],
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> PostService:
    return PostService(PostRepository(session), identity, limiter)


PostServiceDep = Annotated[PostService, Depends(get_post_service)]
