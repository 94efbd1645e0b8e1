from typing import Annotated

from fastapi import APIRouter, Query, status

from app.api.dependencies import PostServiceDep
from app.core.auth import CurrentUserId
from app.schemas.post import FullPost, PostCreate, PostRead

router = APIRouter(tags=["Posts"])


@router.get(
    "/posts.getAll",
    response_model=list[FullPost],
    operation_id="posts.getAll",
)
async def get_all(service: PostServiceDep) -> list[FullPost]:
    """List the 100 newest posts with their authors.

    Returns:
        list[FullPost]: Posts ordered by creation time, newest first.

    Raises:
        InternalAppError: 500 if any author cannot be resolved.
    """
    return await service.get_all()


@router.get(
    "/posts.getPostsByUserId",
    response_model=list[FullPost],
    operation_id="posts.getPostsByUserId",
)
async def get_posts_by_user_id(
    service: PostServiceDep,
    user_id: Annotated[
        str, Query(alias="id", description="Identity provider user id of the author.")
    ],
) -> list[FullPost]:
    """List the 100 newest posts of one author.

    Raises:
        InternalAppError: 500 if the user does not exist.
    """
    return await service.get_posts_by_user_id(user_id)


@router.post(
    "/posts.create",
    response_model=PostRead,
    status_code=status.HTTP_200_OK,
    operation_id="posts.create",
)
async def create(
    payload: PostCreate,
    user_id: CurrentUserId,
    service: PostServiceDep,
) -> PostRead:
    """Create a post as the signed-in user.

    The author is the session's user; clients cannot choose it.

    Raises:
        AuthenticationAppError: 401 without a valid session.
        RateLimitAppError: 429 after 3 posts within a rolling minute.
    """
    return await service.create(user_id, payload.content)
