"""Registry of the ``posts.*`` procedures for callers outside HTTP routing.

The HTTP routes bind each procedure to FastAPI (validation, auth and
response models come from the framework). Server-side callers such as the
prefetch helper go through ``call_procedure`` instead, which applies the same
input models and the same service methods.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

from pydantic import BaseModel, ValidationError

from app.core.errors import ValidationAppError
from app.schemas.post import PostCreate, PostsByUserQuery
from app.services.post_service import PostService

Resolver = Callable[[PostService, "str | None", Any], Awaitable[Any]]


@dataclass(frozen=True)
class Procedure:
    """A named operation with its input model and resolver."""

    path: str
    kind: Literal["query", "mutation"]
    input_model: type[BaseModel] | None
    resolver: Resolver


PROCEDURES: dict[str, Procedure] = {
    "posts.getAll": Procedure(
        path="posts.getAll",
        kind="query",
        input_model=None,
        resolver=lambda service, user_id, data: service.get_all(),
    ),
    "posts.getPostsByUserId": Procedure(
        path="posts.getPostsByUserId",
        kind="query",
        input_model=PostsByUserQuery,
        resolver=lambda service, user_id, data: service.get_posts_by_user_id(data.id),
    ),
    "posts.create": Procedure(
        path="posts.create",
        kind="mutation",
        input_model=PostCreate,
        resolver=lambda service, user_id, data: service.create(user_id, data.content),
    ),
}


def get_procedure(path: str) -> Procedure:
    try:
        return PROCEDURES[path]
    except KeyError:
        raise ValidationAppError(
            code="procedure_not_found",
            message=f"No procedure named '{path}'",
        ) from None


def parse_input(procedure: Procedure, raw_input: Any) -> BaseModel | None:
    """Validate raw input against the procedure's model."""
    if procedure.input_model is None:
        return None
    try:
        return procedure.input_model.model_validate(raw_input or {})
    except ValidationError as exc:
        first = exc.errors()[0]
        message = str(first.get("msg", "Invalid input")).removeprefix("Value error, ")
        raise ValidationAppError(
            code="bad_request",
            message=message,
            details={"field": ".".join(str(p) for p in first.get("loc", ()))},
        ) from exc


async def call_procedure(
    service: PostService,
    path: str,
    raw_input: Any = None,
    *,
    current_user_id: str | None = None,
) -> Any:
    """Validate input and run a procedure against ``service``."""
    procedure = get_procedure(path)
    data = parse_input(procedure, raw_input)
    return await procedure.resolver(service, current_user_id, data)
