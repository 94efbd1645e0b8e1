"""Pydantic schemas for identity directory records and public profiles."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GITHUB_PROVIDER = "oauth_github"


class ExternalAccount(BaseModel):
    """OAuth account linked to a directory user."""

    model_config = ConfigDict(extra="ignore")

    provider: str
    username: str | None = None


class DirectoryUser(BaseModel):
    """User record as returned by the identity directory.

    Contains private fields (names, e-mail addresses, linked accounts) and
    must never be returned to API clients as-is; see AuthorProfile.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    image_url: str | None = None
    external_accounts: list[ExternalAccount] = Field(default_factory=list)


class AuthorProfile(BaseModel):
    """Client-safe projection of a directory user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Identity provider user id.")
    username: str | None = Field(
        None,
        description="Public handle chosen by the user.",
    )
    profile_image_url: str | None = Field(
        None,
        description="Avatar URL.",
    )
    external_username: str | None = Field(
        None,
        description="Username of the linked GitHub account, if any.",
    )

    @classmethod
    def from_user(cls, user: DirectoryUser) -> "AuthorProfile":
        """Keep only the fields that are safe to expose to any client."""
        github = next(
            (acc for acc in user.external_accounts if acc.provider == GITHUB_PROVIDER),
            None,
        )
        return cls(
            id=user.id,
            username=user.username,
            profile_image_url=user.image_url,
            external_username=github.username if github else None,
        )
