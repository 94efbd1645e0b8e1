"""Factory pattern for creating identity directory instances."""

from app.adapters.identity.base import AbstractIdentityDirectory
from app.adapters.identity.clerk_client import ClerkIdentityDirectory
from app.adapters.identity.in_memory import InMemoryIdentityDirectory
from app.core.config import settings
from app.core.errors import ValidationAppError


def create_identity_directory() -> AbstractIdentityDirectory:
    """Instantiate the identity directory selected by configuration.

    Reads configuration from app.core.config.settings (Pydantic Settings).

    Returns:
        AbstractIdentityDirectory: Configured directory instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = settings.identity.provider.lower()

    if provider == "clerk":
        if not settings.identity.secret_key:
            raise ValidationAppError(
                code="identity_missing_secret_key",
                message="Clerk provider requires IDENTITY_SECRET_KEY environment variable",
            )
        return ClerkIdentityDirectory(
            secret_key=settings.identity.secret_key,
            base_url=settings.identity.base_url,
            timeout_seconds=settings.identity.timeout_seconds,
        )

    if provider == "memory":
        return InMemoryIdentityDirectory()

    raise ValidationAppError(
        code="identity_unknown_provider",
        message=(
            f"Unknown identity provider: '{provider}'. Supported providers: clerk, memory"
        ),
    )
