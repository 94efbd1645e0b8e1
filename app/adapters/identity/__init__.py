"""Identity directory adapter layer - abstracts over the user management service."""

from app.adapters.identity.base import AbstractIdentityDirectory
from app.adapters.identity.clerk_client import ClerkIdentityDirectory
from app.adapters.identity.factory import create_identity_directory
from app.adapters.identity.in_memory import InMemoryIdentityDirectory

__all__ = [
    "AbstractIdentityDirectory",
    "ClerkIdentityDirectory",
    "InMemoryIdentityDirectory",
    "create_identity_directory",
]
