"""
Data Layer Protocol Definitions

This module defines typing.Protocol interfaces for data layer operations.
These protocols enable dependency injection for local storage, making the
coordinators testable without a real database file.

Protocols defined:
- KeyValueStorage: Interface for durable string key/value storage
- CredentialStorage: Interface for the persisted session token and identity
- PostStorage: Interface for the persisted post feed snapshot
"""

from typing import List, Optional, Protocol

from data.models import Identity, Post


class KeyValueStorage(Protocol):
    """Protocol defining the interface for durable key/value storage.

    Values are strings; callers are responsible for serialization.
    Writes are last-write-wins with no versioning.
    """

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for a key, or None if absent."""
        ...

    def set(self, key: str, value: Optional[str]) -> None:
        """Store a value. Setting None removes the key."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...


class CredentialStorage(Protocol):
    """Protocol defining the interface for the signed-in identity and its token."""

    def load(self) -> Optional[Identity]:
        ...

    def save(self, identity: Optional[Identity]) -> None:
        ...

    def has_token(self) -> bool:
        ...

    def get_token(self) -> Optional[str]:
        ...

    def set_token(self, token: str) -> None:
        ...

    def clear_token(self) -> None:
        ...


class PostStorage(Protocol):
    """Protocol defining the interface for the cached post feed."""

    def load(self) -> List[Post]:
        """Return cached posts in the order they were saved (empty if none)."""
        ...

    def save(self, posts: List[Post]) -> None:
        """Replace the entire cached feed."""
        ...

    def clear(self) -> None:
        ...
