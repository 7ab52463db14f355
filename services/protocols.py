"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for services used by the
Beefboard client. These protocols enable loose coupling, dependency injection,
and easier testing.

Protocols defined:
- ApiClientProtocol: Interface for the Beefboard REST API transport
"""

from typing import Callable, List, Optional, Protocol, Sequence

from data.models import Identity, Post


class ApiClientProtocol(Protocol):
    """Protocol defining the interface for the Beefboard API transport.

    Every method blocks until the request completes and raises ApiError on
    failure. Implementations never retry.
    """

    def login(self, username: str, password: str) -> None:
        """Exchange credentials for a session token and store it."""
        ...

    def logout(self) -> None:
        """Revoke the session; the local token is cleared even on failure."""
        ...

    def fetch_auth(self) -> Identity:
        """Identity of the current session."""
        ...

    def fetch_user(self, username: str) -> Identity:
        """Public details of a user. NOT_FOUND if the user does not exist."""
        ...

    def fetch_posts(self) -> List[Post]:
        """All posts visible to the current session, in server order."""
        ...

    def fetch_post(self, post_id: str) -> Post:
        ...

    def register(self, username: str, password: str, email: str,
                 first_name: str, last_name: str) -> bool:
        ...

    def create_post(self, title: str, content: str, images: Sequence[bytes] = (),
                    progress: Optional[Callable[[float], None]] = None) -> str:
        """Upload a post and return its id. Progress is reported before returning."""
        ...

    def set_pinned(self, post_id: str, pinned: bool) -> None:
        ...

    def delete_post(self, post_id: str) -> None:
        ...

    def image_url(self, post_id: str, index: int) -> str:
        ...
