"""
Data Models for the Beefboard Client

This module contains the value types exchanged with the Beefboard API and
persisted in local storage, plus the feed partitioning used by every reader.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from utils.exceptions import ApiError, ApiErrorKind, InvalidDateError
from utils.helpers import format_api_date, parse_api_date, safe_get


def _require(data: Dict[str, Any], key: str, expected_type):
    """Fetch a typed field from decoded JSON or fail as an invalid response."""
    if not isinstance(data, dict) or key not in data:
        raise ApiError(ApiErrorKind.INVALID_RESPONSE, f"Missing field: {key}")
    value = data[key]
    # bool is a subclass of int; reject it where an int is expected
    if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
        raise ApiError(ApiErrorKind.INVALID_RESPONSE,
                       f"Field {key} has unexpected type {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Identity:
    """Profile and privilege level of a Beefboard account."""
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        return cls(
            username=_require(data, "username", str),
            first_name=_require(data, "firstName", str),
            last_name=_require(data, "lastName", str),
            email=_require(data, "email", str),
            is_admin=_require(data, "admin", bool),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "admin": self.is_admin,
        }


@dataclass(frozen=True)
class PostVotes:
    """Current vote tally on a post, and the signed-in user's own vote if any."""
    grade: int
    user_grade: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PostVotes":
        user_grade = safe_get(data, "user")
        if user_grade is not None and (not isinstance(user_grade, int) or isinstance(user_grade, bool)):
            raise ApiError(ApiErrorKind.INVALID_RESPONSE, "Field user has unexpected type")
        return cls(grade=_require(data, "grade", int), user_grade=user_grade)

    def to_dict(self) -> Dict[str, Any]:
        return {"grade": self.grade, "user": self.user_grade}


@dataclass(frozen=True)
class Post:
    """A board post as last reported by the server."""
    id: str
    title: str
    content: str
    author: str                        # username only; the account may no longer exist
    created_at: datetime
    image_count: int = 0
    approved: bool = False
    pinned: bool = False
    votes: PostVotes = field(default_factory=lambda: PostVotes(grade=0))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        """
        Decode a post from its JSON representation.

        Raises:
            ApiError: INVALID_RESPONSE for missing fields (votes included) or an unrecognised date.
                An unrecognised date is chained as the error's __cause__.
        """
        raw_date = _require(data, "date", str)
        try:
            created_at = parse_api_date(raw_date)
        except InvalidDateError as e:
            raise ApiError(ApiErrorKind.INVALID_RESPONSE, f"Invalid date: {raw_date}") from e

        return cls(
            id=_require(data, "id", str),
            title=_require(data, "title", str),
            content=_require(data, "content", str),
            author=_require(data, "author", str),
            created_at=created_at,
            image_count=_require(data, "numImages", int),
            approved=_require(data, "approved", bool),
            pinned=_require(data, "pinned", bool),
            votes=PostVotes.from_dict(_require(data, "votes", dict)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author,
            "date": format_api_date(self.created_at),
            "numImages": self.image_count,
            "approved": self.approved,
            "pinned": self.pinned,
            "votes": self.votes.to_dict(),
        }

    def with_pinned(self, pinned: bool) -> "Post":
        """Return a copy with the pinned flag replaced."""
        return replace(self, pinned=pinned)


@dataclass(frozen=True)
class PostFeed:
    """Posts split into the pinned section and the regular section, newest first."""
    pinned: Tuple[Post, ...] = ()
    regular: Tuple[Post, ...] = ()

    @property
    def all_posts(self) -> Tuple[Post, ...]:
        return self.pinned + self.regular

    def __len__(self):
        return len(self.pinned) + len(self.regular)


def partition_posts(posts: Iterable[Post]) -> PostFeed:
    """
    Sort posts newest first and split them into pinned and regular sections.

    Posts sharing a timestamp keep their original relative order.

    Args:
        posts: Posts in server order.

    Returns:
        PostFeed: The partitioned feed.
    """
    ordered = sorted(posts, key=lambda post: post.created_at, reverse=True)
    return PostFeed(
        pinned=tuple(post for post in ordered if post.pinned),
        regular=tuple(post for post in ordered if not post.pinned),
    )
