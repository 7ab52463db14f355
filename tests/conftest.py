"""
Shared Test Fixtures for the Beefboard Client

This module provides common fixtures used across all test modules.
Fixtures include in-memory and SQLite storage, a mocked API transport,
HTTP response factories, log capture, and data factories for test objects.
"""

import pytest
from unittest.mock import MagicMock
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.credential_store import CredentialStore
from data.database import KeyValueDatabase
from data.models import Identity, Post, PostVotes
from data.posts_cache import PostsCache
from services.api_client import ApiClient


# =============================================================================
# Storage Fixtures
# =============================================================================

class FakeStorage:
    """Dictionary-backed key/value storage with the same interface as KeyValueDatabase."""

    def __init__(self):
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self.data.pop(key, None)
        else:
            self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


@pytest.fixture
def fake_storage():
    """
    In-memory key/value storage.

    Usage:
        def test_store(fake_storage):
            fake_storage.set("token", "abc")
            assert fake_storage.data == {"token": "abc"}

    Returns:
        FakeStorage: An empty storage object.
    """
    return FakeStorage()


@pytest.fixture
def sqlite_storage(tmp_path):
    """
    SQLite-backed key/value storage in a temporary directory.

    Returns:
        KeyValueDatabase: An open database, closed after the test.
    """
    db = KeyValueDatabase(tmp_path / "state.sqlite3")
    yield db
    db.close()


@pytest.fixture
def credential_store(fake_storage):
    return CredentialStore(fake_storage)


@pytest.fixture
def posts_cache(fake_storage):
    return PostsCache(fake_storage)


# =============================================================================
# Data Factories
# =============================================================================

BASE_TIME = datetime(2019, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_identity():
    """
    Factory fixture for creating Identity objects.

    Usage:
        def test_identity(make_identity):
            admin = make_identity(username="root", is_admin=True)
    """
    def _create(username: str = "alice", is_admin: bool = False, **overrides) -> Identity:
        values = {
            "username": username,
            "first_name": "Alice",
            "last_name": "Smith",
            "email": f"{username}@example.com",
            "is_admin": is_admin,
        }
        values.update(overrides)
        return Identity(**values)

    return _create


@pytest.fixture
def make_post():
    """
    Factory fixture for creating Post objects.

    Posts are dated BASE_TIME plus the given number of minutes.

    Usage:
        def test_post(make_post):
            post = make_post("p1", minutes=5, pinned=True)
    """
    def _create(post_id: str = "post-1", minutes: int = 0, pinned: bool = False,
                **overrides) -> Post:
        values = {
            "id": post_id,
            "title": f"Title {post_id}",
            "content": f"Content of {post_id}",
            "author": "alice",
            "created_at": BASE_TIME + timedelta(minutes=minutes),
            "image_count": 0,
            "approved": True,
            "pinned": pinned,
            "votes": PostVotes(grade=0, user_grade=None),
        }
        values.update(overrides)
        return Post(**values)

    return _create


@pytest.fixture
def post_json():
    """
    Factory fixture for creating post JSON as sent by the API.

    Returns:
        callable: A factory returning a dict in wire format.
    """
    def _create(post_id: str = "post-1", date: str = "2019-01-01T10:00:00.123+00:00",
                pinned: bool = False, **overrides) -> Dict[str, Any]:
        data = {
            "id": post_id,
            "title": f"Title {post_id}",
            "content": f"Content of {post_id}",
            "author": "alice",
            "date": date,
            "numImages": 2,
            "approved": True,
            "pinned": pinned,
            "votes": {"grade": 3, "user": 1},
        }
        data.update(overrides)
        return data

    return _create


@pytest.fixture
def user_json():
    """Factory fixture for user JSON as sent by the API."""
    def _create(username: str = "alice", admin: bool = False) -> Dict[str, Any]:
        return {
            "username": username,
            "firstName": "Alice",
            "lastName": "Smith",
            "email": f"{username}@example.com",
            "admin": admin,
        }

    return _create


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def mock_api():
    """
    Mock API transport with the ApiClient interface.

    Every method returns a MagicMock by default; configure return_value or
    side_effect per test.
    """
    return MagicMock(spec=ApiClient)


@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(status_code=200, json_data={'key': 'value'})

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        content: bytes = b'',
        json_data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.content = content
        mock_response.headers = headers or {'Content-Type': 'application/json'}
        mock_response.ok = 200 <= status_code < 300

        if json_data is not None:
            mock_response.json.return_value = json_data
        else:
            mock_response.json.side_effect = ValueError("No JSON data")

        return mock_response

    return _create_response


@pytest.fixture
def mock_session(mock_http_response):
    """A mock requests.Session whose request() answers 200 with an empty JSON object."""
    session = MagicMock()
    session.request.return_value = mock_http_response(json_data={})
    return session


@pytest.fixture
def api_client(credential_store, mock_session):
    """ApiClient wired to a mock session and the fake credential store."""
    return ApiClient(credential_store, base_url="https://api.test/v1", timeout=2.0,
                     session=mock_session)


# =============================================================================
# Event Fixtures
# =============================================================================

@pytest.fixture
def record_events():
    """
    Subscribe to every event of an emitter and record them in order.

    Usage:
        def test_events(record_events):
            events = record_events(coordinator)
            ...
            assert events[0] == ("auth.received", None)

    Returns:
        callable: Takes an EventEmitter and returns the list being filled.
    """
    def _record(emitter) -> List[tuple]:
        events: List[tuple] = []
        emitter.on_all(lambda event_type, *args: events.append((event_type,) + args))
        return events

    return _record


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    app_logger = logging.getLogger("beefboard")
    original_level = app_logger.level
    app_logger.setLevel(logging.DEBUG)
    app_logger.addHandler(handler)

    yield handler.records

    app_logger.removeHandler(handler)
    app_logger.setLevel(original_level)
