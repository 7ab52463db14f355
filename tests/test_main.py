"""
Tests for the Beefboard Client Entry Point

Tests cover wiring of the client core, output formatting, and the command
line commands with a mocked API transport.
"""

import pytest
from unittest.mock import MagicMock, patch
import asyncio
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import BeefboardClient, format_feed, format_identity, format_post, main, parse_arguments
from data.models import partition_posts
from services.auth_coordinator import AuthCoordinator
from services.posts_coordinator import PostsCoordinator
from utils.exceptions import ApiError, ApiErrorKind, ConfigurationError


@pytest.fixture
def client(fake_storage, mock_api):
    return BeefboardClient(storage=fake_storage, api=mock_api, validate=False)


@pytest.fixture
def run_cli(client):
    """Run main() against the prepared client instead of a real one."""
    def _run(*argv):
        with patch('main.BeefboardClient', return_value=client):
            return main(list(argv))
    return _run


# =============================================================================
# Wiring Tests
# =============================================================================

class TestBeefboardClient:
    """Tests for composing the client core."""

    def test_components_share_stores(self, client, fake_storage, mock_api):
        """Every component is wired to the same storage and transport."""
        assert isinstance(client.auth, AuthCoordinator)
        assert isinstance(client.posts, PostsCoordinator)
        assert client.credentials.storage is fake_storage
        assert client.posts_cache.storage is fake_storage
        assert client.auth.api is mock_api
        assert client.posts.auth is client.auth
        assert client.registration.profiles is client.profiles

    def test_default_api_uses_credentials(self, fake_storage):
        client = BeefboardClient(storage=fake_storage, validate=False)

        assert client.api.credentials is client.credentials

    def test_validation_runs(self, fake_storage, mock_api):
        with patch('main.validate_settings', side_effect=ConfigurationError("bad")):
            with pytest.raises(ConfigurationError):
                BeefboardClient(storage=fake_storage, api=mock_api)

    def test_close_closes_storage(self, mock_api):
        storage = MagicMock()
        storage.get.return_value = None

        BeefboardClient(storage=storage, api=mock_api, validate=False).close()

        storage.close.assert_called_once_with()

    def test_close_detaches_observers(self, client):
        """Observers registered on the coordinators are cancelled on close."""
        listener = MagicMock()
        subscriptions = [client.auth.on_all(listener), client.posts.on_all(listener),
                         client.registration.on_all(listener)]

        client.close()
        client.auth.invalidate()

        listener.assert_not_called()
        assert not any(subscription.active for subscription in subscriptions)


# =============================================================================
# Formatting Tests
# =============================================================================

class TestFormatting:
    """Tests for console output."""

    def test_format_identity(self, make_identity):
        assert format_identity(None) == "Not logged in"
        assert format_identity(make_identity("root", is_admin=True)) == \
            "root (admin) - Alice Smith <root@example.com>"

    def test_format_post_flags(self, make_post):
        line = format_post(make_post("p1", pinned=True, approved=False))

        assert line.startswith("p1  2019-01-01 10:00  alice: Title p1")
        assert "[pinned, awaiting approval]" in line

    def test_format_feed_sections(self, make_post):
        feed = partition_posts([make_post("a"), make_post("b", pinned=True)])

        lines = format_feed(feed)

        assert lines[0] == "Pinned:"
        assert lines[1].strip().startswith("b ")
        assert lines[2] == "Posts:"
        assert lines[3].strip().startswith("a ")


# =============================================================================
# Argument Parsing Tests
# =============================================================================

class TestParseArguments:

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_arguments([])

    def test_repeatable_images(self):
        args = parse_arguments(["post", "T", "C", "--image", "a.jpg", "--image", "b.jpg"])

        assert args.command == "post"
        assert args.image == ["a.jpg", "b.jpg"]

    def test_global_options(self):
        args = parse_arguments(["--log-level", "DEBUG", "--db-path", "x.sqlite3", "feed", "--no-cache"])

        assert args.log_level == "DEBUG"
        assert args.db_path == "x.sqlite3"
        assert args.no_cache is True


# =============================================================================
# Command Tests
# =============================================================================

class TestCommands:
    """Tests for the command line commands."""

    def test_login(self, run_cli, mock_api, make_identity, capsys):
        mock_api.fetch_auth.return_value = make_identity("alice")

        assert run_cli("login", "alice", "secret") == 0

        assert "alice - Alice Smith" in capsys.readouterr().out

    def test_login_rejected(self, run_cli, mock_api, capsys):
        mock_api.login.side_effect = ApiError(ApiErrorKind.INVALID_CREDENTIALS, status_code=401)

        assert run_cli("login", "alice", "wrong") == 1

        assert "Invalid username or password." in capsys.readouterr().err

    def test_logout(self, run_cli, client, mock_api, make_post, capsys):
        """Logout signs out and drops the session's cached feed."""
        client.posts_cache.save([make_post("mine")])

        assert run_cli("logout") == 0

        mock_api.logout.assert_called_once_with()
        assert client.posts_cache.load() == []
        assert "Logged out" in capsys.readouterr().out

    def test_whoami_offline(self, run_cli, client, mock_api, make_identity, capsys):
        """Offline whoami shows the cached identity with a note."""
        client.credentials.save(make_identity("alice"))
        client.auth = AuthCoordinator(mock_api, client.credentials)
        mock_api.fetch_auth.side_effect = ApiError(ApiErrorKind.CONNECTION_ERROR)

        assert run_cli("whoami") == 0

        captured = capsys.readouterr()
        assert "alice" in captured.out
        assert "cached" in captured.err

    def test_feed(self, run_cli, mock_api, make_post, capsys):
        mock_api.fetch_posts.return_value = [make_post("a"), make_post("b", pinned=True)]

        assert run_cli("feed") == 0

        out = capsys.readouterr().out
        assert "Pinned:" in out
        assert "Title a" in out

    def test_feed_offline_shows_cache(self, run_cli, client, mock_api, make_post, capsys):
        client.posts_cache.save([make_post("cached")])
        mock_api.fetch_posts.side_effect = ApiError(ApiErrorKind.TIMEOUT)

        assert run_cli("feed") == 1

        captured = capsys.readouterr()
        assert "Showing cached posts:" in captured.out
        assert "Title cached" in captured.out
        assert "The request timed out." in captured.err

    def test_post_with_image(self, run_cli, mock_api, make_post, tmp_path, capsys):
        image = tmp_path / "photo.jpg"
        image.write_bytes(b"\xff\xd8data")
        mock_api.create_post.return_value = "new"
        mock_api.fetch_post.return_value = make_post("new")

        assert run_cli("post", "Hello", "World", "--image", str(image)) == 0

        args = mock_api.create_post.call_args[0]
        assert args[:3] == ("Hello", "World", [b"\xff\xd8data"])
        assert "new" in capsys.readouterr().out

    def test_pin_failure(self, run_cli, mock_api, capsys):
        mock_api.set_pinned.side_effect = ApiError(ApiErrorKind.INVALID_CREDENTIALS, status_code=401)

        assert run_cli("pin", "p1") == 1

        assert "Invalid username or password." in capsys.readouterr().err

    def test_unpin(self, run_cli, mock_api, capsys):
        assert run_cli("pin", "p1", "--unpin") == 0

        mock_api.set_pinned.assert_called_once_with("p1", False)
        assert "Unpinned p1" in capsys.readouterr().out

    def test_delete(self, run_cli, mock_api, capsys):
        assert run_cli("delete", "p1") == 0

        mock_api.delete_post.assert_called_once_with("p1")

    def test_user_not_found(self, run_cli, mock_api, capsys):
        mock_api.fetch_user.side_effect = ApiError(ApiErrorKind.NOT_FOUND, status_code=404)

        assert run_cli("user", "ghost") == 1

        assert "No user named ghost" in capsys.readouterr().out

    def test_register_taken_username(self, run_cli, mock_api, make_identity, capsys):
        mock_api.fetch_user.return_value = make_identity("bob")

        assert run_cli("register", "bob", "pw", "b@example.com", "Bob", "Jones") == 1

        mock_api.register.assert_not_called()
        assert "already taken" in capsys.readouterr().err

    def test_register(self, run_cli, mock_api, capsys):
        mock_api.fetch_user.side_effect = ApiError(ApiErrorKind.NOT_FOUND, status_code=404)
        mock_api.register.return_value = True

        assert run_cli("register", "bob", "pw", "b@example.com", "Bob", "Jones") == 0

        assert "Registered bob" in capsys.readouterr().out

    def test_unexpected_error_exit_code(self, run_cli, mock_api):
        """Errors outside the API surface exit with code 2."""
        mock_api.logout.side_effect = RuntimeError("storage exploded")

        assert run_cli("logout") == 2
