"""
Beefboard Client

This is the main entry point for the Beefboard client. It wires the API
client, the local stores and the coordinators together, and exposes them
through a small command line interface.

Usage:
    python main.py login alice secret
    python main.py feed
    python main.py post "Title" "Body" --image photo.jpg
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from config import settings
from config.validators import validate_settings
from data.credential_store import CredentialStore
from data.database import KeyValueDatabase
from data.models import Identity, Post, PostFeed
from data.posts_cache import PostsCache
from services.api_client import ApiClient
from services.auth_coordinator import AuthCoordinator
from services.events import AuthEvents, EventEmitter, PostEvents, RegistrationEvents
from services.posts_coordinator import PostsCoordinator
from services.profile_lookup import ProfileLookup
from services.protocols import ApiClientProtocol
from services.registration_service import RegistrationService
from utils.exceptions import ApiError, BeefboardError
from utils.helpers import truncate_text
from utils.logger import get_logger, setup_file_logging

# Set up logging
logger = get_logger(__name__)


class BeefboardClient:
    """
    Composition root for the client core.

    Every store and coordinator is constructed here and injected into the
    components that need it; nothing is a process-wide singleton.
    """

    def __init__(self, storage=None, api: Optional[ApiClientProtocol] = None,
                 validate: bool = True):
        """
        Initialize the client.

        Args:
            storage: Key/value storage backend, defaults to a KeyValueDatabase at settings.STORAGE_PATH.
            api: API transport, defaults to an ApiClient using the credential store.
            validate: Validate settings before wiring anything.
        """
        if validate:
            validate_settings()

        self.storage = storage if storage is not None else KeyValueDatabase()
        self.credentials = CredentialStore(self.storage)
        self.posts_cache = PostsCache(self.storage)
        self.api = api if api is not None else ApiClient(self.credentials)

        self.auth = AuthCoordinator(self.api, self.credentials)
        self.posts = PostsCoordinator(self.api, self.posts_cache, auth=self.auth)
        self.profiles = ProfileLookup(self.api)
        self.registration = RegistrationService(self.api, self.profiles)

    def close(self) -> None:
        """Detach every observer and close the storage backend."""
        for emitter in (self.auth, self.posts, self.registration):
            emitter.clear()
        close = getattr(self.storage, "close", None)
        if close:
            close()


# =============================================================================
# Output formatting
# =============================================================================

def format_identity(identity: Optional[Identity]) -> str:
    if identity is None:
        return "Not logged in"
    role = " (admin)" if identity.is_admin else ""
    return f"{identity.username}{role} - {identity.first_name} {identity.last_name} <{identity.email}>"


def format_post(post: Post) -> str:
    flags = []
    if post.pinned:
        flags.append("pinned")
    if not post.approved:
        flags.append("awaiting approval")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return (f"{post.id}  {post.created_at:%Y-%m-%d %H:%M}  {post.author}: "
            f"{truncate_text(post.title, 60)} ({post.votes.grade:+d}, {post.image_count} images){suffix}")


def format_feed(feed: PostFeed) -> List[str]:
    lines = []
    if feed.pinned:
        lines.append("Pinned:")
        lines.extend(f"  {format_post(post)}" for post in feed.pinned)
    lines.append("Posts:")
    lines.extend(f"  {format_post(post)}" for post in feed.regular)
    return lines


def _capture(emitter: EventEmitter, event_type: str) -> list:
    """Collect the arguments of every emission of an event."""
    received = []
    emitter.on(event_type, lambda *args: received.append(args))
    return received


def _report_error(error: ApiError) -> int:
    print(f"Error: {error.user_message}", file=sys.stderr)
    return 1


# =============================================================================
# Commands
# =============================================================================

async def cmd_login(client: BeefboardClient, args) -> int:
    errors = _capture(client.auth, AuthEvents.ERROR)
    identity = await client.auth.login(args.username, args.password)
    if errors:
        return _report_error(errors[-1][0])
    print(format_identity(identity))
    return 0 if identity else 1


async def cmd_logout(client: BeefboardClient, args) -> int:
    await client.auth.logout()
    # The cached feed carries this session's votes and unapproved posts
    client.posts_cache.clear()
    print("Logged out")
    return 0


async def cmd_whoami(client: BeefboardClient, args) -> int:
    errors = _capture(client.auth, AuthEvents.ERROR)
    identity = await client.auth.retrieve_auth()
    print(format_identity(identity))
    if errors:
        print(f"(cached; {errors[-1][0].user_message})", file=sys.stderr)
    return 0


async def cmd_feed(client: BeefboardClient, args) -> int:
    errors = _capture(client.posts, PostEvents.ERROR)
    feed = await client.posts.refresh_feed(excluding_cache=args.no_cache)
    if feed is None:
        if len(client.posts.feed):
            print("Showing cached posts:")
            print("\n".join(format_feed(client.posts.feed)))
        return _report_error(errors[-1][0])
    print("\n".join(format_feed(feed)))
    return 0


async def cmd_post(client: BeefboardClient, args) -> int:
    images = [Path(path).read_bytes() for path in args.image or []]
    errors = _capture(client.posts, PostEvents.CREATE_FAILED)
    client.posts.on(PostEvents.CREATE_PROGRESS,
                    lambda fraction: logger.info(f"Upload {fraction:.0%}"))
    post = await client.posts.create_post(args.title, args.content, images)
    if post is None:
        return _report_error(errors[-1][0])
    print(format_post(post))
    return 0


async def cmd_pin(client: BeefboardClient, args) -> int:
    errors = _capture(client.posts, PostEvents.PIN_FAILED)
    pinned = not args.unpin
    if not await client.posts.set_pinned(args.post_id, pinned):
        return _report_error(errors[-1][1])
    print(f"{'Pinned' if pinned else 'Unpinned'} {args.post_id}")
    return 0


async def cmd_delete(client: BeefboardClient, args) -> int:
    errors = _capture(client.posts, PostEvents.DELETE_FAILED)
    if not await client.posts.delete_post(args.post_id):
        return _report_error(errors[-1][1])
    print(f"Deleted {args.post_id}")
    return 0


async def cmd_user(client: BeefboardClient, args) -> int:
    try:
        user = await client.profiles.fetch(args.username)
    except ApiError as e:
        return _report_error(e)
    if user is None:
        print(f"No user named {args.username}")
        return 1
    print(format_identity(user))
    return 0


async def cmd_register(client: BeefboardClient, args) -> int:
    errors = _capture(client.registration, RegistrationEvents.FAILED)
    if not await client.registration.is_username_available(args.username):
        print(f"Username {args.username} is already taken", file=sys.stderr)
        return 1
    if not await client.registration.register(args.username, args.password, args.email,
                                              args.first_name, args.last_name):
        return _report_error(errors[-1][0])
    print(f"Registered {args.username}")
    return 0


COMMANDS = {
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "feed": cmd_feed,
    "post": cmd_post,
    "pin": cmd_pin,
    "delete": cmd_delete,
    "user": cmd_user,
    "register": cmd_register,
}


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Beefboard command line client')
    parser.add_argument('--log-file', type=str, default=settings.LOG_FILE, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default=settings.LOG_LEVEL.upper(), help='Logging level')
    parser.add_argument('--db-path', type=str, default=None,
                        help='Local state database (defaults to BEEFBOARD_STORAGE_PATH)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    login = subparsers.add_parser('login', help='Log in and cache the session')
    login.add_argument('username')
    login.add_argument('password')

    subparsers.add_parser('logout', help='Log out and clear the cached session')
    subparsers.add_parser('whoami', help='Show the signed-in user')

    feed = subparsers.add_parser('feed', help='Show the post feed')
    feed.add_argument('--no-cache', action='store_true', help='Skip the cached feed')

    post = subparsers.add_parser('post', help='Create a post')
    post.add_argument('title')
    post.add_argument('content')
    post.add_argument('--image', action='append', help='JPEG image to attach (repeatable)')

    pin = subparsers.add_parser('pin', help='Pin a post (admin only)')
    pin.add_argument('post_id')
    pin.add_argument('--unpin', action='store_true', help='Unpin instead')

    delete = subparsers.add_parser('delete', help='Delete a post')
    delete.add_argument('post_id')

    user = subparsers.add_parser('user', help='Show a user profile')
    user.add_argument('username')

    register = subparsers.add_parser('register', help='Create an account')
    register.add_argument('username')
    register.add_argument('password')
    register.add_argument('email')
    register.add_argument('first_name')
    register.add_argument('last_name')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    # Set up logging
    setup_file_logging(args.log_file, getattr(logging, args.log_level))
    logger.debug(f"Configuration: {settings.get_config_summary()}")

    client = None
    try:
        storage = KeyValueDatabase(args.db_path) if args.db_path else None
        client = BeefboardClient(storage=storage)
        exit_code = asyncio.run(COMMANDS[args.command](client, args))
    except BeefboardError as e:
        logger.error(f"Beefboard error: {e}", exc_info=True)
        exit_code = 2
    except Exception as e:
        logger.error(f"Unhandled exception in Beefboard client: {e}", exc_info=True)
        exit_code = 2
    finally:
        if client is not None:
            client.close()

    logger.debug(f"Command {args.command} finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
