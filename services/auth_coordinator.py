"""
Auth Coordinator Module

Handles login, logout and session refresh for every part of the client that
needs credentials, and notifies observers whenever the signed-in identity
changes.
"""

import asyncio
from enum import Enum
from typing import Optional

from data.models import Identity
from data.protocols import CredentialStorage
from services.events import AuthEvents, EventEmitter
from services.protocols import ApiClientProtocol
from utils.exceptions import ApiError, ApiErrorKind
from utils.logger import get_logger

logger = get_logger(__name__)


class AuthState(Enum):
    UNKNOWN = "unknown"
    LOGGED_OUT = "logged_out"
    LOGGED_IN = "logged_in"


class AuthCoordinator(EventEmitter):
    """
    Owns the in-memory identity and keeps it in step with the credential store.

    Emits:
        auth.received(identity or None) whenever the identity is (re)reported.
        auth.error(ApiError) when a refresh or login fails without changing it.
    """

    def __init__(self, api: ApiClientProtocol, credentials: CredentialStorage):
        super().__init__("AuthCoordinator")
        self.api = api
        self.credentials = credentials
        self._identity: Optional[Identity] = credentials.load()
        # A cached identity is provisional until the server confirms it
        self._state = AuthState.LOGGED_IN if self._identity else AuthState.UNKNOWN

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_admin(self) -> bool:
        return bool(self._identity and self._identity.is_admin)

    async def retrieve_auth(self) -> Optional[Identity]:
        """
        Report the cached identity, then refresh it from the server.

        The cached value (possibly None) is emitted before the first network
        suspension. A confirmed identity replaces it; INVALID_CREDENTIALS
        signs out locally; any other error leaves it untouched and is emitted
        on auth.error.

        Returns:
            Optional[Identity]: The identity after the refresh.
        """
        self.emit(AuthEvents.RECEIVED, self._identity)

        try:
            identity = await asyncio.to_thread(self.api.fetch_auth)
        except ApiError as e:
            if e.kind == ApiErrorKind.INVALID_CREDENTIALS:
                logger.info("Stored session is no longer valid, signing out")
                self._set_identity(None)
            else:
                logger.warning(f"Could not refresh auth: {e.kind.value}")
                self.emit(AuthEvents.ERROR, e)
            return self._identity

        logger.info(f"Auth confirmed for {identity.username}")
        self._set_identity(identity)
        return identity

    async def login(self, username: str, password: str) -> Optional[Identity]:
        """
        Login with credentials, then load the identity they belong to.

        A failed login is emitted on auth.error and does not change the identity.
        """
        try:
            await asyncio.to_thread(self.api.login, username, password)
        except ApiError as e:
            logger.warning(f"Login failed for {username}: {e.kind.value}")
            self.emit(AuthEvents.ERROR, e)
            return self._identity

        return await self.retrieve_auth()

    async def logout(self) -> None:
        """
        Sign out on the server if possible and always sign out locally.

        Never raises ApiError.
        """
        try:
            await asyncio.to_thread(self.api.logout)
        except ApiError as e:
            logger.warning(f"Server logout failed, signing out locally: {e.kind.value}")

        logger.info("Logged out")
        self._set_identity(None)

    def invalidate(self) -> None:
        """Sign out locally after another call was rejected with INVALID_CREDENTIALS."""
        if self._state == AuthState.LOGGED_OUT and self._identity is None:
            return
        logger.info("Session rejected by server, signing out")
        self._set_identity(None)

    def _set_identity(self, identity: Optional[Identity]) -> None:
        self._identity = identity
        self._state = AuthState.LOGGED_IN if identity else AuthState.LOGGED_OUT
        self.credentials.save(identity)
        self.emit(AuthEvents.RECEIVED, identity)
