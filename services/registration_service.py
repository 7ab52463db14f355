"""
Registration Service Module

Creates new Beefboard accounts and reports the outcome to observers.
"""

import asyncio
from typing import Optional

from services.events import EventEmitter, RegistrationEvents
from services.profile_lookup import ProfileLookup
from services.protocols import ApiClientProtocol
from utils.exceptions import ApiError, ApiErrorKind
from utils.logger import get_logger

logger = get_logger(__name__)


class RegistrationService(EventEmitter):
    """
    Account sign-up.

    Emits:
        registration.completed(username) when the server accepts the account.
        registration.failed(ApiError) otherwise.
    """

    def __init__(self, api: ApiClientProtocol, profiles: Optional[ProfileLookup] = None):
        super().__init__("RegistrationService")
        self.api = api
        self.profiles = profiles or ProfileLookup(api)

    async def is_username_available(self, username: str) -> bool:
        """True when no account with this username exists."""
        return await self.profiles.is_username_available(username)

    async def register(self, username: str, password: str, email: str,
                       first_name: str, last_name: str) -> bool:
        """
        Register a new account.

        Empty usernames or passwords are rejected as INVALID_REQUEST without
        contacting the server. A server reply of success=false is reported the
        same way.

        Returns:
            bool: True if the account was created.
        """
        if not username or not password:
            self.emit(RegistrationEvents.FAILED,
                      ApiError(ApiErrorKind.INVALID_REQUEST, "Username and password are required"))
            return False

        try:
            success = await asyncio.to_thread(self.api.register, username, password,
                                              email, first_name, last_name)
        except ApiError as e:
            logger.warning(f"Registration failed for {username}: {e.kind.value}")
            self.emit(RegistrationEvents.FAILED, e)
            return False

        if not success:
            logger.warning(f"Registration rejected for {username}")
            self.emit(RegistrationEvents.FAILED,
                      ApiError(ApiErrorKind.INVALID_REQUEST, "Registration was not accepted"))
            return False

        logger.info(f"Registered account {username}")
        self.emit(RegistrationEvents.COMPLETED, username)
        return True
