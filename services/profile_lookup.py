"""
Profile lookup for single users, used by profile views and the
username-availability check during registration.
"""

import asyncio
from typing import Optional

from data.models import Identity
from services.protocols import ApiClientProtocol
from utils.exceptions import ApiError, ApiErrorKind
from utils.logger import get_logger

logger = get_logger(__name__)


class ProfileLookup:

    def __init__(self, api: ApiClientProtocol):
        self.api = api

    async def fetch(self, username: str) -> Optional[Identity]:
        """
        Fetch a user's details.

        Returns:
            Optional[Identity]: The user, or None if no such user exists.

        Raises:
            ApiError: For any failure other than NOT_FOUND.
        """
        try:
            return await asyncio.to_thread(self.api.fetch_user, username)
        except ApiError as e:
            if e.kind == ApiErrorKind.NOT_FOUND:
                logger.debug(f"No user named {username}")
                return None
            raise

    async def is_username_available(self, username: str) -> bool:
        return await self.fetch(username) is None
