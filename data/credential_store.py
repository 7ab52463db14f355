"""
Credential Store Module

Persists the single signed-in identity and its session token across process
restarts. The token never leaves this store except as a request header.
"""

import json
from typing import Optional

from config import settings
from data.models import Identity
from data.protocols import KeyValueStorage
from utils.exceptions import ApiError
from utils.logger import get_logger

logger = get_logger(__name__)


class CredentialStore:
    """Durable storage for the session token and the cached identity."""

    def __init__(self, storage: KeyValueStorage,
                 token_key: Optional[str] = None, identity_key: Optional[str] = None):
        """
        Initialize the credential store.

        Args:
            storage: Key/value storage backend.
            token_key: Storage key for the token, defaults to settings.TOKEN_KEY.
            identity_key: Storage key for the identity, defaults to settings.USER_AUTH_KEY.
        """
        self.storage = storage
        self.token_key = token_key or settings.TOKEN_KEY
        self.identity_key = identity_key or settings.USER_AUTH_KEY

    def load(self) -> Optional[Identity]:
        """
        Read the persisted identity.

        Returns:
            Optional[Identity]: The cached identity, or None if absent or unreadable.
        """
        raw = self.storage.get(self.identity_key)
        if raw is None:
            return None

        try:
            return Identity.from_dict(json.loads(raw))
        except (ValueError, ApiError) as e:
            logger.warning(f"Discarding unreadable cached identity: {e}")
            return None

    def save(self, identity: Optional[Identity]) -> None:
        """
        Persist an identity. None clears the identity and the token.

        Args:
            identity: The identity to store, or None to sign out locally.
        """
        if identity is None:
            self.storage.delete(self.identity_key)
            self.clear_token()
            logger.debug("Cleared persisted credentials")
            return

        self.storage.set(self.identity_key, json.dumps(identity.to_dict()))
        logger.debug(f"Persisted identity for {identity.username}")

    def has_token(self) -> bool:
        return self.get_token() is not None

    def get_token(self) -> Optional[str]:
        return self.storage.get(self.token_key)

    def set_token(self, token: str) -> None:
        self.storage.set(self.token_key, token)

    def clear_token(self) -> None:
        self.storage.delete(self.token_key)
