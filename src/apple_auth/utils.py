"""
Application-facing helpers for using the SDK with Apple.

AppleUtils wraps one AppleAuthenticationProvider and forwards to the session
subsystem's named-provider operations. It holds no state of its own.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from apple_auth.apple import AppleAuthenticationProvider
from apple_auth.config import load_settings
from apple_auth.protocol import LinkableUser, SessionBackend

logger = logging.getLogger(__name__)


class AppleUtils:
    def __init__(self, session: SessionBackend, provider: Optional[AppleAuthenticationProvider] = None):
        self.session = session
        self.provider = provider or AppleAuthenticationProvider()

    @property
    def auth_type(self) -> str:
        return self.provider.auth_type

    @property
    def application_id(self) -> Optional[str]:
        """The Apple application id passed to initialize()."""
        return self.provider.app_id

    @property
    def access_token(self) -> Optional[str]:
        """Access token of the currently logged in Apple user, usable against Apple APIs."""
        return self.provider.access_token

    def initialize(self, application_id: str, permissions: Optional[Iterable[str]] = None) -> None:
        """Set the Apple application id and register the provider with the session subsystem."""
        self.provider.app_id = application_id
        if permissions is not None:
            self.provider.permissions = list(permissions)
        self.session.register_provider(self.provider)
        logger.debug("Registered %s auth provider", self.auth_type)

    def initialize_from_env(self) -> None:
        """Initialize from APPLE_* environment variables (see apple_auth.config)."""
        settings = load_settings()
        self.provider.login_dialog_url_override = settings.login_dialog_url
        self.provider.response_url_override = settings.response_url
        self.initialize(settings.app_id, settings.permissions or None)

    async def log_in(self, apple_id: str, access_token: str, expiration: datetime) -> Any:
        """
        Log in using existing Apple credentials.

        A user is created by the backend if none exists for these credentials.
        Returns the logged in user.
        """
        auth_data = self.provider.get_auth_data(apple_id, access_token, expiration)
        return await self.session.log_in_with(self.auth_type, auth_data)

    async def log_in_with_apple(self) -> Any:
        """Run the Apple login dialog and log in with the resulting credentials."""
        auth_data = await self.provider.authenticate()
        return await self.session.log_in_with(self.auth_type, auth_data)

    async def link(self, user: LinkableUser, apple_id: str, access_token: str, expiration: datetime) -> None:
        """Link user to an Apple account using existing Apple credentials."""
        auth_data = self.provider.get_auth_data(apple_id, access_token, expiration)
        await user.link_with(self.auth_type, auth_data)

    async def link_with_apple(self, user: LinkableUser) -> None:
        """Run the Apple login dialog and link user to the resulting account."""
        auth_data = await self.provider.authenticate()
        await user.link_with(self.auth_type, auth_data)

    def is_linked(self, user: LinkableUser) -> bool:
        return user.is_linked(self.auth_type)

    async def unlink(self, user: LinkableUser) -> None:
        """Unlink user from their Apple account. The backend saves the user."""
        await user.unlink_from(self.auth_type)
