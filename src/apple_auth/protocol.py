"""
Protocols for the SDK pieces the Apple provider plugs into.

The session subsystem owns the user model, the registry of named auth providers and
the login/link calls. This package only depends on the shapes below. Cancellation is
expressed by cancelling the task that awaits any of the async calls.
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class AuthenticationProvider(Protocol):
    """Protocol for a named external auth provider (e.g. Apple)."""

    auth_type: str

    async def authenticate(self) -> Dict[str, str]:
        """Run the provider's login flow and return its auth data map."""
        ...

    def deauthenticate(self) -> None:
        """Forget any credentials held by the provider."""
        ...

    def restore_authentication(self, auth_data: Optional[Dict[str, Any]]) -> bool:
        """Restore credentials from a previously stored auth data map."""
        ...


@runtime_checkable
class LinkableUser(Protocol):
    """The generic user model as far as linking external accounts goes."""

    async def link_with(self, auth_type: str, auth_data: Dict[str, str]) -> None:
        ...

    async def unlink_from(self, auth_type: str) -> None:
        ...

    def is_linked(self, auth_type: str) -> bool:
        ...


@runtime_checkable
class SessionBackend(Protocol):
    """The host session subsystem: provider registry plus login with auth data."""

    def register_provider(self, provider: AuthenticationProvider) -> None:
        ...

    async def log_in_with(self, auth_type: str, auth_data: Dict[str, str]) -> Any:
        """Log in (creating the user if needed) and return the user."""
        ...
