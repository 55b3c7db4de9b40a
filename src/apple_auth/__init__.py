"""
Apple authentication provider for the SDK.

Exposes the provider (AppleAuthenticationProvider), the application-facing helpers
(AppleUtils), the collaborator protocols, env configuration, and the FastAPI auth
router factory (create_auth_router).
"""

from .apple import AppleAuthenticationProvider, format_date
from .config import AppleSettings, load_settings
from .errors import AppleAuthError, ProviderNotInitializedError
from .protocol import AuthenticationProvider, LinkableUser, SessionBackend
from .router import create_auth_router
from .utils import AppleUtils

__all__ = [
    "AppleAuthenticationProvider",
    "AppleUtils",
    "AppleAuthError",
    "ProviderNotInitializedError",
    "AuthenticationProvider",
    "LinkableUser",
    "SessionBackend",
    "AppleSettings",
    "load_settings",
    "format_date",
    "create_auth_router",
]
