"""
Apple OAuth provider (implicit grant).

The provider never opens a browser itself. It emits the authorization URL to the
subscribed navigation handlers and waits for the host to feed every URL the login
view navigates to back through handle_navigation(). When the view reaches the
redirect URL, the token in the fragment is exchanged for the Apple user id and the
pending authenticate() call resolves with the SDK's auth data map.
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlsplit

import httpx
from authlib.common.urls import add_params_to_uri, url_decode

from apple_auth.errors import AppleAuthError, ProviderNotInitializedError
from apple_auth.protocol import AuthenticationProvider

logger = logging.getLogger(__name__)

LOGIN_DIALOG_URL = "https://www.apple.com/dialog/oauth"
RESPONSE_URL = "https://www.apple.com/connect/login_success.html"
ME_URL = "https://graph.apple.com/me"

NavigateHandler = Callable[[str], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_date(value: datetime) -> str:
    """
    Format a datetime the way the SDK stores dates: yyyy-MM-ddTHH:mm:ss.fffZ.

    Aware values are converted to UTC; naive values are taken to already be UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class AppleAuthenticationProvider(AuthenticationProvider):
    """Auth provider registered with the session subsystem under the name "apple"."""

    auth_type: str = "apple"

    def __init__(
        self,
        app_id: Optional[str] = None,
        permissions: Optional[Iterable[str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.app_id = app_id
        self.permissions: Optional[List[str]] = list(permissions) if permissions is not None else None
        self.access_token: Optional[str] = None
        # Only overridden by tests running against a fake identity provider.
        self.login_dialog_url_override: Optional[str] = None
        self.response_url_override: Optional[str] = None
        self._http_client = http_client
        self._navigate_handlers: List[NavigateHandler] = []
        self._pending: Optional[asyncio.Future] = None
        self._pending_lock = threading.Lock()

    @property
    def login_dialog_url(self) -> str:
        return self.login_dialog_url_override or LOGIN_DIALOG_URL

    @property
    def response_url(self) -> str:
        return self.response_url_override or RESPONSE_URL

    @property
    def pending(self) -> Optional[asyncio.Future]:
        """The in-flight authentication, if any."""
        return self._pending

    def subscribe_navigate(self, handler: NavigateHandler) -> None:
        """Register a callable that opens the given URL in the host's login view."""
        self._navigate_handlers.append(handler)

    def unsubscribe_navigate(self, handler: NavigateHandler) -> None:
        if handler in self._navigate_handlers:
            self._navigate_handlers.remove(handler)

    def build_authorization_url(self) -> str:
        """Return the Apple login dialog URL for the configured app id and permissions."""
        if self.app_id is None:
            raise ProviderNotInitializedError()
        params = [
            ("redirect_uri", self.response_url),
            ("response_type", "token"),
            ("display", "popup"),
            ("client_id", self.app_id),
        ]
        # An empty permission list sends no scope at all.
        if self.permissions:
            params.append(("scope", ",".join(self.permissions)))
        return add_params_to_uri(self.login_dialog_url, params)

    def get_auth_data(self, apple_id: str, access_token: str, expiration: datetime) -> Dict[str, str]:
        """Build the auth data map the session subsystem expects from a provider."""
        return {
            "id": apple_id,
            "token": access_token,
            "expiration_date": format_date(expiration),
        }

    def _emit_navigate(self, url: str) -> None:
        if not self._navigate_handlers:
            logger.warning("No navigation handler subscribed; Apple login dialog will not be shown")
            return
        logger.debug("Navigating to Apple login dialog at %s", self.login_dialog_url)
        for handler in list(self._navigate_handlers):
            handler(url)

    async def authenticate(self) -> Dict[str, str]:
        """
        Start an Apple login and wait for handle_navigation() to complete it.

        Any authentication still pending is cancelled first. There is no timeout;
        cancel the awaiting task to abandon the attempt.
        """
        url = self.build_authorization_url()
        future = asyncio.get_running_loop().create_future()
        with self._pending_lock:
            previous, self._pending = self._pending, future
            if previous is not None and not previous.done():
                logger.debug("Cancelling superseded Apple authentication")
                previous.cancel()
        try:
            self._emit_navigate(url)
            return await future
        finally:
            with self._pending_lock:
                if self._pending is future:
                    self._pending = None

    def _decode_callback(self, url: str) -> Dict[str, str]:
        parts = urlsplit(url)
        payload = parts.fragment or parts.query
        return dict(url_decode(payload))

    @staticmethod
    def _describe_error(result: Dict[str, str]) -> str:
        description = result.get("error_description")
        if not description:
            return result["error"]
        return f"{description}: {result['error']}"

    async def _fetch_user_id(self, token: str) -> str:
        url = add_params_to_uri(ME_URL, [("token", token), ("fields", "id")])
        if self._http_client is not None:
            response = await self._http_client.get(url)
        else:
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.get(url)
        response.raise_for_status()
        return response.json()["id"]

    async def _exchange(self, url: str) -> Dict[str, str]:
        result = self._decode_callback(url)
        if "error" in result:
            message = self._describe_error(result)
            logger.warning("Apple login failed: %s", message)
            raise AppleAuthError(message)
        for key in ("token", "expires_in"):
            if key not in result:
                raise AppleAuthError(f"Apple callback is missing '{key}'")
        expiration = _utcnow() + timedelta(seconds=int(result["expires_in"]))
        apple_id = await self._fetch_user_id(result["token"])
        return self.get_auth_data(apple_id, result["token"], expiration)

    async def handle_navigation(self, url: str) -> bool:
        """
        Offer a URL the login view navigated to.

        Returns False if the URL is not the Apple redirect URL. Otherwise the pending
        authentication is completed (or failed) and True is returned.
        """
        if not url.startswith(self.response_url):
            return False
        pending = self._pending
        if pending is None or pending.done():
            logger.warning("Received Apple callback with no pending authentication")
            return True
        try:
            auth_data = await self._exchange(url)
        except Exception as e:
            if not pending.done():
                pending.set_exception(e)
            return True
        if not pending.done():
            self.access_token = auth_data["token"]
            pending.set_result(auth_data)
            logger.info("Apple login completed for user %s", auth_data["id"])
        return True

    def deauthenticate(self) -> None:
        self.access_token = None

    def restore_authentication(self, auth_data: Optional[Dict[str, Any]]) -> bool:
        """Restore the access token from stored auth data; None logs out."""
        if auth_data is None:
            self.deauthenticate()
        else:
            self.access_token = auth_data["token"]
        return True
