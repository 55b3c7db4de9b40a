import httpx
import pytest

from apple_auth.apple import AppleAuthenticationProvider
from apple_auth.utils import AppleUtils


class FakeSession:
    """Stand-in for the host session subsystem."""

    def __init__(self):
        self.providers = []
        self.logins = []

    def register_provider(self, provider):
        self.providers.append(provider)

    async def log_in_with(self, auth_type, auth_data):
        self.logins.append((auth_type, auth_data))
        return {"objectId": "user-1", "authData": {auth_type: auth_data}}


class FakeUser:
    def __init__(self):
        self.auth_data = {}

    async def link_with(self, auth_type, auth_data):
        self.auth_data[auth_type] = auth_data

    async def unlink_from(self, auth_type):
        self.auth_data.pop(auth_type, None)

    def is_linked(self, auth_type):
        return auth_type in self.auth_data


@pytest.fixture
def me_requests():
    return []


@pytest.fixture
def me_response():
    """Response returned by the fake Apple /me endpoint; tests may replace it."""
    return {"status_code": 200, "json": {"id": "1234"}}


@pytest.fixture
def http_client(me_requests, me_response):
    def handler(request: httpx.Request) -> httpx.Response:
        me_requests.append(request)
        return httpx.Response(me_response["status_code"], json=me_response["json"])

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def provider(http_client, navigations):
    p = AppleAuthenticationProvider(app_id="app-123", http_client=http_client)
    p.subscribe_navigate(navigations.append)
    return p


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def user():
    return FakeUser()


@pytest.fixture
def utils(session, provider):
    return AppleUtils(session, provider)
