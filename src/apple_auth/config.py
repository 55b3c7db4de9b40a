"""
Environment configuration for the Apple provider.

APPLE_APP_ID is required. APPLE_PERMISSIONS is a comma separated scope list.
APPLE_LOGIN_DIALOG_URL and APPLE_RESPONSE_URL override the provider endpoints and
are only meant for tests against a fake identity provider.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from apple_auth.errors import ProviderNotInitializedError


@dataclass
class AppleSettings:
    app_id: str
    permissions: List[str] = field(default_factory=list)
    login_dialog_url: Optional[str] = None
    response_url: Optional[str] = None


def _split_permissions(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def load_settings(dotenv: bool = True) -> AppleSettings:
    """Read Apple settings from the environment, plus a .env found from the cwd unless dotenv=False."""
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    app_id = os.getenv("APPLE_APP_ID")
    if not app_id:
        raise ProviderNotInitializedError("APPLE_APP_ID is not set")
    return AppleSettings(
        app_id=app_id,
        permissions=_split_permissions(os.getenv("APPLE_PERMISSIONS")),
        login_dialog_url=os.getenv("APPLE_LOGIN_DIALOG_URL") or None,
        response_url=os.getenv("APPLE_RESPONSE_URL") or None,
    )
