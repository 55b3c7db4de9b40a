"""
FastAPI auth router: login, callback, /me, logout.

For hosts whose login view reports navigations over HTTP: /login starts an Apple
login in the background and redirects to the login dialog, and the view posts each
URL it lands on to /auth/callback.
"""

import asyncio
import logging
from typing import Optional

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from apple_auth.errors import AppleAuthError, ProviderNotInitializedError
from apple_auth.utils import AppleUtils

logger = logging.getLogger(__name__)


class NavigationEvent(BaseModel):
    url: str


def create_auth_router(utils: AppleUtils) -> APIRouter:
    """Create an APIRouter with /login, /auth/callback, /me, and /logout endpoints."""
    provider = utils.provider
    router = APIRouter()
    state: dict = {"login": None}

    @router.get("/login")
    async def login():
        """Start an Apple login and redirect to the Apple login dialog."""
        dialog_urls: list = []
        provider.subscribe_navigate(dialog_urls.append)
        try:
            task = asyncio.create_task(utils.log_in_with_apple())
            state["login"] = task
            # Let the task run up to the point where it waits for the callback.
            await asyncio.sleep(0)
        finally:
            provider.unsubscribe_navigate(dialog_urls.append)
        if task.done() and not task.cancelled() and task.exception() is not None:
            state["login"] = None
            error = task.exception()
            if isinstance(error, ProviderNotInitializedError):
                return JSONResponse({"error": str(error)}, status_code=500)
            raise error
        return RedirectResponse(url=dialog_urls[-1])

    @router.post("/auth/callback", name="auth_callback")
    async def auth_callback(event: NavigationEvent):
        """Feed a navigation to the provider and wait for the login it completes."""
        task: Optional[asyncio.Task] = state["login"]
        if task is None:
            return JSONResponse({"error": "No Apple login in progress"}, status_code=400)
        if not await provider.handle_navigation(event.url):
            return JSONResponse({"error": "Not an Apple callback URL"}, status_code=400)
        state["login"] = None
        try:
            await task
        except asyncio.CancelledError:
            # Our own request being cancelled must still propagate.
            if not task.cancelled():
                raise
            return JSONResponse({"error": "Apple login was cancelled"}, status_code=409)
        except (AppleAuthError, httpx.HTTPError) as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        return {"logged_in": True}

    @router.get("/me")
    async def me():
        """Return the configured application id and whether an Apple token is held."""
        return {
            "application_id": utils.application_id,
            "authenticated": utils.access_token is not None,
        }

    @router.get("/logout")
    async def logout():
        """Forget the Apple token and redirect to home."""
        provider.deauthenticate()
        return RedirectResponse(url="/")

    return router
