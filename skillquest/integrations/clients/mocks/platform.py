"""
In-process Platform Client.

Purpose:
- Runs the reference FastAPI app (skillquest/api/main.py) inside the current
  event loop through httpx's ASGI transport
- Does NOT open sockets; storage is the in-memory stub, grading is the
  pattern grader

Usage:
- Local development, demos and end-to-end tests of the hook layer
- Selected in skillquest/integrations/clients/__init__.py when
  PLATFORM_CLIENT_MODE=mock or no PLATFORM_API_URL is configured

Swap:
Point PLATFORM_API_URL at a deployed API to get the real HTTP client instead.
"""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import FastAPI

from skillquest.integrations.clients.real_http.platform import DEFAULT_SESSION_COOKIE, HttpPlatformClient


class InProcessPlatformClient(HttpPlatformClient):
    def __init__(
        self,
        app: Optional[FastAPI] = None,
        *,
        session_token: Optional[str] = None,
        session_cookie: str = DEFAULT_SESSION_COOKIE,
        strict_path_params: bool = False,
    ) -> None:
        if app is None:
            from skillquest.api.main import create_app

            app = create_app()
        self.app = app
        super().__init__(
            "http://skillquest.local",
            session_token=session_token or "",
            session_cookie=session_cookie,
            strict_path_params=strict_path_params,
            transport=httpx.ASGITransport(app=app),
        )
