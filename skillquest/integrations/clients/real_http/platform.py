"""
Real Platform HTTP Client.

Purpose:
- Issues every platform API operation described in contracts/routes.py
- Carries the ambient session cookie; never manages login itself
- Hands each response to policy/response_wrappers.py for contract checks

Important:
- Keep this client as the ONLY place where platform HTTP calls are made.
- Timeouts are transport configuration (`timeout_seconds`); no retries here.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

import httpx

from skillquest.integrations.contracts.interfaces import PlatformClient
from skillquest.integrations.contracts.routes import OperationDescriptor
from skillquest.integrations.contracts.urls import build_url, unresolved_placeholders, with_query
from skillquest.integrations.errors import TransportError
from skillquest.integrations.policy.response_wrappers import (
    parse_response,
    validate_query,
    validate_request_body,
)

logger = logging.getLogger(__name__)

DEFAULT_SESSION_COOKIE = "sid"


class HttpPlatformClient(PlatformClient):
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session_token: Optional[str] = None,
        session_cookie: str = DEFAULT_SESSION_COOKIE,
        timeout_seconds: float = 20.0,
        strict_path_params: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("PLATFORM_API_URL", "")).rstrip("/")
        self.session_cookie = session_cookie
        self.strict_path_params = strict_path_params
        self.timeout_seconds = timeout_seconds

        token = session_token if session_token is not None else os.getenv("PLATFORM_SESSION", "")
        cookies: Dict[str, str] = {session_cookie: token} if token else {}

        self._client = httpx.AsyncClient(
            base_url=self.base_url or "http://localhost",
            cookies=cookies,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def set_session(self, token: Optional[str]) -> None:
        """Swap the ambient session cookie (None logs the client out locally)."""
        self._client.cookies.delete(self.session_cookie)
        if token:
            self._client.cookies.set(self.session_cookie, token)

    async def execute(
        self,
        descriptor: OperationDescriptor,
        *,
        params: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        path = build_url(descriptor.path_template, params, strict=self.strict_path_params)
        missing = unresolved_placeholders(path)
        if missing:
            logger.warning("%s: unresolved path placeholders %s in %s", descriptor.name, missing, path)

        url = with_query(path, validate_query(descriptor, query))
        payload = validate_request_body(descriptor, body) if descriptor.is_mutation else None

        logger.debug("%s %s (%s)", descriptor.method.value, url, descriptor.name)
        try:
            response = await self._client.request(
                descriptor.method.value,
                url,
                json=payload,
            )
        except httpx.HTTPError as exc:
            logger.error("%s: transport failure for %s: %s", descriptor.name, url, exc)
            raise TransportError(
                f"Could not reach the platform API ({type(exc).__name__})",
                operation=descriptor.name,
            ) from exc

        logger.debug("%s -> HTTP %s", descriptor.name, response.status_code)
        return parse_response(descriptor, response.status_code, response.content)

    async def aclose(self) -> None:
        await self._client.aclose()
